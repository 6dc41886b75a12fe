"""agent-workspace: profile-driven launcher for developer workspaces."""

__version__ = "0.1.0"
