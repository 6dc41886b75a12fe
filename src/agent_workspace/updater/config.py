"""Settings for the self-updater.

Defaults live in module constants. ``UpdaterSettings.from_env`` lets
operators point the updater at a mirror or fork without a rebuild.
"""

import math
import os
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Final

# GitHub repository that publishes aw releases
GITHUB_REPO: Final = "hiragram/agent-workspace"
GITHUB_API_URL: Final = "https://api.github.com"

# Name of the executable inside release archives
BINARY_NAME: Final = "aw"

# User agent for GitHub API (required by GitHub)
USER_AGENT: Final = "aw-updater/1.0"

# Seconds before a single HTTP request is abandoned
DEFAULT_TIMEOUT: Final = 30.0

ENV_API_URL: Final = "AW_GITHUB_API_URL"
ENV_REPO: Final = "AW_UPDATE_REPO"
ENV_TIMEOUT: Final = "AW_UPDATE_TIMEOUT"
ENV_MAX_BINARY_SIZE: Final = "AW_MAX_BINARY_SIZE"


@dataclass(frozen=True)
class UpdaterSettings:
    """Where releases come from and how they are fetched."""

    repo: str = GITHUB_REPO
    api_url: str = GITHUB_API_URL
    binary_name: str = BINARY_NAME
    user_agent: str = USER_AGENT
    timeout: float = DEFAULT_TIMEOUT
    # None keeps the whole extracted binary in memory regardless of size
    max_binary_size: int | None = None

    @property
    def latest_release_url(self) -> str:
        return f"{self.api_url.rstrip('/')}/repos/{self.repo}/releases/latest"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "UpdaterSettings":
        """Build settings from ``AW_*`` environment variables.

        Raises:
            ValueError: If a variable is set to something unusable.
        """
        env = os.environ if environ is None else environ
        kwargs: dict = {}

        if api_url := env.get(ENV_API_URL):
            if not api_url.startswith(("http://", "https://")):
                raise ValueError(f"{ENV_API_URL} must be an http(s) URL, got {api_url!r}")
            kwargs["api_url"] = api_url

        if repo := env.get(ENV_REPO):
            owner, sep, name = repo.partition("/")
            if not sep or not owner or not name or "/" in name:
                raise ValueError(f"{ENV_REPO} must look like 'owner/name', got {repo!r}")
            kwargs["repo"] = repo

        if timeout := env.get(ENV_TIMEOUT):
            try:
                kwargs["timeout"] = float(timeout)
            except ValueError:
                raise ValueError(f"{ENV_TIMEOUT} must be a number of seconds, got {timeout!r}") from None
            if not math.isfinite(kwargs["timeout"]) or kwargs["timeout"] <= 0:
                raise ValueError(f"{ENV_TIMEOUT} must be a positive finite number, got {timeout!r}")

        if max_size := env.get(ENV_MAX_BINARY_SIZE):
            if not (max_size.isascii() and max_size.isdigit()) or int(max_size) == 0:
                raise ValueError(f"{ENV_MAX_BINARY_SIZE} must be a positive byte count, got {max_size!r}")
            kwargs["max_binary_size"] = int(max_size)

        return cls(**kwargs)
