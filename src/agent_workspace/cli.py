"""aw CLI entry point."""

import logging

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from agent_workspace import __version__

console = Console()
err_console = Console(stderr=True)


def setup_logging(verbose: bool = False) -> None:
    """Configure logging with rich handler."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, console=err_console)],
    )


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose logging")
@click.version_option(__version__, "--version", prog_name="aw", message="%(prog)s %(version)s")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """aw - launch developer workspaces from named profiles."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    setup_logging(verbose)


# =============================================================================
# Self-Update Commands
# =============================================================================


def _load_settings():
    from agent_workspace.updater import UpdaterSettings

    try:
        return UpdaterSettings.from_env()
    except ValueError as e:
        err_console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise SystemExit(1) from None


@cli.group(invoke_without_command=True)
@click.pass_context
def update(ctx: click.Context) -> None:
    """Update aw to the latest GitHub release.

    The new executable is written next to the installed one and renamed
    over it, so an interrupted update leaves the old version in place.
    """
    if ctx.invoked_subcommand is not None:
        return

    from agent_workspace.updater import run_update

    result = run_update(__version__, _load_settings())

    if not result.ok:
        err_console.print(f"[red]Error:[/red] {escape(result.message)}")
        raise SystemExit(1)


@update.command("check")
def update_check() -> None:
    """Check for a newer release without installing it."""
    from agent_workspace.updater import UpdateStatus, check_for_updates

    result = check_for_updates(__version__, _load_settings())

    if result.status == UpdateStatus.UP_TO_DATE:
        console.print(f"[green]✓[/green] {escape(result.message)}")
    elif result.status == UpdateStatus.UPDATE_AVAILABLE:
        console.print(f"[yellow]→[/yellow] {escape(result.message)}")
        console.print(f"  Current: [dim]{escape(result.current_version)}[/dim]")
        console.print(f"  Latest:  [cyan]{escape(result.latest_version or '')}[/cyan]")
        console.print("\nRun [cyan]aw update[/cyan] to update")
    else:
        err_console.print(f"[red]Error:[/red] {escape(result.message)}")
        raise SystemExit(1)


def main() -> None:
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
