"""CLI entry point for gitstate."""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path

import click

from gitstate import __version__
from gitstate.constants import DEFAULT_CONFIG_PATH

_path_argument = click.argument(
    "path", default=".", type=click.Path(exists=True, file_okay=False, path_type=Path)
)
_config_option = click.option("--config", default=DEFAULT_CONFIG_PATH, help="Path to config file")


@click.group(invoke_without_command=True)
@click.option("--version", is_flag=True, help="Show version and exit")
@click.pass_context
def cli(ctx: click.Context, version: bool) -> None:
    """Live, optimistic git status in the terminal."""
    if version:
        click.echo(f"gitstate {__version__}")
        ctx.exit(0)

    # Run TUI by default if no subcommand
    if ctx.invoked_subcommand is None:
        ctx.invoke(tui)


@cli.command()
@_path_argument
@_config_option
def tui(path: Path = Path("."), config: str = DEFAULT_CONFIG_PATH) -> None:
    """Run the status TUI (default command)."""
    # Import here to avoid slow startup for --help/--version
    from gitstate.app import GitstateApp

    app = GitstateApp(repo_path=path, config_path=config)
    app.run()
    if app.return_code:
        sys.exit(app.return_code)


@cli.command()
@_path_argument
@_config_option
def status(path: Path, config: str) -> None:
    """Print a one-shot status summary."""
    from gitstate.config import GitstateConfig
    from gitstate.state.models import Section
    from gitstate.state.registry import RepoStateRegistry
    from gitstate.ui.widgets.file_row import format_row
    from gitstate.ui.widgets.status_header import format_header

    settings = GitstateConfig.load(Path(config))

    async def _load():
        registry = RepoStateRegistry(config=settings.status)
        try:
            coordinator = await registry.get(path)
            if coordinator is None:
                return None
            return await coordinator.refresh(force=True)
        finally:
            await registry.clear()

    snapshot = asyncio.run(_load())
    if snapshot is None:
        raise click.ClickException(f"Not a git repository (or status failed): {path}")

    click.echo(format_header(snapshot))
    if snapshot.is_clean:
        click.echo("\nNothing to commit, working tree clean")
        return
    for section in (Section.CONFLICTED, Section.UNTRACKED, Section.UNSTAGED, Section.STAGED):
        entries = snapshot.section(section)
        if not entries:
            continue
        click.echo(f"\n{section.value.capitalize()} ({len(entries)})")
        for entry in entries:
            click.echo(f"  {format_row(entry, section)}")


if __name__ == "__main__":
    cli()
