"""
CLI commands for asset-sync.

Provides the `asset-sync` command-line interface for project initialization,
status checking, live watching and offline reference relinking.
"""

import asyncio
import logging
import os
import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.progress import BarColumn, Progress, TextColumn
from rich.table import Table

from config.loader import ConfigError, ConfigurationLoader
from core.content.session import AutoUserInterface
from core.content.workspace import ContentWorkspace
from core.models.config import GlobalSettings, ProjectConfig
from core.sync.events import FileEvent
from core.sync.paths import normalize_path
from core.sync.propagator import TASK_CAPTION
from core.sync.signals import SignalKind
from core.sync.tasks import InlineTaskHost
from .console import ConsoleUserInterface, RenameProgressDisplay

console = Console()
logger = logging.getLogger(__name__)

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def _setup_logging(settings: GlobalSettings, verbose: bool) -> None:
    level = logging.DEBUG if verbose else getattr(logging, settings.log_level, logging.INFO)
    handlers = [logging.StreamHandler(sys.stderr)]
    log_file = settings.get_log_file()
    if log_file:
        handlers.append(logging.FileHandler(log_file, encoding='utf-8'))
    logging.basicConfig(level=level, format=LOG_FORMAT, handlers=handlers, force=True)


def _load_config(project: str) -> ProjectConfig:
    try:
        return ConfigurationLoader().load_project_config(project)
    except ConfigError as e:
        console.print(f"[red]❌ {e}[/red]")
        sys.exit(1)


@click.group()
@click.version_option(version="1.0.0", prog_name="asset-sync")
@click.option('--verbose', '-v', is_flag=True, help='Enable debug logging')
def main(verbose: bool):
    """
    asset-sync CLI.

    Keep a project's content cache, references and source/media tree in sync
    with changes made outside the editor.
    """
    _setup_logging(GlobalSettings(), verbose)


@main.command()
@click.argument('project', type=click.Path(exists=True, file_okay=False))
@click.option('--force', '-f', is_flag=True, help='Overwrite existing configuration')
def init(project: str, force: bool):
    """Initialize asset-sync for PROJECT."""
    loader = ConfigurationLoader()
    try:
        existing = (Path(project) / ".asset-sync" / "config.json").exists()
        if existing and not force:
            console.print("[yellow]⚠️  Project already initialized. Use --force to overwrite.[/yellow]")
            return
        config = loader.setup_project(project, overwrite=force)
    except ConfigError as e:
        console.print(f"[red]❌ Failed to initialize project: {e}[/red]")
        sys.exit(1)

    console.print(f"[green]✅ Initialized '{config.name}'[/green]")
    console.print(f"[dim]Data:   {config.data_dir}[/dim]")
    console.print(f"[dim]Media:  {config.media_dir}[/dim]")
    console.print(f"[dim]Config: {config.get_config_file()}[/dim]")


@main.command()
@click.argument('project', type=click.Path(exists=True, file_okay=False))
def status(project: str):
    """Show the configuration and content summary of PROJECT."""
    config = _load_config(project)
    workspace = ContentWorkspace(config)

    table = Table(title=f"asset-sync: {config.name}")
    table.add_column("Component", style="cyan", no_wrap=True)
    table.add_column("Status", style="white")
    table.add_column("Details", style="dim")

    if config.is_initialized:
        table.add_row("Project Config", "[green]✅ Initialized[/green]", str(config.get_config_file()))
    else:
        table.add_row("Project Config", "[red]❌ Not initialized[/red]", "Run 'asset-sync init' first")

    for label, directory in (
        ("Data Tree", config.data_dir),
        ("Source Tree", config.source_dir),
        ("Media Tree", config.media_dir),
    ):
        if directory.is_dir():
            table.add_row(label, "[green]✅ Present[/green]", str(directory))
        else:
            table.add_row(label, "[red]❌ Missing[/red]", str(directory))

    plugin_dir = config.plugin_dir
    if plugin_dir is not None:
        state = "[green]✅ Present[/green]" if plugin_dir.is_dir() else "[yellow]Not watched[/yellow]"
        table.add_row("Plugins", state, str(plugin_dir))

    resources = workspace.provider.list_all_on_disk()
    table.add_row("Resources", f"[yellow]{len(resources)}[/yellow]", "Resource files in the data tree")

    engine = config.engine
    table.add_row(
        "Engine",
        f"[yellow]{engine.quiescence_ms} ms[/yellow]",
        f"poll {engine.poll_interval_ms} ms, reimport grace {engine.reimport_grace_ms} ms",
    )

    console.print(table)


@main.command()
@click.argument('project', type=click.Path(exists=True, file_okay=False))
@click.option('--yes', '-y', is_flag=True, help='Reload externally modified documents without asking')
@click.option(
    '--reimport-interval',
    type=float,
    default=2.0,
    show_default=True,
    help='Seconds between reimports of changed source files'
)
def watch(project: str, yes: bool, reimport_interval: float):
    """Watch PROJECT and keep its content in sync until interrupted."""
    config = _load_config(project)
    ui = AutoUserInterface() if yes else ConsoleUserInterface(console)
    workspace = ContentWorkspace(config, ui=ui)
    workspace.ensure_directories()

    console.print(f"[blue]👀 Watching {config.path} (Ctrl+C to stop)[/blue]")
    try:
        asyncio.run(_run_watch(workspace, reimport_interval))
    except KeyboardInterrupt:
        pass
    console.print("[green]Stopped watching.[/green]")


async def _run_watch(workspace: ContentWorkspace, reimport_interval: float) -> None:
    rename_progress = RenameProgressDisplay(console, TASK_CAPTION)
    engine = workspace.build_engine(on_progress=rename_progress.update)
    watcher = workspace.build_watcher(engine)

    engine.subscribe(SignalKind.RESOURCE_CREATED, lambda e: console.print(f"[green]+ {e.path}[/green]"))
    engine.subscribe(SignalKind.RESOURCE_DELETED, lambda e: console.print(f"[red]- {e.path}[/red]"))
    engine.subscribe(SignalKind.RESOURCE_MODIFIED, lambda e: console.print(f"[yellow]~ {e.path}[/yellow]"))
    engine.subscribe(
        SignalKind.RESOURCE_RENAMED,
        lambda e: console.print(f"[cyan]→ {e.old_path} → {e.path}[/cyan]")
    )
    engine.subscribe(
        SignalKind.PLUGIN_BINARY_CHANGED,
        lambda e: console.print(f"[magenta]Plugin changed: {e.path}[/magenta]")
    )

    if not await watcher.start_monitoring():
        console.print("[red]❌ Failed to start watching. See log output for details.[/red]")
        return

    engine_task = asyncio.create_task(engine.run())
    try:
        # A terminal has no focus events; reimport periodically instead
        while not engine_task.done():
            await asyncio.sleep(reimport_interval)
            reimported = await engine.handle_host_activated()
            for path in reimported:
                console.print(f"[blue]Reimported {path}[/blue]")
    finally:
        engine.stop()
        await watcher.stop_monitoring()
        await engine_task
        rename_progress.finish()


def _resolve(project_path: Path, path: str) -> str:
    if os.path.isabs(path):
        return normalize_path(path)
    return normalize_path(os.path.join(project_path, path))


@main.command()
@click.argument('project', type=click.Path(exists=True, file_okay=False))
@click.argument('old')
@click.argument('new')
def relink(project: str, old: str, new: str):
    """
    Rewrite references from OLD to NEW in PROJECT.

    For renames done while nobody was watching. Paths may be absolute or
    relative to the project root; NEW must exist.
    """
    config = _load_config(project)
    old_path = _resolve(config.path, old)
    new_path = _resolve(config.path, new)

    if not os.path.exists(new_path):
        console.print(f"[red]❌ {new_path} does not exist[/red]")
        sys.exit(1)

    rename = FileEvent.renamed(old_path, new_path, is_directory=os.path.isdir(new_path))

    workspace = ContentWorkspace(config)
    engine = workspace.build_engine(task_host=InlineTaskHost())
    propagator = engine.propagator
    failure: Optional[BaseException] = None

    def on_complete(error: Optional[BaseException]) -> None:
        nonlocal failure
        failure = error

    with Progress(TextColumn("{task.description}"), BarColumn(), console=console) as progress:
        task_id = progress.add_task(TASK_CAPTION, total=1.0)
        engine.task_host.run(
            TASK_CAPTION,
            propagator.steps([rename]),
            on_progress=lambda fraction, label: progress.update(task_id, completed=fraction),
            on_complete=on_complete,
        )

    if failure is not None:
        console.print(f"[red]❌ Relinking failed: {failure}[/red]")
        sys.exit(1)

    console.print(
        f"[green]✅ {propagator.references_changed} references updated "
        f"in {propagator.files_saved} files[/green]"
    )
    if propagator.files_skipped:
        console.print(f"[yellow]⚠️  {propagator.files_skipped} files skipped, see log output[/yellow]")


if __name__ == '__main__':
    main()
