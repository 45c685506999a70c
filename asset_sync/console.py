"""
Interactive console user interface.

Asks reload questions on the terminal, prints change notifications and
shows the progress of rename propagations.
Prompts block the owner loop until answered, like a modal dialog would.
"""

import logging
from typing import Any, List, Optional

from rich.console import Console
from rich.progress import BarColumn, Progress, TaskID, TextColumn
from rich.prompt import Confirm

from core.sync.interfaces import UserInterface

logger = logging.getLogger(__name__)


class ConsoleUserInterface(UserInterface):
    """UserInterface backed by rich prompts."""

    def __init__(self, console: Console):
        self.console = console

    def confirm_reload(self, path: str) -> bool:
        return Confirm.ask(
            f"[yellow]'{path}' was modified outside the editor. "
            f"Reload it and discard the editor's version?[/yellow]",
            console=self.console,
            default=False,
        )

    def notify_changed(self, objects: List[Any]) -> None:
        for obj in objects:
            label = getattr(obj, 'path', None) or type(obj).__name__
            self.console.print(f"[dim]References updated in {label}[/dim]")


class RenameProgressDisplay:
    """
    Rich progress bar for rename propagations started by the engine.

    The bar appears with the first progress report of a propagation and goes
    away once it reports completion.
    """

    def __init__(self, console: Console, caption: str):
        self.caption = caption
        self.progress = Progress(
            TextColumn("{task.description}"),
            BarColumn(),
            TextColumn("{task.fields[label]}"),
            console=console,
            transient=True,
        )
        self._task_id: Optional[TaskID] = None

    @property
    def is_visible(self) -> bool:
        return self._task_id is not None

    def update(self, fraction: float, label: str) -> None:
        if self._task_id is None:
            self.progress.start()
            self._task_id = self.progress.add_task(self.caption, total=1.0, label="")
        self.progress.update(self._task_id, completed=fraction, label=label)
        if fraction >= 1.0:
            self.finish()

    def finish(self) -> None:
        if self._task_id is None:
            return
        self.progress.remove_task(self._task_id)
        self._task_id = None
        self.progress.stop()
