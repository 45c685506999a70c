"""
Cooperative task hosts.

A cooperative task is an iterator that performs one bounded unit of work per
``next()`` call and yields a TaskProgress snapshot. Hosts drive it on the
owner thread and hand control back to the event loop between steps.
"""

import asyncio
import logging
from typing import Iterator, Optional, Set

from .interfaces import CompletionCallback, ProgressCallback, TaskHost, TaskProgress

logger = logging.getLogger(__name__)


def _report(on_progress: Optional[ProgressCallback], progress: TaskProgress) -> None:
    if on_progress is None:
        return
    try:
        on_progress(progress.fraction, progress.label)
    except Exception as e:
        logger.warning(f"Error in progress callback: {e}")


def _complete(on_complete: Optional[CompletionCallback], error: Optional[BaseException]) -> None:
    if on_complete is None:
        return
    try:
        on_complete(error)
    except Exception as e:
        logger.warning(f"Error in task completion callback: {e}")


class InlineTaskHost(TaskHost):
    """
    Runs a task to completion immediately.

    Used for scripting (offline relinking) and tests, where nothing needs to
    stay responsive while the task runs.
    """

    def __init__(self):
        self.completed_tasks = 0

    def run(
        self,
        caption: str,
        steps: Iterator[TaskProgress],
        on_progress: Optional[ProgressCallback] = None,
        on_complete: Optional[CompletionCallback] = None
    ) -> None:
        logger.info(f"Running task: {caption}")
        error: Optional[BaseException] = None
        try:
            for progress in steps:
                _report(on_progress, progress)
        except Exception as e:
            logger.error(f"Task '{caption}' failed: {e}")
            error = e
        self.completed_tasks += 1
        _complete(on_complete, error)


class AsyncioTaskHost(TaskHost):
    """
    Runs tasks as asyncio tasks on the owner event loop.

    Every step is followed by ``await asyncio.sleep(0)``, so watchdog
    hand-offs and idle ticks keep being served while a long task runs.
    """

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop
        self._tasks: Set[asyncio.Task] = set()

    @property
    def active_tasks(self) -> int:
        return len(self._tasks)

    def run(
        self,
        caption: str,
        steps: Iterator[TaskProgress],
        on_progress: Optional[ProgressCallback] = None,
        on_complete: Optional[CompletionCallback] = None
    ) -> None:
        loop = self._loop or asyncio.get_running_loop()
        task = loop.create_task(self._drive(caption, steps, on_progress, on_complete))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _drive(
        self,
        caption: str,
        steps: Iterator[TaskProgress],
        on_progress: Optional[ProgressCallback],
        on_complete: Optional[CompletionCallback]
    ) -> None:
        logger.info(f"Started task: {caption}")
        error: Optional[BaseException] = None
        try:
            for progress in steps:
                _report(on_progress, progress)
                await asyncio.sleep(0)
        except asyncio.CancelledError as e:
            logger.warning(f"Task '{caption}' was cancelled")
            error = e
            _complete(on_complete, error)
            raise
        except Exception as e:
            logger.error(f"Task '{caption}' failed: {e}")
            error = e
        else:
            logger.info(f"Finished task: {caption}")
        _complete(on_complete, error)

    async def wait_all(self) -> None:
        """Wait until every running task has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
