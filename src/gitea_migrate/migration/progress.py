"""Progress reporting for migration passes."""

from typing import Optional

from rich.console import Console
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    TaskID,
    TextColumn,
    TimeElapsedColumn,
)


class ProgressReporter:
    """Progress sink notified by the orchestrator. Does nothing by default."""

    def start(self, total: int) -> None:
        pass

    def increment(self, by: int = 1) -> None:
        pass

    def stop(self) -> None:
        pass


class RichProgressReporter(ProgressReporter):
    """Renders a progress bar with rich."""

    def __init__(self, description: str = 'Migrating', console: Optional[Console] = None):
        self.description = description
        self.console = console
        self._progress: Optional[Progress] = None
        self._task: Optional[TaskID] = None

    def start(self, total: int) -> None:
        self.stop()
        self._progress = Progress(
            TextColumn('[progress.description]{task.description}'),
            BarColumn(),
            MofNCompleteColumn(),
            TimeElapsedColumn(),
            console=self.console,
        )
        self._task = self._progress.add_task(self.description, total=total)
        self._progress.start()

    def increment(self, by: int = 1) -> None:
        if self._progress is not None:
            self._progress.advance(self._task, by)

    def stop(self) -> None:
        if self._progress is None:
            return
        self._progress.stop()
        self._progress = None
        self._task = None

    @property
    def completed(self) -> float:
        """Steps completed in the running pass, 0 when idle."""
        if self._progress is None:
            return 0
        return self._progress.tasks[0].completed
