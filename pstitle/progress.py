from rich.console import Console
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TimeElapsedColumn,
    TimeRemainingColumn,
)


class ProgressTracker:
    # Position freezes once finished.

    def __init__(self, total: int, completed: int = 0, *, visible: bool = True, console: Console | None = None) -> None:
        self._progress = Progress(
            SpinnerColumn(style="green"),
            TimeElapsedColumn(),
            BarColumn(bar_width=40, style="blue", complete_style="cyan"),
            MofNCompleteColumn(),
            TimeRemainingColumn(),
            console=console or Console(stderr=True),
            disable=not visible,
            transient=False,
        )
        self._task: TaskID = self._progress.add_task("records", total=total, completed=completed)
        self._started = False
        self._finished = False

    @property
    def position(self) -> int:
        return int(self._progress.tasks[0].completed)

    @property
    def finished(self) -> bool:
        return self._finished

    def start(self) -> None:
        if self._started or self._finished:
            return
        self._started = True
        self._progress.start()

    def advance(self, steps: int = 1) -> None:
        if self._finished:
            return
        self._progress.advance(self._task, steps)

    def finish(self) -> None:
        if self._finished:
            return
        self._finished = True
        if self._started:
            self._progress.stop()
