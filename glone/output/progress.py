"""Per-repository transfer progress rendered with Rich.

``RichProgress`` implements ``ProgressObserver``: every label (provider
name) gets its own bar, driven only by the counters the transport reports.
"""

from __future__ import annotations

import threading
from types import TracebackType

from rich.console import Console
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    TaskID,
    TextColumn,
    TimeElapsedColumn,
)

from glone.git.transport import TransferProgress

__all__ = ["RichProgress"]


class RichProgress:
    """Progress bars for concurrent or sequential transfers."""

    def __init__(self, console: Console | None = None, *, disable: bool = False) -> None:
        self._progress = Progress(
            TimeElapsedColumn(),
            BarColumn(bar_width=40, style="blue", complete_style="cyan"),
            MofNCompleteColumn(),
            TextColumn("{task.fields[received]}", style="dim"),
            TextColumn("{task.description}"),
            console=console,
            disable=disable,
        )
        self._tasks: dict[str, TaskID] = {}
        self._last: dict[str, TransferProgress] = {}
        self._lock = threading.Lock()

    def __enter__(self) -> RichProgress:
        self._progress.start()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self._progress.stop()

    def started(self, label: str) -> None:
        with self._lock:
            self._tasks[label] = self._progress.add_task(label, total=None, received="")

    def advanced(self, label: str, progress: TransferProgress) -> None:
        task = self._task(label)
        if task is None:
            return
        self._progress.update(
            task,
            completed=progress.received,
            total=progress.total or None,
            received=_format_bytes(progress.received_bytes),
        )
        with self._lock:
            self._last[label] = progress

    def finished(self, label: str, ok: bool) -> None:
        task = self._task(label)
        if task is None:
            return
        if ok:
            with self._lock:
                last = self._last.get(label, TransferProgress())
            total = max(last.total, last.received)
            self._progress.update(
                task, total=total or 1, completed=total or 1, description=f"{label} finished"
            )
        else:
            self._progress.update(task, description=f"{label} failed")
        self._progress.stop_task(task)

    def _task(self, label: str) -> TaskID | None:
        with self._lock:
            return self._tasks.get(label)


def _format_bytes(count: int) -> str:
    size = float(count)
    for unit in ("B", "KiB", "MiB"):
        if size < 1024:
            return f"{size:.0f} {unit}" if unit == "B" else f"{size:.1f} {unit}"
        size /= 1024
    return f"{size:.1f} GiB"
