"""Coalesce bursts of minor scene edits into single document writes."""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, List, Protocol, Sequence

from .change_classifier import ChangeSize, ChangeVerdict
from .documents import DialogueDocument, TextDocument
from .scene_model import Scene
from .settings import SyncSettings

logger = logging.getLogger(__name__)


class TimerHandle(Protocol):
    def cancel(self) -> None:
        """Prevent the scheduled callback from running."""


class Scheduler(Protocol):
    """Anything able to run a callback after a delay.

    :class:`asyncio.AbstractEventLoop` satisfies this protocol.
    """

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        """Run ``callback`` once after ``delay`` seconds."""


class ChangeDebouncer:
    """Per-document trailing debounce keyed by change identifier.

    Minor edits to the same field restart the delay window and replace the
    pending snapshot. A minor edit to a different field first writes the
    pending snapshot, then opens a new window. Major edits, and every edit when
    the delay is zero, cancel any pending write and are written immediately.
    At most one timer is pending at any time.
    """

    def __init__(
        self,
        document: TextDocument,
        settings: SyncSettings | None = None,
        *,
        scheduler: Scheduler | None = None,
    ) -> None:
        settings = settings or SyncSettings()
        self._delay_ms = settings.edit_delay_ms
        self._dialogue = DialogueDocument(
            document,
            tab_size=settings.tab_size,
            format_version=settings.format_version,
        )
        self._scheduler = scheduler
        self._pending_change_id: str | None = None
        self._pending_scenes: List[Scene] | None = None
        self._timer: TimerHandle | None = None

    @property
    def delay_ms(self) -> int:
        return self._delay_ms

    @property
    def pending_change_id(self) -> str | None:
        return self._pending_change_id

    @property
    def has_pending(self) -> bool:
        return self._pending_scenes is not None

    def enqueue_change(self, scenes: Sequence[Scene], verdict: ChangeVerdict) -> None:
        """Decide whether ``scenes`` is written now, later, or not at all."""

        if self._delay_ms == 0 or verdict.size is ChangeSize.MAJOR:
            self.clear()
            self._write(scenes)
            return

        if verdict.size is ChangeSize.NONE:
            return

        if (
            self._pending_change_id is not None
            and verdict.change_id != self._pending_change_id
        ):
            self.flush_changes()

        self.clear()
        self._pending_change_id = verdict.change_id
        self._pending_scenes = list(scenes)
        self._timer = self._resolve_scheduler().call_later(
            self._delay_ms / 1000, self._on_timer
        )
        logger.debug(
            "Scheduled write for %s in %d ms", verdict.change_id, self._delay_ms
        )

    def flush_changes(self) -> bool:
        """Write the pending snapshot now, if there is one."""

        scenes = self._pending_scenes
        self.clear()
        if scenes is None:
            return False
        return self._write(scenes)

    def clear(self) -> None:
        """Drop any pending snapshot without writing it."""

        self._pending_change_id = None
        self._pending_scenes = None
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def dispose(self) -> None:
        self.clear()

    def _on_timer(self) -> None:
        self._timer = None
        self.flush_changes()

    def _write(self, scenes: Sequence[Scene]) -> bool:
        written = self._dialogue.write_scenes(scenes)
        if written:
            logger.debug("Wrote %d scene(s) to the dialogue document", len(scenes))
        else:
            logger.warning("Dialogue document rejected the write; not retrying")
        return written

    def _resolve_scheduler(self) -> Scheduler:
        if self._scheduler is None:
            return asyncio.get_running_loop()
        return self._scheduler


__all__ = ["ChangeDebouncer", "Scheduler", "TimerHandle"]
