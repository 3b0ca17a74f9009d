"""Test configuration for the dialogue synchronisation project."""

from __future__ import annotations

import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from collections.abc import Callable, Sequence
from typing import Any

import pytest

from dialoguesync import Button, Scene


class ManualTimer:
    def __init__(self, due: float, callback: Callable[[], None]) -> None:
        self.due = due
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """Deterministic scheduler whose clock only moves when told to.

    Time is tracked in milliseconds to keep assertions readable, while
    ``call_later`` accepts seconds like :meth:`asyncio.AbstractEventLoop.call_later`.
    """

    def __init__(self) -> None:
        self.now_ms = 0.0
        self.timers: list[ManualTimer] = []

    def call_later(self, delay: float, callback: Callable[[], None]) -> ManualTimer:
        timer = ManualTimer(self.now_ms + delay * 1000, callback)
        self.timers.append(timer)
        return timer

    @property
    def pending(self) -> list[ManualTimer]:
        return [timer for timer in self.timers if not timer.cancelled]

    def advance_to(self, time_ms: float) -> None:
        """Run every timer due up to ``time_ms`` in due order."""

        while True:
            due = [
                timer
                for timer in self.pending
                if timer.due <= time_ms
            ]
            if not due:
                break
            timer = min(due, key=lambda entry: entry.due)
            self.now_ms = timer.due
            self.timers.remove(timer)
            timer.callback()
        self.now_ms = time_ms

    def advance(self, delta_ms: float) -> None:
        self.advance_to(self.now_ms + delta_ms)


@pytest.fixture()
def scheduler() -> ManualScheduler:
    return ManualScheduler()


def build_scene(
    scene_id: str = "guard",
    *,
    npc_name: str = "Guard",
    scene_text: str = "Halt!\nWho goes there?",
    buttons: Sequence[Button] | None = None,
    open_commands: Sequence[str] = (),
    close_commands: Sequence[str] = (),
) -> Scene:
    if buttons is None:
        buttons = (
            Button("Friend", ("/say friend",)),
            Button("Foe", ("/say foe", "/summon zombie")),
        )
    return Scene(
        scene_id=scene_id,
        npc_name=npc_name,
        scene_text=scene_text,
        buttons=tuple(buttons),
        open_commands=tuple(open_commands),
        close_commands=tuple(close_commands),
    )


@pytest.fixture()
def make_scene() -> Any:
    """Factory fixture for building scenes with sensible defaults."""

    return build_scene


__all__ = ["ManualScheduler", "ManualTimer", "build_scene", "scheduler", "make_scene"]
