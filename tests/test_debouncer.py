"""Timing tests for :class:`dialoguesync.ChangeDebouncer`."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any

import pytest

from dialoguesync import (
    ChangeDebouncer,
    ChangeVerdict,
    InMemoryTextDocument,
    SyncSettings,
    parse_dialogue,
)

if TYPE_CHECKING:  # pragma: no cover - typing helper
    from tests.conftest import ManualScheduler


def _npc_names(text: str) -> list[str]:
    return [scene.npc_name for scene in parse_dialogue(text)]


@pytest.fixture()
def document() -> InMemoryTextDocument:
    return InMemoryTextDocument()


@pytest.fixture()
def debouncer(
    document: InMemoryTextDocument, scheduler: "ManualScheduler"
) -> ChangeDebouncer:
    return ChangeDebouncer(
        document, SyncSettings(edit_delay_ms=100), scheduler=scheduler
    )


def test_same_change_id_coalesces_into_one_delayed_write(
    debouncer: ChangeDebouncer,
    document: InMemoryTextDocument,
    scheduler: "ManualScheduler",
    make_scene: Any,
) -> None:
    verdict = ChangeVerdict.minor("guard.npcName")

    debouncer.enqueue_change([make_scene(npc_name="G")], verdict)
    scheduler.advance_to(50)
    debouncer.enqueue_change([make_scene(npc_name="Gu")], verdict)

    scheduler.advance_to(149)
    assert document.writes == []

    scheduler.advance_to(150)
    assert len(document.writes) == 1
    assert _npc_names(document.writes[0]) == ["Gu"]
    assert not debouncer.has_pending


def test_different_change_id_flushes_previous_change_immediately(
    debouncer: ChangeDebouncer,
    document: InMemoryTextDocument,
    scheduler: "ManualScheduler",
    make_scene: Any,
) -> None:
    debouncer.enqueue_change(
        [make_scene(npc_name="A")], ChangeVerdict.minor("guard.npcName")
    )
    scheduler.advance_to(10)
    debouncer.enqueue_change(
        [make_scene(npc_name="A", scene_text="B\nWho goes there?")],
        ChangeVerdict.minor("guard.sceneText.0"),
    )

    assert len(document.writes) == 1
    assert _npc_names(document.writes[0]) == ["A"]
    assert debouncer.pending_change_id == "guard.sceneText.0"

    scheduler.advance_to(109)
    assert len(document.writes) == 1
    scheduler.advance_to(110)
    assert len(document.writes) == 2
    assert parse_dialogue(document.writes[1])[0].scene_text.startswith("B\n")


def test_major_change_writes_now_and_cancels_pending_minor(
    debouncer: ChangeDebouncer,
    document: InMemoryTextDocument,
    scheduler: "ManualScheduler",
    make_scene: Any,
) -> None:
    debouncer.enqueue_change(
        [make_scene(npc_name="pending")], ChangeVerdict.minor("guard.npcName")
    )
    debouncer.enqueue_change([make_scene(npc_name="major")], ChangeVerdict.major())

    assert [_npc_names(text) for text in document.writes] == [["major"]]
    assert scheduler.pending == []

    scheduler.advance(1000)
    assert len(document.writes) == 1


def test_none_verdict_is_ignored(
    debouncer: ChangeDebouncer,
    document: InMemoryTextDocument,
    scheduler: "ManualScheduler",
    make_scene: Any,
) -> None:
    debouncer.enqueue_change([make_scene()], ChangeVerdict.none())
    scheduler.advance(1000)

    assert document.writes == []
    assert not debouncer.has_pending


def test_zero_delay_writes_minor_changes_immediately(
    document: InMemoryTextDocument, scheduler: "ManualScheduler", make_scene: Any
) -> None:
    debouncer = ChangeDebouncer(
        document, SyncSettings(edit_delay_ms=0), scheduler=scheduler
    )

    debouncer.enqueue_change([make_scene()], ChangeVerdict.minor("guard.npcName"))

    assert len(document.writes) == 1
    assert scheduler.pending == []


def test_only_one_timer_is_ever_pending(
    debouncer: ChangeDebouncer, scheduler: "ManualScheduler", make_scene: Any
) -> None:
    for index in range(5):
        debouncer.enqueue_change(
            [make_scene()], ChangeVerdict.minor(f"guard.sceneText.{index % 2}")
        )
        assert len(scheduler.pending) == 1


def test_flush_changes_writes_pending_snapshot(
    debouncer: ChangeDebouncer,
    document: InMemoryTextDocument,
    scheduler: "ManualScheduler",
    make_scene: Any,
) -> None:
    debouncer.enqueue_change([make_scene()], ChangeVerdict.minor("guard.npcName"))

    assert debouncer.flush_changes() is True
    assert len(document.writes) == 1
    assert scheduler.pending == []
    assert debouncer.flush_changes() is False


def test_dispose_discards_pending_without_writing(
    debouncer: ChangeDebouncer,
    document: InMemoryTextDocument,
    scheduler: "ManualScheduler",
    make_scene: Any,
) -> None:
    debouncer.enqueue_change([make_scene()], ChangeVerdict.minor("guard.npcName"))

    debouncer.dispose()
    scheduler.advance(1000)

    assert document.writes == []
    assert debouncer.pending_change_id is None


def test_failed_write_still_clears_pending_state(
    scheduler: "ManualScheduler", make_scene: Any
) -> None:
    document = InMemoryTextDocument(writable=False)
    debouncer = ChangeDebouncer(
        document, SyncSettings(edit_delay_ms=100), scheduler=scheduler
    )

    debouncer.enqueue_change([make_scene()], ChangeVerdict.minor("guard.npcName"))
    scheduler.advance(100)

    assert not debouncer.has_pending
    assert scheduler.pending == []


def test_writes_use_configured_format(
    scheduler: "ManualScheduler", make_scene: Any
) -> None:
    document = InMemoryTextDocument()
    debouncer = ChangeDebouncer(
        document,
        SyncSettings(edit_delay_ms=100, tab_size=2, format_version="1.20.0"),
        scheduler=scheduler,
    )

    debouncer.enqueue_change([make_scene()], ChangeVerdict.major())

    assert document.writes[0].startswith('{\n  "format_version": "1.20.0"')


def test_runs_on_asyncio_event_loop(make_scene: Any) -> None:
    document = InMemoryTextDocument()

    async def scenario() -> None:
        debouncer = ChangeDebouncer(document, SyncSettings(edit_delay_ms=10))
        debouncer.enqueue_change(
            [make_scene()], ChangeVerdict.minor("guard.npcName")
        )
        assert document.writes == []
        await asyncio.sleep(0.05)

    asyncio.run(scenario())

    assert len(document.writes) == 1
