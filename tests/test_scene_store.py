"""Unit tests for :mod:`dialoguesync.scene_store`."""

from __future__ import annotations

import random
from typing import Any

import pytest

from dialoguesync import (
    ChangeSize,
    SceneCreatedEvent,
    SceneDeletedEvent,
    SceneStore,
    SceneUpdatedEvent,
    StoreIntegrityError,
    UpdateOrigin,
)


class _Recorder:
    def __init__(self, store: SceneStore) -> None:
        self.events: list[Any] = []
        store.on_scene_create(self.events.append)
        store.on_scene_update(self.events.append)
        store.on_scene_delete(self.events.append)


@pytest.fixture()
def store() -> SceneStore:
    return SceneStore()


def test_upsert_new_scene_emits_create_and_appends_order(
    store: SceneStore, make_scene: Any
) -> None:
    recorder = _Recorder(store)
    scene = make_scene("guard")

    store.upsert_scene(UpdateOrigin.PRESENTATION, scene)

    assert recorder.events == [
        SceneCreatedEvent(origin=UpdateOrigin.PRESENTATION, scene=scene)
    ]
    assert store.get_scenes() == [scene]


def test_identical_upsert_is_a_no_op(store: SceneStore, make_scene: Any) -> None:
    recorder = _Recorder(store)

    store.upsert_scene(UpdateOrigin.PRESENTATION, make_scene())
    store.upsert_scene(UpdateOrigin.PRESENTATION, make_scene())

    assert len(recorder.events) == 1


def test_changed_upsert_emits_update_with_verdict(
    store: SceneStore, make_scene: Any
) -> None:
    store.upsert_scene(UpdateOrigin.PRESENTATION, make_scene())
    recorder = _Recorder(store)

    updated = make_scene(npc_name="Captain")
    store.upsert_scene(UpdateOrigin.PRESENTATION, updated)

    assert len(recorder.events) == 1
    event = recorder.events[0]
    assert isinstance(event, SceneUpdatedEvent)
    assert event.scene == updated
    assert event.verdict.size is ChangeSize.MINOR
    assert event.verdict.change_id == "guard.npcName"
    assert store.get_scene("guard") == updated


def test_external_upsert_of_new_scene_leaves_order_untouched(
    store: SceneStore, make_scene: Any
) -> None:
    store.upsert_scene(UpdateOrigin.EXTERNAL, make_scene("guard"))

    assert "guard" in store
    assert store.scene_order == ()


def test_delete_missing_scene_is_silent(store: SceneStore) -> None:
    recorder = _Recorder(store)

    assert store.delete_scene(UpdateOrigin.PRESENTATION, "ghost") is False
    assert recorder.events == []


def test_delete_from_presentation_updates_order(
    store: SceneStore, make_scene: Any
) -> None:
    store.set_scenes(UpdateOrigin.EXTERNAL, [make_scene("a"), make_scene("b")])
    recorder = _Recorder(store)

    assert store.delete_scene(UpdateOrigin.PRESENTATION, "a") is True

    assert recorder.events == [
        SceneDeletedEvent(origin=UpdateOrigin.PRESENTATION, scene_id="a")
    ]
    assert [scene.scene_id for scene in store.get_scenes()] == ["b"]


def test_set_scenes_adopts_incoming_order(store: SceneStore, make_scene: Any) -> None:
    s1, s2, s3 = make_scene("s1"), make_scene("s2"), make_scene("s3")
    store.upsert_scene(UpdateOrigin.PRESENTATION, s3)
    store.upsert_scene(UpdateOrigin.PRESENTATION, s1)

    store.set_scenes(UpdateOrigin.EXTERNAL, [s1, s2, s3])

    assert store.get_scenes() == [s1, s2, s3]


def test_set_scenes_emits_create_update_and_delete(
    store: SceneStore, make_scene: Any
) -> None:
    store.set_scenes(UpdateOrigin.EXTERNAL, [make_scene("keep"), make_scene("drop")])
    recorder = _Recorder(store)

    store.set_scenes(
        UpdateOrigin.EXTERNAL,
        [make_scene("keep", npc_name="Changed"), make_scene("fresh")],
    )

    kinds = [type(event) for event in recorder.events]
    assert kinds == [SceneUpdatedEvent, SceneCreatedEvent, SceneDeletedEvent]
    assert all(event.origin is UpdateOrigin.EXTERNAL for event in recorder.events)
    assert recorder.events[2].scene_id == "drop"
    assert [scene.scene_id for scene in store.get_scenes()] == ["keep", "fresh"]


def test_set_scenes_with_duplicate_ids_keeps_first_position(
    store: SceneStore, make_scene: Any
) -> None:
    later = make_scene("a", npc_name="Later")

    store.set_scenes(UpdateOrigin.EXTERNAL, [make_scene("a"), make_scene("b"), later])

    assert store.get_scenes() == [later, make_scene("b")]


def test_get_scenes_reports_integrity_failures(
    store: SceneStore, make_scene: Any
) -> None:
    store.set_scenes(UpdateOrigin.EXTERNAL, [make_scene("a"), make_scene("b")])
    store.delete_scene(UpdateOrigin.EXTERNAL, "a")

    with pytest.raises(StoreIntegrityError):
        store.get_scenes()


def test_unsubscribe_stops_notifications(store: SceneStore, make_scene: Any) -> None:
    received: list[Any] = []
    unsubscribe = store.on_scene_create(received.append)

    store.upsert_scene(UpdateOrigin.PRESENTATION, make_scene("a"))
    unsubscribe()
    store.upsert_scene(UpdateOrigin.PRESENTATION, make_scene("b"))

    assert [event.scene_id for event in received] == ["a"]


def test_listeners_observe_order_already_updated(
    store: SceneStore, make_scene: Any
) -> None:
    snapshots: list[list[str]] = []
    store.on_scene_create(
        lambda _event: snapshots.append([s.scene_id for s in store.get_scenes()])
    )

    store.upsert_scene(UpdateOrigin.PRESENTATION, make_scene("a"))

    assert snapshots == [["a"]]


def test_get_scene_messages_lists_every_scene(
    store: SceneStore, make_scene: Any
) -> None:
    store.set_scenes(UpdateOrigin.EXTERNAL, [make_scene("a"), make_scene("b")])

    events = store.get_scene_messages()

    assert {event.scene_id for event in events} == {"a", "b"}
    assert all(isinstance(event, SceneCreatedEvent) for event in events)


def test_random_operation_sequences_preserve_integrity(make_scene: Any) -> None:
    rng = random.Random(1234)
    identifiers = [f"scene-{index}" for index in range(6)]
    origins = [UpdateOrigin.PRESENTATION, UpdateOrigin.EXTERNAL]

    for _ in range(50):
        store = SceneStore()
        for _ in range(40):
            operation = rng.choice(["upsert", "delete", "set"])
            if operation == "upsert":
                store.upsert_scene(
                    UpdateOrigin.PRESENTATION,
                    make_scene(rng.choice(identifiers), npc_name=rng.choice("xyz")),
                )
            elif operation == "delete":
                store.delete_scene(UpdateOrigin.PRESENTATION, rng.choice(identifiers))
            else:
                chosen = rng.sample(identifiers, rng.randint(0, len(identifiers)))
                store.set_scenes(
                    rng.choice(origins),
                    [make_scene(scene_id) for scene_id in chosen],
                )

            scenes = store.get_scenes()
            assert [scene.scene_id for scene in scenes] == list(store.scene_order)
            assert {scene.scene_id for scene in scenes} == {
                scene_id for scene_id in identifiers if scene_id in store
            }
