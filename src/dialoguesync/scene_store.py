"""Authoritative in-memory store of dialogue scenes."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Iterable, List

from .change_classifier import ChangeVerdict, classify_change
from .listeners import ListenerRegistry, Unsubscribe
from .scene_model import Scene

logger = logging.getLogger(__name__)


class UpdateOrigin(str, Enum):
    """Where a store mutation came from.

    ``EXTERNAL`` marks updates produced by re-reading the dialogue document,
    which is the external authority for scene content. ``PRESENTATION`` marks
    edits made on the node-graph surface. Only presentation edits are ever
    written back to the document.
    """

    EXTERNAL = "external"
    PRESENTATION = "presentation"


class StoreIntegrityError(RuntimeError):
    """Raised when the declared scene order disagrees with the stored scenes."""


@dataclass(frozen=True)
class SceneCreatedEvent:
    origin: UpdateOrigin
    scene: Scene

    @property
    def scene_id(self) -> str:
        return self.scene.scene_id


@dataclass(frozen=True)
class SceneUpdatedEvent:
    origin: UpdateOrigin
    scene: Scene
    verdict: ChangeVerdict

    @property
    def scene_id(self) -> str:
        return self.scene.scene_id


@dataclass(frozen=True)
class SceneDeletedEvent:
    origin: UpdateOrigin
    scene_id: str


class SceneStore:
    """Own the mapping of scene identifiers to scenes and their declared order.

    The order list mirrors the order in which scenes are declared in the
    dialogue document. External updates never touch it through
    :meth:`upsert_scene` or :meth:`delete_scene`; they arrive in bulk through
    :meth:`set_scenes`, which rewrites the order last. This keeps an order
    established interactively from being reshuffled by a document re-parse.
    """

    def __init__(self) -> None:
        self._scenes: Dict[str, Scene] = {}
        self._order: List[str] = []
        self._created: ListenerRegistry[SceneCreatedEvent] = ListenerRegistry()
        self._updated: ListenerRegistry[SceneUpdatedEvent] = ListenerRegistry()
        self._deleted: ListenerRegistry[SceneDeletedEvent] = ListenerRegistry()

    def on_scene_create(
        self, callback: Callable[[SceneCreatedEvent], None]
    ) -> Unsubscribe:
        return self._created.subscribe(callback)

    def on_scene_update(
        self, callback: Callable[[SceneUpdatedEvent], None]
    ) -> Unsubscribe:
        return self._updated.subscribe(callback)

    def on_scene_delete(
        self, callback: Callable[[SceneDeletedEvent], None]
    ) -> Unsubscribe:
        return self._deleted.subscribe(callback)

    def upsert_scene(self, origin: UpdateOrigin, scene: Scene) -> None:
        """Insert ``scene`` or replace the stored scene with the same identifier.

        Identical values are ignored without notifying listeners. New scenes
        emit a create event, changed scenes an update event carrying the
        classifier verdict.
        """

        origin = UpdateOrigin(origin)
        scene_id = scene.scene_id
        existing = self._scenes.get(scene_id)

        if existing == scene:
            logger.debug("Ignoring identical upsert for scene %r", scene_id)
            return

        self._scenes[scene_id] = scene

        if existing is None:
            if origin is not UpdateOrigin.EXTERNAL:
                self._order.append(scene_id)
            self._created.emit(SceneCreatedEvent(origin=origin, scene=scene))
            return

        verdict = classify_change(existing, scene)
        logger.debug(
            "Scene %r updated from %s (%s)", scene_id, origin.value, verdict.size.value
        )
        self._updated.emit(
            SceneUpdatedEvent(origin=origin, scene=scene, verdict=verdict)
        )

    def delete_scene(self, origin: UpdateOrigin, scene_id: str) -> bool:
        """Remove a scene, returning ``False`` when nothing was stored under ``scene_id``."""

        origin = UpdateOrigin(origin)
        if self._scenes.pop(scene_id, None) is None:
            return False

        if origin is not UpdateOrigin.EXTERNAL:
            self._order = [entry for entry in self._order if entry != scene_id]

        self._deleted.emit(SceneDeletedEvent(origin=origin, scene_id=scene_id))
        return True

    def set_scenes(self, origin: UpdateOrigin, scenes: Iterable[Scene]) -> None:
        """Replace the stored scenes with ``scenes``, adopting their order."""

        origin = UpdateOrigin(origin)
        incoming = list(scenes)

        new_order: List[str] = []
        seen: set[str] = set()
        for scene in incoming:
            if scene.scene_id not in seen:
                seen.add(scene.scene_id)
                new_order.append(scene.scene_id)
            self.upsert_scene(origin, scene)

        for scene_id in [key for key in self._scenes if key not in seen]:
            self.delete_scene(origin, scene_id)

        # Written last so per-scene bookkeeping cannot corrupt the declared order.
        self._order = new_order

    def get_scenes(self) -> List[Scene]:
        """Return the stored scenes in declaration order.

        Raises:
            StoreIntegrityError: If the order references a scene that is not
                stored. This indicates a defect rather than a recoverable state.
        """

        ordered: List[Scene] = []
        for scene_id in self._order:
            scene = self._scenes.get(scene_id)
            if scene is None:
                raise StoreIntegrityError(
                    f"Scene order references unknown scene '{scene_id}'"
                )
            ordered.append(scene)
        return ordered

    def get_scene(self, scene_id: str) -> Scene | None:
        return self._scenes.get(scene_id)

    def get_scene_messages(self) -> List[SceneCreatedEvent]:
        """Return every stored scene as a create event for a full refresh."""

        return [
            SceneCreatedEvent(origin=UpdateOrigin.EXTERNAL, scene=scene)
            for scene in self._scenes.values()
        ]

    @property
    def scene_order(self) -> tuple[str, ...]:
        return tuple(self._order)

    def __contains__(self, scene_id: object) -> bool:
        return scene_id in self._scenes

    def __len__(self) -> int:
        return len(self._scenes)


__all__ = [
    "UpdateOrigin",
    "StoreIntegrityError",
    "SceneCreatedEvent",
    "SceneUpdatedEvent",
    "SceneDeletedEvent",
    "SceneStore",
]
