"""Persisted node positions, viewport and docked scenes for the graph surface."""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Mapping

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .layout import CommandSlot, Position
from .listeners import ListenerRegistry, Unsubscribe


class LayoutSlotError(ValueError):
    """Raised when a node kind is combined with a slot it does not support."""


class NodeKind(str, Enum):
    SCENE = "scene"
    BUTTON = "button"
    COMMAND = "command"


@dataclass(frozen=True)
class NodeRef:
    """Address of one node belonging to a scene.

    Button nodes use their zero-based button index as ``slot``; command nodes
    use ``"open"`` or ``"close"``; scene nodes take no slot.
    """

    kind: NodeKind
    slot: int | str | None = None

    def __post_init__(self) -> None:
        try:
            kind = NodeKind(self.kind)
        except ValueError as exc:
            raise LayoutSlotError(f"Unknown node kind: {self.kind!r}") from exc
        object.__setattr__(self, "kind", kind)

        if kind is NodeKind.BUTTON:
            if isinstance(self.slot, bool) or not isinstance(self.slot, int) or self.slot < 0:
                raise LayoutSlotError(
                    f"Button nodes need a non-negative integer slot, got {self.slot!r}"
                )
        elif kind is NodeKind.COMMAND:
            if self.slot not in (CommandSlot.OPEN.value, CommandSlot.CLOSE.value):
                raise LayoutSlotError(
                    f"Command nodes need an 'open' or 'close' slot, got {self.slot!r}"
                )
            object.__setattr__(self, "slot", CommandSlot(self.slot))
        elif self.slot is not None:
            raise LayoutSlotError("Scene nodes do not take a slot")

    @classmethod
    def scene(cls) -> "NodeRef":
        return cls(NodeKind.SCENE)

    @classmethod
    def button(cls, slot: int) -> "NodeRef":
        return cls(NodeKind.BUTTON, slot)

    @classmethod
    def command(cls, slot: CommandSlot | str) -> "NodeRef":
        return cls(NodeKind.COMMAND, slot.value if isinstance(slot, CommandSlot) else slot)


class PointModel(BaseModel):
    x: float = 0.0
    y: float = 0.0

    @classmethod
    def from_position(cls, position: Position) -> "PointModel":
        return cls(x=position.x, y=position.y)

    def to_position(self) -> Position:
        return Position(self.x, self.y)


class SceneLayout(BaseModel):
    """Saved positions of one scene's nodes."""

    model_config = ConfigDict(populate_by_name=True)

    scene_id: str = Field(..., alias="sceneId")
    scene_node_position: PointModel = Field(
        default_factory=PointModel, alias="sceneNodePosition"
    )
    open_command_node_position: PointModel | None = Field(
        None, alias="openCommandNodePosition"
    )
    close_command_node_position: PointModel | None = Field(
        None, alias="closeCommandNodePosition"
    )
    button_positions: list[PointModel | None] = Field(
        default_factory=list, alias="buttonPositions"
    )


class Viewport(BaseModel):
    x: float = 0.0
    y: float = 0.0
    zoom: float = Field(1.0, gt=0)


class LayoutSnapshot(BaseModel):
    """Schema of the persisted layout blob, keyed the way the graph surface saves it."""

    model_config = ConfigDict(populate_by_name=True)

    scenes: list[SceneLayout] = Field(default_factory=list, alias="state")
    viewport: Viewport = Field(default_factory=Viewport, alias="viewPort")
    docked_scenes: list[str] = Field(default_factory=list, alias="dockedScenes")


class BlobStore(ABC):
    """Key-value storage for opaque JSON-compatible state."""

    @abstractmethod
    def get(self, key: str) -> Mapping[str, Any] | None:
        """Return the stored value or ``None`` when absent."""

    @abstractmethod
    def set(self, key: str, value: Mapping[str, Any]) -> None:
        """Persist ``value`` under ``key``."""


class InMemoryBlobStore(BlobStore):
    def __init__(self) -> None:
        self._values: Dict[str, Dict[str, Any]] = {}

    def get(self, key: str) -> Mapping[str, Any] | None:
        return self._values.get(_validate_key(key))

    def set(self, key: str, value: Mapping[str, Any]) -> None:
        self._values[_validate_key(key)] = json.loads(json.dumps(dict(value)))


class FileBlobStore(BlobStore):
    """Persist each key as a JSON file in ``storage_dir``."""

    def __init__(self, storage_dir: Path) -> None:
        self.storage_dir = storage_dir
        self.storage_dir.mkdir(parents=True, exist_ok=True)

    def get(self, key: str) -> Mapping[str, Any] | None:
        path = self._path(key)
        if not path.exists():
            return None
        payload = json.loads(path.read_text(encoding="utf-8"))
        if not isinstance(payload, dict):
            raise ValueError(f"Stored layout state '{key}' must be a JSON object")
        return payload

    def set(self, key: str, value: Mapping[str, Any]) -> None:
        self._path(key).write_text(json.dumps(dict(value), indent=2), encoding="utf-8")

    def _path(self, key: str) -> Path:
        return self.storage_dir / f"{_validate_key(key)}.json"


def _validate_key(key: str) -> str:
    if not isinstance(key, str):
        raise TypeError("key must be a string")
    stripped = key.strip()
    if not stripped:
        raise ValueError("key must be a non-empty string")
    return stripped


_MISSING = object()


class SceneDock:
    """Track which scenes are docked and notify listeners of changes."""

    def __init__(self, docked: Iterable[str] = ()) -> None:
        self._docked: Dict[str, None] = dict.fromkeys(docked)
        self._on_dock: ListenerRegistry[str] = ListenerRegistry()
        self._on_undock: ListenerRegistry[str] = ListenerRegistry()

    def dock(self, scene_id: str) -> bool:
        if scene_id in self._docked:
            return False
        self._docked[scene_id] = None
        self._on_dock.emit(scene_id)
        return True

    def undock(self, scene_id: str) -> bool:
        if scene_id not in self._docked:
            return False
        del self._docked[scene_id]
        self._on_undock.emit(scene_id)
        return True

    def forget(self, scene_id: str) -> bool:
        """Drop ``scene_id`` without notifying listeners, e.g. after deletion."""

        return self._docked.pop(scene_id, _MISSING) is not _MISSING

    def is_docked(self, scene_id: str) -> bool:
        return scene_id in self._docked

    @property
    def docked_scene_ids(self) -> List[str]:
        return list(self._docked)

    def on_dock(self, callback: Callable[[str], None]) -> Unsubscribe:
        return self._on_dock.subscribe(callback)

    def on_undock(self, callback: Callable[[str], None]) -> Unsubscribe:
        return self._on_undock.subscribe(callback)


class LayoutState:
    """Layout data for one editing session, saved after every mutation.

    The blob is read once on construction. Scene positions, the viewport and the
    dock are otherwise opaque to the synchronisation core.
    """

    def __init__(self, blob_store: BlobStore, key: str) -> None:
        self._blob_store = blob_store
        self._key = key
        self._scenes: Dict[str, SceneLayout] = {}
        self._viewport = Viewport()

        docked: List[str] = []
        payload = blob_store.get(key)
        if payload is not None:
            try:
                snapshot = LayoutSnapshot.model_validate(payload)
            except ValidationError as exc:
                raise ValueError(f"Invalid layout state stored under '{key}'") from exc
            self._scenes = {entry.scene_id: entry for entry in snapshot.scenes}
            self._viewport = snapshot.viewport
            docked = list(snapshot.docked_scenes)

        self.dock = SceneDock(docked)
        self.dock.on_dock(lambda _scene_id: self.save())
        self.dock.on_undock(lambda _scene_id: self.save())

    def set_node_position(self, scene_id: str, node: NodeRef, position: Position) -> None:
        layout = self._scenes.get(scene_id) or SceneLayout(scene_id=scene_id)
        point = PointModel.from_position(position)

        if node.kind is NodeKind.SCENE:
            layout.scene_node_position = point
        elif node.kind is NodeKind.BUTTON:
            slot = int(node.slot)  # type: ignore[arg-type]
            positions = layout.button_positions
            if len(positions) <= slot:
                positions.extend([None] * (slot + 1 - len(positions)))
            positions[slot] = point
        elif node.slot is CommandSlot.OPEN:
            layout.open_command_node_position = point
        else:
            layout.close_command_node_position = point

        self._scenes[scene_id] = layout
        self.save()

    def get_node_position(self, scene_id: str, node: NodeRef) -> Position | None:
        layout = self._scenes.get(scene_id)
        if layout is None:
            return None

        point: PointModel | None
        if node.kind is NodeKind.SCENE:
            point = layout.scene_node_position
        elif node.kind is NodeKind.BUTTON:
            slot = int(node.slot)  # type: ignore[arg-type]
            positions = layout.button_positions
            point = positions[slot] if slot < len(positions) else None
        elif node.slot is CommandSlot.OPEN:
            point = layout.open_command_node_position
        else:
            point = layout.close_command_node_position

        return point.to_position() if point is not None else None

    def forget_scene(self, scene_id: str) -> None:
        removed = self._scenes.pop(scene_id, None) is not None
        if self.dock.forget(scene_id) or removed:
            self.save()

    @property
    def viewport(self) -> Viewport:
        return self._viewport.model_copy()

    def set_viewport(self, x: float, y: float, zoom: float) -> None:
        self._viewport = Viewport(x=x, y=y, zoom=zoom)
        self.save()

    def snapshot(self) -> LayoutSnapshot:
        return LayoutSnapshot(
            scenes=[entry.model_copy(deep=True) for entry in self._scenes.values()],
            viewport=self._viewport.model_copy(),
            docked_scenes=self.dock.docked_scene_ids,
        )

    def save(self) -> None:
        payload = self.snapshot().model_dump(mode="json", by_alias=True)
        self._blob_store.set(self._key, payload)


__all__ = [
    "LayoutSlotError",
    "NodeKind",
    "NodeRef",
    "SceneLayout",
    "Viewport",
    "LayoutSnapshot",
    "BlobStore",
    "InMemoryBlobStore",
    "FileBlobStore",
    "SceneDock",
    "LayoutState",
]
