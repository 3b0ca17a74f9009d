"""Keep a dialogue script document and its node-graph editor in sync."""

from .change_classifier import ChangeSize, ChangeVerdict, classify_change
from .debouncer import ChangeDebouncer, Scheduler
from .dialogue_format import DialogueParseError, parse_dialogue, serialize_dialogue
from .documents import (
    DialogueDocument,
    FileTextDocument,
    InMemoryTextDocument,
    TextDocument,
)
from .layout import CommandSlot, Position, group_around_scene, layered_layout
from .layout_state import (
    BlobStore,
    FileBlobStore,
    InMemoryBlobStore,
    LayoutSlotError,
    LayoutState,
    NodeKind,
    NodeRef,
    SceneDock,
)
from .listeners import ListenerRegistry
from .messages import (
    MessageError,
    SceneCreateMessage,
    SceneDeleteMessage,
    SceneUpdateMessage,
    dump_message,
    message_from_event,
    parse_scene_message,
)
from .scene_model import Button, Scene
from .scene_store import (
    SceneCreatedEvent,
    SceneDeletedEvent,
    SceneStore,
    SceneUpdatedEvent,
    StoreIntegrityError,
    UpdateOrigin,
)
from .session import DocumentMonitor, EditorSession, ReloadOutcome
from .settings import SyncSettings

__all__ = [
    "Button",
    "Scene",
    "ChangeSize",
    "ChangeVerdict",
    "classify_change",
    "ListenerRegistry",
    "UpdateOrigin",
    "StoreIntegrityError",
    "SceneCreatedEvent",
    "SceneUpdatedEvent",
    "SceneDeletedEvent",
    "SceneStore",
    "ChangeDebouncer",
    "Scheduler",
    "DialogueParseError",
    "parse_dialogue",
    "serialize_dialogue",
    "TextDocument",
    "InMemoryTextDocument",
    "FileTextDocument",
    "DialogueDocument",
    "CommandSlot",
    "Position",
    "group_around_scene",
    "layered_layout",
    "BlobStore",
    "InMemoryBlobStore",
    "FileBlobStore",
    "LayoutSlotError",
    "LayoutState",
    "NodeKind",
    "NodeRef",
    "SceneDock",
    "MessageError",
    "SceneCreateMessage",
    "SceneUpdateMessage",
    "SceneDeleteMessage",
    "parse_scene_message",
    "message_from_event",
    "dump_message",
    "EditorSession",
    "DocumentMonitor",
    "ReloadOutcome",
    "SyncSettings",
]
