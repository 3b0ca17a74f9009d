"""Wire a dialogue document, the scene store and the graph surface together."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, List, Tuple

from .change_classifier import ChangeVerdict
from .debouncer import ChangeDebouncer, Scheduler
from .dialogue_format import DialogueParseError, parse_dialogue
from .documents import TextDocument
from .messages import (
    SceneCreateMessage,
    SceneDeleteMessage,
    SceneMessage,
    SceneUpdateMessage,
    message_from_event,
)
from .scene_model import Scene
from .scene_store import (
    SceneCreatedEvent,
    SceneDeletedEvent,
    SceneStore,
    SceneUpdatedEvent,
    UpdateOrigin,
)
from .settings import SyncSettings

logger = logging.getLogger(__name__)

MessageSink = Callable[[SceneMessage], None]


class EditorSession:
    """Keep one dialogue document and the graph surface in sync.

    Document edits are parsed and applied to the store as external updates;
    they are forwarded to ``message_sink`` but never written back. Edits from
    the graph surface are applied as presentation updates and written to the
    document through the debouncer; they are not echoed to the surface.
    """

    def __init__(
        self,
        document: TextDocument,
        settings: SyncSettings | None = None,
        *,
        store: SceneStore | None = None,
        scheduler: Scheduler | None = None,
        message_sink: MessageSink | None = None,
    ) -> None:
        self.document = document
        self.settings = settings or SyncSettings()
        self.store = store if store is not None else SceneStore()
        self.debouncer = ChangeDebouncer(document, self.settings, scheduler=scheduler)
        self._message_sink = message_sink
        self._closed = False
        self._unsubscribers = [
            self.store.on_scene_create(self._on_scene_created),
            self.store.on_scene_update(self._on_scene_updated),
            self.store.on_scene_delete(self._on_scene_deleted),
        ]

    def reload_from_document(self) -> None:
        """Re-read the document and replace the stored scenes with its contents.

        Raises:
            DialogueParseError: If the document text cannot be parsed. The store
                keeps its previous scenes.
        """

        self._ensure_open()
        scenes = parse_dialogue(self.document.get_text())
        self.store.set_scenes(UpdateOrigin.EXTERNAL, scenes)

    def handle_message(self, message: SceneMessage) -> None:
        """Apply an edit made on the graph surface."""

        self._ensure_open()
        if isinstance(message, (SceneCreateMessage, SceneUpdateMessage)):
            scene = message.scene_data.to_scene()
            if scene.scene_id != message.scene_id:
                raise ValueError(
                    f"Message scene id '{message.scene_id}' does not match its data "
                    f"('{scene.scene_id}')"
                )
            self.store.upsert_scene(UpdateOrigin.PRESENTATION, scene)
        elif isinstance(message, SceneDeleteMessage):
            self.store.delete_scene(UpdateOrigin.PRESENTATION, message.scene_id)
        else:
            raise TypeError(f"Unsupported message: {type(message)!r}")

    def refresh_messages(self) -> List[SceneMessage]:
        """Return create messages for every stored scene."""

        return [message_from_event(event) for event in self.store.get_scene_messages()]

    def flush(self) -> bool:
        return self.debouncer.flush_changes()

    def close(self) -> None:
        """Detach from the store, discarding any pending unwritten edits."""

        if self._closed:
            return
        self._closed = True
        self.debouncer.dispose()
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers = []

    @property
    def closed(self) -> bool:
        return self._closed

    def _ensure_open(self) -> None:
        if self._closed:
            raise RuntimeError("EditorSession has been closed")

    def _forward(self, event: SceneCreatedEvent | SceneUpdatedEvent | SceneDeletedEvent) -> None:
        if self._message_sink is not None:
            self._message_sink(message_from_event(event))

    def _on_scene_created(self, event: SceneCreatedEvent) -> None:
        if event.origin is UpdateOrigin.PRESENTATION:
            self.debouncer.enqueue_change(self.store.get_scenes(), ChangeVerdict.major())
        else:
            self._forward(event)

    def _on_scene_updated(self, event: SceneUpdatedEvent) -> None:
        if event.origin is UpdateOrigin.PRESENTATION:
            self.debouncer.enqueue_change(self.store.get_scenes(), event.verdict)
        else:
            self._forward(event)

    def _on_scene_deleted(self, event: SceneDeletedEvent) -> None:
        if event.origin is UpdateOrigin.PRESENTATION:
            self.debouncer.enqueue_change(self.store.get_scenes(), ChangeVerdict.major())
        else:
            self._forward(event)


@dataclass(frozen=True)
class ReloadOutcome:
    """Result of one :meth:`DocumentMonitor.poll`."""

    reloaded: bool
    message: str | None = None
    changed_scene_ids: Tuple[str, ...] = ()


def _changed_scene_ids(before: Dict[str, Scene], after: Dict[str, Scene]) -> Tuple[str, ...]:
    """Ids added or modified (in the new order), then ids removed (in the old order)."""

    touched = [scene_id for scene_id, scene in after.items() if before.get(scene_id) != scene]
    removed = [scene_id for scene_id in before if scene_id not in after]
    return tuple(touched + removed)


class DocumentMonitor:
    """Reload an :class:`EditorSession` whenever its dialogue file changes on disk.

    A poll compares the file's modification time with the last one seen. A file
    that cannot be read or parsed leaves the session's scenes in place; each
    distinct failure is reported once and the file is retried on every poll
    until it loads again.
    """

    def __init__(
        self,
        path: Path,
        session: EditorSession,
        *,
        initial_timestamp: int | None = None,
    ) -> None:
        self._path = Path(path)
        self._session = session
        self._seen_mtime = initial_timestamp
        self._failure: str | None = None

    def poll(self) -> ReloadOutcome:
        try:
            mtime = self._path.stat().st_mtime_ns
        except FileNotFoundError:
            return self._fail(f"Dialogue file '{self._path}' is missing.")
        except OSError as exc:
            return self._fail(f"Dialogue file '{self._path}' cannot be accessed: {exc}.")

        unchanged = self._seen_mtime is not None and mtime <= self._seen_mtime
        if unchanged and self._failure is None:
            return ReloadOutcome(reloaded=False)
        self._seen_mtime = mtime

        before = self._scenes_by_id()
        try:
            self._session.reload_from_document()
        except (DialogueParseError, OSError) as exc:
            return self._fail(f"Failed to reload scenes from '{self._path}': {exc}.")
        changed = _changed_scene_ids(before, self._scenes_by_id())

        summary = ", ".join(changed) if changed else "no scene changes"
        message = f"Reloaded '{self._path}': {summary}."
        if self._failure is not None:
            message += " Earlier load problems are resolved."
            self._failure = None
        return ReloadOutcome(reloaded=True, message=message, changed_scene_ids=changed)

    def _scenes_by_id(self) -> Dict[str, Scene]:
        return {scene.scene_id: scene for scene in self._session.store.get_scenes()}

    def _fail(self, problem: str) -> ReloadOutcome:
        if problem == self._failure:
            return ReloadOutcome(reloaded=False)
        self._failure = problem
        message = f"{problem} Retaining the previously loaded scenes."
        logger.warning(message)
        return ReloadOutcome(reloaded=False, message=message)


__all__ = ["EditorSession", "DocumentMonitor", "ReloadOutcome", "MessageSink"]
