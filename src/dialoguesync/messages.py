"""Messages exchanged between the synchronisation core and the graph surface."""

from __future__ import annotations

from typing import Annotated, Any, Literal, Mapping, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from .change_classifier import ChangeSize, ChangeVerdict
from .scene_model import Button, Scene
from .scene_store import (
    SceneCreatedEvent,
    SceneDeletedEvent,
    SceneUpdatedEvent,
    UpdateOrigin,
)


class ButtonPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    display_name: str = Field(..., alias="displayName")
    commands: list[str] = Field(default_factory=list)


class ScenePayload(BaseModel):
    """Scene data as carried by messages, using the surface's camelCase keys."""

    model_config = ConfigDict(populate_by_name=True)

    scene_id: str = Field(..., alias="sceneId", min_length=1)
    npc_name: str = Field("", alias="npcName")
    scene_text: str = Field("", alias="sceneText")
    buttons: list[ButtonPayload] = Field(default_factory=list)
    open_commands: list[str] = Field(default_factory=list, alias="openCommands")
    close_commands: list[str] = Field(default_factory=list, alias="closeCommands")

    @classmethod
    def from_scene(cls, scene: Scene) -> "ScenePayload":
        return cls(
            scene_id=scene.scene_id,
            npc_name=scene.npc_name,
            scene_text=scene.scene_text,
            buttons=[
                ButtonPayload(display_name=button.display_name, commands=list(button.commands))
                for button in scene.buttons
            ],
            open_commands=list(scene.open_commands),
            close_commands=list(scene.close_commands),
        )

    def to_scene(self) -> Scene:
        return Scene(
            scene_id=self.scene_id,
            npc_name=self.npc_name,
            scene_text=self.scene_text,
            buttons=tuple(
                Button(display_name=button.display_name, commands=tuple(button.commands))
                for button in self.buttons
            ),
            open_commands=tuple(self.open_commands),
            close_commands=tuple(self.close_commands),
        )


class UpdateInfo(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    size: ChangeSize
    change_id: str | None = Field(None, alias="changeId")

    @classmethod
    def from_verdict(cls, verdict: ChangeVerdict) -> "UpdateInfo":
        return cls(size=verdict.size, change_id=verdict.change_id)

    def to_verdict(self) -> ChangeVerdict:
        return ChangeVerdict(self.size, self.change_id)


class _SceneMessage(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    scene_id: str = Field(..., alias="sceneId", min_length=1)
    origin: UpdateOrigin = UpdateOrigin.PRESENTATION


class SceneCreateMessage(_SceneMessage):
    message_type: Literal["createScene"] = Field("createScene", alias="messageType")
    scene_data: ScenePayload = Field(..., alias="sceneData")


class SceneUpdateMessage(_SceneMessage):
    message_type: Literal["updateScene"] = Field("updateScene", alias="messageType")
    scene_data: ScenePayload = Field(..., alias="sceneData")
    update_info: UpdateInfo | None = Field(None, alias="updateInfo")


class SceneDeleteMessage(_SceneMessage):
    message_type: Literal["deleteScene"] = Field("deleteScene", alias="messageType")


SceneMessage = Annotated[
    Union[SceneCreateMessage, SceneUpdateMessage, SceneDeleteMessage],
    Field(discriminator="message_type"),
]

_MESSAGE_ADAPTER: TypeAdapter[SceneMessage] = TypeAdapter(SceneMessage)


class MessageError(ValueError):
    """Raised when an inbound message payload is malformed."""


def parse_scene_message(payload: Mapping[str, Any]) -> SceneMessage:
    """Validate an inbound message from the graph surface."""

    try:
        return _MESSAGE_ADAPTER.validate_python(dict(payload))
    except ValidationError as exc:
        raise MessageError(f"Invalid scene message: {exc.error_count()} error(s)") from exc


def message_from_event(
    event: SceneCreatedEvent | SceneUpdatedEvent | SceneDeletedEvent,
) -> SceneMessage:
    """Convert a store event into the message shape sent to the graph surface."""

    if isinstance(event, SceneCreatedEvent):
        return SceneCreateMessage(
            scene_id=event.scene_id,
            origin=event.origin,
            scene_data=ScenePayload.from_scene(event.scene),
        )
    if isinstance(event, SceneUpdatedEvent):
        return SceneUpdateMessage(
            scene_id=event.scene_id,
            origin=event.origin,
            scene_data=ScenePayload.from_scene(event.scene),
            update_info=UpdateInfo.from_verdict(event.verdict),
        )
    if isinstance(event, SceneDeletedEvent):
        return SceneDeleteMessage(scene_id=event.scene_id, origin=event.origin)
    raise TypeError(f"Unsupported store event: {type(event)!r}")


def dump_message(message: SceneMessage) -> dict[str, Any]:
    """Return the JSON-compatible wire form of ``message``."""

    return message.model_dump(mode="json", by_alias=True, exclude_none=True)


__all__ = [
    "ButtonPayload",
    "ScenePayload",
    "UpdateInfo",
    "SceneCreateMessage",
    "SceneUpdateMessage",
    "SceneDeleteMessage",
    "SceneMessage",
    "MessageError",
    "parse_scene_message",
    "message_from_event",
    "dump_message",
]
