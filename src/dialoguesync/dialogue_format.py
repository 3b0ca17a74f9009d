"""Read and write the NPC dialogue JSON document.

The document wraps its scenes in a versioned envelope::

    {
        "format_version": "1.14.0",
        "minecraft:npc_dialogue": {
            "scenes": [
                {"scene_tag": "guard", "npc_name": "Guard", "text": "Halt!", ...}
            ]
        }
    }

Optional scene fields default to empty values when reading and are omitted
when writing so round-tripping a document does not introduce empty keys.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Iterable, List

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .scene_model import Button, Scene

logger = logging.getLogger(__name__)

DIALOGUE_KEY = "minecraft:npc_dialogue"
DEFAULT_FORMAT_VERSION = "1.14.0"


class DialogueParseError(ValueError):
    """Raised when dialogue text cannot be turned into scenes."""


class ButtonData(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str
    commands: list[str] = Field(default_factory=list)


class SceneData(BaseModel):
    """Scene definition as it appears in the dialogue file."""

    model_config = ConfigDict(extra="ignore")

    scene_tag: str = Field(..., min_length=1)
    npc_name: str | None = None
    text: str | None = None
    on_open_commands: list[str] | None = None
    on_close_commands: list[str] | None = None
    buttons: list[ButtonData] | None = None


class DialogueBody(BaseModel):
    model_config = ConfigDict(extra="ignore")

    scenes: list[SceneData] = Field(default_factory=list)


class DialogueFile(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    format_version: str = DEFAULT_FORMAT_VERSION
    dialogue: DialogueBody = Field(..., alias=DIALOGUE_KEY)


def scene_from_data(data: SceneData) -> Scene:
    return Scene(
        scene_id=data.scene_tag,
        npc_name=data.npc_name or "",
        scene_text=data.text or "",
        buttons=tuple(
            Button(display_name=button.name, commands=tuple(button.commands))
            for button in data.buttons or ()
        ),
        open_commands=tuple(data.on_open_commands or ()),
        close_commands=tuple(data.on_close_commands or ()),
    )


def scene_to_data(scene: Scene) -> SceneData:
    return SceneData(
        scene_tag=scene.scene_id,
        npc_name=scene.npc_name or None,
        text=scene.scene_text or None,
        on_open_commands=list(scene.open_commands) or None,
        on_close_commands=list(scene.close_commands) or None,
        buttons=[
            ButtonData(name=button.display_name, commands=list(button.commands))
            for button in scene.buttons
        ]
        or None,
    )


def parse_dialogue(text: str) -> List[Scene]:
    """Parse dialogue document text into scenes in declaration order.

    Raises:
        DialogueParseError: If ``text`` is not JSON or does not describe a
            dialogue document.
    """

    try:
        payload: Any = json.loads(text)
    except json.JSONDecodeError as exc:
        raise DialogueParseError(
            f"Dialogue text is not valid JSON (line {exc.lineno}, column {exc.colno})"
        ) from exc

    if not isinstance(payload, dict):
        raise DialogueParseError("Dialogue document must be a JSON object")

    try:
        document = DialogueFile.model_validate(payload)
    except ValidationError as exc:
        raise DialogueParseError(
            f"Dialogue document does not match the expected schema: {exc.error_count()} error(s)"
        ) from exc

    try:
        scenes = [scene_from_data(entry) for entry in document.dialogue.scenes]
    except (TypeError, ValueError) as exc:
        raise DialogueParseError(f"Invalid scene definition: {exc}") from exc

    logger.debug("Parsed %d scene(s) from dialogue text", len(scenes))
    return scenes


def serialize_dialogue(
    scenes: Iterable[Scene],
    *,
    format_version: str = DEFAULT_FORMAT_VERSION,
    tab_size: int = 4,
) -> str:
    """Render ``scenes`` as dialogue document text indented by ``tab_size`` spaces."""

    if not isinstance(tab_size, int) or tab_size < 1:
        raise ValueError("tab_size must be a positive integer")

    document = DialogueFile(
        format_version=format_version,
        dialogue=DialogueBody(scenes=[scene_to_data(scene) for scene in scenes]),
    )
    payload = document.model_dump(by_alias=True, exclude_none=True)
    return json.dumps(payload, indent=tab_size, ensure_ascii=False) + "\n"


__all__ = [
    "DEFAULT_FORMAT_VERSION",
    "DIALOGUE_KEY",
    "DialogueParseError",
    "ButtonData",
    "SceneData",
    "DialogueFile",
    "parse_dialogue",
    "serialize_dialogue",
    "scene_from_data",
    "scene_to_data",
]
