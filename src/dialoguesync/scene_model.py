"""Passive data entities describing dialogue scenes and their buttons."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Iterable, Sequence, Tuple


def _validate_identifier(value: str, *, field_name: str) -> str:
    """Ensure identifiers are non-blank strings; the value is kept verbatim."""

    if not isinstance(value, str):
        raise TypeError(f"{field_name} must be a string, got {type(value)!r}")

    if not value.strip():
        raise ValueError(f"{field_name} must be a non-empty string")
    return value


def _validate_string(value: str, *, field_name: str) -> str:
    if not isinstance(value, str):
        raise TypeError(f"{field_name} must be a string, got {type(value)!r}")
    return value


def _coerce_strings(values: Iterable[str], *, field_name: str) -> Tuple[str, ...]:
    """Normalise ordered command sequences into tuples of strings."""

    if isinstance(values, (str, bytes)):
        raise TypeError(f"{field_name} must be a sequence of strings, not a string")

    coerced = tuple(values)
    for entry in coerced:
        if not isinstance(entry, str):
            raise TypeError(
                f"{field_name} entries must be strings, got {type(entry)!r}"
            )
    return coerced


@dataclass(frozen=True)
class Button:
    """A player-facing option attached to a scene."""

    display_name: str
    commands: Sequence[str] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        object.__setattr__(
            self,
            "display_name",
            _validate_string(self.display_name, field_name="display_name"),
        )
        object.__setattr__(
            self,
            "commands",
            _coerce_strings(self.commands, field_name="button commands"),
        )


@dataclass(frozen=True)
class Scene:
    """One dialogue node: NPC text, buttons and open/close command lists.

    Scenes are immutable values. Two scenes compare equal when every field
    matches, which is what the store relies on to drop no-op updates. The order
    of ``buttons`` and of every command list is significant.
    """

    scene_id: str
    npc_name: str = ""
    scene_text: str = ""
    buttons: Sequence[Button] = field(default_factory=tuple)
    open_commands: Sequence[str] = field(default_factory=tuple)
    close_commands: Sequence[str] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        object.__setattr__(
            self,
            "scene_id",
            _validate_identifier(self.scene_id, field_name="scene_id"),
        )
        object.__setattr__(
            self, "npc_name", _validate_string(self.npc_name, field_name="npc_name")
        )
        object.__setattr__(
            self,
            "scene_text",
            _validate_string(self.scene_text, field_name="scene_text"),
        )

        if isinstance(self.buttons, (str, bytes)):
            raise TypeError("buttons must be a sequence of Button instances")
        buttons = tuple(self.buttons)
        for button in buttons:
            if not isinstance(button, Button):
                raise TypeError(
                    f"buttons must contain Button instances, got {type(button)!r}"
                )
        object.__setattr__(self, "buttons", buttons)

        object.__setattr__(
            self,
            "open_commands",
            _coerce_strings(self.open_commands, field_name="open_commands"),
        )
        object.__setattr__(
            self,
            "close_commands",
            _coerce_strings(self.close_commands, field_name="close_commands"),
        )

    @property
    def text_lines(self) -> Tuple[str, ...]:
        """Return the scene text split into its newline-delimited lines."""

        return tuple(self.scene_text.split("\n"))

    def evolve(self, **changes: object) -> "Scene":
        """Return a copy of the scene with ``changes`` applied."""

        return replace(self, **changes)


__all__ = ["Button", "Scene"]
