"""Classify the magnitude of an edit between two versions of a scene."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import List, Sequence

from .scene_model import Scene


class ChangeSize(str, Enum):
    """How much of a scene differs between two versions."""

    NONE = "none"
    MINOR = "minor"
    MAJOR = "major"


@dataclass(frozen=True)
class ChangeVerdict:
    """Outcome of comparing two scenes.

    ``change_id`` is only populated for minor changes and names the single leaf
    field that differs as a dotted path prefixed with the scene identifier, for
    example ``"guard.sceneText.3"`` or ``"guard.button.0.commands.1"``.
    """

    size: ChangeSize
    change_id: str | None = None

    def __post_init__(self) -> None:
        size = ChangeSize(self.size)
        object.__setattr__(self, "size", size)
        if size is ChangeSize.MINOR:
            if not isinstance(self.change_id, str) or not self.change_id:
                raise ValueError("minor verdicts require a non-empty change_id")
        elif self.change_id is not None:
            raise ValueError(f"{size.value} verdicts do not carry a change_id")

    @classmethod
    def none(cls) -> "ChangeVerdict":
        return cls(ChangeSize.NONE)

    @classmethod
    def major(cls) -> "ChangeVerdict":
        return cls(ChangeSize.MAJOR)

    @classmethod
    def minor(cls, change_id: str) -> "ChangeVerdict":
        return cls(ChangeSize.MINOR, change_id)


class _StructuralChange(Exception):
    """Raised internally to short-circuit comparison on a structural mismatch."""


def _compare_entries(
    old: Sequence[str], new: Sequence[str], prefix: str, changes: List[str]
) -> None:
    if len(old) != len(new):
        raise _StructuralChange(prefix)
    for index, (old_entry, new_entry) in enumerate(zip(old, new)):
        if old_entry != new_entry:
            changes.append(f"{prefix}.{index}")


def _collect_leaf_changes(old: Scene, new: Scene) -> List[str]:
    if old.scene_id != new.scene_id:
        raise _StructuralChange("sceneId")

    changes: List[str] = []
    if old.npc_name != new.npc_name:
        changes.append("npcName")

    if old.scene_text != new.scene_text:
        _compare_entries(old.text_lines, new.text_lines, "sceneText", changes)

    _compare_entries(old.close_commands, new.close_commands, "closeCommands", changes)
    _compare_entries(old.open_commands, new.open_commands, "openCommands", changes)

    if len(old.buttons) != len(new.buttons):
        raise _StructuralChange("buttons")
    for index, (old_button, new_button) in enumerate(zip(old.buttons, new.buttons)):
        prefix = f"button.{index}"
        if len(old_button.commands) != len(new_button.commands):
            raise _StructuralChange(f"{prefix}.commands")
        if old_button.display_name != new_button.display_name:
            changes.append(f"{prefix}.displayName")
        _compare_entries(
            old_button.commands, new_button.commands, f"{prefix}.commands", changes
        )

    return changes


def classify_change(old: Scene, new: Scene) -> ChangeVerdict:
    """Return how much ``new`` differs from ``old``.

    Exactly one differing leaf field yields a minor verdict. Identifier changes,
    any length change in the text lines, command lists or buttons, and edits
    touching more than one leaf field are all major, even when the touched
    fields are adjacent.
    """

    try:
        changes = _collect_leaf_changes(old, new)
    except _StructuralChange:
        return ChangeVerdict.major()

    if not changes:
        return ChangeVerdict.none()
    if len(changes) > 1:
        return ChangeVerdict.major()
    return ChangeVerdict.minor(f"{new.scene_id}.{changes[0]}")


__all__ = ["ChangeSize", "ChangeVerdict", "classify_change"]
