"""Configuration for the document synchronisation core."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Mapping

from .dialogue_format import DEFAULT_FORMAT_VERSION

DEFAULT_EDIT_DELAY_MS = 5000
DEFAULT_TAB_SIZE = 4


def _normalise_string(value: str | None, *, default: str) -> str:
    if value is None:
        return default

    trimmed = value.strip()
    return trimmed or default


def _parse_int(
    value: str | None, *, default: int, minimum: int, name: str
) -> int:
    if value is None:
        return default

    trimmed = value.strip()
    if not trimmed:
        return default

    try:
        parsed = int(trimmed)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer.") from exc
    if parsed < minimum:
        raise ValueError(f"{name} must be at least {minimum}.")
    return parsed


@dataclass(frozen=True)
class SyncSettings:
    """Settings read when a debouncer is created for a document.

    ``edit_delay_ms`` is the debounce window for minor edits; zero writes every
    edit immediately. ``tab_size`` and ``format_version`` only affect how the
    dialogue document is serialised.
    """

    edit_delay_ms: int = DEFAULT_EDIT_DELAY_MS
    tab_size: int = DEFAULT_TAB_SIZE
    format_version: str = DEFAULT_FORMAT_VERSION

    def __post_init__(self) -> None:
        if not isinstance(self.edit_delay_ms, int) or self.edit_delay_ms < 0:
            raise ValueError("edit_delay_ms must be a non-negative integer")
        if not isinstance(self.tab_size, int) or self.tab_size < 1:
            raise ValueError("tab_size must be a positive integer")
        if not isinstance(self.format_version, str) or not self.format_version.strip():
            raise ValueError("format_version must be a non-empty string")

    @property
    def edit_delay_seconds(self) -> float:
        return self.edit_delay_ms / 1000

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "SyncSettings":
        """Return settings populated from ``environ``.

        Args:
            environ: Optional mapping of environment variables. When omitted,
                :data:`os.environ` is used.
        """

        source = environ if environ is not None else os.environ

        return cls(
            edit_delay_ms=_parse_int(
                source.get("DIALOGUESYNC_EDIT_DELAY_MS"),
                default=DEFAULT_EDIT_DELAY_MS,
                minimum=0,
                name="DIALOGUESYNC_EDIT_DELAY_MS",
            ),
            tab_size=_parse_int(
                source.get("DIALOGUESYNC_TAB_SIZE"),
                default=DEFAULT_TAB_SIZE,
                minimum=1,
                name="DIALOGUESYNC_TAB_SIZE",
            ),
            format_version=_normalise_string(
                source.get("DIALOGUESYNC_FORMAT_VERSION"),
                default=DEFAULT_FORMAT_VERSION,
            ),
        )

    @classmethod
    def from_mapping(cls, configuration: Mapping[str, Any]) -> "SyncSettings":
        """Build settings from an editor configuration mapping.

        Recognised keys are ``editDelay``, ``tabSize`` and ``fileFormatVersion``;
        missing keys keep their defaults.
        """

        edit_delay = configuration.get("editDelay", DEFAULT_EDIT_DELAY_MS)
        tab_size = configuration.get("tabSize", DEFAULT_TAB_SIZE)
        format_version = configuration.get("fileFormatVersion", DEFAULT_FORMAT_VERSION)

        if isinstance(edit_delay, bool) or not isinstance(edit_delay, int):
            raise ValueError("editDelay must be an integer number of milliseconds.")
        if isinstance(tab_size, bool) or not isinstance(tab_size, int):
            raise ValueError("tabSize must be an integer.")

        return cls(
            edit_delay_ms=edit_delay,
            tab_size=tab_size,
            format_version=format_version,
        )


__all__ = ["SyncSettings", "DEFAULT_EDIT_DELAY_MS", "DEFAULT_TAB_SIZE"]
