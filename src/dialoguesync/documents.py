"""Text document collaborators the synchronisation core reads and writes."""

from __future__ import annotations

import logging
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Sequence

from .dialogue_format import DialogueParseError, parse_dialogue, serialize_dialogue
from .scene_model import Scene

logger = logging.getLogger(__name__)


class TextDocument(ABC):
    """Interface describing a document holding dialogue text."""

    @abstractmethod
    def get_text(self) -> str:
        """Return the full document text."""

    @abstractmethod
    def set_text(self, text: str) -> bool:
        """Atomically replace the document text.

        Returns:
            ``True`` when the write was applied, ``False`` otherwise.
        """


class InMemoryTextDocument(TextDocument):
    """Keep document text in process memory and record every write."""

    def __init__(self, text: str = "", *, writable: bool = True) -> None:
        self._text = text
        self.writable = writable
        self.writes: List[str] = []

    def get_text(self) -> str:
        return self._text

    def set_text(self, text: str) -> bool:
        if not self.writable:
            return False
        self._text = text
        self.writes.append(text)
        return True


class FileTextDocument(TextDocument):
    """Dialogue text stored in a file on disk."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def get_text(self) -> str:
        """Return the file contents.

        Raises:
            DialogueParseError: If the file is not valid UTF-8.
            OSError: If the file cannot be read.
        """

        try:
            return self.path.read_text(encoding="utf-8")
        except UnicodeDecodeError as exc:
            raise DialogueParseError(
                f"Dialogue file '{self.path}' is not valid UTF-8 "
                f"(byte {exc.start}: {exc.reason})"
            ) from exc

    def set_text(self, text: str) -> bool:
        # Write to a sibling file and swap it in so readers never see a partial file.
        try:
            handle, temp_name = tempfile.mkstemp(
                dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
            )
            with os.fdopen(handle, "w", encoding="utf-8") as stream:
                stream.write(text)
            os.replace(temp_name, self.path)
        except OSError as exc:
            logger.warning("Failed to write dialogue file '%s': %s", self.path, exc)
            return False
        return True


class DialogueDocument:
    """Bridge between scene lists and the text of a :class:`TextDocument`."""

    def __init__(
        self,
        document: TextDocument,
        *,
        tab_size: int = 4,
        format_version: str,
    ) -> None:
        self.document = document
        self.tab_size = tab_size
        self.format_version = format_version

    def read_scenes(self) -> List[Scene]:
        """Parse the current document text.

        Raises:
            DialogueParseError: If the text is not a valid dialogue document.
        """

        return parse_dialogue(self.document.get_text())

    def write_scenes(self, scenes: Sequence[Scene]) -> bool:
        text = serialize_dialogue(
            scenes, format_version=self.format_version, tab_size=self.tab_size
        )
        return self.document.set_text(text)


__all__ = [
    "TextDocument",
    "InMemoryTextDocument",
    "FileTextDocument",
    "DialogueDocument",
]
