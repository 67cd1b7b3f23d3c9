"""Text buffer model for C++ documents (positions, ranges, lines)."""

import bisect
import os
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Union
from urllib.parse import unquote, urlparse


@dataclass(frozen=True, order=True)
class Position:
    """Zero-based line/character position in a document."""
    line: int
    character: int

    def translate(self, line_delta: int = 0, character_delta: int = 0) -> "Position":
        return Position(self.line + line_delta, self.character + character_delta)

    def to_dict(self):
        return {"line": self.line, "character": self.character}

    @classmethod
    def from_dict(cls, data) -> "Position":
        return cls(data["line"], data["character"])


@dataclass(frozen=True)
class Range:
    start: Position
    end: Position

    @property
    def is_empty(self) -> bool:
        return self.start == self.end

    def contains(self, other: Union[Position, "Range"]) -> bool:
        if isinstance(other, Range):
            return self.start <= other.start and other.end <= self.end
        return self.start <= other <= self.end

    def with_(self, start: Optional[Position] = None, end: Optional[Position] = None) -> "Range":
        return Range(start if start is not None else self.start,
                     end if end is not None else self.end)

    def union(self, other: "Range") -> "Range":
        return Range(min(self.start, other.start), max(self.end, other.end))

    def to_dict(self):
        return {"start": self.start.to_dict(), "end": self.end.to_dict()}

    @classmethod
    def from_dict(cls, data) -> "Range":
        return cls(Position.from_dict(data["start"]), Position.from_dict(data["end"]))


@dataclass(frozen=True)
class Location:
    uri: str
    range: Range

    def to_dict(self):
        return {"uri": self.uri, "range": self.range.to_dict()}


@dataclass(frozen=True)
class LocationLink:
    """Location returned by servers that report the whole target symbol."""
    target_uri: str
    target_range: Range
    target_selection_range: Optional[Range] = None


@dataclass(frozen=True)
class TextEdit:
    range: Range
    new_text: str

    def to_dict(self):
        return {"range": self.range.to_dict(), "newText": self.new_text}


@dataclass(frozen=True)
class TextLine:
    line_number: int
    text: str
    range: Range

    @property
    def first_non_whitespace_character_index(self) -> int:
        return len(self.text) - len(self.text.lstrip())

    @property
    def is_empty_or_whitespace(self) -> bool:
        return not self.text.strip()


def uri_for(file_path: Union[str, Path]) -> str:
    """Convert a filesystem path to a file:// uri"""
    return Path(os.path.abspath(file_path)).as_uri()


def path_for(uri: str) -> str:
    """Convert a file:// uri back to a filesystem path"""
    parsed = urlparse(uri)
    if parsed.scheme != "file":
        return uri
    path = unquote(parsed.path)
    # file:///C:/foo -> C:/foo on Windows
    if os.name == "nt" and path.startswith("/") and len(path) > 2 and path[2] == ":":
        path = path[1:]
    return path


class TextDocument:
    """Immutable snapshot of a document's text."""

    def __init__(self, uri: str, text: str, version: int = 0):
        self.uri = uri
        self.text = text
        self.version = version
        self.eol = "\r\n" if "\r\n" in text else "\n"
        self._line_offsets = self._compute_line_offsets(text)

    @staticmethod
    def _compute_line_offsets(text: str) -> List[int]:
        offsets = [0]
        i = 0
        length = len(text)
        while i < length:
            ch = text[i]
            if ch == "\r":
                if i + 1 < length and text[i + 1] == "\n":
                    i += 1
                offsets.append(i + 1)
            elif ch == "\n":
                offsets.append(i + 1)
            i += 1
        return offsets

    @classmethod
    def from_file(cls, file_path: Union[str, Path]) -> "TextDocument":
        with open(file_path, "r", encoding="utf-8", errors="replace", newline="") as f:
            text = f.read()
        return cls(uri_for(file_path), text)

    @property
    def file_path(self) -> str:
        return path_for(self.uri)

    @property
    def file_name(self) -> str:
        return os.path.basename(self.file_path)

    @property
    def line_count(self) -> int:
        return len(self._line_offsets)

    def offset_at(self, position: Position) -> int:
        if position.line >= len(self._line_offsets):
            return len(self.text)
        if position.line < 0:
            return 0
        line_start = self._line_offsets[position.line]
        line_end = self._line_end_offset(position.line)
        return max(line_start, min(line_start + position.character, line_end))

    def position_at(self, offset: int) -> Position:
        offset = max(0, min(offset, len(self.text)))
        line = bisect.bisect_right(self._line_offsets, offset) - 1
        return Position(line, offset - self._line_offsets[line])

    def _line_end_offset(self, line: int) -> int:
        """Offset of the end of the line, excluding its line break"""
        if line + 1 < len(self._line_offsets):
            end = self._line_offsets[line + 1]
            if end > 0 and self.text[end - 1] == "\n":
                end -= 1
            if end > 0 and self.text[end - 1] == "\r":
                end -= 1
            return end
        return len(self.text)

    def line_at(self, line_or_position: Union[int, Position]) -> TextLine:
        line = line_or_position.line if isinstance(line_or_position, Position) else line_or_position
        line = max(0, min(line, self.line_count - 1))
        start = self._line_offsets[line]
        end = self._line_end_offset(line)
        text = self.text[start:end]
        return TextLine(line, text, Range(Position(line, 0), Position(line, len(text))))

    def get_text(self, range: Optional[Range] = None) -> str:
        if range is None:
            return self.text
        return self.text[self.offset_at(range.start):self.offset_at(range.end)]

    def range_at(self, start_offset: int, end_offset: int) -> Range:
        return Range(self.position_at(start_offset), self.position_at(end_offset))

    def end_position(self) -> Position:
        return self.position_at(len(self.text))

    def with_text(self, text: str) -> "TextDocument":
        return TextDocument(self.uri, text, self.version + 1)

    def apply_edits(self, edits: List[TextEdit]) -> "TextDocument":
        """Return a new snapshot with the edits applied (edits must not overlap)"""
        text = self.text
        # Later edits at the same position are applied first so that they end up after earlier ones.
        ordered = sorted(enumerate(edits), reverse=True,
                         key=lambda e: (self.offset_at(e[1].range.start), self.offset_at(e[1].range.end), e[0]))
        for _, edit in ordered:
            start = self.offset_at(edit.range.start)
            end = self.offset_at(edit.range.end)
            text = text[:start] + edit.new_text + text[end:]
        return self.with_text(text)
