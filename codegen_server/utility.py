"""Small helpers shared across the code generators."""

import os
import re
from enum import Enum
from typing import Pattern

from .text_document import Position, Range


class AccessLevel(Enum):
    public = "public"
    protected = "protected"
    private = "private"

    def specifier(self) -> str:
        return self.value + ":"

    def regexp(self) -> Pattern:
        return re.compile(r"\b" + self.value + r"\s*:")


def file_extension(file_path: str) -> str:
    """Extension without the dot, e.g. 'hpp'"""
    return os.path.splitext(file_path)[1][1:]


def file_name_base(file_path: str) -> str:
    """File name without directory or extension"""
    return os.path.splitext(os.path.basename(file_path))[0]


def contains_exclusive(range: Range, position: Position) -> bool:
    """True if position is inside range, not counting the start and end"""
    return range.start < position < range.end


def first_char_to_upper(text: str) -> str:
    return text[:1].upper() + text[1:]


def first_char_to_lower(text: str) -> str:
    return text[:1].lower() + text[1:]


def make_snake_case(text: str) -> str:
    return re.sub(r"(?<!^)(?<!_)([A-Z])", r"_\1", text).lower()


def make_camel_case(text: str) -> str:
    return first_char_to_lower(re.sub(r"_+([A-Za-z0-9])", lambda m: m.group(1).upper(), text))


def make_pascal_case(text: str) -> str:
    return first_char_to_upper(make_camel_case(text))
