"""Parameter list parsing for C/C++ function declarations."""

import re
from collections import Counter
from dataclasses import dataclass
from typing import Iterator, List, Optional

from . import parsing
from .text_document import Range, TextDocument


_SPLIT_RE = re.compile(r"[^,]+")
_NAME_RE = re.compile(r"\b([A-Za-z_]\w*)((?:\s*\[\s*\])*)$")
_CV_ONLY_RE = re.compile(r"^(const|volatile)(\s+(const|volatile))?\s*$")
_NESTED_DECLARATOR_RE = re.compile(r"\(\s*\)(\s*\(\s*\)|(\s*\[\s*\])+)$")
_TRAILING_IDENTIFIER_RE = re.compile(r"\b([A-Za-z_]\w*)\s*$")
_VARIADIC_RE = re.compile(r"(^|,)\s*\.\.\.\s*$")


@dataclass(frozen=True)
class Parameter:
    """
    One function parameter.

    raw, type, name and default_value are slices of the original text. The name
    belongs at name_index within type, so with_name() can rebuild the declarator
    for pointers to functions and arrays as well as for plain parameters.
    """
    raw: str
    type: str
    name: str
    default_value: str
    range: Range
    name_index: int

    @property
    def is_variadic(self) -> bool:
        return self.raw == "..."

    @property
    def normalized_type(self) -> str:
        return parsing.normalize_source_text(self.type)

    def with_name(self, new_name: str = "") -> str:
        """The parameter's declaration with the name replaced (or removed when new_name is empty)"""
        if self.is_variadic:
            return self.raw
        if not new_name:
            return self.type
        head = self.type[:self.name_index]
        tail = self.type[self.name_index:]
        return head + _separator_before_name(head) + new_name + tail

    def declaration(self) -> str:
        """Type and name without the default value"""
        return self.with_name(self.name)


def _separator_before_name(head: str) -> str:
    if not head or head[-1].isspace() or head[-1] == "(":
        return ""
    if head[-1] in "*&":
        # Keep the placement style: "int *" -> "int *x", "int*" -> "int* x"
        punctuation = head.rstrip("*&")
        if punctuation and (punctuation[-1].isspace() or punctuation[-1] == "("):
            return ""
    return " "


class ParameterList:
    """Ordered parameters of one function along with the range of the text between the parentheses."""

    def __init__(self, parameters: List[Parameter], range: Range):
        self.parameters = parameters
        self.range = range

    def __iter__(self) -> Iterator[Parameter]:
        return iter(self.parameters)

    def __len__(self) -> int:
        return len(self.parameters)

    def __getitem__(self, index: int) -> Parameter:
        return self.parameters[index]

    def __repr__(self):
        return f"ParameterList({[p.raw for p in self.parameters]!r})"

    def _keys(self):
        return [(p.normalized_type, p.name) for p in self.parameters]

    def _type_keys(self):
        return [p.normalized_type for p in self.parameters]

    def is_equal(self, other: "ParameterList") -> bool:
        return self._keys() == other._keys()

    def is_reordered(self, other: "ParameterList") -> bool:
        """Same parameters (type and name) in a different order"""
        return self._keys() != other._keys() and Counter(self._keys()) == Counter(other._keys())

    def types_are_equal(self, other: "ParameterList") -> bool:
        return self._type_keys() == other._type_keys()

    def types_are_reordered(self, other: "ParameterList") -> bool:
        return self._type_keys() != other._type_keys() and Counter(self._type_keys()) == Counter(other._type_keys())

    def declarations(self, with_defaults: bool = False) -> str:
        """Reassemble the list as it would appear between the parentheses"""
        pieces = []
        for parameter in self.parameters:
            text = parameter.declaration()
            if with_defaults and parameter.default_value:
                text += " = " + parameter.default_value
            pieces.append(text)
        return ", ".join(pieces)


def _parse_parameter(raw: str, partially_masked: str, masked: str, range: Range) -> Parameter:
    """Split one parameter (already trimmed on both sides) into type, name and default value"""
    default_value = ""
    declaration = raw
    equals_index = masked.find("=")
    if equals_index != -1:
        default_value = raw[equals_index + 1:].strip()
        masked = masked[:equals_index].rstrip()
        declaration = raw[:len(masked)]
        partially_masked = partially_masked[:len(masked)]

    name_match = _NAME_RE.search(masked)
    if name_match and name_match.start() > 0:
        name = name_match.group(1)
        type_part = declaration[:name_match.start()].rstrip()
        if (type_part and name not in ("const", "volatile")
                and not _CV_ONLY_RE.match(parsing.normalize_source_text(type_part))):
            brackets = declaration[name_match.start(2):]
            return Parameter(raw, type_part + brackets, name, default_value, range, len(type_part))
    elif not name_match:
        nested_match = _NESTED_DECLARATOR_RE.search(masked)
        if nested_match:
            deepest_right_paren = partially_masked.find(")", nested_match.start())
            if deepest_right_paren != -1:
                inner = declaration[:deepest_right_paren]
                identifier = _TRAILING_IDENTIFIER_RE.search(parsing.mask_non_source_text(inner))
                if identifier and identifier.group(1) not in ("const", "volatile"):
                    type_text = inner[:identifier.start(1)] + declaration[identifier.end(1):]
                    return Parameter(raw, type_text, identifier.group(1), default_value, range,
                                     identifier.start(1))

    # Unnamed parameter (an abstract declarator)
    return Parameter(raw, declaration, "", default_value, range, len(declaration))


def parse_parameter_list(text: str, start_offset: int = 0,
                         document: Optional[TextDocument] = None) -> ParameterList:
    """
    Parse the text between a function's parentheses.

    start_offset is the offset of text within document; ranges are computed
    against document when one is given (otherwise against text itself).
    """
    reference = document if document is not None else TextDocument("untitled:parameters", text)
    if document is None:
        start_offset = 0

    partially_masked = parsing.mask_non_source_text(text, keep_attribute_brackets=False)
    masked = parsing.mask_nested_groups(partially_masked)

    parameters: List[Parameter] = []
    variadic: Optional[Parameter] = None
    variadic_match = _VARIADIC_RE.search(masked)
    if variadic_match:
        dots_index = masked.index("...", variadic_match.start())
        dots_range = reference.range_at(start_offset + dots_index, start_offset + dots_index + 3)
        variadic = Parameter("...", "...", "...", "", dots_range, 0)
        masked = masked[:variadic_match.start()]

    for match in _SPLIT_RE.finditer(masked):
        piece = match.group(0)
        if not piece.strip():
            continue
        start = match.start() + len(piece) - len(piece.lstrip())
        end = match.start() + len(piece.rstrip())
        range = reference.range_at(start_offset + start, start_offset + end)
        parameters.append(_parse_parameter(text[start:end], partially_masked[start:end], masked[start:end], range))

    if variadic is not None:
        parameters.append(variadic)

    params_range = reference.range_at(start_offset, start_offset + len(text))
    return ParameterList(parameters, params_range)
