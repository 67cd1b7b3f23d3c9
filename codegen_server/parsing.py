"""
Masking and lexical helpers for C/C++ source text.

Every mask_* function returns a string of exactly the same length as its input,
with the masked characters replaced by spaces. Line breaks are never masked, so
line numbers and character offsets computed on masked text remain valid for the
original text. This lets the rest of the package run plain regular expressions
over C++ code without tripping over comments, literals or nested brackets.
"""

import re
from typing import Callable, Dict, List, Optional, Union

from .text_document import Position, TextDocument


def masker(text: str) -> str:
    """Replace every character except line breaks with a space"""
    return re.sub(r"[^\r\n]", " ", text)


# Comments and literals are matched by one alternation so that the leftmost
# construct wins (a "//" inside a string literal is not a comment).
_NON_SOURCE_RE = re.compile(
    r'(?P<line_comment>//[^\r\n]*)'
    r'|(?P<block_comment>/\*.*?\*/)'
    r'|(?P<raw_string>R"(?P<delimiter>[^()\\\s"]{0,16})\(.*?\)(?P=delimiter)")'
    r'|(?P<string>"(?:\\.|[^"\\\r\n])*")'
    r"|(?P<char>'(?:\\.|[^'\\\r\n])*')",
    re.DOTALL)

# Number of characters kept on each side of a token when keeping enclosing chars.
_ENCLOSING_WIDTH = {
    "line_comment": (2, 0),
    "block_comment": (2, 2),
    "string": (1, 1),
    "char": (1, 1),
}

Replacer = Union[str, Callable[[str], str]]


def _replace_tokens(text: str, kinds: Dict[str, bool], replacer: Replacer = masker) -> str:
    """
    Replace the comment/literal tokens whose kind is a key of kinds.
    The value for each kind says whether its enclosing characters are kept.
    """
    def replace(match: re.Match) -> str:
        kind = match.lastgroup
        if kind == "delimiter":
            kind = "raw_string"
        token = match.group(0)
        if kind not in kinds:
            return token
        if kinds[kind]:
            if kind == "raw_string":
                # R"delim( ... )delim" keeps R" and the closing quote
                left, right = 2, 1
            else:
                left, right = _ENCLOSING_WIDTH[kind]
            inner = token[left:len(token) - right]
            head, tail = token[:left], token[len(token) - right:]
        else:
            inner, head, tail = token, "", ""
        if callable(replacer):
            return head + replacer(inner) + tail
        return head + replacer + tail

    return _NON_SOURCE_RE.sub(replace, text)


def mask_comments(text: str, keep_enclosing_chars: bool = True) -> str:
    return _replace_tokens(text, {"line_comment": keep_enclosing_chars,
                                  "block_comment": keep_enclosing_chars})


def remove_comments(text: str) -> str:
    return _replace_tokens(text, {"line_comment": False, "block_comment": False}, "")


def mask_raw_string_literals(text: str, keep_enclosing_chars: bool = True) -> str:
    return _replace_tokens(text, {"raw_string": keep_enclosing_chars})


def mask_quotes(text: str, keep_enclosing_chars: bool = True) -> str:
    return _replace_tokens(text, {"string": keep_enclosing_chars, "char": keep_enclosing_chars})


_ATTRIBUTE_RE = re.compile(r"\[\[([^\r\n]*?)\]\]")


def mask_attributes(text: str, keep_enclosing_chars: bool = True) -> str:
    if keep_enclosing_chars:
        return _ATTRIBUTE_RE.sub(lambda m: "[[" + masker(m.group(1)) + "]]", text)
    return _ATTRIBUTE_RE.sub(lambda m: masker(m.group(0)), text)


def remove_attributes(text: str) -> str:
    return _ATTRIBUTE_RE.sub("", text)


def mask_non_source_text(text: str, keep_attribute_brackets: bool = True) -> str:
    """Mask comments entirely and the contents of string/char literals and attributes"""
    text = _replace_tokens(text, {
        "line_comment": False,
        "block_comment": False,
        "raw_string": True,
        "string": True,
        "char": True,
    })
    return mask_attributes(text, keep_attribute_brackets)


def _find_balanced_spans(text: str, left: str, right: str):
    """
    Return (spans, unbalanced_index) for the outermost balanced pairs in text.
    Backslash escapes the following character.
    """
    spans = []
    depth = 0
    start = -1
    i = 0
    length = len(text)
    while i < length:
        ch = text[i]
        if ch == "\\":
            i += 2
            continue
        if ch == left:
            if depth == 0:
                start = i
            depth += 1
        elif ch == right:
            if depth == 0:
                return spans, i
            depth -= 1
            if depth == 0:
                spans.append((start, i))
        i += 1
    if depth > 0:
        return spans, start
    return spans, None


def _mask_balanced(text: str, left: str, right: str, keep_enclosing_chars: bool) -> str:
    while True:
        spans, unbalanced = _find_balanced_spans(text, left, right)
        if unbalanced is None:
            break
        # Mask the offending delimiter and match again.
        text = text[:unbalanced] + " " + text[unbalanced + 1:]

    if not spans:
        return text

    pieces = []
    last = 0
    for start, end in spans:
        if keep_enclosing_chars:
            start += 1
        else:
            end += 1
        pieces.append(text[last:start])
        pieces.append(masker(text[start:end]))
        last = end
    pieces.append(text[last:])
    return "".join(pieces)


def mask_parentheses(text: str, keep_enclosing_chars: bool = True) -> str:
    return _mask_balanced(text, "(", ")", keep_enclosing_chars)


def mask_braces(text: str, keep_enclosing_chars: bool = True) -> str:
    return _mask_balanced(text, "{", "}", keep_enclosing_chars)


def mask_brackets(text: str, keep_enclosing_chars: bool = True) -> str:
    return _mask_balanced(text, "[", "]", keep_enclosing_chars)


def mask_angle_brackets(text: str, keep_enclosing_chars: bool = True) -> str:
    return _mask_balanced(text, "<", ">", keep_enclosing_chars)


def mask_comparison_operators(text: str) -> str:
    """Mask <=, >=, == and != so that they don't unbalance angle brackets"""
    return re.sub(r"[<>!=]=(?!=)", lambda m: masker(m.group(0)), text)


def mask_nested_groups(text: str) -> str:
    """Mask the contents of every bracketed group, leaving top-level commas and '=' visible"""
    text = mask_parentheses(text)
    text = mask_comparison_operators(text)
    text = mask_angle_brackets(text)
    text = mask_braces(text)
    return mask_brackets(text)


_WORD_CHAR_RE = re.compile(r"\w")


def normalize_whitespace(text: str) -> str:
    """
    Removes all whitespace except for whitespace between two adjacent word
    characters, and collapses that whitespace to single spaces.
    """
    def replace(match: re.Match) -> str:
        start, end = match.start(), match.end()
        if start > 0 and end < len(text) and _WORD_CHAR_RE.match(text[start - 1]) and _WORD_CHAR_RE.match(text[end]):
            return " "
        return ""

    return re.sub(r"\s+", replace, text)


def normalize_source_text(text: str) -> str:
    text = remove_comments(text)
    text = remove_attributes(text)
    return normalize_whitespace(text).strip()


def get_end_of_statement(document: TextDocument, position: Position) -> Position:
    """Symbol ranges don't always include the final semicolon; find the end of it"""
    offset = document.offset_at(position)
    match = re.match(r"(\s*;)*", document.text[offset:])
    if not match or not match.group(0):
        return position
    return document.position_at(offset + len(match.group(0)))


def get_indentation(line_text: str) -> str:
    return line_text[:len(line_text) - len(line_text.lstrip())]


def strip_default_values(parameters: str) -> str:
    masked = mask_nested_groups(mask_non_source_text(parameters))

    stripped: List[str] = []
    char_pos = 0
    for piece in masked.split(","):
        if "=" in piece:
            stripped.append(parameters[char_pos:char_pos + piece.index("=")].rstrip())
        else:
            stripped.append(parameters[char_pos:char_pos + len(piece)])
        char_pos += len(piece) + 1

    return ",".join(stripped)


_IDENTIFIER_CHAIN_RE = re.compile(r"\b[A-Za-z_]\w*\b(?:\s*::\s*[A-Za-z_]\w*\b)*")

# Words that may precede the final word of a leading return type and still belong to it.
_RETURN_TYPE_MODIFIERS = {"const", "volatile", "unsigned", "signed", "long", "short"}


def get_leading_return_type(leading_text: str) -> str:
    """Recover the return type from the text preceding a function name"""
    masked = mask_angle_brackets(mask_non_source_text(leading_text))

    start_of_type: Optional[int] = None
    for match in reversed(list(_IDENTIFIER_CHAIN_RE.finditer(masked))):
        word = match.group(0)
        if start_of_type is None:
            if word not in ("const", "volatile"):
                start_of_type = match.start()
        elif word in _RETURN_TYPE_MODIFIERS:
            start_of_type = match.start()
        else:
            break

    return leading_text[start_of_type:] if start_of_type is not None else leading_text


_TRAILING_RETURN_TYPE_FRAGMENTS_RE = re.compile(
    r"\b[A-Za-z_]\w*\b(?:\s*::\s*[A-Za-z_]\w*\b)*(?:\s*<\s*>)?(?:\s*\(\s*\)){0,2}|&{1,2}|\*+")
_CONST_VOLATILE_REF_PTR_RE = re.compile(r"^(const|volatile|&{1,2}|\*+)$")


def get_trailing_return_type(trailing_text: str) -> str:
    """Recover the return type following a '->' (stops before override/final/=/{ etc.)"""
    masked = mask_angle_brackets(mask_parentheses(mask_non_source_text(trailing_text)))

    end_of_type: Optional[int] = None
    for match in _TRAILING_RETURN_TYPE_FRAGMENTS_RE.finditer(masked):
        is_qualifier = _CONST_VOLATILE_REF_PTR_RE.match(match.group(0)) is not None
        if (end_of_type is None and not is_qualifier) or (end_of_type is not None and is_qualifier):
            end_of_type = match.end()
        elif end_of_type is not None:
            break

    return trailing_text[:end_of_type] if end_of_type is not None else trailing_text


_PRIMITIVE_TYPES_RE = re.compile(
    r"\b(void|bool|char|wchar_t|char8_t|char16_t|char32_t|int|short|long|signed|unsigned|float|double"
    r"|size_t|std::size_t|u?int(8|16|32|64)_t|std::u?int(8|16|32|64)_t)\b")


def matches_primitive_type(text: str) -> bool:
    """Crude check for a built-in type; typedefs and aliases are not resolved"""
    return not ("<" in text and ">" in text) and _PRIMITIVE_TYPES_RE.search(text) is not None
