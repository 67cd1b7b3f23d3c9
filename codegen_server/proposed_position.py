"""Insertion points for generated code."""

import re
from dataclasses import dataclass
from typing import Optional

from .text_document import Position, Range, TextDocument, TextLine


@dataclass(frozen=True)
class ProposedPosition:
    """
    A position to insert new text at, along with how the text relates to its neighbours.

    relative_to is the range of the symbol the position was derived from; it only
    decides indentation. next_to means no blank line separates the new text from
    that symbol. empty_scope means the position is just inside an empty class or
    namespace body, so the text needs one more level of indentation (for
    namespaces only when in_namespace bodies are indented).
    """
    position: Position = Position(0, 0)
    relative_to: Optional[Range] = None
    before: bool = False
    after: bool = False
    next_to: bool = False
    empty_scope: bool = False
    in_namespace: bool = False

    @property
    def line(self) -> int:
        return self.position.line

    @property
    def character(self) -> int:
        return self.position.character

    def indent(self, indent_namespace_body: bool = True) -> bool:
        return self.empty_scope and (not self.in_namespace or indent_namespace_body)

    def to_dict(self):
        return {
            "position": self.position.to_dict(),
            "before": self.before,
            "after": self.after,
            "next_to": self.next_to,
            "empty_scope": self.empty_scope,
        }

    def format_text_to_insert(self, insert_text: str, document: TextDocument,
                              indentation: str = "    ", indent_namespace_body: bool = True) -> str:
        """Indent insert_text and surround it with the line breaks it needs at this position"""
        if document.eol != "\n":
            insert_text = re.sub(r"\r?\n", document.eol, insert_text)

        if self.indent(indent_namespace_body):
            insert_text = _prefix_lines(insert_text, indentation)

        # Match the indentation of the line we are positioned relative to.
        indentation_line = document.line_at(self.relative_to.start if self.relative_to else self.position)
        line_indentation = indentation_line.text[:indentation_line.first_non_whitespace_character_index]
        if not self.before:
            insert_text = _prefix_lines(insert_text, line_indentation)
        else:
            insert_text = insert_text.replace("\n", "\n" + line_indentation)

        # Access specifiers sit at the class's own indentation level.
        if indentation:
            insert_text = re.sub(re.escape(indentation) + r"(?=(public|protected|private)\s*:)", "", insert_text)

        next_line = self._next_line(document)
        eol = document.eol
        # A neighbouring line of code (other than a brace) gets no blank line in between.
        if next_line is None:
            crowded = False
        elif self.after:
            crowded = not next_line.is_empty_or_whitespace and not re.match(r"^\s*}", next_line.text)
        else:
            crowded = not next_line.is_empty_or_whitespace and not re.search(r"{\s*$", next_line.text)
        if self.next_to or crowded:
            new_lines = eol
        else:
            new_lines = eol + eol

        if self.after:
            insert_text = new_lines + insert_text
        elif self.before:
            insert_text += new_lines

        if self.position.line == document.line_count - 1:
            insert_text += eol

        if self.before:
            insert_text += line_indentation

        return insert_text

    def _next_line(self, document: TextDocument) -> Optional[TextLine]:
        if self.after and self.position.line + 1 < document.line_count:
            return document.line_at(self.position.line + 1)
        if self.before and self.position.line > 0:
            return document.line_at(self.position.line - 1)
        return None


def _prefix_lines(text: str, prefix: str) -> str:
    """Prefix every non-empty line of text"""
    if not prefix:
        return text
    return re.sub(r"^(?=[^\r\n])", prefix, text, flags=re.MULTILINE)
