"""Getter and setter member functions generated for a member variable."""

import re

from .csymbol import CSymbol
from .text_document import Position
from .utility import contains_exclusive

_QUALIFIERS_RE = re.compile(r"\b(static|const|volatile|mutable)\b")


def _member_prefix(member_variable: CSymbol, is_static: bool) -> str:
    if member_variable.document.config.get_explicit_this_pointer() and not is_static:
        return "this->"
    parent = member_variable.parent
    if is_static and parent is not None:
        return parent.name + "::"
    return ""


def _declarator(type: str, name: str) -> str:
    return type + name if type.endswith(("*", "&")) else type + " " + name


class Accessor:
    """Common parts of getters and setters"""

    def __init__(self, member_variable: CSymbol):
        self.member_variable = member_variable
        self.parent = member_variable.parent
        self.is_static = member_variable.is_static()
        self.config = member_variable.document.config
        self.name = ""
        self.return_type = ""
        self.parameter = ""
        self.body = ""

    @property
    def trailing_specifiers(self) -> str:
        return ""

    @property
    def declaration(self) -> str:
        return ("static " if self.is_static else "") + self.return_type + self.name \
            + "(" + self.parameter + ")" + self.trailing_specifiers

    def _inline_specifier(self, target, position: Position) -> str:
        outside_class = self.parent is None or not contains_exclusive(self.parent.range, position)
        if outside_class and self.member_variable.document.file_path == target.file_path:
            return "inline "
        return ""

    async def definition(self, target, position: Position, curly_separator: str) -> str:
        """Full definition of the accessor to be inserted at position in target"""
        eol = target.eol
        return (self.member_variable.combined_template_statements(True, eol)
                + self._inline_specifier(target, position) + self.return_type
                + await self.member_variable.scope_string(target, position) + self.name
                + "(" + self.parameter + ")" + self.trailing_specifiers + curly_separator + "{"
                + eol + self.config.get_indentation() + self.body + eol + "}")

    def to_dict(self):
        return {
            "name": self.name,
            "member_variable": self.member_variable.name,
            "declaration": self.declaration,
        }


class Getter(Accessor):
    """A member function returning the value of a member variable"""

    def __init__(self, member_variable: CSymbol):
        super().__init__(member_variable)
        leading_text = member_variable.parsable_leading_text.replace("[[", "").replace("]]", "")
        self.name = member_variable.getter_name(self.config.get_accessor_case_style())

        template_start = leading_text.find("<")
        template_end = leading_text.rfind(">")
        if template_start != -1 and template_end != -1:
            # Qualifiers inside template arguments belong to the type.
            return_type = (_QUALIFIERS_RE.sub("", leading_text[:template_start])
                           + leading_text[template_start:template_end + 1]
                           + _QUALIFIERS_RE.sub("", leading_text[template_end + 1:]))
        else:
            return_type = _QUALIFIERS_RE.sub("", leading_text)
        self.return_type = re.sub(r"\s+", " ", return_type).lstrip()

        self.body = "return " + _member_prefix(member_variable, self.is_static) + member_variable.name + ";"

    @property
    def trailing_specifiers(self) -> str:
        return "" if self.is_static else " const"


class Setter(Accessor):
    """A member function assigning a new value to a member variable"""

    def __init__(self, member_variable: CSymbol):
        super().__init__(member_variable)
        self.name = member_variable.setter_name(self.config.get_accessor_case_style())
        self.return_type = "void "

        base_name = member_variable.base_name()
        self.parameter_name = base_name if base_name != member_variable.name else base_name + "_"

        type = re.sub(r"\b(static|mutable)\s*", "", member_variable.parsable_leading_text)
        type = re.sub(r"\s+", " ", type.replace("[[", "").replace("]]", "")).strip()
        if member_variable.is_primitive() or member_variable.is_pointer():
            # Passed by value; a reference outside of template arguments is dropped.
            type = re.sub(r"\s*&(?!.*>)", "", type)
            self.parameter = _declarator(type, self.parameter_name)
        elif member_variable.is_reference():
            self.parameter = _declarator("const " + type, self.parameter_name)
        else:
            self.parameter = _declarator("const " + type + " &", self.parameter_name)

        self.body = (_member_prefix(member_variable, self.is_static) + member_variable.name
                     + " = " + self.parameter_name + ";")
