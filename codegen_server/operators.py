"""Comparison and stream output operators generated for a class."""

from typing import List, Optional, Sequence, Union

from .csymbol import CSymbol, SubSymbol
from .text_document import Position
from .utility import contains_exclusive

# A base class (SubSymbol) or a member variable (CSymbol) that takes part in an operator.
Operand = Union[CSymbol, SubSymbol]


def _base_cast(operand: SubSymbol) -> str:
    return f"static_cast<const {operand.name} &>"


class Operator:
    """An operator for a class; friend operators take both operands as parameters"""

    name = ""
    return_type = ""

    def __init__(self, parent: CSymbol):
        self.parent = parent
        self.config = parent.document.config
        self.is_friend = False
        self.parameters = ""
        self.body = ""

    @property
    def indentation(self) -> str:
        return self.config.get_indentation()

    @property
    def eol(self) -> str:
        return self.parent.document.eol

    @property
    def trailing_specifiers(self) -> str:
        return "" if self.is_friend else " const"

    @property
    def declaration(self) -> str:
        return (("friend " if self.is_friend else "") + self.return_type + self.name
                + "(" + self.parameters + ")" + self.trailing_specifiers)

    async def definition(self, target, position: Position, curly_separator: str) -> str:
        """Full definition of the operator to be inserted at position in target"""
        eol = target.eol
        same_file = self.parent.document.file_path == target.file_path
        inside_class = contains_exclusive(self.parent.range, position)
        friend_specifier = "friend " if self.is_friend and inside_class and same_file else ""
        inline_specifier = "inline " if not inside_class and same_file else ""
        return (self.parent.combined_template_statements(True, eol) + friend_specifier + inline_specifier
                + self.return_type + await self.parent.scope_string(target, position, self.is_friend)
                + self.name + "(" + self.parameters + ")" + self.trailing_specifiers + curly_separator + "{"
                + eol + self.indentation + self.body + eol + "}")

    def to_dict(self):
        return {"name": self.name, "declaration": self.declaration, "friend": self.is_friend}


class ComparisonOperator(Operator):
    return_type = "bool "

    def __init__(self, parent: CSymbol):
        super().__init__(parent)
        self.is_friend = self.config.get_friend_comparison_operators()
        type = f"const {parent.templated_name()} &"
        self.parameters = f"{type}lhs, {type}rhs" if self.is_friend else f"{type}other"

    @property
    def lhs(self) -> str:
        if self.is_friend:
            return "lhs."
        return "this->" if self.config.get_explicit_this_pointer() else ""

    @property
    def rhs(self) -> str:
        return "rhs." if self.is_friend else "other."

    @property
    def lhs_cast(self) -> str:
        return "(lhs)" if self.is_friend else "(*this)"

    @property
    def rhs_cast(self) -> str:
        return "(rhs)" if self.is_friend else "(other)"


class EqualOperator(ComparisonOperator):
    name = "operator=="

    def __init__(self, parent: CSymbol, operands: Optional[Sequence[Operand]] = None):
        super().__init__(parent)
        if operands is not None:
            self.set_operands(operands)

    def set_operands(self, operands: Sequence[Operand]):
        self.body = ""
        if not operands:
            self.body = "return true;"
            return

        indent = self.indentation
        alignment = "    " if " " in indent else indent
        separator = self.eol + indent + alignment + "&& "
        comparisons = []
        for operand in operands:
            if isinstance(operand, SubSymbol):
                cast = _base_cast(operand)
                comparisons.append(f"{cast}{self.lhs_cast} == {cast}{self.rhs_cast}")
            else:
                comparisons.append(f"{self.lhs}{operand.name} == {self.rhs}{operand.name}")
        self.body = "return " + separator.join(comparisons) + ";"


class NotEqualOperator(ComparisonOperator):
    name = "operator!="

    def __init__(self, parent: CSymbol):
        super().__init__(parent)
        self.body = "return !(lhs == rhs);" if self.is_friend else "return !(*this == other);"


class LessThanOperator(ComparisonOperator):
    name = "operator<"

    def __init__(self, parent: CSymbol, operands: Optional[Sequence[Operand]] = None):
        super().__init__(parent)
        if operands is not None:
            self.set_operands(operands)

    def _operand_pair(self, operand: Operand):
        if isinstance(operand, SubSymbol):
            cast = _base_cast(operand)
            return cast + self.lhs_cast, cast + self.rhs_cast
        return self.lhs + operand.name, self.rhs + operand.name

    def set_operands(self, operands: Sequence[Operand]):
        self.body = ""
        if not operands:
            self.body = "return false;"
            return

        eol = self.eol
        indent = self.indentation
        return_true = eol + indent + indent + "return true;" + eol + indent
        return_false = eol + indent + indent + "return false;" + eol + indent

        operands: List[Operand] = list(operands)
        last_operand = operands.pop()
        for operand in operands:
            lhs, rhs = self._operand_pair(operand)
            self.body += f"if ({lhs} < {rhs}){return_true}if ({rhs} < {lhs}){return_false}"

        lhs, rhs = self._operand_pair(last_operand)
        self.body += f"return {lhs} < {rhs};"


class GreaterThanOperator(ComparisonOperator):
    name = "operator>"

    def __init__(self, parent: CSymbol):
        super().__init__(parent)
        self.body = "return rhs < lhs;" if self.is_friend else "return other < *this;"


class LessThanOrEqualOperator(ComparisonOperator):
    name = "operator<="

    def __init__(self, parent: CSymbol):
        super().__init__(parent)
        self.body = "return !(rhs < lhs);" if self.is_friend else "return !(other < *this);"


class GreaterThanOrEqualOperator(ComparisonOperator):
    name = "operator>="

    def __init__(self, parent: CSymbol):
        super().__init__(parent)
        self.body = "return !(lhs < rhs);" if self.is_friend else "return !(*this < other);"


class StreamOutputOperator(Operator):
    name = "operator<<"
    return_type = "std::ostream &"

    def __init__(self, parent: CSymbol, operands: Optional[Sequence[Operand]] = None):
        super().__init__(parent)
        self.is_friend = True
        self.parameters = f"{self.return_type}os, const {parent.templated_name()} &rhs"
        if operands is not None:
            self.set_operands(operands)

    def set_operands(self, operands: Sequence[Operand]):
        if not operands:
            self.body = "return os;"
            return

        eol = self.eol
        indent = self.indentation
        alignment = "   " if " " in indent else indent
        spacer = ""
        parts = []
        for operand in operands:
            if isinstance(operand, SubSymbol):
                parts.append(f"<< {_base_cast(operand)}(rhs)")
            else:
                parts.append(f'<< "{spacer}{operand.name}: " << rhs.{operand.name}')
            spacer = " "
        self.body = "os " + (eol + indent + alignment).join(parts) + ";" + eol + indent + "return os;"


def equality_operators(parent: CSymbol, operands: Sequence[Operand]) -> List[Operator]:
    return [EqualOperator(parent, operands), NotEqualOperator(parent)]


def relational_operators(parent: CSymbol, operands: Sequence[Operand]) -> List[Operator]:
    return [LessThanOperator(parent, operands), GreaterThanOperator(parent),
            LessThanOrEqualOperator(parent), GreaterThanOrEqualOperator(parent)]
