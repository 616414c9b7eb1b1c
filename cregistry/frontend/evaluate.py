"""Integer constant expression evaluation over tree-sitter C nodes.

Covers what headers put in enum initializers and array bounds: integer, char
and string literals, unary/binary/conditional operators, parentheses, casts
to primitive types, references to enum constants declared earlier in the
unit, and ``sizeof``/``alignof`` of primitive and pointer types under LP64.
"""

from __future__ import annotations

import logging
import operator
from typing import Callable

from tree_sitter import Node

from .. import constants
from ..errors import LiteralEvaluationError
from .cursor import EvalKind, EvalResult, TypeKind

logger = logging.getLogger(__name__)

# (size in bytes, signed) under LP64
INTEGER_LAYOUT: dict[TypeKind, tuple[int, bool]] = {
    TypeKind.BOOL: (1, False),
    TypeKind.CHAR_S: (1, True),
    TypeKind.SCHAR: (1, True),
    TypeKind.UCHAR: (1, False),
    TypeKind.SHORT: (2, True),
    TypeKind.USHORT: (2, False),
    TypeKind.INT: (4, True),
    TypeKind.UINT: (4, False),
    TypeKind.LONG: (8, True),
    TypeKind.ULONG: (8, False),
    TypeKind.LONG_LONG: (8, True),
    TypeKind.ULONG_LONG: (8, False),
}

FLOAT_SIZES: dict[TypeKind, int] = {
    TypeKind.FLOAT: 4,
    TypeKind.DOUBLE: 8,
    TypeKind.LONG_DOUBLE: 16,
}

SIMPLE_ESCAPES: dict[str, int] = {
    "n": 0x0A,
    "t": 0x09,
    "r": 0x0D,
    "a": 0x07,
    "b": 0x08,
    "f": 0x0C,
    "v": 0x0B,
    "e": 0x1B,
    "\\": 0x5C,
    "'": 0x27,
    '"': 0x22,
    "?": 0x3F,
}

INT_SUFFIX_CHARS = "uUlL"
FLOAT_SUFFIX_CHARS = "fFlL"


def _c_div(lhs: int, rhs: int) -> int:
    quotient = abs(lhs) // abs(rhs)
    return quotient if (lhs < 0) == (rhs < 0) else -quotient


def _c_mod(lhs: int, rhs: int) -> int:
    return lhs - rhs * _c_div(lhs, rhs)


BINARY_EVALUATORS: dict[str, Callable[[int, int], int]] = {
    "+": operator.add,
    "-": operator.sub,
    "*": operator.mul,
    "/": _c_div,
    "%": _c_mod,
    "<<": operator.lshift,
    ">>": operator.rshift,
    "&": operator.and_,
    "|": operator.or_,
    "^": operator.xor,
    "<": lambda a, b: int(a < b),
    ">": lambda a, b: int(a > b),
    "<=": lambda a, b: int(a <= b),
    ">=": lambda a, b: int(a >= b),
    "==": lambda a, b: int(a == b),
    "!=": lambda a, b: int(a != b),
    "&&": lambda a, b: int(bool(a) and bool(b)),
    "||": lambda a, b: int(bool(a) or bool(b)),
}

UNARY_EVALUATORS: dict[str, Callable[[int], int]] = {
    "-": operator.neg,
    "+": operator.pos,
    "~": operator.invert,
    "!": lambda a: int(not a),
}

COMPARISON_OPERATORS = frozenset({"<", ">", "<=", ">=", "==", "!=", "&&", "||"})


def canonical_int_suffix(raw: str) -> str:
    """Normalize ``lu``/``uLL``/... into ``U``, ``L``, ``UL``, ``LL`` or ``ULL``."""
    lowered = raw.lower()
    return ("U" if "u" in lowered else "") + "L" * lowered.count("l")


def is_float_literal(text: str) -> bool:
    lowered = text.lower()
    if lowered.startswith("0x"):
        return "." in lowered or "p" in lowered
    return "." in lowered or "e" in lowered


def parse_int_literal(text: str) -> tuple[int, str]:
    """Return (value, canonical suffix) of a C integer literal."""
    cleaned = text.replace("'", "")
    body = cleaned.rstrip(INT_SUFFIX_CHARS)
    suffix = canonical_int_suffix(cleaned[len(body):])
    lowered = body.lower()
    try:
        if lowered.startswith("0x"):
            return int(body[2:], 16), suffix
        if lowered.startswith("0b"):
            return int(body[2:], 2), suffix
        if len(body) > 1 and body.startswith("0"):
            return int(body[1:], 8), suffix
        return int(body, 10), suffix
    except ValueError as exc:
        raise LiteralEvaluationError(f"Malformed integer literal '{text}'") from exc


def parse_float_literal(text: str) -> tuple[str, str]:
    """Split a floating literal into (value text, ``F``/``L``/empty suffix)."""
    body = text
    if not body.lower().startswith("0x") or "p" in body.lower():
        body = text.rstrip(FLOAT_SUFFIX_CHARS)
    suffix = text[len(body):].upper()
    return body, suffix


def parse_char_literal(text: str) -> int:
    """Code point of a (possibly prefixed, possibly escaped) char literal."""
    try:
        inner = text[text.index("'") + 1 : text.rindex("'")]
    except ValueError as exc:
        raise LiteralEvaluationError(f"Malformed character literal {text}") from exc
    if not inner:
        raise LiteralEvaluationError(f"Empty character literal {text}")
    if inner[0] != "\\":
        return ord(inner[0])
    escape = inner[1:]
    if not escape:
        raise LiteralEvaluationError(f"Dangling escape in character literal {text}")
    head = escape[0]
    try:
        if head in "01234567":
            digits = escape[:3]
            return int("".join(d for d in digits if d in "01234567"), 8)
        if head == "x":
            return int(escape[1:], 16)
        if head in "uU":
            return int(escape[1:], 16)
    except ValueError as exc:
        raise LiteralEvaluationError(f"Malformed escape in character literal {text}") from exc
    code = SIMPLE_ESCAPES.get(head)
    if code is None:
        raise LiteralEvaluationError(f"Unknown escape in character literal {text}")
    return code


def string_literal_content(text: str) -> str:
    """Text between the outermost quotes; escapes are kept verbatim."""
    start = text.find('"')
    end = text.rfind('"')
    if start < 0 or end <= start:
        return ""
    return text[start + 1 : end]


def wrap_integer(value: int, kind: TypeKind) -> int:
    """Truncate ``value`` to the width of an integer type, C-style."""
    layout = INTEGER_LAYOUT.get(kind)
    if layout is None:
        return value
    size, signed = layout
    if kind == TypeKind.BOOL:
        return int(bool(value))
    bits = size * 8
    value &= (1 << bits) - 1
    if signed and value >= 1 << (bits - 1):
        value -= 1 << bits
    return value


class ConstantEvaluator:
    """Evaluates constant expressions in the scope of one translation unit."""

    def __init__(
        self,
        source: bytes,
        scope: dict[str, int] | None = None,
        type_of: Callable[[Node], object] | None = None,
    ):
        self._source = source
        self._scope = scope if scope is not None else {}
        self._type_of = type_of
        self._DISPATCH: dict[str, Callable[[Node], EvalResult]] = {
            "number_literal": self._eval_number,
            "char_literal": self._eval_char,
            "string_literal": self._eval_string,
            "concatenated_string": self._eval_concatenated_string,
            "identifier": self._eval_identifier,
            "true": lambda node: EvalResult(EvalKind.INT, 1),
            "false": lambda node: EvalResult(EvalKind.INT, 0),
            "parenthesized_expression": self._eval_paren,
            "unary_expression": self._eval_unary,
            "binary_expression": self._eval_binary,
            "conditional_expression": self._eval_conditional,
            "comma_expression": self._eval_comma,
            "cast_expression": self._eval_cast,
            "sizeof_expression": self._eval_sizeof,
            "alignof_expression": self._eval_sizeof,
        }

    @property
    def scope(self) -> dict[str, int]:
        return self._scope

    def evaluate(self, node: Node) -> EvalResult:
        handler = self._DISPATCH.get(node.type)
        if handler is None:
            raise LiteralEvaluationError(
                f"Cannot evaluate '{self._node_text(node)}' ({node.type}) as a constant"
            )
        return handler(node)

    def evaluate_int(self, node: Node) -> int:
        result = self.evaluate(node)
        if result.kind != EvalKind.INT:
            raise LiteralEvaluationError(
                f"'{self._node_text(node)}' is not an integer constant"
            )
        return result.value

    def _node_text(self, node: Node) -> str:
        return self._source[node.start_byte : node.end_byte].decode(
            "utf-8", errors="replace"
        )

    # ── literals ─────────────────────────────────────────────────

    def _eval_number(self, node: Node) -> EvalResult:
        text = self._node_text(node)
        if is_float_literal(text):
            body, _ = parse_float_literal(text)
            try:
                value = (
                    float.fromhex(body) if body.lower().startswith("0x") else float(body)
                )
            except ValueError as exc:
                raise LiteralEvaluationError(f"Malformed floating literal '{text}'") from exc
            return EvalResult(EvalKind.FLOAT, value)
        value, suffix = parse_int_literal(text)
        return EvalResult(EvalKind.INT, value, is_unsigned="U" in suffix)

    def _eval_char(self, node: Node) -> EvalResult:
        return EvalResult(EvalKind.INT, parse_char_literal(self._node_text(node)))

    def _eval_string(self, node: Node) -> EvalResult:
        return EvalResult(EvalKind.STR, string_literal_content(self._node_text(node)))

    def _eval_concatenated_string(self, node: Node) -> EvalResult:
        parts = [
            string_literal_content(self._node_text(child))
            for child in node.named_children
            if child.type == "string_literal"
        ]
        return EvalResult(EvalKind.STR, "".join(parts))

    def _eval_identifier(self, node: Node) -> EvalResult:
        name = self._node_text(node)
        if name not in self._scope:
            raise LiteralEvaluationError(f"'{name}' is not a known integer constant")
        return EvalResult(EvalKind.INT, self._scope[name])

    # ── operators ────────────────────────────────────────────────

    def _eval_paren(self, node: Node) -> EvalResult:
        inner = node.named_children
        if not inner:
            raise LiteralEvaluationError("Empty parenthesized expression")
        return self.evaluate(inner[0])

    def _eval_unary(self, node: Node) -> EvalResult:
        op = self._node_text(node.child_by_field_name("operator"))
        argument = self.evaluate(node.child_by_field_name("argument"))
        if argument.kind == EvalKind.FLOAT and op in ("-", "+"):
            return EvalResult(EvalKind.FLOAT, -argument.value if op == "-" else argument.value)
        fn = UNARY_EVALUATORS.get(op)
        if fn is None or argument.kind != EvalKind.INT:
            raise LiteralEvaluationError(f"Cannot fold unary '{op}'")
        return EvalResult(EvalKind.INT, fn(argument.value), argument.is_unsigned)

    def _eval_binary(self, node: Node) -> EvalResult:
        op = self._node_text(node.child_by_field_name("operator"))
        lhs = self.evaluate(node.child_by_field_name("left"))
        rhs = self.evaluate(node.child_by_field_name("right"))
        fn = BINARY_EVALUATORS.get(op)
        if fn is None or lhs.kind != EvalKind.INT or rhs.kind != EvalKind.INT:
            raise LiteralEvaluationError(f"Cannot fold binary '{op}'")
        try:
            value = fn(lhs.value, rhs.value)
        except (ArithmeticError, ValueError) as exc:
            raise LiteralEvaluationError(
                f"Cannot fold '{self._node_text(node)}': {exc}"
            ) from exc
        is_unsigned = op not in COMPARISON_OPERATORS and (
            lhs.is_unsigned or rhs.is_unsigned
        )
        return EvalResult(EvalKind.INT, value, is_unsigned)

    def _eval_conditional(self, node: Node) -> EvalResult:
        condition = self.evaluate_int(node.child_by_field_name("condition"))
        consequence = node.child_by_field_name("consequence")
        alternative = node.child_by_field_name("alternative")
        if condition:
            return (
                self.evaluate(consequence)
                if consequence is not None
                else EvalResult(EvalKind.INT, condition)
            )
        return self.evaluate(alternative)

    def _eval_comma(self, node: Node) -> EvalResult:
        return self.evaluate(node.child_by_field_name("right"))

    def _eval_cast(self, node: Node) -> EvalResult:
        value = self.evaluate(node.child_by_field_name("value"))
        if self._type_of is None or value.kind != EvalKind.INT:
            return value
        target = self._type_of(node.child_by_field_name("type"))
        kind = getattr(target, "kind", TypeKind.INVALID)
        layout = INTEGER_LAYOUT.get(kind)
        if layout is None:
            return value
        return EvalResult(EvalKind.INT, wrap_integer(value.value, kind), not layout[1])

    def _eval_sizeof(self, node: Node) -> EvalResult:
        type_node = node.child_by_field_name("type")
        if type_node is None or self._type_of is None:
            raise LiteralEvaluationError(
                f"Cannot evaluate '{self._node_text(node)}': only sizeof(type) is supported"
            )
        size = size_of(self._type_of(type_node))
        return EvalResult(EvalKind.INT, size, is_unsigned=True)


def size_of(ty) -> int:
    """LP64 size of a primitive, pointer or constant array type."""
    kind = ty.kind
    if kind in INTEGER_LAYOUT:
        return INTEGER_LAYOUT[kind][0]
    if kind in FLOAT_SIZES:
        return FLOAT_SIZES[kind]
    if kind == TypeKind.POINTER:
        return constants.POINTER_SIZE
    if kind == TypeKind.CONSTANT_ARRAY:
        return size_of(ty.element_type) * ty.array_size
    raise LiteralEvaluationError(f"Size of '{ty.spelling}' is not known")
