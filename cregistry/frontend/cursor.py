"""Front-end boundary — libclang-shaped cursor and type protocols.

The mapper never touches a parse tree directly.  It consumes objects that
satisfy :class:`Cursor` and :class:`CursorType`, whose kinds are named after
libclang's so that any C front end (the bundled tree-sitter adapter, or a
libclang binding) can drive it.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from pydantic import BaseModel, ConfigDict


class CursorKind(str, Enum):
    TRANSLATION_UNIT = "TranslationUnit"
    UNEXPOSED_DECL = "UnexposedDecl"
    STRUCT_DECL = "StructDecl"
    UNION_DECL = "UnionDecl"
    ENUM_DECL = "EnumDecl"
    FIELD_DECL = "FieldDecl"
    ENUM_CONSTANT_DECL = "EnumConstantDecl"
    FUNCTION_DECL = "FunctionDecl"
    VAR_DECL = "VarDecl"
    PARM_DECL = "ParmDecl"
    TYPEDEF_DECL = "TypedefDecl"
    # expressions
    UNEXPOSED_EXPR = "UnexposedExpr"
    DECL_REF_EXPR = "DeclRefExpr"
    MEMBER_REF_EXPR = "MemberRefExpr"
    CALL_EXPR = "CallExpr"
    INTEGER_LITERAL = "IntegerLiteral"
    FLOATING_LITERAL = "FloatingLiteral"
    STRING_LITERAL = "StringLiteral"
    CHARACTER_LITERAL = "CharacterLiteral"
    PAREN_EXPR = "ParenExpr"
    UNARY_OPERATOR = "UnaryOperator"
    ARRAY_SUBSCRIPT_EXPR = "ArraySubscriptExpr"
    BINARY_OPERATOR = "BinaryOperator"
    COMPOUND_ASSIGN_OPERATOR = "CompoundAssignOperator"
    CONDITIONAL_OPERATOR = "ConditionalOperator"
    CSTYLE_CAST_EXPR = "CStyleCastExpr"
    UNARY_EXPR = "UnaryExpr"

    @property
    def is_record(self) -> bool:
        return self in (CursorKind.STRUCT_DECL, CursorKind.UNION_DECL)


class TypeKind(str, Enum):
    INVALID = "Invalid"
    VOID = "Void"
    BOOL = "Bool"
    CHAR_S = "Char_S"
    SCHAR = "SChar"
    UCHAR = "UChar"
    SHORT = "Short"
    USHORT = "UShort"
    INT = "Int"
    UINT = "UInt"
    LONG = "Long"
    ULONG = "ULong"
    LONG_LONG = "LongLong"
    ULONG_LONG = "ULongLong"
    FLOAT = "Float"
    DOUBLE = "Double"
    LONG_DOUBLE = "LongDouble"
    POINTER = "Pointer"
    RECORD = "Record"
    ENUM = "Enum"
    TYPEDEF = "Typedef"
    ELABORATED = "Elaborated"
    FUNCTION_PROTO = "FunctionProto"
    FUNCTION_NO_PROTO = "FunctionNoProto"
    CONSTANT_ARRAY = "ConstantArray"
    INCOMPLETE_ARRAY = "IncompleteArray"
    VARIABLE_ARRAY = "VariableArray"


class SourceExtent(BaseModel):
    """Source span of a cursor (1-based lines, 0-based columns)."""

    model_config = ConfigDict(frozen=True)

    file: str = ""
    start_line: int = 0
    start_col: int = 0
    end_line: int = 0
    end_col: int = 0

    def is_unknown(self) -> bool:
        return self.start_line == 0 and self.end_line == 0

    def __str__(self) -> str:
        if self.is_unknown():
            return "<unknown>"
        span = f"{self.start_line}:{self.start_col}-{self.end_line}:{self.end_col}"
        return f"{self.file}:{span}" if self.file else span


NO_EXTENT = SourceExtent()


class EvalKind(str, Enum):
    INT = "int"
    FLOAT = "float"
    STR = "str"


@dataclass(frozen=True)
class EvalResult:
    """Result of evaluating a constant expression cursor."""

    kind: EvalKind
    value: int | float | str
    is_unsigned: bool = False


class CursorType(Protocol):
    @property
    def kind(self) -> TypeKind: ...

    @property
    def is_const(self) -> bool: ...

    @property
    def spelling(self) -> str: ...

    @property
    def pointee(self) -> CursorType: ...

    @property
    def element_type(self) -> CursorType: ...

    @property
    def array_size(self) -> int: ...

    @property
    def result_type(self) -> CursorType: ...

    def argument_types(self) -> list[CursorType]: ...

    @property
    def named_type(self) -> CursorType: ...

    @property
    def typedef_name(self) -> str: ...

    @property
    def declaration(self) -> Cursor: ...


class Cursor(Protocol):
    @property
    def kind(self) -> CursorKind: ...

    @property
    def spelling(self) -> bytes:
        """Raw spelling bytes; decoded (and validated) by the mapper."""
        ...

    def children(self) -> list[Cursor]: ...

    @property
    def type(self) -> CursorType: ...

    def is_anonymous(self) -> bool: ...

    def is_definition(self) -> bool: ...

    @property
    def usr(self) -> str: ...

    @property
    def extent(self) -> SourceExtent: ...

    def enum_value_unsigned(self) -> int: ...

    @property
    def enum_type(self) -> CursorType: ...

    @property
    def typedef_underlying_type(self) -> CursorType: ...

    def evaluate(self) -> EvalResult: ...

    @property
    def operator(self) -> str: ...

    @property
    def is_postfix(self) -> bool: ...
