"""DeclMapper — front-end cursors -> IR declarations.

One top-level cursor maps to one ``CDecl``.  Declarations discovered while
mapping it (records and enums nested in a record body) are appended to an
out-of-band ``extras`` list so the caller can flatten them into the unit.
"""

from __future__ import annotations

import logging
from typing import Callable

from .errors import (
    MappingError,
    TextDecodeError,
    UnexpectedCursorKind,
    UnsupportedConstruct,
)
from .expr import (
    BINARY_OPERATORS,
    UNARY_OPERATORS,
    CBinaryExpr,
    CCallExpr,
    CCastExpr,
    CConditionalExpr,
    CExpr,
    CFloatLiteralExpr,
    CIdentifierExpr,
    CIndexExpr,
    CMemberExpr,
    CParenExpr,
    CPostfixIncDecExpr,
    CPtrMemberExpr,
    CStringLiteralExpr,
    CUnaryExpr,
    CUnaryOp,
    char_literal,
    int_literal,
)
from .frontend.cursor import Cursor, CursorKind, CursorType, EvalKind, TypeKind
from .frontend.evaluate import parse_float_literal
from .ident import Identifier, InternTable, default_table
from .ir import (
    AnonymousRecord,
    CArrayType,
    CDecl,
    CEnumConstant,
    CEnumDecl,
    CEnumType,
    CFieldDecl,
    CFunctionDecl,
    CFunctionPrototype,
    CParam,
    CPointerType,
    CPrimitiveKind,
    CPrimitiveType,
    CRecordDecl,
    CRecordType,
    CType,
    CTypedefDecl,
    CTypedefType,
    CVarDecl,
    NamedRecord,
)

logger = logging.getLogger(__name__)

PRIMITIVE_KINDS: dict[TypeKind, CPrimitiveKind] = {
    TypeKind.VOID: CPrimitiveKind.VOID,
    TypeKind.BOOL: CPrimitiveKind.BOOL,
    TypeKind.CHAR_S: CPrimitiveKind.CHAR,
    TypeKind.SCHAR: CPrimitiveKind.SCHAR,
    TypeKind.UCHAR: CPrimitiveKind.UCHAR,
    TypeKind.SHORT: CPrimitiveKind.SHORT,
    TypeKind.USHORT: CPrimitiveKind.USHORT,
    TypeKind.INT: CPrimitiveKind.INT,
    TypeKind.UINT: CPrimitiveKind.UINT,
    TypeKind.LONG: CPrimitiveKind.LONG,
    TypeKind.ULONG: CPrimitiveKind.ULONG,
    TypeKind.LONG_LONG: CPrimitiveKind.LONG_LONG,
    TypeKind.ULONG_LONG: CPrimitiveKind.ULONG_LONG,
    TypeKind.FLOAT: CPrimitiveKind.FLOAT,
    TypeKind.DOUBLE: CPrimitiveKind.DOUBLE,
    TypeKind.LONG_DOUBLE: CPrimitiveKind.LONG_DOUBLE,
}

INT_LITERAL_SUFFIXES: dict[TypeKind, str] = {
    TypeKind.INT: "",
    TypeKind.UINT: "U",
    TypeKind.LONG: "L",
    TypeKind.ULONG: "UL",
    TypeKind.LONG_LONG: "LL",
    TypeKind.ULONG_LONG: "ULL",
}

FLOAT_LITERAL_SUFFIXES: dict[TypeKind, str] = {
    TypeKind.FLOAT: "F",
    TypeKind.DOUBLE: "",
    TypeKind.LONG_DOUBLE: "L",
}


def decode_spelling(cursor: Cursor) -> str:
    try:
        return cursor.spelling.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise TextDecodeError(
            f"Spelling is not valid UTF-8: {exc}", cursor.kind, cursor.extent
        ) from exc


def references_usr(ty: CType, usr: str) -> bool:
    """Whether ``usr`` is reachable through arrays, pointers or prototypes of ``ty``."""
    base = ty.base
    if isinstance(base, CRecordType):
        return isinstance(base.name, AnonymousRecord) and base.name.usr == usr
    if isinstance(base, CArrayType):
        return references_usr(base.element, usr)
    if isinstance(base, CPointerType):
        return references_usr(base.pointee, usr)
    if isinstance(base, CFunctionPrototype):
        return references_usr(base.result, usr) or any(
            references_usr(param.ty, usr) for param in base.params
        )
    return False


def prototype_of(ty: CType) -> CFunctionPrototype | None:
    """The function prototype a ParmDecl list describes, through pointers/arrays."""
    base = ty.base
    if isinstance(base, CFunctionPrototype):
        return base
    if isinstance(base, CPointerType):
        return prototype_of(base.pointee)
    if isinstance(base, CArrayType):
        return prototype_of(base.element)
    return None


class ExprMapper:
    """Maps expression cursors into ``CExpr`` trees."""

    def __init__(self, table: InternTable | None = None):
        self._table = table or default_table()
        self._EXPR_DISPATCH: dict[CursorKind, Callable[[Cursor], CExpr]] = {
            CursorKind.INTEGER_LITERAL: self._map_int_literal,
            CursorKind.FLOATING_LITERAL: self._map_float_literal,
            CursorKind.CHARACTER_LITERAL: self._map_char_literal,
            CursorKind.STRING_LITERAL: self._map_string_literal,
            CursorKind.DECL_REF_EXPR: self._map_decl_ref,
            CursorKind.ARRAY_SUBSCRIPT_EXPR: self._map_subscript,
            CursorKind.CALL_EXPR: self._map_call,
            CursorKind.MEMBER_REF_EXPR: self._map_member,
            CursorKind.UNARY_OPERATOR: self._map_unary,
            CursorKind.UNARY_EXPR: self._map_unary_expr,
            CursorKind.CSTYLE_CAST_EXPR: self._map_cast,
            CursorKind.BINARY_OPERATOR: self._map_binary,
            CursorKind.COMPOUND_ASSIGN_OPERATOR: self._map_binary,
            CursorKind.CONDITIONAL_OPERATOR: self._map_conditional,
            CursorKind.PAREN_EXPR: self._map_paren,
        }

    def map_expr(self, cursor: Cursor) -> CExpr:
        handler = self._EXPR_DISPATCH.get(cursor.kind)
        if handler is None:
            raise UnsupportedConstruct(
                "Unsupported expression", cursor.kind, cursor.extent
            )
        try:
            return handler(cursor)
        except MappingError as exc:
            exc.attach(cursor.kind, cursor.extent)
            raise

    def _children(self, cursor: Cursor, count: int) -> list[Cursor]:
        children = cursor.children()
        if len(children) != count:
            raise UnsupportedConstruct(
                f"Expected {count} operand(s), found {len(children)}",
                cursor.kind,
                cursor.extent,
            )
        return children

    def _map_int_literal(self, cursor: Cursor) -> CExpr:
        result = cursor.evaluate()
        suffix = INT_LITERAL_SUFFIXES.get(cursor.type.kind, "")
        return int_literal(result.value, suffix)

    def _map_float_literal(self, cursor: Cursor) -> CExpr:
        value, _ = parse_float_literal(decode_spelling(cursor))
        suffix = FLOAT_LITERAL_SUFFIXES.get(cursor.type.kind, "")
        return CFloatLiteralExpr(value=value, suffix=suffix)

    def _map_char_literal(self, cursor: Cursor) -> CExpr:
        return char_literal(cursor.evaluate().value)

    def _map_string_literal(self, cursor: Cursor) -> CExpr:
        result = cursor.evaluate()
        if result.kind != EvalKind.STR:
            raise UnsupportedConstruct("String literal did not evaluate to text")
        return CStringLiteralExpr(value=result.value)

    def _map_decl_ref(self, cursor: Cursor) -> CExpr:
        return CIdentifierExpr(ident=self._table.intern(decode_spelling(cursor)))

    def _map_subscript(self, cursor: Cursor) -> CExpr:
        base, index = self._children(cursor, 2)
        return CIndexExpr(base=self.map_expr(base), index=self.map_expr(index))

    def _map_call(self, cursor: Cursor) -> CExpr:
        children = cursor.children()
        if not children:
            raise UnsupportedConstruct("Call without callee")
        callee, *args = children
        return CCallExpr(
            callee=self.map_expr(callee), args=[self.map_expr(arg) for arg in args]
        )

    def _map_member(self, cursor: Cursor) -> CExpr:
        (obj,) = self._children(cursor, 1)
        member = self._table.intern(decode_spelling(cursor))
        if cursor.operator == "->":
            return CPtrMemberExpr(obj=self.map_expr(obj), member=member)
        return CMemberExpr(obj=self.map_expr(obj), member=member)

    def _unary_op(self, cursor: Cursor) -> CUnaryOp:
        op = UNARY_OPERATORS.get(cursor.operator)
        if op is None:
            raise UnsupportedConstruct(f"Unknown unary operator '{cursor.operator}'")
        return op

    def _map_unary(self, cursor: Cursor) -> CExpr:
        op = self._unary_op(cursor)
        (operand,) = self._children(cursor, 1)
        if cursor.is_postfix:
            return CPostfixIncDecExpr(expr=self.map_expr(operand), op=op)
        return CUnaryExpr(expr=self.map_expr(operand), op=op)

    def _map_unary_expr(self, cursor: Cursor) -> CExpr:
        op = self._unary_op(cursor)
        children = cursor.children()
        if children:
            return CUnaryExpr(expr=self.map_expr(children[0]), op=op)
        operand = CIdentifierExpr(ident=self._table.intern(cursor.type.spelling))
        return CUnaryExpr(expr=operand, op=op)

    def _map_cast(self, cursor: Cursor) -> CExpr:
        (operand,) = self._children(cursor, 1)
        target = CIdentifierExpr(ident=self._table.intern(cursor.type.spelling))
        return CCastExpr(expr=self.map_expr(operand), ty=target)

    def _map_binary(self, cursor: Cursor) -> CExpr:
        op = BINARY_OPERATORS.get(cursor.operator)
        if op is None:
            raise UnsupportedConstruct(f"Unknown binary operator '{cursor.operator}'")
        lhs, rhs = self._children(cursor, 2)
        return CBinaryExpr(op=op, lhs=self.map_expr(lhs), rhs=self.map_expr(rhs))

    def _map_conditional(self, cursor: Cursor) -> CExpr:
        cond, then, otherwise = self._children(cursor, 3)
        return CConditionalExpr(
            cond=self.map_expr(cond),
            then=self.map_expr(then),
            otherwise=self.map_expr(otherwise),
        )

    def _map_paren(self, cursor: Cursor) -> CExpr:
        (inner,) = self._children(cursor, 1)
        return CParenExpr(expr=self.map_expr(inner))


class DeclMapper:
    """Maps declaration cursors into ``CDecl`` values."""

    def __init__(self, table: InternTable | None = None):
        self._table = table or default_table()
        self._exprs = ExprMapper(self._table)
        self._DECL_DISPATCH: dict[CursorKind, Callable[[Cursor, list], CDecl]] = {
            CursorKind.TYPEDEF_DECL: self._map_typedef,
            CursorKind.FUNCTION_DECL: self._map_function,
            CursorKind.STRUCT_DECL: self._map_record,
            CursorKind.UNION_DECL: self._map_record,
            CursorKind.ENUM_DECL: self._map_enum,
            CursorKind.VAR_DECL: self._map_var,
        }
        self._TYPE_DISPATCH: dict[TypeKind, Callable[[CursorType], object]] = {
            TypeKind.POINTER: self._map_pointer_type,
            TypeKind.FUNCTION_PROTO: self._map_function_type,
            TypeKind.FUNCTION_NO_PROTO: self._map_function_type,
            TypeKind.CONSTANT_ARRAY: self._map_array_type,
            TypeKind.INCOMPLETE_ARRAY: self._map_array_type,
            TypeKind.TYPEDEF: self._map_typedef_type,
            TypeKind.RECORD: self._map_record_type,
            TypeKind.ENUM: self._map_enum_type,
        }

    @property
    def exprs(self) -> ExprMapper:
        return self._exprs

    def map_decl(self, cursor: Cursor, extras: list[CDecl]) -> CDecl:
        """Map one top-level declaration cursor; nested declarations go to ``extras``."""
        handler = self._DECL_DISPATCH.get(cursor.kind)
        if handler is None:
            raise UnsupportedConstruct(
                f"Unsupported top-level declaration '{cursor.spelling.decode('utf-8', 'replace')}'",
                cursor.kind,
                cursor.extent,
            )
        try:
            return handler(cursor, extras)
        except MappingError as exc:
            exc.attach(cursor.kind, cursor.extent)
            raise

    def _name(self, cursor: Cursor) -> Identifier:
        return self._table.intern(decode_spelling(cursor))

    def _expect(self, cursor: Cursor, *kinds: CursorKind) -> None:
        if cursor.kind not in kinds:
            expected = " or ".join(kind.value for kind in kinds)
            raise UnexpectedCursorKind(expected, cursor.kind, cursor.extent)

    # ── declarations ─────────────────────────────────────────────

    def _map_typedef(self, cursor: Cursor, extras: list[CDecl]) -> CDecl:
        self._expect(cursor, CursorKind.TYPEDEF_DECL)
        underlying = self.map_type(cursor.typedef_underlying_type)
        self.enrich(underlying, cursor.children())
        return CTypedefDecl(name=self._name(cursor), underlying=underlying)

    def _map_function(self, cursor: Cursor, extras: list[CDecl]) -> CDecl:
        self._expect(cursor, CursorKind.FUNCTION_DECL)
        function = self.map_type(cursor.type)
        if not isinstance(function.base, CFunctionPrototype):
            raise UnsupportedConstruct(
                f"Function declaration has non-function type '{cursor.type.spelling}'",
                cursor.kind,
                cursor.extent,
            )
        params = [
            self.map_param(child)
            for child in cursor.children()
            if child.kind == CursorKind.PARM_DECL
        ]
        return CFunctionDecl(
            name=self._name(cursor), ret=function.base.result, params=params
        )

    def map_param(self, cursor: Cursor) -> CParam:
        self._expect(cursor, CursorKind.PARM_DECL)
        spelling = decode_spelling(cursor)
        ty = self.map_type(cursor.type)
        self.enrich(ty, cursor.children())
        return CParam(name=self._table.intern(spelling) if spelling else None, ty=ty)

    def _map_record(self, cursor: Cursor, extras: list[CDecl]) -> CDecl:
        self._expect(cursor, CursorKind.STRUCT_DECL, CursorKind.UNION_DECL)
        fields: list[CFieldDecl] = []
        nested: list[CRecordDecl] = []
        for child in cursor.children():
            if child.kind == CursorKind.FIELD_DECL:
                fields.append(self._map_field(child))
            elif child.kind == CursorKind.ENUM_DECL:
                extras.append(self._map_enum(child, extras))
            else:
                record = self._map_record(child, extras)
                extras.append(record)
                nested.append(record)
        subrecords = [
            record.name
            for record in nested
            if isinstance(record.name, AnonymousRecord)
            and not any(references_usr(f.ty, record.name.usr) for f in fields)
        ]
        return CRecordDecl(
            is_struct=cursor.kind == CursorKind.STRUCT_DECL,
            name=self.record_name(cursor),
            fields=fields,
            is_definition=cursor.is_definition(),
            subrecords=subrecords,
        )

    def _map_field(self, cursor: Cursor) -> CFieldDecl:
        ty = self.map_type(cursor.type)
        self.enrich(ty, cursor.children())
        return CFieldDecl(name=self._name(cursor), ty=ty)

    def _map_enum(self, cursor: Cursor, extras: list[CDecl]) -> CDecl:
        self._expect(cursor, CursorKind.ENUM_DECL)
        members = [self._map_enum_constant(child) for child in cursor.children()]
        name = None if cursor.is_anonymous() else self._name(cursor)
        return CEnumDecl(name=name, ty=self.map_type(cursor.enum_type), members=members)

    def _map_enum_constant(self, cursor: Cursor) -> CEnumConstant:
        self._expect(cursor, CursorKind.ENUM_CONSTANT_DECL)
        children = cursor.children()
        return CEnumConstant(
            name=self._name(cursor),
            explicit=bool(children),
            value=cursor.enum_value_unsigned(),
            init=self._exprs.map_expr(children[0]) if children else None,
        )

    def _map_var(self, cursor: Cursor, extras: list[CDecl]) -> CDecl:
        self._expect(cursor, CursorKind.VAR_DECL)
        ty = self.map_type(cursor.type)
        self.enrich(ty, cursor.children())
        return CVarDecl(name=self._name(cursor), ty=ty)

    def record_name(self, cursor: Cursor) -> NamedRecord | AnonymousRecord:
        if cursor.is_anonymous():
            return AnonymousRecord(usr=cursor.usr)
        return NamedRecord(name=self._name(cursor))

    # ── types ────────────────────────────────────────────────────

    def map_type(self, ty: CursorType) -> CType:
        if ty is None:
            raise UnsupportedConstruct("Cursor has no type")
        primitive = PRIMITIVE_KINDS.get(ty.kind)
        if primitive is not None:
            return CType(is_const=ty.is_const, base=CPrimitiveType(primitive=primitive))
        if ty.kind == TypeKind.ELABORATED:
            inner = self.map_type(ty.named_type)
            return CType(is_const=ty.is_const or inner.is_const, base=inner.base)
        handler = self._TYPE_DISPATCH.get(ty.kind)
        if handler is None:
            raise UnsupportedConstruct(
                f"Unhandled type '{ty.spelling}' with kind '{ty.kind.value}'"
            )
        return CType(is_const=ty.is_const, base=handler(ty))

    def _map_pointer_type(self, ty: CursorType):
        return CPointerType(pointee=self.map_type(ty.pointee))

    def _map_function_type(self, ty: CursorType):
        # Parameter names live on ParmDecl cursors, see enrich()
        params = [CParam(ty=self.map_type(arg)) for arg in ty.argument_types()]
        return CFunctionPrototype(result=self.map_type(ty.result_type), params=params)

    def _map_array_type(self, ty: CursorType):
        length = ty.array_size if ty.kind == TypeKind.CONSTANT_ARRAY else None
        return CArrayType(element=self.map_type(ty.element_type), length=length)

    def _map_typedef_type(self, ty: CursorType):
        return CTypedefType(name=self._table.intern(ty.typedef_name))

    def _map_record_type(self, ty: CursorType):
        decl = ty.declaration
        return CRecordType(
            is_struct=decl.kind == CursorKind.STRUCT_DECL, name=self.record_name(decl)
        )

    def _map_enum_type(self, ty: CursorType):
        decl = ty.declaration
        if decl.is_anonymous():
            logger.debug("Anonymous enum type at %s maps to its integer type", decl.extent)
            return self.map_type(decl.enum_type).base
        return CEnumType(name=self._name(decl))

    def enrich(self, ty: CType, cursors: list[Cursor]) -> None:
        """Copy ParmDecl spellings onto the parameters of ``ty``'s prototype.

        Pairs are zipped, so surplus cursors or parameters are left alone.
        """
        prototype = prototype_of(ty)
        if prototype is None:
            return
        parm_decls = [c for c in cursors if c.kind == CursorKind.PARM_DECL]
        for param, cursor in zip(prototype.params, parm_decls):
            spelling = decode_spelling(cursor)
            if not spelling:
                continue
            param.name = self._table.intern(spelling)
            self.enrich(param.ty, cursor.children())


def map_translation_unit(
    cursors: list[Cursor],
    table: InternTable | None = None,
    strict: bool = True,
) -> list[CDecl]:
    """Map every top-level cursor into a flat declaration sequence.

    Nested declarations precede the declaration that contains them.  With
    ``strict`` a mapping failure aborts the unit; otherwise the offending
    cursor is skipped and logged.
    """
    mapper = DeclMapper(table)
    decls: list[CDecl] = []
    skipped = 0
    for cursor in cursors:
        extras: list[CDecl] = []
        try:
            decl = mapper.map_decl(cursor, extras)
        except MappingError as exc:
            if strict:
                raise
            skipped += 1
            logger.warning("Skipping declaration: %s", exc)
            continue
        decls.extend(extras)
        decls.append(decl)
    logger.info("Mapped %d declarations (%d skipped)", len(decls), skipped)
    return decls
