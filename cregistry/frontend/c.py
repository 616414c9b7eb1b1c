"""CFrontend — tree-sitter C parse tree -> libclang-shaped cursors.

The mapper is written against libclang's cursor model, so this adapter
rebuilds the parts of that model a header needs: declaration cursors with
their ParmDecl/FieldDecl/EnumConstantDecl children, resolved declaration
types (declarators are applied inside-out), USRs for tags, and lazily
evaluated expression cursors for initializers.

Tag semantics follow libclang: an anonymous tag named by a typedef takes the
typedef's name, the first reference to an undeclared tag introduces a
non-definition record declaration, and tags declared inside a record body
are children of that record.

Building never raises for unsupported input.  Unknown top-level constructs
become ``UnexposedDecl`` cursors, non-constant array bounds become
``VariableArray`` types, and failed enum initializers surface when the value
is requested, so the mapper decides how to report them.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Callable

from tree_sitter import Node

from .. import constants
from ..errors import LiteralEvaluationError, UnsupportedConstruct
from .cursor import (
    NO_EXTENT,
    CursorKind,
    EvalResult,
    SourceExtent,
    TypeKind,
)
from .evaluate import (
    ConstantEvaluator,
    canonical_int_suffix,
    is_float_literal,
    parse_float_literal,
)
from .parser import Parser

logger = logging.getLogger(__name__)

PRIMITIVE_TYPE_NAMES: dict[str, TypeKind] = {
    "void": TypeKind.VOID,
    "bool": TypeKind.BOOL,
    "_Bool": TypeKind.BOOL,
    "char": TypeKind.CHAR_S,
    "short": TypeKind.SHORT,
    "int": TypeKind.INT,
    "long": TypeKind.LONG,
    "signed": TypeKind.INT,
    "unsigned": TypeKind.UINT,
    "float": TypeKind.FLOAT,
    "double": TypeKind.DOUBLE,
}

PRIMITIVE_SPELLINGS: dict[TypeKind, str] = {
    TypeKind.VOID: "void",
    TypeKind.BOOL: "_Bool",
    TypeKind.CHAR_S: "char",
    TypeKind.SCHAR: "signed char",
    TypeKind.UCHAR: "unsigned char",
    TypeKind.SHORT: "short",
    TypeKind.USHORT: "unsigned short",
    TypeKind.INT: "int",
    TypeKind.UINT: "unsigned int",
    TypeKind.LONG: "long",
    TypeKind.ULONG: "unsigned long",
    TypeKind.LONG_LONG: "long long",
    TypeKind.ULONG_LONG: "unsigned long long",
    TypeKind.FLOAT: "float",
    TypeKind.DOUBLE: "double",
    TypeKind.LONG_DOUBLE: "long double",
}

INT_SUFFIX_TYPES: dict[str, TypeKind] = {
    "": TypeKind.INT,
    "U": TypeKind.UINT,
    "L": TypeKind.LONG,
    "UL": TypeKind.ULONG,
    "LL": TypeKind.LONG_LONG,
    "ULL": TypeKind.ULONG_LONG,
}

FLOAT_SUFFIX_TYPES: dict[str, TypeKind] = {
    "": TypeKind.DOUBLE,
    "F": TypeKind.FLOAT,
    "L": TypeKind.LONG_DOUBLE,
}

TAG_NODE_TYPES: dict[str, str] = {
    "struct_specifier": constants.STRUCT_TAG,
    "union_specifier": constants.UNION_TAG,
    "enum_specifier": "enum",
}

TAG_CURSOR_KINDS: dict[str, CursorKind] = {
    constants.STRUCT_TAG: CursorKind.STRUCT_DECL,
    constants.UNION_TAG: CursorKind.UNION_DECL,
    "enum": CursorKind.ENUM_DECL,
}

TAG_USR_MARKERS: dict[str, str] = {
    constants.STRUCT_TAG: constants.STRUCT_USR_MARKER,
    constants.UNION_TAG: constants.UNION_USR_MARKER,
    "enum": constants.ENUM_USR_MARKER,
}

NAME_NODE_TYPES = frozenset(
    {"identifier", "field_identifier", "type_identifier", "primitive_type"}
)
POINTER_DECLARATORS = frozenset({"pointer_declarator", "abstract_pointer_declarator"})
ARRAY_DECLARATORS = frozenset({"array_declarator", "abstract_array_declarator"})
FUNCTION_DECLARATORS = frozenset(
    {"function_declarator", "abstract_function_declarator"}
)
WRAPPING_DECLARATORS = frozenset(
    {
        "parenthesized_declarator",
        "abstract_parenthesized_declarator",
        "attributed_declarator",
    }
)
DECLARATOR_NOISE = frozenset(
    {
        "attribute_specifier",
        "attribute_declaration",
        "ms_call_modifier",
        "ms_pointer_modifier",
        "ms_declspec_modifier",
        "type_qualifier",
        "comment",
    }
)

PREPROC_BLOCK_TYPES = frozenset(
    {"preproc_ifdef", "preproc_if", "preproc_else", "preproc_elif", "preproc_elifdef"}
)
PREPROC_HEADER_FIELDS = ("name", "condition")
NOISE_TYPES = frozenset(
    {
        "comment",
        "preproc_include",
        "preproc_def",
        "preproc_function_def",
        "preproc_call",
        ";",
        "\n",
    }
)

EXPRESSION_KINDS: dict[str, CursorKind] = {
    "char_literal": CursorKind.CHARACTER_LITERAL,
    "string_literal": CursorKind.STRING_LITERAL,
    "concatenated_string": CursorKind.STRING_LITERAL,
    "true": CursorKind.INTEGER_LITERAL,
    "false": CursorKind.INTEGER_LITERAL,
    "identifier": CursorKind.DECL_REF_EXPR,
    "subscript_expression": CursorKind.ARRAY_SUBSCRIPT_EXPR,
    "call_expression": CursorKind.CALL_EXPR,
    "field_expression": CursorKind.MEMBER_REF_EXPR,
    "unary_expression": CursorKind.UNARY_OPERATOR,
    "pointer_expression": CursorKind.UNARY_OPERATOR,
    "update_expression": CursorKind.UNARY_OPERATOR,
    "sizeof_expression": CursorKind.UNARY_EXPR,
    "alignof_expression": CursorKind.UNARY_EXPR,
    "cast_expression": CursorKind.CSTYLE_CAST_EXPR,
    "binary_expression": CursorKind.BINARY_OPERATOR,
    "comma_expression": CursorKind.BINARY_OPERATOR,
    "conditional_expression": CursorKind.CONDITIONAL_OPERATOR,
    "parenthesized_expression": CursorKind.PAREN_EXPR,
}

INVALID_TYPE_SPELLING = "<invalid>"


@dataclass(eq=False)
class SyntheticType:
    """A resolved C type in the shape of libclang's ``CXType``."""

    kind: TypeKind
    spelling: str = ""
    is_const: bool = False
    pointee: SyntheticType | None = None
    element_type: SyntheticType | None = None
    array_size: int = -1
    result_type: SyntheticType | None = None
    arguments: list[SyntheticType] = field(default_factory=list)
    named_type: SyntheticType | None = None
    typedef_name: str = ""
    declaration: DeclCursor | None = None

    def argument_types(self) -> list[SyntheticType]:
        return list(self.arguments)


INVALID_TYPE = SyntheticType(TypeKind.INVALID, spelling=INVALID_TYPE_SPELLING)


@dataclass(eq=False)
class DeclCursor:
    """A declaration cursor built eagerly from the parse tree."""

    kind: CursorKind
    spelling: bytes = b""
    type: SyntheticType = INVALID_TYPE
    extent: SourceExtent = NO_EXTENT
    usr: str = ""
    anonymous: bool = False
    definition: bool = False
    enum_type: SyntheticType | None = None
    typedef_underlying_type: SyntheticType | None = None
    enum_value: int | None = None
    enum_value_error: LiteralEvaluationError | None = None
    members: list = field(default_factory=list)
    operator: str = ""
    is_postfix: bool = False

    def children(self) -> list:
        return list(self.members)

    def is_anonymous(self) -> bool:
        return self.anonymous

    def is_definition(self) -> bool:
        return self.definition

    def enum_value_unsigned(self) -> int:
        if self.enum_value is None:
            if self.enum_value_error is not None:
                raise self.enum_value_error
            raise LiteralEvaluationError(
                "Cursor has no enum constant value", self.kind, self.extent
            )
        return self.enum_value & constants.U64_MASK

    def evaluate(self) -> EvalResult:
        raise UnsupportedConstruct(
            "Declarations cannot be evaluated", self.kind, self.extent
        )


class ExprCursor:
    """An expression cursor over a tree-sitter node, materialized lazily."""

    def __init__(self, node: Node, frontend: CFrontend):
        self._node = node
        self._frontend = frontend

    @property
    def node(self) -> Node:
        return self._node

    @property
    def kind(self) -> CursorKind:
        ntype = self._node.type
        if ntype == "number_literal":
            if is_float_literal(self._frontend.text(self._node)):
                return CursorKind.FLOATING_LITERAL
            return CursorKind.INTEGER_LITERAL
        if ntype == "assignment_expression":
            if self.operator == "=":
                return CursorKind.BINARY_OPERATOR
            return CursorKind.COMPOUND_ASSIGN_OPERATOR
        return EXPRESSION_KINDS.get(ntype, CursorKind.UNEXPOSED_EXPR)

    @property
    def spelling(self) -> bytes:
        ntype = self._node.type
        if ntype == "field_expression":
            member = self._node.child_by_field_name("field")
            return self._frontend.raw_text(member) if member is not None else b""
        if ntype in ("identifier", "number_literal", "char_literal", "string_literal",
                     "concatenated_string", "true", "false"):
            return self._frontend.raw_text(self._node)
        return b""

    @property
    def type(self) -> SyntheticType:
        ntype = self._node.type
        if ntype == "number_literal":
            text = self._frontend.text(self._node)
            if is_float_literal(text):
                _, suffix = parse_float_literal(text)
                kind = FLOAT_SUFFIX_TYPES.get(suffix, TypeKind.DOUBLE)
            else:
                suffix = canonical_int_suffix(text[len(text.rstrip("uUlL")):])
                kind = INT_SUFFIX_TYPES.get(suffix, TypeKind.INT)
            return SyntheticType(kind, spelling=PRIMITIVE_SPELLINGS[kind])
        if ntype in ("char_literal", "true", "false"):
            return SyntheticType(TypeKind.INT, spelling="int")
        if ntype == "cast_expression":
            return self._frontend.type_of(self._node.child_by_field_name("type"))
        if ntype in ("sizeof_expression", "alignof_expression"):
            type_node = self._node.child_by_field_name("type")
            if type_node is not None:
                return self._frontend.type_of(type_node)
        return INVALID_TYPE

    @property
    def extent(self) -> SourceExtent:
        return self._frontend.extent(self._node)

    @property
    def usr(self) -> str:
        return ""

    @property
    def enum_type(self) -> None:
        return None

    @property
    def typedef_underlying_type(self) -> None:
        return None

    @property
    def operator(self) -> str:
        ntype = self._node.type
        if ntype == "comma_expression":
            return ","
        if ntype == "field_expression":
            arrow = any(child.type == "->" for child in self._node.children)
            return "->" if arrow else "."
        if ntype in ("sizeof_expression", "alignof_expression"):
            return self._frontend.text(self._node.children[0])
        op = self._node.child_by_field_name("operator")
        return self._frontend.text(op) if op is not None else ""

    @property
    def is_postfix(self) -> bool:
        if self._node.type != "update_expression":
            return False
        op = self._node.child_by_field_name("operator")
        argument = self._node.child_by_field_name("argument")
        return op is not None and argument is not None and argument.start_byte < op.start_byte

    def children(self) -> list[ExprCursor]:
        node = self._node
        ntype = node.type
        if ntype in ("binary_expression", "comma_expression", "assignment_expression"):
            parts = [node.child_by_field_name("left"), node.child_by_field_name("right")]
        elif ntype in ("unary_expression", "pointer_expression", "update_expression"):
            parts = [node.child_by_field_name("argument")]
        elif ntype == "sizeof_expression":
            parts = [node.child_by_field_name("value")]
        elif ntype == "cast_expression":
            parts = [node.child_by_field_name("value")]
        elif ntype == "subscript_expression":
            parts = [node.child_by_field_name("argument"), node.child_by_field_name("index")]
        elif ntype == "field_expression":
            parts = [node.child_by_field_name("argument")]
        elif ntype == "call_expression":
            arguments = node.child_by_field_name("arguments")
            parts = [node.child_by_field_name("function")]
            if arguments is not None:
                parts.extend(c for c in arguments.named_children if c.type != "comment")
        elif ntype == "conditional_expression":
            parts = [
                node.child_by_field_name("condition"),
                node.child_by_field_name("consequence"),
                node.child_by_field_name("alternative"),
            ]
        elif ntype == "parenthesized_expression":
            parts = [c for c in node.named_children if c.type != "comment"][:1]
        else:
            parts = []
        return [ExprCursor(part, self._frontend) for part in parts if part is not None]

    def is_anonymous(self) -> bool:
        return False

    def is_definition(self) -> bool:
        return False

    def enum_value_unsigned(self) -> int:
        raise LiteralEvaluationError("Not an enum constant", self.kind, self.extent)

    def evaluate(self) -> EvalResult:
        try:
            return self._frontend.evaluator.evaluate(self._node)
        except LiteralEvaluationError as exc:
            raise exc.attach(self.kind, self.extent)


class CFrontend:
    """Builds top-level declaration cursors for one C translation unit."""

    def __init__(self, file_name: str = constants.DEFAULT_FILE_NAME):
        self._file_name = file_name
        self._source = b""
        self._tags: dict[tuple[str, str], DeclCursor] = {}
        self._scope: dict[str, int] = {}
        self.evaluator = ConstantEvaluator(self._source, self._scope, self.type_of)
        self._DECL_DISPATCH: dict[str, Callable] = {
            "declaration": self._build_declaration,
            "type_definition": self._build_type_definition,
            "function_definition": self._build_function_definition,
            "struct_specifier": self._build_tag_declaration,
            "union_specifier": self._build_tag_declaration,
            "enum_specifier": self._build_tag_declaration,
        }

    def build(self, tree, source: bytes) -> list[DeclCursor]:
        self._source = source
        self._tags = {}
        self._scope = {}
        self.evaluator = ConstantEvaluator(source, self._scope, self.type_of)
        cursors: list[DeclCursor] = []
        for node in self._iter_items(tree.root_node):
            handler = self._DECL_DISPATCH.get(node.type)
            if handler is None:
                logger.debug("Exposing %s at %s as an unexposed declaration", node.type, self.extent(node))
                cursors.append(
                    DeclCursor(
                        kind=CursorKind.UNEXPOSED_DECL,
                        spelling=node.type.encode("utf-8"),
                        extent=self.extent(node),
                    )
                )
                continue
            handler(node, cursors)
        logger.info("Built %d top-level cursors for %s", len(cursors), self._file_name)
        return cursors

    # ── node helpers ─────────────────────────────────────────────

    def raw_text(self, node: Node) -> bytes:
        return self._source[node.start_byte : node.end_byte]

    def text(self, node: Node) -> str:
        return self.raw_text(node).decode("utf-8", errors="replace")

    def extent(self, node: Node) -> SourceExtent:
        return SourceExtent(
            file=self._file_name,
            start_line=node.start_point[0] + 1,
            start_col=node.start_point[1],
            end_line=node.end_point[0] + 1,
            end_col=node.end_point[1],
        )

    def _iter_items(self, node: Node):
        """Named children, flattening preprocessor conditional blocks."""
        header: set[tuple[int, int]] = set()
        if node.type in PREPROC_BLOCK_TYPES:
            for field_name in PREPROC_HEADER_FIELDS:
                part = node.child_by_field_name(field_name)
                if part is not None:
                    header.add((part.start_byte, part.end_byte))
        for child in node.named_children:
            if child.type in PREPROC_BLOCK_TYPES:
                yield from self._iter_items(child)
            elif child.type in NOISE_TYPES or (child.start_byte, child.end_byte) in header:
                continue
            else:
                yield child

    def _has_const(self, node: Node) -> bool:
        return any(
            child.type == "type_qualifier" and self.text(child) == "const"
            for child in node.children
        )

    # ── top-level declarations ───────────────────────────────────

    def _build_declaration(self, node: Node, out: list) -> None:
        declarators = node.children_by_field_name("declarator")
        spec = node.child_by_field_name("type")
        if not declarators and spec is not None and spec.type in TAG_NODE_TYPES:
            self._build_tag_declaration(spec, out)
            return
        base = self._declared_type(node, out)
        for declarator in declarators:
            name, ty, params = self._declare(declarator, base, out)
            is_function = ty.kind in (TypeKind.FUNCTION_PROTO, TypeKind.FUNCTION_NO_PROTO)
            out.append(
                DeclCursor(
                    kind=CursorKind.FUNCTION_DECL if is_function else CursorKind.VAR_DECL,
                    spelling=name.encode("utf-8"),
                    type=ty,
                    extent=self.extent(declarator),
                    members=params,
                )
            )

    def _build_function_definition(self, node: Node, out: list) -> None:
        base = self._declared_type(node, out)
        name, ty, params = self._declare(node.child_by_field_name("declarator"), base, out)
        out.append(
            DeclCursor(
                kind=CursorKind.FUNCTION_DECL,
                spelling=name.encode("utf-8"),
                type=ty,
                extent=self.extent(node),
                definition=True,
                members=params,
            )
        )

    def _build_type_definition(self, node: Node, out: list) -> None:
        declarators = node.children_by_field_name("declarator")
        spec = node.child_by_field_name("type")
        linkage_name = ""
        if (
            spec is not None
            and spec.type in TAG_NODE_TYPES
            and spec.child_by_field_name("name") is None
            and spec.child_by_field_name("body") is not None
            and declarators
            and declarators[0].type in NAME_NODE_TYPES
        ):
            linkage_name = self.text(declarators[0])
        base = self._declared_type(node, out, linkage_name)
        for declarator in declarators:
            name, ty, params = self._declare(declarator, base, out)
            out.append(
                DeclCursor(
                    kind=CursorKind.TYPEDEF_DECL,
                    spelling=name.encode("utf-8"),
                    type=SyntheticType(TypeKind.TYPEDEF, spelling=name, typedef_name=name),
                    extent=self.extent(declarator),
                    definition=True,
                    typedef_underlying_type=ty,
                    members=params,
                )
            )

    def _build_tag_declaration(self, node: Node, out: list) -> None:
        if node.child_by_field_name("body") is not None:
            self._tag_type(node, out)
            return
        name_node = node.child_by_field_name("name")
        if name_node is None:
            logger.debug("Ignoring tag without name or body at %s", self.extent(node))
            return
        self._tag_reference(node, TAG_NODE_TYPES[node.type], self.text(name_node), out, redeclare=True)

    # ── specifiers ───────────────────────────────────────────────

    def _declared_type(self, node: Node, out: list, linkage_name: str = "") -> SyntheticType:
        """Type named by the ``type`` field of ``node`` plus its qualifiers."""
        ty = self._specifier_type(node.child_by_field_name("type"), out, linkage_name)
        if self._has_const(node):
            ty = replace(ty, is_const=True)
        return ty

    def _specifier_type(self, spec: Node | None, out: list, linkage_name: str = "") -> SyntheticType:
        if spec is None:
            return SyntheticType(TypeKind.INT, spelling="int")
        ntype = spec.type
        if ntype == "primitive_type":
            name = self.text(spec)
            kind = PRIMITIVE_TYPE_NAMES.get(name)
            if kind is None:
                # size_t, uint32_t and friends are typedefs from system headers
                return SyntheticType(TypeKind.TYPEDEF, spelling=name, typedef_name=name)
            return SyntheticType(kind, spelling=PRIMITIVE_SPELLINGS[kind])
        if ntype == "sized_type_specifier":
            kind = self._sized_kind(self.text(spec).split())
            return SyntheticType(kind, spelling=PRIMITIVE_SPELLINGS[kind])
        if ntype == "type_identifier":
            name = self.text(spec)
            return SyntheticType(TypeKind.TYPEDEF, spelling=name, typedef_name=name)
        if ntype in TAG_NODE_TYPES:
            return self._tag_type(spec, out, linkage_name)
        logger.debug("Unsupported type specifier %s at %s", ntype, self.extent(spec))
        return SyntheticType(TypeKind.INVALID, spelling=self.text(spec))

    @staticmethod
    def _sized_kind(words: list[str]) -> TypeKind:
        unsigned = "unsigned" in words
        longs = words.count("long")
        if "char" in words:
            if unsigned:
                return TypeKind.UCHAR
            return TypeKind.SCHAR if "signed" in words else TypeKind.CHAR_S
        if "double" in words:
            return TypeKind.LONG_DOUBLE if longs else TypeKind.DOUBLE
        if "short" in words:
            return TypeKind.USHORT if unsigned else TypeKind.SHORT
        if longs >= 2:
            return TypeKind.ULONG_LONG if unsigned else TypeKind.LONG_LONG
        if longs == 1:
            return TypeKind.ULONG if unsigned else TypeKind.LONG
        return TypeKind.UINT if unsigned else TypeKind.INT

    # ── tags ─────────────────────────────────────────────────────

    def _tag_type(self, spec: Node, out: list, linkage_name: str = "") -> SyntheticType:
        tag = TAG_NODE_TYPES[spec.type]
        name_node = spec.child_by_field_name("name")
        name = self.text(name_node) if name_node is not None else ""
        if spec.child_by_field_name("body") is not None:
            cursor = self._tag_definition(spec, tag, name, linkage_name, out)
        elif name:
            cursor = self._tag_reference(spec, tag, name, out)
        else:
            return SyntheticType(TypeKind.INVALID, spelling=self.text(spec))
        display = cursor.spelling.decode("utf-8", errors="replace")
        spelling = f"{tag} {display}" if display else f"{tag} (anonymous)"
        named = SyntheticType(
            TypeKind.ENUM if tag == "enum" else TypeKind.RECORD,
            spelling=spelling,
            declaration=cursor,
        )
        return SyntheticType(TypeKind.ELABORATED, spelling=spelling, named_type=named)

    def _tag_reference(
        self, spec: Node, tag: str, name: str, out: list, redeclare: bool = False
    ) -> DeclCursor:
        key = (tag, name)
        known = self._tags.get(key)
        if known is not None and not redeclare:
            return known
        cursor = DeclCursor(
            kind=TAG_CURSOR_KINDS[tag],
            spelling=name.encode("utf-8"),
            extent=self.extent(spec),
            usr=constants.NAMED_USR_TEMPLATE.format(marker=TAG_USR_MARKERS[tag], name=name),
        )
        if tag == "enum":
            cursor.enum_type = SyntheticType(TypeKind.UINT, spelling="unsigned int")
        out.append(cursor)
        if known is None:
            self._tags[key] = cursor
            return cursor
        return known

    def _tag_definition(
        self, spec: Node, tag: str, name: str, linkage_name: str, out: list
    ) -> DeclCursor:
        spelling = name or linkage_name
        marker = TAG_USR_MARKERS[tag]
        if name:
            usr = constants.NAMED_USR_TEMPLATE.format(marker=marker, name=name)
        elif linkage_name:
            usr = constants.TYPEDEF_NAMED_USR_TEMPLATE.format(marker=marker, name=linkage_name)
        else:
            usr = constants.ANONYMOUS_USR_TEMPLATE.format(
                file=self._file_name, offset=spec.start_byte, marker=marker
            )
        cursor = DeclCursor(
            kind=TAG_CURSOR_KINDS[tag],
            spelling=spelling.encode("utf-8"),
            extent=self.extent(spec),
            usr=usr,
            anonymous=not spelling,
            definition=True,
        )
        out.append(cursor)
        if name:
            self._tags[(tag, name)] = cursor
        body = spec.child_by_field_name("body")
        if tag == "enum":
            self._fill_enum(cursor, spec, body)
        else:
            self._fill_record(cursor, body)
        return cursor

    def _fill_record(self, cursor: DeclCursor, body: Node) -> None:
        for item in self._iter_items(body):
            if item.type != "field_declaration":
                logger.debug("Ignoring %s inside record at %s", item.type, self.extent(item))
                continue
            field_type = self._declared_type(item, cursor.members)
            for declarator in item.children_by_field_name("declarator"):
                name, ty, params = self._declare(declarator, field_type, cursor.members)
                cursor.members.append(
                    DeclCursor(
                        kind=CursorKind.FIELD_DECL,
                        spelling=name.encode("utf-8"),
                        type=ty,
                        extent=self.extent(declarator),
                        members=params,
                    )
                )

    def _fill_enum(self, cursor: DeclCursor, spec: Node, body: Node) -> None:
        values: list[int] = []
        next_value: int | None = 0
        for item in self._iter_items(body):
            if item.type != "enumerator":
                continue
            name = self.text(item.child_by_field_name("name"))
            constant = DeclCursor(
                kind=CursorKind.ENUM_CONSTANT_DECL,
                spelling=self.raw_text(item.child_by_field_name("name")),
                extent=self.extent(item),
            )
            value_node = item.child_by_field_name("value")
            if value_node is not None:
                constant.members.append(ExprCursor(value_node, self))
                try:
                    next_value = self.evaluator.evaluate_int(value_node)
                except LiteralEvaluationError as exc:
                    next_value = None
                    constant.enum_value_error = exc.attach(
                        CursorKind.ENUM_CONSTANT_DECL, constant.extent
                    )
            elif next_value is None:
                constant.enum_value_error = LiteralEvaluationError(
                    f"Implicit value of '{name}' follows a constant whose value is unknown",
                    CursorKind.ENUM_CONSTANT_DECL,
                    constant.extent,
                )
            if next_value is not None:
                constant.enum_value = next_value
                self._scope[name] = next_value
                values.append(next_value)
                next_value += 1
            cursor.members.append(constant)
        cursor.enum_type = self._enum_integer_type(spec, values)

    def _enum_integer_type(self, spec: Node, values: list[int]) -> SyntheticType:
        underlying = spec.child_by_field_name("underlying_type")
        if underlying is not None:
            return self._specifier_type(underlying, [])
        if values and min(values) < 0:
            fits = min(values) >= -(1 << 31) and max(values) < (1 << 31)
            kind = TypeKind.INT if fits else TypeKind.LONG
        else:
            fits = not values or max(values) < (1 << 32)
            kind = TypeKind.UINT if fits else TypeKind.ULONG
        return SyntheticType(kind, spelling=PRIMITIVE_SPELLINGS[kind])

    # ── declarators ──────────────────────────────────────────────

    def _declare(
        self, node: Node | None, ty: SyntheticType, out: list, params: list | None = None
    ) -> tuple[str, SyntheticType, list]:
        """Apply a declarator to ``ty`` inside-out.

        Returns the declared name (empty for abstract declarators), the full
        type, and the ParmDecl cursors of the function declarator applied last,
        which is the one nearest the name.
        """
        params = params if params is not None else []
        if node is None:
            return "", ty, params
        ntype = node.type
        if ntype in NAME_NODE_TYPES:
            return self.text(node), ty, params
        if ntype in POINTER_DECLARATORS:
            pointer = SyntheticType(
                TypeKind.POINTER,
                spelling=f"{ty.spelling} *",
                is_const=self._has_const(node),
                pointee=ty,
            )
            return self._declare(node.child_by_field_name("declarator"), pointer, out, params)
        if ntype in ARRAY_DECLARATORS:
            array = self._array_type(node, ty)
            return self._declare(node.child_by_field_name("declarator"), array, out, params)
        if ntype in FUNCTION_DECLARATORS:
            function, function_params = self._function_type(
                node.child_by_field_name("parameters"), ty, out
            )
            return self._declare(
                node.child_by_field_name("declarator"), function, out, function_params
            )
        if ntype in WRAPPING_DECLARATORS or ntype == "init_declarator":
            inner = node.child_by_field_name("declarator")
            if inner is None:
                inner = next(
                    (c for c in node.named_children if c.type not in DECLARATOR_NOISE), None
                )
            return self._declare(inner, ty, out, params)
        logger.debug("Unsupported declarator %s at %s", ntype, self.extent(node))
        return self.text(node), SyntheticType(TypeKind.INVALID, spelling=self.text(node)), params

    def _array_type(self, node: Node, element: SyntheticType) -> SyntheticType:
        size_node = node.child_by_field_name("size")
        if size_node is None:
            return SyntheticType(
                TypeKind.INCOMPLETE_ARRAY, spelling=f"{element.spelling}[]", element_type=element
            )
        try:
            size = self.evaluator.evaluate_int(size_node)
        except LiteralEvaluationError as exc:
            logger.debug("Array bound '%s' is not constant: %s", self.text(size_node), exc)
            return SyntheticType(
                TypeKind.VARIABLE_ARRAY,
                spelling=f"{element.spelling}[{self.text(size_node)}]",
                element_type=element,
            )
        return SyntheticType(
            TypeKind.CONSTANT_ARRAY,
            spelling=f"{element.spelling}[{size}]",
            element_type=element,
            array_size=size,
        )

    def _function_type(
        self, params_node: Node | None, result: SyntheticType, out: list
    ) -> tuple[SyntheticType, list[DeclCursor]]:
        cursors: list[DeclCursor] = []
        arguments: list[SyntheticType] = []
        has_prototype = False
        items = params_node.named_children if params_node is not None else []
        for item in items:
            if item.type == "variadic_parameter":
                has_prototype = True
                continue
            if item.type != "parameter_declaration":
                continue
            has_prototype = True
            base = self._declared_type(item, out)
            declarator = item.child_by_field_name("declarator")
            if declarator is None and base.kind == TypeKind.VOID:
                continue
            name, ty, nested = self._declare(declarator, base, out)
            ty = self._decay(ty)
            arguments.append(ty)
            cursors.append(
                DeclCursor(
                    kind=CursorKind.PARM_DECL,
                    spelling=name.encode("utf-8"),
                    type=ty,
                    extent=self.extent(item),
                    members=nested,
                )
            )
        kind = TypeKind.FUNCTION_PROTO if has_prototype else TypeKind.FUNCTION_NO_PROTO
        spelling = f"{result.spelling} ({', '.join(a.spelling for a in arguments)})"
        function = SyntheticType(kind, spelling=spelling, result_type=result, arguments=arguments)
        return function, cursors

    @staticmethod
    def _decay(ty: SyntheticType) -> SyntheticType:
        """Parameters of array or function type are adjusted to pointers."""
        if ty.kind in (
            TypeKind.CONSTANT_ARRAY,
            TypeKind.INCOMPLETE_ARRAY,
            TypeKind.VARIABLE_ARRAY,
        ):
            return SyntheticType(
                TypeKind.POINTER,
                spelling=f"{ty.element_type.spelling} *",
                is_const=ty.is_const,
                pointee=ty.element_type,
            )
        if ty.kind in (TypeKind.FUNCTION_PROTO, TypeKind.FUNCTION_NO_PROTO):
            return SyntheticType(TypeKind.POINTER, spelling=f"{ty.spelling} *", pointee=ty)
        return ty

    def type_of(self, type_descriptor: Node) -> SyntheticType:
        """Resolve a ``type_descriptor`` (cast target, sizeof operand)."""
        scratch: list = []
        base = self._declared_type(type_descriptor, scratch)
        _, ty, _ = self._declare(
            type_descriptor.child_by_field_name("declarator"), base, scratch
        )
        return replace(ty, spelling=" ".join(self.text(type_descriptor).split()))


def parse_translation_unit(
    source: str | bytes,
    file_name: str = constants.DEFAULT_FILE_NAME,
    parser: Parser | None = None,
) -> list[DeclCursor]:
    """Parse C source and return its top-level declaration cursors."""
    source_bytes = source.encode("utf-8") if isinstance(source, str) else source
    tree = (parser or Parser()).parse(source_bytes)
    return CFrontend(file_name).build(tree, source_bytes)
