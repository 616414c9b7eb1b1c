"""Tests for the tree-sitter C front end: cursor and type shapes."""

from __future__ import annotations

import pytest

from cregistry.errors import LiteralEvaluationError
from cregistry.frontend.cursor import CursorKind, EvalKind, TypeKind
from tests.unit.conftest import cursor_named, parse_cursors


def _kinds(cursors) -> list[CursorKind]:
    return [c.kind for c in cursors]


def _enum_values(source: str) -> list[int]:
    (enum,) = [c for c in parse_cursors(source) if c.kind == CursorKind.ENUM_DECL]
    return [member.enum_value_unsigned() for member in enum.children()]


class TestTypedefs:
    def test_simple_typedef(self):
        (cursor,) = parse_cursors("typedef unsigned int Flags;")
        assert cursor.kind == CursorKind.TYPEDEF_DECL
        assert cursor.spelling == b"Flags"
        assert cursor.type.kind == TypeKind.TYPEDEF
        assert cursor.typedef_underlying_type.kind == TypeKind.UINT

    def test_unknown_type_name_is_a_typedef(self):
        (cursor,) = parse_cursors("typedef size_t Length;")
        underlying = cursor.typedef_underlying_type
        assert underlying.kind == TypeKind.TYPEDEF
        assert underlying.typedef_name == "size_t"

    def test_function_pointer_typedef_has_parm_decls(self):
        (cursor,) = parse_cursors("typedef void (*Callback)(int code, void *user);")
        underlying = cursor.typedef_underlying_type
        assert underlying.kind == TypeKind.POINTER
        assert underlying.pointee.kind == TypeKind.FUNCTION_PROTO
        params = cursor.children()
        assert _kinds(params) == [CursorKind.PARM_DECL, CursorKind.PARM_DECL]
        assert [p.spelling for p in params] == [b"code", b"user"]
        assert params[1].type.kind == TypeKind.POINTER

    def test_undeclared_tag_introduces_a_declaration(self):
        cursors = parse_cursors("typedef struct Handle_T *Handle;")
        assert _kinds(cursors) == [CursorKind.STRUCT_DECL, CursorKind.TYPEDEF_DECL]
        record = cursors[0]
        assert record.spelling == b"Handle_T"
        assert not record.is_definition()
        assert record.usr == "c:@S@Handle_T"

    def test_anonymous_tag_takes_typedef_name(self):
        cursors = parse_cursors("typedef struct { int a; } Foo;")
        record = cursors[0]
        assert record.kind == CursorKind.STRUCT_DECL
        assert record.spelling == b"Foo"
        assert not record.is_anonymous()
        assert record.usr == "c:@SA@Foo"

    def test_pointer_typedef_does_not_name_the_tag(self):
        cursors = parse_cursors("typedef struct { int a; } *PFoo;")
        assert cursors[0].is_anonymous()


class TestFunctions:
    def test_parameters(self):
        (cursor,) = parse_cursors("int h(int a, const char *b);")
        assert cursor.kind == CursorKind.FUNCTION_DECL
        assert cursor.type.kind == TypeKind.FUNCTION_PROTO
        assert cursor.type.result_type.kind == TypeKind.INT
        assert [p.spelling for p in cursor.children()] == [b"a", b"b"]
        pointee = cursor.children()[1].type.pointee
        assert pointee.kind == TypeKind.CHAR_S
        assert pointee.is_const

    def test_empty_parens_have_no_prototype(self):
        (cursor,) = parse_cursors("int f();")
        assert cursor.type.kind == TypeKind.FUNCTION_NO_PROTO

    def test_void_parameter_list(self):
        (cursor,) = parse_cursors("int g(void);")
        assert cursor.type.kind == TypeKind.FUNCTION_PROTO
        assert cursor.children() == []
        assert cursor.type.argument_types() == []

    def test_unnamed_parameter(self):
        (cursor,) = parse_cursors("void take(int);")
        assert [p.spelling for p in cursor.children()] == [b""]

    def test_array_parameter_decays(self):
        (cursor,) = parse_cursors("void fill(int values[4]);")
        assert cursor.children()[0].type.kind == TypeKind.POINTER

    def test_definition_is_a_function_decl(self):
        (cursor,) = parse_cursors("int answer(void) { return 42; }")
        assert cursor.kind == CursorKind.FUNCTION_DECL
        assert cursor.spelling == b"answer"


class TestRecords:
    def test_named_struct(self):
        (cursor,) = parse_cursors("struct P { int x; float y; };")
        assert cursor.kind == CursorKind.STRUCT_DECL
        assert cursor.usr == "c:@S@P"
        assert cursor.is_definition()
        assert [c.spelling for c in cursor.children()] == [b"x", b"y"]

    def test_union(self):
        (cursor,) = parse_cursors("union V { int i; float f; };")
        assert cursor.kind == CursorKind.UNION_DECL
        assert cursor.usr == "c:@U@V"

    def test_anonymous_struct_usr(self):
        cursors = parse_cursors("struct { int a; } v;")
        assert _kinds(cursors) == [CursorKind.STRUCT_DECL, CursorKind.VAR_DECL]
        assert cursors[0].is_anonymous()
        assert cursors[0].usr.endswith("@Sa")
        assert cursors[0].usr.startswith("c:test.h@")

    def test_nested_records_are_children(self):
        (outer,) = parse_cursors(
            "struct Outer { struct Inner { int x; } in; int y; };"
        )
        assert _kinds(outer.children()) == [
            CursorKind.STRUCT_DECL,
            CursorKind.FIELD_DECL,
            CursorKind.FIELD_DECL,
        ]
        assert outer.children()[0].spelling == b"Inner"

    def test_field_of_record_type_refers_to_declaration(self):
        cursors = parse_cursors("struct A { int x; };\nstruct B { struct A a; };")
        field = cursors[1].children()[0]
        assert field.type.kind == TypeKind.ELABORATED
        assert field.type.named_type.kind == TypeKind.RECORD
        assert field.type.named_type.declaration is cursors[0]

    def test_constant_and_incomplete_arrays(self):
        (record,) = parse_cursors("struct Buf { int head[3]; char tail[]; };")
        head, tail = record.children()
        assert head.type.kind == TypeKind.CONSTANT_ARRAY
        assert head.type.array_size == 3
        assert tail.type.kind == TypeKind.INCOMPLETE_ARRAY

    def test_array_bound_from_enum_constant(self):
        cursors = parse_cursors("enum { COUNT = 4 };\nint table[COUNT];")
        table = cursor_named(cursors, "table")
        assert table.type.kind == TypeKind.CONSTANT_ARRAY
        assert table.type.array_size == 4

    def test_unknown_array_bound_is_variable(self):
        table = cursor_named(parse_cursors("int table[COUNT];"), "table")
        assert table.type.kind == TypeKind.VARIABLE_ARRAY


class TestEnums:
    def test_implicit_values_follow_explicit(self):
        assert _enum_values("enum E { A, B = 5, C };") == [0, 5, 6]

    def test_constant_expressions(self):
        source = "enum F { X = 1 << 2, Y = X | 1, Z = sizeof(int) };"
        assert _enum_values(source) == [4, 5, 4]

    def test_negative_values_use_signed_type(self):
        (cursor,) = parse_cursors("enum N { M = -1 };")
        assert cursor.enum_type.kind == TypeKind.INT
        assert cursor.children()[0].enum_value_unsigned() == (1 << 64) - 1

    def test_non_negative_values_use_unsigned_type(self):
        (cursor,) = parse_cursors("enum P { Q = 1 };")
        assert cursor.enum_type.kind == TypeKind.UINT

    def test_unknown_initializer_fails_lazily(self):
        (cursor,) = parse_cursors("enum U { P = UNKNOWN, Q };")
        first, second = cursor.children()
        with pytest.raises(LiteralEvaluationError):
            first.enum_value_unsigned()
        with pytest.raises(LiteralEvaluationError):
            second.enum_value_unsigned()

    def test_initializer_is_an_expression_child(self):
        (cursor,) = parse_cursors("enum G { H = (1 + 2) };")
        (constant,) = cursor.children()
        (init,) = constant.children()
        assert init.kind == CursorKind.PAREN_EXPR
        (inner,) = init.children()
        assert inner.kind == CursorKind.BINARY_OPERATOR
        assert inner.operator == "+"

    def test_expression_cursor_evaluates(self):
        (cursor,) = parse_cursors("enum G { H = 'a' };")
        init = cursor.children()[0].children()[0]
        assert init.kind == CursorKind.CHARACTER_LITERAL
        result = init.evaluate()
        assert result.kind == EvalKind.INT
        assert result.value == 97


class TestTopLevel:
    def test_preprocessor_blocks_are_flattened(self):
        source = (
            "#ifndef GUARD\n"
            "#define GUARD\n"
            "#include <stddef.h>\n"
            "typedef int T;\n"
            "#ifdef EXTRA\n"
            "int extra(void);\n"
            "#endif\n"
            "#endif\n"
        )
        cursors = parse_cursors(source)
        assert _kinds(cursors) == [CursorKind.TYPEDEF_DECL, CursorKind.FUNCTION_DECL]

    def test_comments_are_ignored(self):
        cursors = parse_cursors("/* doc */\nint x; // trailing\n")
        assert _kinds(cursors) == [CursorKind.VAR_DECL]

    def test_const_pointer_and_const_pointee(self):
        cursors = parse_cursors("const char *name;\nchar *const fixed;")
        name = cursor_named(cursors, "name")
        fixed = cursor_named(cursors, "fixed")
        assert name.type.pointee.is_const and not name.type.is_const
        assert fixed.type.is_const and not fixed.type.pointee.is_const

    def test_extent_is_one_based(self):
        (cursor,) = parse_cursors("\nint x;")
        assert cursor.extent.start_line == 2
        assert cursor.extent.file == "test.h"
