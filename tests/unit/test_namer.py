"""Tests for anonymous record naming."""

from __future__ import annotations

import pytest

from cregistry.errors import CyclicAnonymousRecordError, MissingUsageError
from cregistry.ident import InternTable
from cregistry.ir import (
    AnonymousRecord,
    CFieldDecl,
    CRecordDecl,
    CType,
    CVarDecl,
    NamedRecord,
)
from cregistry.namer import (
    EnclosingRecord,
    FieldName,
    NestedIndex,
    collect_usages,
    name_anonymous_records,
)
from tests.unit.conftest import anonymous_records, lower_decls, map_decls


def _record_names(decls) -> list[str]:
    return [
        str(d.name.name)
        for d in decls
        if isinstance(d, CRecordDecl) and isinstance(d.name, NamedRecord)
    ]


def _anonymous_field(owner: str, field: str, usr: str, table: InternTable) -> CRecordDecl:
    """A definition whose only field has the anonymous record ``usr`` as type."""
    return CRecordDecl(
        is_struct=True,
        name=AnonymousRecord(usr=owner),
        fields=[
            CFieldDecl(
                name=table.intern(field),
                ty=CType.record(True, AnonymousRecord(usr=usr)),
            )
        ],
        is_definition=True,
    )


class TestUsageCollection:
    def test_field_and_nested_usages(self, table):
        decls = map_decls(
            "struct Nest { struct { int value; } walue; union { int a; int b; }; };",
            table,
        )
        struct_usr = decls[0].name.usr
        union_usr = decls[1].name.usr
        usages = collect_usages(decls)
        owner = EnclosingRecord(True, NamedRecord(name=table.intern("Nest")))
        assert usages[struct_usr] == [(owner, FieldName("walue"))]
        assert usages[union_usr] == [(owner, NestedIndex(0))]

    def test_forward_declarations_contribute_nothing(self, table):
        assert collect_usages(map_decls("struct Later;", table)) == {}


class TestNames:
    def test_field_and_nested_names(self, table):
        decls = lower_decls(
            "struct Nest { struct { int value; } walue; union { int a; int b; }; };",
            table,
        )
        assert _record_names(decls) == [
            "struct_de_struct_Nest_de_field_walue",
            "union_de_struct_Nest_de_nest_0",
            "Nest",
        ]
        field = decls[-1].fields[0]
        assert str(field.ty.base.name) == "struct_de_struct_Nest_de_field_walue"
        assert str(decls[-1].subrecords[0]) == "union_de_struct_Nest_de_nest_0"

    def test_variable_through_array_of_pointers(self, table):
        decls = lower_decls("struct { int a; } *items[4];", table)
        assert _record_names(decls) == ["struct_de_var_items_arr_p"]

    def test_pointer_typedef(self, table):
        decls = lower_decls("typedef struct { int a; } *PFoo;", table)
        assert _record_names(decls) == ["struct_de_typedef_PFoo_p"]

    def test_function_pointer_parameter(self, table):
        decls = lower_decls(
            "struct Cb { void (*fn)(struct { int q; } *arg); };", table
        )
        assert _record_names(decls)[0] == "struct_de_struct_Cb_de_field_fn_p_de_param_arg_p"

    def test_unnamed_parameter_uses_positional_name(self, table):
        decls = lower_decls("struct Cb { void (*fn)(int, struct { int q; } *); };", table)
        assert _record_names(decls)[0] == "struct_de_struct_Cb_de_field_fn_p_de_param_param1_p"

    def test_function_return(self, table):
        decls = lower_decls("typedef struct { int a; } *(*Make)(void);", table)
        assert _record_names(decls)[0] == "struct_de_typedef_Make_p_f_p"

    def test_nested_anonymous_records(self, table):
        decls = lower_decls(
            "struct Outer { struct { struct { int z; } inner; } mid; };", table
        )
        assert _record_names(decls) == [
            "struct_de_struct_struct_Outer_de_field_mid_de_field_inner",
            "struct_de_struct_Outer_de_field_mid",
            "Outer",
        ]

    def test_first_usage_wins(self, table):
        decls = lower_decls("struct { int a; } first, second;", table)
        assert _record_names(decls) == ["struct_de_var_first"]
        first, second = [d for d in decls if isinstance(d, CVarDecl)]
        assert first.ty == second.ty

    def test_typedef_named_tag_keeps_typedef_name(self, table):
        decls = lower_decls("typedef struct { int a; } Foo;", table)
        assert _record_names(decls) == ["Foo"]

    def test_named_records_are_untouched(self, table):
        source = "struct P { int x; };\nunion U { int i; };"
        assert _record_names(lower_decls(source, table)) == ["P", "U"]


class TestTotality:
    SOURCE = (
        "struct A { struct { int x; } one; union { int y; float z; } two[2]; };\n"
        "typedef struct { struct { int w; } *deep; } Top;\n"
        "struct { int v; } global;\n"
    )

    def test_no_anonymous_record_survives(self, table):
        decls = lower_decls(self.SOURCE, table)
        assert anonymous_records(decls) == []
        dumped = "".join(decl.model_dump_json() for decl in decls)
        assert '"kind":"Anonymous"' not in dumped

    def test_names_are_deterministic(self):
        first = _record_names(lower_decls(self.SOURCE, InternTable()))
        second = _record_names(lower_decls(self.SOURCE, InternTable()))
        assert first == second

    def test_declaration_order_is_preserved(self, table):
        mapped = map_decls(self.SOURCE, table)
        named = name_anonymous_records(mapped, table)
        assert [d.kind for d in named] == [d.kind for d in mapped]


class TestFailures:
    def test_unused_anonymous_record(self, table):
        with pytest.raises(MissingUsageError) as info:
            lower_decls("struct { int a; };", table)
        assert info.value.usr.endswith("@Sa")

    def test_cycle_is_detected(self, table):
        decls = [
            _anonymous_field("c:cycle@A", "to_b", "c:cycle@B", table),
            _anonymous_field("c:cycle@B", "to_a", "c:cycle@A", table),
        ]
        with pytest.raises(CyclicAnonymousRecordError) as info:
            name_anonymous_records(decls, table)
        assert info.value.chain[0] == info.value.chain[-1]
