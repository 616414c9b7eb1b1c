"""Tests for the composable API functions and the timed run."""

from __future__ import annotations

import json

import pytest

from cregistry import (
    PipelineConfig,
    dump_ir,
    dump_registry,
    dump_schema,
    lower_source,
    map_source,
    merge_registries,
    parse_source,
    registry_from_source,
    run,
)
from cregistry.errors import RegistryMergeConflict, UnsupportedConstruct
from cregistry.frontend.cursor import CursorKind
from cregistry.registry import MergePolicy

SOURCE = """\
typedef struct _H* H;
typedef int MyInt;
struct Pair { struct { int lo; int hi; } range; MyInt total; };
int add(int a, int b);
enum Color { RED, GREEN = 5, BLUE };
"""

PARTIAL_SOURCE = "int table[COUNT];\nint ok(int a);\n"


class TestParseAndLower:
    def test_parse_source(self):
        cursors = parse_source("int add(int a, int b);", "add.h")
        assert [c.kind for c in cursors] == [CursorKind.FUNCTION_DECL]
        assert cursors[0].extent.file == "add.h"

    def test_map_source_keeps_anonymous_records(self, table):
        decls = map_source(SOURCE, table=table)
        assert any(
            d.kind == "Record" and d.name.kind == "Anonymous" for d in decls
        )

    def test_lower_source_names_everything(self, table):
        decls = lower_source(SOURCE, table=table)
        assert all(d.name.kind == "Named" for d in decls if d.kind == "Record")

    def test_strict_mode_aborts(self, table):
        with pytest.raises(UnsupportedConstruct):
            lower_source(PARTIAL_SOURCE, PipelineConfig(strict=True), table)

    def test_keep_going_skips(self, table):
        decls = lower_source(PARTIAL_SOURCE, PipelineConfig(strict=False), table)
        assert [str(d.name) for d in decls] == ["ok"]


class TestRegistry:
    def test_registry_from_source(self, table):
        config = PipelineConfig(registry_name="demo", file_name="demo.h")
        registry = registry_from_source(SOURCE, config, table)
        assert registry.name == "demo"
        assert table.intern("struct_de_struct_Pair_de_field_range") in registry.structs
        assert registry.counts()["commands"] == 1

    def test_dump_registry_is_json(self, table):
        document = json.loads(dump_registry(SOURCE, table=table))
        assert set(document["structs"]) == {"Pair", "struct_de_struct_Pair_de_field_range"}
        assert document["aliases"]["MyInt"]["target"]["ident"] == "int"

    def test_dump_registry_compact(self, table):
        assert "\n" not in dump_registry("typedef int T;", table=table, indent=None)

    def test_merge_registries(self, table):
        first = registry_from_source("typedef int A;", table=table)
        second = registry_from_source("typedef long B;", table=table)
        merged = merge_registries([first, second], "both")
        assert merged.name == "both"
        assert set(merged.aliases) == {table.intern("A"), table.intern("B")}

    def test_merge_registries_conflict(self, table):
        first = registry_from_source("typedef int T;", table=table)
        second = registry_from_source("typedef long T;", table=table)
        with pytest.raises(RegistryMergeConflict):
            merge_registries([first, second])
        merged = merge_registries([first, second], policy=MergePolicy.LAST_WINS)
        assert str(merged.aliases[table.intern("T")].target) == "long"


class TestDumps:
    def test_dump_ir(self, table):
        lines = dump_ir(SOURCE, table=table).splitlines()
        assert "  typedef int MyInt;" in lines
        assert "  int add(int a, int b);" in lines
        assert "  enum Color : unsigned int { RED, GREEN = 5, BLUE };" in lines
        assert any(
            line.startswith("  struct struct_de_struct_Pair_de_field_range {")
            for line in lines
        )

    def test_dump_schema(self):
        schema = json.loads(dump_schema())
        assert schema["title"] == "Registry"
        assert "commands" in schema["properties"]


class TestRun:
    def test_run_returns_registry_and_stats(self, table):
        registry, stats = run(SOURCE, PipelineConfig(file_name="demo.h"), table)
        assert stats.file_name == "demo.h"
        assert stats.source_lines == 5
        assert stats.cursor_count == 6
        assert stats.decl_count == 7
        assert stats.anonymous_records == 1
        assert stats.registry_commands == 1
        assert stats.registry_records == 2
        assert stats.registry_entities == registry.entity_count()
        assert stats.total_time >= stats.parse_time

    def test_report(self, table):
        _, stats = run(SOURCE, table=table)
        report = stats.report()
        assert report.startswith("═══ Pipeline Statistics ═══")
        assert "Build registry" in report
        assert f"Registry: {stats.registry_entities} entities" in report

    def test_verbose_prints_report(self, table, capsys):
        run("typedef int T;", table=table, verbose=True)
        assert "Pipeline Statistics" in capsys.readouterr().out
