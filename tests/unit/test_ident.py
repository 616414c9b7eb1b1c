"""Tests for the identifier intern table and Identifier handles."""

from __future__ import annotations

import threading

import pytest
from pydantic import BaseModel

from cregistry.errors import (
    InvalidIdentifierError,
    RenameConflictError,
    StaleIdentifierError,
)
from cregistry.ident import Identifier, InternTable


class _Named(BaseModel):
    name: Identifier
    aliases: dict[Identifier, int] = {}


class TestInterning:
    def test_same_text_yields_equal_handles(self, table):
        assert table.intern("VkDevice") == table.intern("VkDevice")
        assert hash(table.intern("VkDevice")) == hash(table.intern("VkDevice"))

    def test_different_texts_yield_unequal_handles(self, table):
        assert table.intern("VkDevice") != table.intern("VkQueue")

    def test_one_slot_per_text(self, table):
        table.intern("a")
        table.intern("b")
        table.intern("a")
        assert table.size == 2

    def test_separator_is_rejected(self, table):
        with pytest.raises(InvalidIdentifierError):
            table.intern("bad:name")

    def test_handles_from_different_tables_differ(self, table):
        other = InternTable()
        assert table.intern("x") != other.intern("x")

    def test_ordering_is_by_original_text(self, table):
        names = [table.intern(text) for text in ("zeta", "alpha", "mid")]
        assert [n.original for n in sorted(names)] == ["alpha", "mid", "zeta"]

    def test_ordering_ignores_renames(self, table):
        a = table.intern("a")
        b = table.intern("b")
        a.rename("zzz")
        assert a < b

    def test_concurrent_interning_converges(self, table):
        results: list[Identifier] = []
        lock = threading.Lock()

        def worker():
            ident = table.intern("shared")
            with lock:
                results.append(ident)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
        assert len(set(results)) == 1
        assert table.size == 1


class TestRename:
    def test_first_rename_succeeds(self, table):
        ident = table.intern("VkInstance")
        ident.rename("Instance")
        assert ident.renamed == "Instance"
        assert ident.value == "Instance"
        assert str(ident) == "Instance"

    def test_repeating_same_rename_is_noop(self, table):
        ident = table.intern("VkInstance")
        ident.rename("Instance")
        ident.rename("Instance")
        assert ident.renamed == "Instance"

    def test_conflicting_rename_names_both_values(self, table):
        ident = table.intern("VkInstance")
        ident.rename("Instance")
        with pytest.raises(RenameConflictError) as info:
            ident.rename("Other")
        assert info.value.original == "VkInstance"
        assert info.value.current == "Instance"
        assert info.value.requested == "Other"
        assert "Instance" in str(info.value) and "Other" in str(info.value)

    def test_original_is_immutable(self, table):
        ident = table.intern("VkInstance")
        ident.rename("Instance")
        assert ident.original == "VkInstance"
        assert table.intern("VkInstance") == ident

    def test_rename_rejects_separator(self, table):
        with pytest.raises(InvalidIdentifierError):
            table.intern("x").rename("a:b")

    def test_unrenamed_value_is_original(self, table):
        ident = table.intern("plain")
        assert ident.renamed is None
        assert ident.value == "plain"


class TestSerialization:
    def test_unrenamed_round_trip(self, table):
        ident = table.intern("VkBuffer")
        assert ident.serialized() == "VkBuffer"
        restored = table.deserialize(ident.serialized())
        assert restored == ident
        assert restored.renamed is None

    def test_renamed_round_trip(self, table):
        ident = table.intern("VkBuffer")
        ident.rename("Buffer")
        assert ident.serialized() == "VkBuffer:Buffer"
        other = InternTable()
        restored = other.deserialize(ident.serialized())
        assert restored.original == "VkBuffer"
        assert restored.renamed == "Buffer"

    def test_deserialize_splits_on_first_separator(self, table):
        with pytest.raises(InvalidIdentifierError):
            table.deserialize("a:b:c")

    def test_deserialize_surfaces_conflicts(self, table):
        table.intern("VkBuffer").rename("Buffer")
        with pytest.raises(RenameConflictError):
            table.deserialize("VkBuffer:Other")

    def test_pydantic_field_uses_context_table(self, table):
        model = _Named.model_validate(
            {"name": "VkImage:Image", "aliases": {"a": 1}},
            context={"intern_table": table},
        )
        assert model.name == table.intern("VkImage")
        assert model.name.renamed == "Image"
        assert table.intern("a") in model.aliases

    def test_pydantic_serializes_textual_form(self, table):
        ident = table.intern("VkImage")
        ident.rename("Image")
        assert _Named(name=ident).model_dump_json() == '{"name":"VkImage:Image","aliases":{}}'

    def test_json_schema_is_string(self):
        schema = _Named.model_json_schema()
        assert schema["properties"]["name"]["type"] == "string"


class TestReset:
    def test_stale_handle_is_detected(self, table):
        ident = table.intern("old")
        table.reset()
        with pytest.raises(StaleIdentifierError):
            _ = ident.original

    def test_reset_bumps_epoch_and_clears(self, table):
        table.intern("old")
        epoch = table.epoch
        table.reset()
        assert table.epoch == epoch + 1
        assert table.size == 0

    def test_epoch_read_waits_for_the_table_lock(self, table):
        seen = []
        reader = threading.Thread(target=lambda: seen.append(table.epoch))
        with table._lock:
            reader.start()
            reader.join(timeout=0.1)
            assert reader.is_alive()
            table.reset()
        reader.join()
        assert seen == [1]

    def test_foreign_handle_is_rejected(self, table):
        other = InternTable()
        ident = other.intern("x")
        with pytest.raises(InvalidIdentifierError):
            table.original(ident)
