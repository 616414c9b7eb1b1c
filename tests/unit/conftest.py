"""Shared helpers for the cregistry unit tests.

Every helper takes an explicit intern table so tests never share renames
through the process-wide default table.
"""

from __future__ import annotations

import logging

import pytest

from cregistry.frontend.c import DeclCursor, parse_translation_unit
from cregistry.ident import InternTable
from cregistry.ir import AnonymousRecord, CDecl, CRecordDecl, NamedRecord
from cregistry.mapper import map_translation_unit
from cregistry.materialize import build_registry
from cregistry.namer import name_anonymous_records
from cregistry.registry import Registry

logger = logging.getLogger(__name__)

TEST_FILE_NAME = "test.h"


@pytest.fixture
def table() -> InternTable:
    return InternTable()


def parse_cursors(source: str) -> list[DeclCursor]:
    return parse_translation_unit(source, TEST_FILE_NAME)


def map_decls(source: str, table: InternTable, strict: bool = True) -> list[CDecl]:
    """Parse and map; anonymous records are still unnamed."""
    return map_translation_unit(parse_cursors(source), table, strict)


def lower_decls(source: str, table: InternTable) -> list[CDecl]:
    """Parse, map and name."""
    return name_anonymous_records(map_decls(source, table), table)


def registry_for(source: str, table: InternTable, name: str = "test") -> Registry:
    return build_registry(name, lower_decls(source, table), table)


def cursor_named(cursors: list, spelling: str):
    return next(c for c in cursors if c.spelling == spelling.encode("utf-8"))


def decl_named(decls: list[CDecl], name: str) -> CDecl:
    """The last declaration whose (record) name renders as ``name``."""
    matches = [d for d in decls if _decl_name(d) == name]
    if not matches:
        raise LookupError(f"No declaration named {name!r} in {[_decl_name(d) for d in decls]}")
    return matches[-1]


def anonymous_records(decls: list[CDecl]) -> list[CRecordDecl]:
    return [
        d for d in decls if isinstance(d, CRecordDecl) and isinstance(d.name, AnonymousRecord)
    ]


def _decl_name(decl: CDecl) -> str:
    if isinstance(decl, CRecordDecl):
        return str(decl.name.name) if isinstance(decl.name, NamedRecord) else decl.name.usr
    return str(decl.name)
