"""Composable API functions for the header-to-registry pipeline.

Each function corresponds to a CLI workflow (registry, --ir-only, --schema)
but is callable programmatically without argparse.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from .frontend.c import parse_translation_unit
from .frontend.cursor import Cursor
from .frontend.parser import Parser
from .ident import InternTable, default_table
from .ir import CDecl, format_decl
from .mapper import map_translation_unit
from .materialize import build_registry
from .namer import name_anonymous_records
from .registry import MergePolicy, Registry, registry_json_schema
from .run_types import PipelineConfig
from . import constants

logger = logging.getLogger(__name__)


def parse_source(
    source: str | bytes,
    file_name: str = constants.DEFAULT_FILE_NAME,
    parser: Parser | None = None,
) -> list[Cursor]:
    """Parse C source and return its top-level declaration cursors."""
    logger.info("Parsing %s", file_name)
    return parse_translation_unit(source, file_name, parser)


def map_source(
    source: str | bytes,
    config: PipelineConfig | None = None,
    table: InternTable | None = None,
) -> list[CDecl]:
    """Parse and map source to IR declarations; anonymous records stay unnamed."""
    config = config or PipelineConfig()
    cursors = parse_source(source, config.file_name)
    return map_translation_unit(cursors, table or default_table(), config.strict)


def lower_source(
    source: str | bytes,
    config: PipelineConfig | None = None,
    table: InternTable | None = None,
) -> list[CDecl]:
    """Parse, map and name: the declaration sequence the registry is built from.

    Args:
        source: The C source text.
        config: Pipeline configuration (file name, strict mode).
        table: Intern table for every identifier; defaults to the shared one.

    Returns:
        A list of IR declarations with every anonymous record named.
    """
    table = table or default_table()
    decls = map_source(source, config, table)
    return name_anonymous_records(decls, table)


def registry_from_source(
    source: str | bytes,
    config: PipelineConfig | None = None,
    table: InternTable | None = None,
) -> Registry:
    """End-to-end: parse, map, name and materialize one translation unit."""
    config = config or PipelineConfig()
    table = table or default_table()
    decls = lower_source(source, config, table)
    return build_registry(config.registry_name, decls, table)


def merge_registries(
    registries: list[Registry],
    name: str = constants.DEFAULT_REGISTRY_NAME,
    policy: MergePolicy = MergePolicy.REJECT,
) -> Registry:
    """Fold several registries into a new one, left to right."""
    merged = Registry(name=name)
    for registry in registries:
        merged.merge(registry, policy)
    return merged


def dump_ir(
    source: str | bytes,
    config: PipelineConfig | None = None,
    table: InternTable | None = None,
) -> str:
    """Lower source to named IR and return one declaration per line."""
    decls = lower_source(source, config, table)
    return "\n".join(f"  {format_decl(decl)}" for decl in decls)


def dump_registry(
    source: str | bytes,
    config: PipelineConfig | None = None,
    table: InternTable | None = None,
    indent: int | None = constants.DEFAULT_JSON_INDENT,
) -> str:
    return registry_from_source(source, config, table).to_json(indent)


def dump_schema(indent: int | None = constants.DEFAULT_JSON_INDENT) -> str:
    schema: dict[str, Any] = registry_json_schema()
    return json.dumps(schema, indent=indent)
