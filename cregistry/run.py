"""Timed end-to-end pipeline run."""

from __future__ import annotations

import logging
import time

from .frontend.c import parse_translation_unit
from .ident import InternTable, default_table
from .ir import CRecordDecl
from .mapper import map_translation_unit
from .materialize import build_registry
from .namer import name_anonymous_records
from .registry import Registry
from .run_types import PipelineConfig, PipelineStats

logger = logging.getLogger(__name__)


def run(
    source: str,
    config: PipelineConfig | None = None,
    table: InternTable | None = None,
    verbose: bool = False,
) -> tuple[Registry, PipelineStats]:
    """End-to-end: parse → map → name → materialize, recording stage timings.

    Args:
        source: C source text.
        config: Pipeline configuration.
        table: Intern table for identifiers; defaults to the shared one.
        verbose: Print the statistics report when done.
    """
    config = config or PipelineConfig()
    table = table or default_table()
    pipeline_start = time.perf_counter()
    stats = PipelineStats(
        source_bytes=len(source.encode("utf-8")),
        source_lines=source.count("\n")
        + (1 if source and not source.endswith("\n") else 0),
        file_name=config.file_name,
    )

    # 1. Parse
    t0 = time.perf_counter()
    cursors = parse_translation_unit(source, config.file_name)
    stats.parse_time = time.perf_counter() - t0
    stats.cursor_count = len(cursors)

    # 2. Map
    t0 = time.perf_counter()
    decls = map_translation_unit(cursors, table, config.strict)
    stats.map_time = time.perf_counter() - t0
    stats.decl_count = len(decls)
    stats.anonymous_records = sum(
        1
        for decl in decls
        if isinstance(decl, CRecordDecl) and decl.name.kind == "Anonymous"
    )
    logger.info(
        "Front end produced %d declarations in %.1fms",
        stats.decl_count,
        (stats.parse_time + stats.map_time) * 1000,
    )

    # 3. Name anonymous records
    t0 = time.perf_counter()
    named = name_anonymous_records(decls, table)
    stats.name_time = time.perf_counter() - t0

    # 4. Materialize
    t0 = time.perf_counter()
    registry = build_registry(config.registry_name, named, table)
    stats.registry_time = time.perf_counter() - t0
    stats.registry_entities = registry.entity_count()
    stats.registry_commands = len(registry.commands)
    stats.registry_records = len(registry.structs) + len(registry.unions)
    stats.total_time = time.perf_counter() - pipeline_start

    if verbose:
        print(stats.report())

    return registry, stats
