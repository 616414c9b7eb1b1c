"""C header to API registry pipeline."""

from .run import run  # noqa: F401
from .api import (  # noqa: F401
    parse_source,
    map_source,
    lower_source,
    registry_from_source,
    merge_registries,
    dump_ir,
    dump_registry,
    dump_schema,
)
from .ident import Identifier, InternTable, default_table, intern  # noqa: F401
from .registry import MergePolicy, Registry, registry_json_schema  # noqa: F401
from .run_types import PipelineConfig, PipelineStats  # noqa: F401
