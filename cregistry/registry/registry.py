"""The Registry container: categorized entities, merge and JSON I/O."""

from __future__ import annotations

import copy
import logging
from enum import Enum
from typing import Any

from pydantic import BaseModel, SerializationInfo, field_serializer

from ..constants import DEFAULT_JSON_INDENT, INTERN_TABLE_CONTEXT_KEY
from ..errors import InvalidIdentifierError, RegistryMergeConflict
from ..ident import Identifier, InternTable, default_table
from .entity import (
    Bitmask,
    Command,
    Constant,
    Entity,
    Enumeration,
    FunctionTypedef,
    Import,
    OpaqueHandleTypedef,
    OpaqueTypedef,
    Structure,
    Typedef,
)
from .metadata import RegistryModel

logger = logging.getLogger(__name__)

ENTITY_CATEGORIES: tuple[str, ...] = (
    "aliases",
    "bitmasks",
    "constants",
    "commands",
    "enumerations",
    "function_typedefs",
    "opaque_typedefs",
    "opaque_handle_typedefs",
    "structs",
    "unions",
)


class MergePolicy(str, Enum):
    """What to do when both registries define the same name differently."""

    REJECT = "reject"
    FIRST_WINS = "first_wins"
    LAST_WINS = "last_wins"


class Registry(RegistryModel):
    name: str
    imports: set[Import] = set()
    metadata: dict[str, str] = {}

    aliases: dict[Identifier, Typedef] = {}
    bitmasks: dict[Identifier, Bitmask] = {}
    constants: dict[Identifier, Constant] = {}
    commands: dict[Identifier, Command] = {}
    enumerations: dict[Identifier, Enumeration] = {}
    function_typedefs: dict[Identifier, FunctionTypedef] = {}
    opaque_typedefs: dict[Identifier, OpaqueTypedef] = {}
    opaque_handle_typedefs: dict[Identifier, OpaqueHandleTypedef] = {}
    structs: dict[Identifier, Structure] = {}
    unions: dict[Identifier, Structure] = {}

    ext: Any = None

    # ── serialization ────────────────────────────────────────────

    @field_serializer(*ENTITY_CATEGORIES)
    def _serialize_entities(
        self, entities: dict[Identifier, Entity], info: SerializationInfo
    ) -> dict[str, Any]:
        return {
            ident.serialized(): entity.model_dump(mode=info.mode, by_alias=info.by_alias)
            for ident, entity in sorted(entities.items(), key=lambda item: item[0])
        }

    @field_serializer("imports")
    def _serialize_imports(
        self, imports: set[Import], info: SerializationInfo
    ) -> list[dict[str, Any]]:
        return [
            imp.model_dump(mode=info.mode, by_alias=info.by_alias)
            for imp in sorted(imports, key=Import.sort_key)
        ]

    @field_serializer("metadata")
    def _serialize_metadata(self, metadata: dict[str, str]) -> dict[str, str]:
        return dict(sorted(metadata.items()))

    def to_json(self, indent: int | None = DEFAULT_JSON_INDENT) -> str:
        return self.model_dump_json(by_alias=True, indent=indent)

    @classmethod
    def from_json(cls, text: str | bytes, table: InternTable | None = None) -> Registry:
        """Parse a registry document, interning every identifier into ``table``."""
        return cls.model_validate_json(
            text,
            context={INTERN_TABLE_CONTEXT_KEY: table or default_table()},
        )

    # ── queries ──────────────────────────────────────────────────

    def category(self, name: str) -> dict[Identifier, Entity]:
        if name not in ENTITY_CATEGORIES:
            raise KeyError(f"Unknown registry category '{name}'")
        return getattr(self, name)

    def counts(self) -> dict[str, int]:
        return {name: len(self.category(name)) for name in ENTITY_CATEGORIES}

    def entity_count(self) -> int:
        return sum(self.counts().values())

    # ── merge ────────────────────────────────────────────────────

    def merge(self, other: Registry, policy: MergePolicy = MergePolicy.REJECT) -> None:
        """Fold ``other`` into this registry.

        Both registries must share one intern table.  Under ``REJECT`` every
        conflict is detected before anything is modified, so a failed merge
        leaves this registry untouched.  Entities are copied in, so ``other``
        is never aliased by this registry.
        """
        self._check_tables(other)
        if policy == MergePolicy.REJECT:
            self._check_conflicts(other)
        ext = merge_ext(self.ext, other.ext, self.name)

        self.imports = self.imports | other.imports
        _merge_into(self.metadata, other.metadata, policy)
        for name in ENTITY_CATEGORIES:
            _merge_into(self.category(name), other.category(name), policy)
        self.ext = copy.deepcopy(ext)
        logger.info(
            "Merged registry '%s' into '%s' (%s)", other.name, self.name, policy.value
        )

    def intern_tables(self) -> set[InternTable]:
        return {
            ident.table for name in ENTITY_CATEGORIES for ident in self.category(name)
        }

    def _check_tables(self, other: Registry) -> None:
        tables = self.intern_tables() | other.intern_tables()
        if len(tables) > 1:
            raise InvalidIdentifierError(
                f"Cannot merge registry '{other.name}' into '{self.name}': "
                f"their identifiers come from {len(tables)} different intern tables"
            )

    def _check_conflicts(self, other: Registry) -> None:
        for key, value in other.metadata.items():
            if key in self.metadata and self.metadata[key] != value:
                raise RegistryMergeConflict("metadata", key)
        for name in ENTITY_CATEGORIES:
            mine = self.category(name)
            for ident, entity in other.category(name).items():
                if ident in mine and mine[ident] != entity:
                    raise RegistryMergeConflict(
                        name, str(ident), "entities differ between registries"
                    )

    # ── sanitize ─────────────────────────────────────────────────

    def sanitize(self) -> None:
        """Raise if a pointer parameter's nullability disagrees with its optionality."""
        for command in self.commands.values():
            command.sanitize()
        for typedef in self.function_typedefs.values():
            typedef.sanitize()

    def sanitize_fix(self) -> None:
        for command in self.commands.values():
            command.sanitize_fix()
        for typedef in self.function_typedefs.values():
            typedef.sanitize_fix()


def _merge_into(mine: dict, theirs: dict, policy: MergePolicy) -> None:
    for key, value in theirs.items():
        if key in mine and policy == MergePolicy.FIRST_WINS:
            continue
        mine[key] = value.model_copy(deep=True) if isinstance(value, BaseModel) else value


def merge_ext(mine: Any, theirs: Any, registry_name: str = "") -> Any:
    """Combine two ``ext`` payloads: null yields, lists concatenate, objects merge."""
    if mine is None:
        return theirs
    if theirs is None:
        return mine
    if isinstance(mine, list) and isinstance(theirs, list):
        return mine + theirs
    if isinstance(mine, dict) and isinstance(theirs, dict):
        return {**mine, **theirs}
    raise RegistryMergeConflict(
        "ext",
        registry_name,
        f"cannot merge {type(mine).__name__} with {type(theirs).__name__}",
    )


def registry_json_schema() -> dict[str, Any]:
    return Registry.model_json_schema(by_alias=True)
