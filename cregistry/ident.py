"""Identifier interning — canonical identity plus a set-once rename.

Every name that flows through the pipeline (types, fields, parameters,
functions) is interned into an :class:`InternTable`.  The table hands out
lightweight :class:`Identifier` handles whose equality and hashing are integer
slot comparisons.  Each slot keeps the immutable original text and an optional
rename that can be set exactly once; renaming never changes the lookup key.

The textual form of an identifier is ``original`` or ``original:renamed``.
"""

from __future__ import annotations

import functools
import logging
import threading
from typing import Any

from pydantic import GetCoreSchemaHandler, GetJsonSchemaHandler
from pydantic.json_schema import JsonSchemaValue
from pydantic_core import core_schema

from . import constants
from .errors import InvalidIdentifierError, RenameConflictError, StaleIdentifierError

logger = logging.getLogger(__name__)


class InternTable:
    """Owns the only text -> slot map; safe to share between threads."""

    def __init__(self):
        self._lock = threading.RLock()
        self._epoch = 0
        self._slots: dict[str, int] = {}
        self._originals: list[str] = []
        self._renames: list[str | None] = []

    @property
    def size(self) -> int:
        with self._lock:
            return len(self._originals)

    @property
    def epoch(self) -> int:
        with self._lock:
            return self._epoch

    def intern(self, text: str) -> Identifier:
        _reject_separator(text)
        with self._lock:
            slot = self._slots.get(text)
            if slot is None:
                slot = len(self._originals)
                self._originals.append(text)
                self._renames.append(None)
                self._slots[text] = slot
            return Identifier(self, slot, self._epoch)

    def try_rename(self, ident: Identifier, new_text: str) -> None:
        """Set the rename of ``ident``; re-setting the same value is a no-op."""
        _reject_separator(new_text)
        with self._lock:
            self._check(ident)
            current = self._renames[ident.slot]
            if current is None:
                self._renames[ident.slot] = new_text
                logger.debug("Renamed %s -> %s", self._originals[ident.slot], new_text)
            elif current != new_text:
                raise RenameConflictError(
                    self._originals[ident.slot], current, new_text
                )

    def original(self, ident: Identifier) -> str:
        with self._lock:
            self._check(ident)
            return self._originals[ident.slot]

    def rename_of(self, ident: Identifier) -> str | None:
        with self._lock:
            self._check(ident)
            return self._renames[ident.slot]

    def display(self, ident: Identifier) -> str:
        with self._lock:
            self._check(ident)
            renamed = self._renames[ident.slot]
            return self._originals[ident.slot] if renamed is None else renamed

    def serialize(self, ident: Identifier) -> str:
        with self._lock:
            self._check(ident)
            original = self._originals[ident.slot]
            renamed = self._renames[ident.slot]
        if renamed is None:
            return original
        return f"{original}{constants.IDENT_SEPARATOR}{renamed}"

    def deserialize(self, text: str) -> Identifier:
        """Inverse of :meth:`serialize`: split on the first separator."""
        original, separator, renamed = text.partition(constants.IDENT_SEPARATOR)
        ident = self.intern(original)
        if separator:
            self.try_rename(ident, renamed)
        return ident

    def reset(self) -> None:
        """Drop every slot; handles issued before the reset become stale."""
        with self._lock:
            self._slots.clear()
            self._originals.clear()
            self._renames.clear()
            self._epoch += 1
            logger.debug("Intern table reset (epoch %d)", self._epoch)

    def _check(self, ident: Identifier) -> None:
        if ident.table is not self:
            raise InvalidIdentifierError(
                f"Identifier slot {ident.slot} belongs to a different intern table"
            )
        if ident.epoch != self._epoch:
            raise StaleIdentifierError(
                f"Identifier slot {ident.slot} is from epoch {ident.epoch}, "
                f"table is at epoch {self._epoch}"
            )


def _reject_separator(text: str) -> None:
    if constants.IDENT_SEPARATOR in text:
        raise InvalidIdentifierError(
            f"'{text}' contains the reserved separator '{constants.IDENT_SEPARATOR}'"
        )


@functools.total_ordering
class Identifier:
    """Handle to an interned name. Ordered by original text."""

    __slots__ = ("table", "slot", "epoch")

    def __init__(self, table: InternTable, slot: int, epoch: int):
        self.table = table
        self.slot = slot
        self.epoch = epoch

    @property
    def original(self) -> str:
        return self.table.original(self)

    @property
    def renamed(self) -> str | None:
        return self.table.rename_of(self)

    @property
    def value(self) -> str:
        return self.table.display(self)

    def rename(self, new_text: str) -> None:
        self.table.try_rename(self, new_text)

    def serialized(self) -> str:
        return self.table.serialize(self)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Identifier):
            return NotImplemented
        return (
            self.table is other.table
            and self.slot == other.slot
            and self.epoch == other.epoch
        )

    def __lt__(self, other: Identifier) -> bool:
        if not isinstance(other, Identifier):
            return NotImplemented
        return self.original < other.original

    def __hash__(self) -> int:
        return hash((self.slot, self.epoch))

    def __str__(self) -> str:
        return self.value

    def __repr__(self) -> str:
        return f"Identifier({self.serialized()!r})"

    # Handles are immutable; copying a model must not copy the table.
    def __copy__(self) -> Identifier:
        return self

    def __deepcopy__(self, memo: dict) -> Identifier:
        return self

    # ── pydantic integration ─────────────────────────────────────

    @classmethod
    def __get_pydantic_core_schema__(
        cls, source_type: Any, handler: GetCoreSchemaHandler
    ) -> core_schema.CoreSchema:
        return core_schema.with_info_plain_validator_function(
            cls._validate,
            serialization=core_schema.plain_serializer_function_ser_schema(
                cls._serialize, return_schema=core_schema.str_schema()
            ),
        )

    @classmethod
    def __get_pydantic_json_schema__(
        cls, schema: core_schema.CoreSchema, handler: GetJsonSchemaHandler
    ) -> JsonSchemaValue:
        return {"type": "string"}

    @classmethod
    def _validate(cls, value: Any, info: core_schema.ValidationInfo) -> Identifier:
        if isinstance(value, Identifier):
            return value
        if not isinstance(value, str):
            raise ValueError(f"Identifier must be a string, got {type(value).__name__}")
        table = None
        if isinstance(info.context, dict):
            table = info.context.get(constants.INTERN_TABLE_CONTEXT_KEY)
        return (table or default_table()).deserialize(value)

    @staticmethod
    def _serialize(ident: Identifier) -> str:
        return ident.serialized()


_DEFAULT_TABLE = InternTable()


def default_table() -> InternTable:
    """The process-wide table used when no explicit table is passed."""
    return _DEFAULT_TABLE


def intern(text: str, table: InternTable | None = None) -> Identifier:
    return (table or _DEFAULT_TABLE).intern(text)
