"""Exception hierarchy for the header-to-registry pipeline."""

from __future__ import annotations

from typing import Any


class CRegistryError(Exception):
    """Root of every error raised by cregistry."""


# ── identifiers ──────────────────────────────────────────────────


class IdentifierError(CRegistryError):
    pass


class InvalidIdentifierError(IdentifierError):
    """Text contains the reserved rename separator, or a handle is foreign."""


class StaleIdentifierError(IdentifierError):
    """A handle outlived a reset of its intern table."""


class RenameConflictError(IdentifierError):
    """An identifier already carries a different rename."""

    def __init__(self, original: str, current: str, requested: str):
        self.original = original
        self.current = current
        self.requested = requested
        super().__init__(
            f"Identifier '{original}' is already renamed to '{current}', "
            f"cannot rename it to '{requested}'"
        )


# ── mapping (front end -> IR) ────────────────────────────────────


class MappingError(CRegistryError):
    """Failure while mapping one cursor; carries the cursor kind and extent."""

    def __init__(self, message: str, kind: Any = None, extent: Any = None):
        self.message = message
        self.kind = kind
        self.extent = extent
        super().__init__(message)

    def attach(self, kind: Any, extent: Any) -> MappingError:
        """Fill in the cursor context if the raiser did not know it."""
        if self.kind is None:
            self.kind = kind
        if self.extent is None:
            self.extent = extent
        return self

    def __str__(self) -> str:
        if self.kind is None and self.extent is None:
            return self.message
        kind = getattr(self.kind, "value", self.kind)
        return f"{self.message} (cursor {kind} at {self.extent})"


class UnexpectedCursorKind(MappingError):
    def __init__(self, expected: str, actual: Any, extent: Any = None):
        self.expected = expected
        actual_name = getattr(actual, "value", actual)
        super().__init__(
            f"Expected {expected}, got {actual_name}", kind=actual, extent=extent
        )


class UnsupportedConstruct(MappingError):
    pass


class TextDecodeError(MappingError):
    pass


class LiteralEvaluationError(MappingError):
    pass


# ── internal consistency ─────────────────────────────────────────


class ConsistencyError(CRegistryError):
    """An invariant between pipeline stages does not hold."""


class UnresolvedRecordError(ConsistencyError):
    def __init__(self, name: str, reason: str = "no declaration found"):
        self.name = name
        super().__init__(f"Cannot resolve record '{name}': {reason}")


class MissingUsageError(ConsistencyError):
    def __init__(self, usr: str):
        self.usr = usr
        super().__init__(
            f"No usage recorded for anonymous record '{usr}'; "
            "it cannot be given a name"
        )


class CyclicAnonymousRecordError(ConsistencyError):
    def __init__(self, chain: list[str]):
        self.chain = list(chain)
        super().__init__(
            "Anonymous records reference each other: " + " -> ".join(self.chain)
        )


class UnconvertibleTypeError(ConsistencyError):
    pass


class ContractViolationError(ConsistencyError):
    """A declaration reached a stage that cannot accept it."""


class AnonymousRecordError(ContractViolationError):
    """An anonymous record survived past naming."""


# ── registry ─────────────────────────────────────────────────────


class RegistryMergeConflict(CRegistryError):
    def __init__(self, category: str, name: str, detail: str = ""):
        self.category = category
        self.name = name
        message = f"Conflicting {category} entry '{name}' while merging registries"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class RegistryFormatError(CRegistryError):
    """A registry value (platform string, serialized document) is malformed."""


class NullabilityMismatchError(ConsistencyError):
    def __init__(self, owner: str, param: str, nullable: bool, optional: bool):
        self.owner = owner
        self.param = param
        super().__init__(
            f"Parameter '{param}' of '{owner}': pointer nullability ({nullable}) "
            f"does not match parameter optionality ({optional})"
        )
