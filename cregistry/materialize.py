"""Registry materialization — named IR declarations -> registry entities.

Runs after anonymous records have been named.  Typedefs are classified with
the help of a :class:`DeclResolver` over the whole declaration sequence: a
typedef of (a pointer to) a record that is never defined becomes an opaque
(handle) typedef, a typedef of a function type becomes a function typedef, and
everything else is a plain alias.
"""

from __future__ import annotations

import logging
from typing import Callable

from .errors import (
    AnonymousRecordError,
    ContractViolationError,
    UnconvertibleTypeError,
    UnresolvedRecordError,
)
from .expr import int_literal
from .ident import Identifier, InternTable, default_table
from .ir import (
    AnonymousRecord,
    CArrayType,
    CDecl,
    CEnumDecl,
    CEnumType,
    CFunctionDecl,
    CFunctionPrototype,
    CParam,
    CPointerType,
    CPrimitiveKind,
    CPrimitiveType,
    CRecordDecl,
    CRecordType,
    CType,
    CTypedefDecl,
    CTypedefType,
    CVarDecl,
    NamedRecord,
    describe_decl,
)
from .namer import unnamed_param
from .registry import (
    ArrayType,
    Command,
    Constant,
    Enumeration,
    EnumVariant,
    FunctionTypedef,
    IdentifierType,
    Member,
    OpaqueHandleTypedef,
    OpaqueTypedef,
    Param,
    PointerType,
    Registry,
    Structure,
    Type,
    Typedef,
)

logger = logging.getLogger(__name__)

ANONYMOUS_ENUM_CONSTANT_TYPE = CPrimitiveKind.INT


class DeclResolver:
    """Record lookup by name; a definition always shadows a bare declaration."""

    def __init__(self, decls: list[CDecl] | None = None):
        self._records: dict[Identifier, CRecordDecl] = {}
        for decl in decls or []:
            self.add(decl)

    def add(self, decl: CDecl) -> None:
        if not isinstance(decl, CRecordDecl) or not isinstance(decl.name, NamedRecord):
            return
        existing = self._records.get(decl.name.name)
        if existing is not None and existing.is_definition:
            return
        self._records[decl.name.name] = decl

    def resolve(self, name: Identifier) -> CRecordDecl | None:
        return self._records.get(name)

    def __call__(self, name: Identifier) -> CRecordDecl | None:
        return self.resolve(name)


def convert_type(ty: CType, table: InternTable | None = None) -> Type:
    """Structural ``CType`` -> registry ``Type``.

    Function types and anonymous records have no registry form; reaching one
    here means a declaration skipped naming or needs a typedef.
    """
    table = table or default_table()
    base = ty.base
    if isinstance(base, CPrimitiveType):
        return IdentifierType(ident=table.intern(base.primitive.value))
    if isinstance(base, CArrayType):
        length = None if base.length is None else int_literal(base.length)
        return ArrayType(
            element=convert_type(base.element, table),
            length=length,
            is_const=ty.is_const,
        )
    if isinstance(base, CPointerType):
        return PointerType(
            pointee=convert_type(base.pointee, table),
            is_const=base.pointee.is_const,
        )
    if isinstance(base, CFunctionPrototype):
        raise UnconvertibleTypeError(
            f"Function type '{ty}' cannot be used directly, wrap it in a typedef"
        )
    if isinstance(base, CRecordType):
        if isinstance(base.name, AnonymousRecord):
            raise UnconvertibleTypeError(
                f"Anonymous record {base.name.usr} reached type conversion; "
                "records must be named first"
            )
        return IdentifierType(ident=base.name.name)
    if isinstance(base, (CEnumType, CTypedefType)):
        return IdentifierType(ident=base.name)
    raise UnconvertibleTypeError(f"Unknown type '{ty}'")


def convert_param(param: CParam, index: int, table: InternTable | None = None) -> Param:
    table = table or default_table()
    name = param.name if param.name is not None else table.intern(unnamed_param(index))
    return Param(name=name, ty=convert_type(param.ty, table))


class RegistryMaterializer:
    """Classifies one declaration at a time into ``registry``."""

    def __init__(
        self,
        registry: Registry,
        resolver: Callable[[Identifier], CRecordDecl | None],
        table: InternTable | None = None,
    ):
        self._registry = registry
        self._resolver = resolver
        self._table = table or default_table()
        self._DECL_DISPATCH: dict[str, Callable[[CDecl], None]] = {
            "Typedef": self._materialize_typedef,
            "Function": self._materialize_function,
            "Record": self._materialize_record,
            "Enum": self._materialize_enum,
            "Var": self._materialize_var,
        }

    @property
    def registry(self) -> Registry:
        return self._registry

    def materialize(self, decl: CDecl) -> None:
        self._DECL_DISPATCH[decl.kind](decl)

    def _convert(self, ty: CType) -> Type:
        return convert_type(ty, self._table)

    def _params(self, params: list[CParam]) -> list[Param]:
        return [convert_param(p, i, self._table) for i, p in enumerate(params)]

    # ── typedefs ─────────────────────────────────────────────────

    def _materialize_typedef(self, decl: CTypedefDecl) -> None:
        underlying = decl.underlying.base
        if isinstance(underlying, CPointerType):
            pointee = underlying.pointee.base
            if isinstance(pointee, CFunctionPrototype):
                self._add_function_typedef(decl.name, pointee, is_pointer=True)
                return
            if isinstance(pointee, CRecordType) and not self._is_defined(pointee):
                logger.debug("%s is an opaque handle", decl.name)
                handle = OpaqueHandleTypedef(name=decl.name)
                self._registry.opaque_handle_typedefs[decl.name] = handle
                return
        elif isinstance(underlying, CFunctionPrototype):
            self._add_function_typedef(decl.name, underlying, is_pointer=False)
            return
        elif isinstance(underlying, CRecordType) and not self._is_defined(underlying):
            logger.debug("%s is an opaque typedef", decl.name)
            self._registry.opaque_typedefs[decl.name] = OpaqueTypedef(name=decl.name)
            return

        target = self._convert(decl.underlying)
        logger.debug("%s aliases %s", decl.name, target)
        self._registry.aliases[decl.name] = Typedef(name=decl.name, target=target)

    def _is_defined(self, record: CRecordType) -> bool:
        if isinstance(record.name, AnonymousRecord):
            raise AnonymousRecordError(
                f"Typedef refers to anonymous record {record.name.usr}; "
                "records must be named first"
            )
        resolved = self._resolver(record.name.name)
        if resolved is None:
            raise UnresolvedRecordError(str(record.name.name))
        return resolved.is_definition

    def _add_function_typedef(
        self, name: Identifier, prototype: CFunctionPrototype, is_pointer: bool
    ) -> None:
        typedef = FunctionTypedef(
            name=name,
            params=self._params(prototype.params),
            result=self._convert(prototype.result),
            is_pointer=is_pointer,
        )
        logger.debug("%s is a function typedef (pointer=%s)", name, is_pointer)
        self._registry.function_typedefs[name] = typedef

    # ── other declarations ───────────────────────────────────────

    def _materialize_function(self, decl: CFunctionDecl) -> None:
        command = Command(
            name=decl.name,
            params=self._params(decl.params),
            result=self._convert(decl.ret),
        )
        self._registry.commands[decl.name] = command

    def _materialize_record(self, decl: CRecordDecl) -> None:
        if isinstance(decl.name, AnonymousRecord):
            raise AnonymousRecordError(
                f"Cannot materialize anonymous record {decl.name.usr}"
            )
        if not decl.is_definition:
            raise ContractViolationError(
                f"Cannot materialize {describe_decl(decl)}: it is only declared, "
                "an opaque record must be referenced through a typedef"
            )
        members = [
            Member(name=field.name, ty=self._convert(field.ty)) for field in decl.fields
        ]
        structure = Structure(name=decl.name.name, members=members)
        target = self._registry.structs if decl.is_struct else self._registry.unions
        target[decl.name.name] = structure

    def _materialize_enum(self, decl: CEnumDecl) -> None:
        if decl.name is None:
            self._materialize_anonymous_enum(decl)
            return
        variants = [
            EnumVariant(
                name=member.name,
                value=int_literal(member.value),
                explicit=member.explicit,
            )
            for member in decl.members
        ]
        self._registry.enumerations[decl.name] = Enumeration(
            name=decl.name, variants=variants
        )

    def _materialize_anonymous_enum(self, decl: CEnumDecl) -> None:
        ty = IdentifierType(ident=self._table.intern(ANONYMOUS_ENUM_CONSTANT_TYPE.value))
        for member in decl.members:
            self._registry.constants[member.name] = Constant(
                name=member.name, ty=ty, expr=int_literal(member.value)
            )
        logger.debug("Anonymous enum contributed %d constants", len(decl.members))

    def _materialize_var(self, decl: CVarDecl) -> None:
        logger.debug("Skipping variable %s", decl.name)


def build_registry(
    name: str, decls: list[CDecl], table: InternTable | None = None
) -> Registry:
    """Materialize a named declaration sequence into a fresh registry."""
    registry = Registry(name=name)
    materializer = RegistryMaterializer(registry, DeclResolver(decls), table)
    for decl in decls:
        if isinstance(decl, CRecordDecl) and not decl.is_definition:
            logger.debug("Skipping forward declaration %s", describe_decl(decl))
            continue
        materializer.materialize(decl)
    logger.info(
        "Built registry '%s' with %d entities", name, registry.entity_count()
    )
    return registry
