"""Registry entities — the classified, serializable form of C declarations."""

from __future__ import annotations

from enum import Enum

from pydantic import ConfigDict

from ..errors import NullabilityMismatchError
from ..expr import CExpr
from ..ident import Identifier
from .metadata import Metadata, RegistryModel
from .platform import Platform
from .types import PointerType, Type


class Entity(RegistryModel):
    name: Identifier
    metadata: dict[str, Metadata] = {}
    doc: list[str] = []
    platform: Platform | None = None


class Typedef(Entity):
    """A plain alias: ``typedef target name;``."""

    target: Type


class Bitwidth(str, Enum):
    BIT32 = "Bit32"
    BIT64 = "Bit64"


class Bitflag(Entity):
    value: CExpr


class Bitmask(Entity):
    bitwidth: Bitwidth = Bitwidth.BIT32
    bitflags: list[Bitflag] = []


class Param(Entity):
    ty: Type
    optional: bool = False
    len: CExpr | None = None
    arg_len: CExpr | None = None

    def sanitize(self, owner: str) -> None:
        if isinstance(self.ty, PointerType) and self.ty.nullable != self.optional:
            raise NullabilityMismatchError(
                owner, str(self.name), self.ty.nullable, self.optional
            )

    def sanitize_fix(self) -> None:
        if isinstance(self.ty, PointerType) and self.ty.nullable != self.optional:
            self.ty.nullable = self.optional


class _Callable(Entity):
    params: list[Param] = []
    result: Type

    def sanitize(self) -> None:
        for param in self.params:
            param.sanitize(str(self.name))

    def sanitize_fix(self) -> None:
        for param in self.params:
            param.sanitize_fix()


class Command(_Callable):
    """A function declaration."""

    success_codes: list[CExpr] = []
    error_codes: list[CExpr] = []
    alias_to: Identifier | None = None


class FunctionTypedef(_Callable):
    """``typedef R (*name)(...)`` when ``is_pointer``, else ``typedef R name(...)``."""

    is_pointer: bool = False
    is_native_api: bool = False


class Constant(Entity):
    ty: Type
    expr: CExpr


class EnumVariant(Entity):
    value: CExpr
    explicit: bool = False


class Enumeration(Entity):
    variants: list[EnumVariant] = []


class OpaqueTypedef(Entity):
    """``typedef struct Foo Foo;`` where ``struct Foo`` is never defined."""


class OpaqueHandleTypedef(Entity):
    """``typedef struct Foo *Handle;`` where ``struct Foo`` is never defined."""


class Member(Entity):
    ty: Type
    bits: int | None = None
    init: CExpr | None = None
    optional: bool = False
    len: CExpr | None = None
    alt_len: CExpr | None = None


class Structure(Entity):
    members: list[Member] = []


class Import(RegistryModel):
    model_config = ConfigDict(frozen=True)

    name: str
    version: str | None = None
    depend: bool = False

    def sort_key(self) -> tuple[str, str, bool]:
        return (self.name, self.version or "", self.depend)
