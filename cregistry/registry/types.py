"""Registry type references: named types, arrays and pointers."""

from __future__ import annotations

from typing import Annotated, Literal, Union

from pydantic import Field

from ..expr import CExpr
from ..ident import Identifier
from .metadata import RegistryModel


class IdentifierType(RegistryModel):
    kind: Literal["IdentifierType"] = "IdentifierType"
    ident: Identifier

    def __str__(self) -> str:
        return str(self.ident)


class ArrayType(RegistryModel):
    kind: Literal["ArrayType"] = "ArrayType"
    element: Type
    length: CExpr | None = None
    is_const: bool = False

    def __str__(self) -> str:
        length = "" if self.length is None else str(self.length)
        const = "const " if self.is_const else ""
        return f"{const}{self.element}[{length}]"


class PointerType(RegistryModel):
    kind: Literal["PointerType"] = "PointerType"
    pointee: Type
    is_const: bool = False
    pointer_to_one: bool = False
    nullable: bool = False

    def __str__(self) -> str:
        const = "const " if self.is_const else ""
        return f"{const}{self.pointee}*"


Type = Annotated[
    Union[IdentifierType, ArrayType, PointerType],
    Field(discriminator="kind"),
]

ArrayType.model_rebuild()
PointerType.model_rebuild()


def named(ident: Identifier) -> IdentifierType:
    return IdentifierType(ident=ident)
