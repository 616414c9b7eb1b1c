"""IR Design — typed C declarations, types and record names."""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from .expr import CExpr
from .ident import Identifier


class CPrimitiveKind(str, Enum):
    VOID = "void"
    BOOL = "_Bool"
    CHAR = "char"
    SCHAR = "signed char"
    UCHAR = "unsigned char"
    SHORT = "short"
    USHORT = "unsigned short"
    INT = "int"
    UINT = "unsigned int"
    LONG = "long"
    ULONG = "unsigned long"
    LONG_LONG = "long long"
    ULONG_LONG = "unsigned long long"
    FLOAT = "float"
    DOUBLE = "double"
    LONG_DOUBLE = "long double"


# ── record names ─────────────────────────────────────────────────


class NamedRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["Named"] = "Named"
    name: Identifier

    def __str__(self) -> str:
        return str(self.name)


class AnonymousRecord(BaseModel):
    """A record known only by its USR until the namer gives it a name."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["Anonymous"] = "Anonymous"
    usr: str

    def __str__(self) -> str:
        return f"<anonymous {self.usr}>"


RecordName = Annotated[Union[NamedRecord, AnonymousRecord], Field(discriminator="kind")]


# ── types ────────────────────────────────────────────────────────


class CPrimitiveType(BaseModel):
    kind: Literal["Primitive"] = "Primitive"
    primitive: CPrimitiveKind


class CArrayType(BaseModel):
    kind: Literal["Array"] = "Array"
    element: CType
    length: int | None = None


class CPointerType(BaseModel):
    kind: Literal["Pointer"] = "Pointer"
    pointee: CType


class CFunctionPrototype(BaseModel):
    kind: Literal["FunctionPrototype"] = "FunctionPrototype"
    result: CType
    params: list[CParam] = []


class CRecordType(BaseModel):
    kind: Literal["Record"] = "Record"
    is_struct: bool
    name: RecordName


class CEnumType(BaseModel):
    kind: Literal["Enum"] = "Enum"
    name: Identifier


class CTypedefType(BaseModel):
    kind: Literal["Typedef"] = "Typedef"
    name: Identifier


CBaseType = Annotated[
    Union[
        CPrimitiveType,
        CArrayType,
        CPointerType,
        CFunctionPrototype,
        CRecordType,
        CEnumType,
        CTypedefType,
    ],
    Field(discriminator="kind"),
]


class CType(BaseModel):
    is_const: bool = False
    base: CBaseType

    @classmethod
    def primitive(cls, kind: CPrimitiveKind, is_const: bool = False) -> CType:
        return cls(is_const=is_const, base=CPrimitiveType(primitive=kind))

    @classmethod
    def pointer(cls, pointee: CType, is_const: bool = False) -> CType:
        return cls(is_const=is_const, base=CPointerType(pointee=pointee))

    @classmethod
    def array(cls, element: CType, length: int | None = None) -> CType:
        return cls(base=CArrayType(element=element, length=length))

    @classmethod
    def function(cls, result: CType, params: list[CParam] | None = None) -> CType:
        return cls(base=CFunctionPrototype(result=result, params=params or []))

    @classmethod
    def record(cls, is_struct: bool, name: NamedRecord | AnonymousRecord) -> CType:
        return cls(base=CRecordType(is_struct=is_struct, name=name))

    @classmethod
    def typedef(cls, name: Identifier, is_const: bool = False) -> CType:
        return cls(is_const=is_const, base=CTypedefType(name=name))

    @classmethod
    def enum(cls, name: Identifier) -> CType:
        return cls(base=CEnumType(name=name))

    def __str__(self) -> str:
        return format_type(self)


class CParam(BaseModel):
    name: Identifier | None = None
    ty: CType


def format_type(ty: CType) -> str:
    """Compact, C-like rendering used in log and error messages."""
    const = "const " if ty.is_const else ""
    base = ty.base
    if isinstance(base, CPrimitiveType):
        return f"{const}{base.primitive.value}"
    if isinstance(base, CPointerType):
        return f"{format_type(base.pointee)} *{' const' if ty.is_const else ''}"
    if isinstance(base, CArrayType):
        length = "" if base.length is None else str(base.length)
        return f"{format_type(base.element)}[{length}]"
    if isinstance(base, CFunctionPrototype):
        params = ", ".join(
            format_type(p.ty) + (f" {p.name}" if p.name is not None else "")
            for p in base.params
        )
        return f"{format_type(base.result)}({params})"
    if isinstance(base, CRecordType):
        tag = "struct" if base.is_struct else "union"
        return f"{const}{tag} {base.name}"
    if isinstance(base, CEnumType):
        return f"{const}enum {base.name}"
    return f"{const}{base.name}"


# ── declarations ─────────────────────────────────────────────────


class CFieldDecl(BaseModel):
    name: Identifier
    ty: CType


class CEnumConstant(BaseModel):
    name: Identifier
    explicit: bool = False
    value: int = 0
    init: CExpr | None = None


class CTypedefDecl(BaseModel):
    kind: Literal["Typedef"] = "Typedef"
    name: Identifier
    underlying: CType


class CFunctionDecl(BaseModel):
    kind: Literal["Function"] = "Function"
    name: Identifier
    ret: CType
    params: list[CParam] = []


class CRecordDecl(BaseModel):
    kind: Literal["Record"] = "Record"
    is_struct: bool
    name: RecordName
    fields: list[CFieldDecl] = []
    is_definition: bool = False
    subrecords: list[RecordName] = []


class CEnumDecl(BaseModel):
    kind: Literal["Enum"] = "Enum"
    name: Identifier | None = None
    ty: CType
    members: list[CEnumConstant] = []


class CVarDecl(BaseModel):
    kind: Literal["Var"] = "Var"
    name: Identifier
    ty: CType


CDecl = Annotated[
    Union[CTypedefDecl, CFunctionDecl, CRecordDecl, CEnumDecl, CVarDecl],
    Field(discriminator="kind"),
]


for _model in (CArrayType, CPointerType, CFunctionPrototype, CType, CParam):
    _model.model_rebuild()


def describe_decl(decl: CDecl) -> str:
    if isinstance(decl, CRecordDecl):
        tag = "struct" if decl.is_struct else "union"
        return f"{tag} {decl.name}"
    if isinstance(decl, CEnumDecl):
        return f"enum {decl.name if decl.name is not None else '<anonymous>'}"
    return f"{decl.kind.lower()} {decl.name}"


def format_decl(decl: CDecl) -> str:
    """One-line C-like rendering of a declaration, used by the IR dump."""
    if isinstance(decl, CTypedefDecl):
        return f"typedef {decl.underlying} {decl.name};"
    if isinstance(decl, CFunctionDecl):
        params = ", ".join(
            format_type(p.ty) + (f" {p.name}" if p.name is not None else "")
            for p in decl.params
        )
        return f"{decl.ret} {decl.name}({params});"
    if isinstance(decl, CVarDecl):
        return f"{decl.ty} {decl.name};"
    if isinstance(decl, CEnumDecl):
        members = ", ".join(
            f"{m.name} = {m.value}" if m.explicit else str(m.name) for m in decl.members
        )
        return f"{describe_decl(decl)} : {decl.ty} {{ {members} }};"
    if not decl.is_definition:
        return f"{describe_decl(decl)};"
    fields = " ".join(f"{f.ty} {f.name};" for f in decl.fields)
    nested = "".join(f" /* nested {sub} */" for sub in decl.subrecords)
    return f"{describe_decl(decl)} {{ {fields}{nested} }};"
