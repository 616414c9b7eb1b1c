"""Anonymous record naming — synthesize names from usage context.

An anonymous struct/union has no name of its own, only a USR.  The namer
records every place such a record is used (the chain of enclosing record,
field, pointer/array/function positions, variable or typedef), renders the
first usage into a name such as ``struct_de_struct_Foo_de_field_bar_p``, and
rewrites the declaration sequence so that no anonymous record name remains.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Union

from . import constants
from .errors import CyclicAnonymousRecordError, MissingUsageError
from .ident import Identifier, InternTable, default_table
from .ir import (
    AnonymousRecord,
    CArrayType,
    CDecl,
    CFunctionDecl,
    CFunctionPrototype,
    CParam,
    CPointerType,
    CRecordDecl,
    CRecordType,
    CType,
    CTypedefDecl,
    CVarDecl,
    NamedRecord,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EnclosingRecord:
    is_struct: bool
    name: NamedRecord | AnonymousRecord


@dataclass(frozen=True)
class FunctionReturn:
    pass


@dataclass(frozen=True)
class PointerTo:
    pass


@dataclass(frozen=True)
class ArrayOf:
    pass


@dataclass(frozen=True)
class FieldName:
    name: str


@dataclass(frozen=True)
class FunctionParam:
    name: str


@dataclass(frozen=True)
class VarName:
    name: str


@dataclass(frozen=True)
class TypedefName:
    name: str


@dataclass(frozen=True)
class NestedIndex:
    index: int


ContextNode = Union[
    EnclosingRecord,
    FunctionReturn,
    PointerTo,
    ArrayOf,
    FieldName,
    FunctionParam,
    VarName,
    TypedefName,
    NestedIndex,
]

Usage = tuple[ContextNode, ...]


def collect_usages(decls: list[CDecl]) -> dict[str, list[Usage]]:
    """Every path through which each anonymous record USR is reached, in discovery order."""
    usages: dict[str, list[Usage]] = {}
    for decl in decls:
        if isinstance(decl, CVarDecl):
            _collect_type(decl.ty, (VarName(str(decl.name)),), usages)
        elif isinstance(decl, CTypedefDecl):
            _collect_type(decl.underlying, (TypedefName(str(decl.name)),), usages)
        elif isinstance(decl, CRecordDecl) and decl.is_definition:
            owner = EnclosingRecord(decl.is_struct, decl.name)
            for field in decl.fields:
                _collect_type(field.ty, (owner, FieldName(str(field.name))), usages)
            for index, subrecord in enumerate(decl.subrecords):
                if isinstance(subrecord, AnonymousRecord):
                    usages.setdefault(subrecord.usr, []).append((owner, NestedIndex(index)))
    return usages


def _collect_type(ty: CType, context: Usage, usages: dict[str, list[Usage]]) -> None:
    base = ty.base
    if isinstance(base, CArrayType):
        _collect_type(base.element, context + (ArrayOf(),), usages)
    elif isinstance(base, CPointerType):
        _collect_type(base.pointee, context + (PointerTo(),), usages)
    elif isinstance(base, CFunctionPrototype):
        _collect_type(base.result, context + (FunctionReturn(),), usages)
        for index, param in enumerate(base.params):
            name = str(param.name) if param.name is not None else unnamed_param(index)
            _collect_type(param.ty, context + (FunctionParam(name),), usages)
    elif isinstance(base, CRecordType) and isinstance(base.name, AnonymousRecord):
        usages.setdefault(base.name.usr, []).append(context)


def unnamed_param(index: int) -> str:
    return constants.UNNAMED_PARAM_TEMPLATE.format(index=index)


def _tag(is_struct: bool) -> str:
    return constants.STRUCT_TAG if is_struct else constants.UNION_TAG


class NameSynthesizer:
    """Memoized USR -> name rendering over collected usages."""

    def __init__(
        self,
        usages: dict[str, list[Usage]],
        tags: dict[str, bool],
        table: InternTable | None = None,
    ):
        self._usages = usages
        self._tags = tags
        self._table = table or default_table()
        self._paths: dict[str, str] = {}
        self._in_progress: list[str] = []

    def name_of(self, usr: str, is_struct: bool) -> str:
        """Full synthesized name; the tag comes from the record's own declaration."""
        tag = _tag(self._tags.get(usr, is_struct))
        return constants.ANONYMOUS_NAME_TEMPLATE.format(tag=tag, path=self.path_of(usr))

    def identifier_of(self, usr: str, is_struct: bool) -> Identifier:
        return self._table.intern(self.name_of(usr, is_struct))

    def path_of(self, usr: str) -> str:
        cached = self._paths.get(usr)
        if cached is not None:
            return cached
        if usr in self._in_progress:
            raise CyclicAnonymousRecordError(self._in_progress + [usr])
        usages = self._usages.get(usr)
        if not usages:
            raise MissingUsageError(usr)
        self._in_progress.append(usr)
        try:
            path = constants.PATH_JOINER.join(self._fragment(node) for node in usages[0])
        finally:
            self._in_progress.pop()
        self._paths[usr] = path
        return path

    def _fragment(self, node: ContextNode) -> str:
        if isinstance(node, EnclosingRecord):
            if isinstance(node.name, NamedRecord):
                inner = str(node.name.name)
            else:
                inner = self.path_of(node.name.usr)
            return constants.ENCLOSING_RECORD_TEMPLATE.format(
                tag=_tag(node.is_struct), name=inner
            )
        if isinstance(node, FieldName):
            return constants.FIELD_FRAGMENT_TEMPLATE.format(name=node.name)
        if isinstance(node, FunctionParam):
            return constants.PARAM_FRAGMENT_TEMPLATE.format(name=node.name)
        if isinstance(node, VarName):
            return constants.VAR_FRAGMENT_TEMPLATE.format(name=node.name)
        if isinstance(node, TypedefName):
            return constants.TYPEDEF_FRAGMENT_TEMPLATE.format(name=node.name)
        if isinstance(node, NestedIndex):
            return constants.NEST_FRAGMENT_TEMPLATE.format(index=node.index)
        if isinstance(node, PointerTo):
            return constants.POINTER_FRAGMENT
        if isinstance(node, ArrayOf):
            return constants.ARRAY_FRAGMENT
        return constants.FUNCTION_RETURN_FRAGMENT


class AnonymousRecordNamer:
    """Rewrites a declaration sequence so every anonymous record is named."""

    def __init__(self, table: InternTable | None = None):
        self._table = table or default_table()

    def run(self, decls: list[CDecl]) -> list[CDecl]:
        usages = collect_usages(decls)
        tags = {
            decl.name.usr: decl.is_struct
            for decl in decls
            if isinstance(decl, CRecordDecl) and isinstance(decl.name, AnonymousRecord)
        }
        logger.debug("Collected usages for %d anonymous records", len(usages))
        synthesizer = NameSynthesizer(usages, tags, self._table)
        rewritten = [self._rewrite_decl(decl, synthesizer) for decl in decls]
        logger.info("Named %d anonymous records", len(tags))
        return rewritten

    def _rewrite_decl(self, decl: CDecl, names: NameSynthesizer) -> CDecl:
        if isinstance(decl, CRecordDecl):
            return decl.model_copy(
                update={
                    "name": self._rewrite_name(decl.name, decl.is_struct, names),
                    "fields": [
                        f.model_copy(update={"ty": self._rewrite_type(f.ty, names)})
                        for f in decl.fields
                    ],
                    "subrecords": [
                        self._rewrite_name(sub, decl.is_struct, names)
                        for sub in decl.subrecords
                    ],
                }
            )
        if isinstance(decl, CVarDecl):
            return decl.model_copy(update={"ty": self._rewrite_type(decl.ty, names)})
        if isinstance(decl, CTypedefDecl):
            return decl.model_copy(
                update={"underlying": self._rewrite_type(decl.underlying, names)}
            )
        if isinstance(decl, CFunctionDecl):
            return decl.model_copy(
                update={
                    "ret": self._rewrite_type(decl.ret, names),
                    "params": [self._rewrite_param(p, names) for p in decl.params],
                }
            )
        return decl

    def _rewrite_name(
        self, name: NamedRecord | AnonymousRecord, is_struct: bool, names: NameSynthesizer
    ) -> NamedRecord:
        if isinstance(name, NamedRecord):
            return name
        ident = names.identifier_of(name.usr, is_struct)
        logger.debug("Anonymous record %s is named %s", name.usr, ident)
        return NamedRecord(name=ident)

    def _rewrite_param(self, param: CParam, names: NameSynthesizer) -> CParam:
        return CParam(name=param.name, ty=self._rewrite_type(param.ty, names))

    def _rewrite_type(self, ty: CType, names: NameSynthesizer) -> CType:
        base = ty.base
        if isinstance(base, CRecordType):
            base = CRecordType(
                is_struct=base.is_struct,
                name=self._rewrite_name(base.name, base.is_struct, names),
            )
        elif isinstance(base, CArrayType):
            base = CArrayType(
                element=self._rewrite_type(base.element, names), length=base.length
            )
        elif isinstance(base, CPointerType):
            base = CPointerType(pointee=self._rewrite_type(base.pointee, names))
        elif isinstance(base, CFunctionPrototype):
            base = CFunctionPrototype(
                result=self._rewrite_type(base.result, names),
                params=[self._rewrite_param(p, names) for p in base.params],
            )
        return CType(is_const=ty.is_const, base=base)


def name_anonymous_records(
    decls: list[CDecl], table: InternTable | None = None
) -> list[CDecl]:
    return AnonymousRecordNamer(table).run(decls)
