"""Registry base model and free-form entity metadata."""

from __future__ import annotations

from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class RegistryModel(BaseModel):
    """Base for every registry node: camelCase keys on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class NoneMetadata(RegistryModel):
    kind: Literal["None"] = "None"


class StringMetadata(RegistryModel):
    kind: Literal["String"] = "String"
    value: str


class KeyValuesMetadata(RegistryModel):
    kind: Literal["KeyValues"] = "KeyValues"
    kvs: dict[str, Metadata] = {}


Metadata = Annotated[
    Union[NoneMetadata, StringMetadata, KeyValuesMetadata],
    Field(discriminator="kind"),
]

KeyValuesMetadata.model_rebuild()
