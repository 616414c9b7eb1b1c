from .entity import (  # noqa: F401
    Bitflag,
    Bitmask,
    Bitwidth,
    Command,
    Constant,
    Entity,
    Enumeration,
    EnumVariant,
    FunctionTypedef,
    Import,
    Member,
    OpaqueHandleTypedef,
    OpaqueTypedef,
    Param,
    Structure,
    Typedef,
)
from .metadata import (  # noqa: F401
    KeyValuesMetadata,
    Metadata,
    NoneMetadata,
    RegistryModel,
    StringMetadata,
)
from .platform import Arch, Endian, LibC, OS, Platform, PlatformSpecifier  # noqa: F401
from .registry import (  # noqa: F401
    ENTITY_CATEGORIES,
    MergePolicy,
    Registry,
    merge_ext,
    registry_json_schema,
)
from .types import ArrayType, IdentifierType, PointerType, Type, named  # noqa: F401
