"""Target platform qualifier attached to registry entities.

A platform is four specifiers plus an optional custom tag, written as
``arch-endian-os-libc-[custom]``, e.g. ``amd64-little-linux-glibc-[]``.
Each specifier is either an exact value, ``other_<field>`` or ``any_<field>``.
"""

from __future__ import annotations

from enum import Enum

from pydantic import ConfigDict

from .. import constants
from ..errors import RegistryFormatError
from .metadata import RegistryModel


class Arch(str, Enum):
    I386 = "i386"
    AMD64 = "amd64"
    AARCH64 = "aarch64"
    RISCV64 = "riscv64"


class Endian(str, Enum):
    LITTLE = "little"
    BIG = "big"


class OS(str, Enum):
    WINDOWS = "windows"
    LINUX = "linux"
    MACOS = "macos"
    FREEBSD = "freebsd"


class LibC(str, Enum):
    MSFT = "msft"
    MUSL = "musl"
    GLIBC = "glibc"


class SpecifierState(str, Enum):
    EXACT = "Exact"
    OTHER = "Other"
    ANY = "Any"


def any_of(field: str) -> str:
    return f"{constants.ANY_SPECIFIER}_{field}"


def other_of(field: str) -> str:
    return f"{constants.OTHER_SPECIFIER}_{field}"


class PlatformSpecifier(RegistryModel):
    """One platform axis. Exact values outside the known enums are custom."""

    model_config = ConfigDict(frozen=True)

    state: SpecifierState = SpecifierState.ANY
    value: str | None = None

    @classmethod
    def exact(cls, value: str) -> PlatformSpecifier:
        return cls(state=SpecifierState.EXACT, value=str(getattr(value, "value", value)))

    @classmethod
    def other(cls) -> PlatformSpecifier:
        return cls(state=SpecifierState.OTHER)

    @classmethod
    def any(cls) -> PlatformSpecifier:
        return cls(state=SpecifierState.ANY)

    @classmethod
    def parse(cls, text: str, field: str) -> PlatformSpecifier:
        if text == other_of(field):
            return cls.other()
        if text == any_of(field):
            return cls.any()
        if not text:
            raise RegistryFormatError(f"Empty {field} specifier in platform string")
        return cls.exact(text)

    def render(self, field: str) -> str:
        if self.state == SpecifierState.EXACT:
            return self.value or ""
        if self.state == SpecifierState.OTHER:
            return other_of(field)
        return any_of(field)

    def is_known(self, known: type[Enum]) -> bool:
        """True for an exact value that names one of ``known``'s members."""
        return self.state == SpecifierState.EXACT and self.value in {
            member.value for member in known
        }


class Platform(RegistryModel):
    model_config = ConfigDict(frozen=True)

    arch: PlatformSpecifier = PlatformSpecifier()
    endian: Endian | None = None
    os: PlatformSpecifier = PlatformSpecifier()
    libc: PlatformSpecifier = PlatformSpecifier()
    custom: PlatformSpecifier = PlatformSpecifier()

    @classmethod
    def parse(cls, text: str) -> Platform:
        parts = text.split(constants.PLATFORM_SEPARATOR, constants.PLATFORM_MAX_PARTS - 1)
        if len(parts) < constants.PLATFORM_MIN_PARTS:
            raise RegistryFormatError(
                f"Platform string '{text}' must have at least "
                f"{constants.PLATFORM_MIN_PARTS} parts"
            )
        endian_text = parts[1]
        if endian_text == any_of(constants.ENDIAN_FIELD):
            endian = None
        else:
            try:
                endian = Endian(endian_text)
            except ValueError as exc:
                raise RegistryFormatError(
                    f"Unknown endianness '{endian_text}' in platform string '{text}'"
                ) from exc
        custom = PlatformSpecifier.any()
        if len(parts) > constants.PLATFORM_MIN_PARTS:
            tag = parts[4]
            if tag.startswith("[") and tag.endswith("]"):
                tag = tag[1:-1]
            if tag:
                custom = PlatformSpecifier.exact(tag)
        return cls(
            arch=PlatformSpecifier.parse(parts[0], constants.ARCH_FIELD),
            endian=endian,
            os=PlatformSpecifier.parse(parts[2], constants.OS_FIELD),
            libc=PlatformSpecifier.parse(parts[3], constants.LIBC_FIELD),
            custom=custom,
        )

    def __str__(self) -> str:
        endian = (
            self.endian.value
            if self.endian is not None
            else any_of(constants.ENDIAN_FIELD)
        )
        custom = self.custom.value if self.custom.state == SpecifierState.EXACT else ""
        return constants.PLATFORM_SEPARATOR.join(
            [
                self.arch.render(constants.ARCH_FIELD),
                endian,
                self.os.render(constants.OS_FIELD),
                self.libc.render(constants.LIBC_FIELD),
                constants.PLATFORM_CUSTOM_TEMPLATE.format(value=custom),
            ]
        )
