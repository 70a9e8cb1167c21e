"""Information about a contract's Wasm code: hash, language, compiler and bytes."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Optional, Union

import semver

from contractkit.byte_str import (
    CODE_HASH_LENGTH,
    deserialize_from_byte_str,
    deserialize_from_byte_str_array,
    serialize_as_byte_str,
)

VersionLike = Union[str, semver.Version]


def _as_version(version: VersionLike) -> semver.Version:
    if isinstance(version, semver.Version):
        return version
    return semver.Version.parse(str(version))


@dataclass(frozen=True)
class CodeHash:
    """The 32-byte hash of a contract's Wasm code."""

    value: bytes

    def __post_init__(self) -> None:
        raw = bytes(self.value)
        if len(raw) != CODE_HASH_LENGTH:
            raise ValueError(
                f"code hash must be exactly {CODE_HASH_LENGTH} bytes, got {len(raw)}"
            )
        object.__setattr__(self, "value", raw)

    def __str__(self) -> str:
        # Each byte is written in hex without zero padding.
        return "0x" + "".join(format(byte, "x") for byte in self.value)

    def to_json(self) -> str:
        """Encode as a ``0x``-prefixed hex string."""
        return serialize_as_byte_str(self.value)

    @classmethod
    def from_json(cls, value: str) -> "CodeHash":
        """Decode from a hex string with an optional ``0x`` prefix."""
        return cls(deserialize_from_byte_str_array(value))


@dataclass(frozen=True)
class SourceWasm:
    """The bytes of a compiled Wasm contract."""

    code: bytes

    def __post_init__(self) -> None:
        object.__setattr__(self, "code", bytes(self.code))

    def __str__(self) -> str:
        return "0x" + self.code.hex()

    def to_json(self) -> str:
        """Encode as hex; empty code becomes an empty string."""
        return serialize_as_byte_str(self.code)

    @classmethod
    def from_json(cls, value: str) -> "SourceWasm":
        """Decode from a hex string with an optional ``0x`` prefix."""
        return cls(deserialize_from_byte_str(value))


class Language(Enum):
    """The language a contract is written in."""

    INK = "ink!"
    SOLIDITY = "Solidity"
    ASSEMBLY_SCRIPT = "AssemblyScript"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def parse(cls, text: str) -> "Language":
        for member in cls:
            if member.value == text:
                return member
        raise ValueError(f"Invalid language '{text}'")


class Compiler(Enum):
    """The compiler a contract was built with."""

    RUSTC = "rustc"
    SOLANG = "solang"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def parse(cls, text: str) -> "Compiler":
        for member in cls:
            if member.value == text:
                return member
        raise ValueError(f"Invalid compiler '{text}'")


def _split_pair(text: str, kind: str, what: str) -> tuple[str, semver.Version]:
    if not isinstance(text, str):
        raise TypeError(f"{kind}: expected a string, got {type(text).__name__}")
    parts = text.split()
    message = f"{kind}: Expected format '<{what}> <version>', got '{text}'"
    if not parts:
        raise ValueError(message)
    name = parts[0]
    if len(parts) < 2:
        return name, None  # type: ignore[return-value]
    try:
        version = semver.Version.parse(parts[1])
    except ValueError as exc:
        raise ValueError(f"Error parsing version {exc}") from exc
    return name, version


@dataclass(frozen=True)
class SourceLanguage:
    """A language together with its version, written as ``<language> <version>``."""

    language: Language
    version: semver.Version

    def __post_init__(self) -> None:
        object.__setattr__(self, "version", _as_version(self.version))

    def __str__(self) -> str:
        return f"{self.language} {self.version}"

    @classmethod
    def parse(cls, text: str) -> "SourceLanguage":
        kind = "SourceLanguage"
        parts = text.split() if isinstance(text, str) else None
        if parts is None:
            raise TypeError(f"{kind}: expected a string, got {type(text).__name__}")
        if not parts:
            raise ValueError(
                f"{kind}: Expected format '<language> <version>', got '{text}'"
            )
        language = Language.parse(parts[0])
        if len(parts) < 2:
            raise ValueError(
                f"{kind}: Expected format '<language> <version>', got '{text}'"
            )
        try:
            version = semver.Version.parse(parts[1])
        except ValueError as exc:
            raise ValueError(f"Error parsing version {exc}") from exc
        return cls(language, version)


@dataclass(frozen=True)
class SourceCompiler:
    """A compiler together with its version, written as ``<compiler> <version>``."""

    compiler: Compiler
    version: semver.Version

    def __post_init__(self) -> None:
        object.__setattr__(self, "version", _as_version(self.version))

    def __str__(self) -> str:
        return f"{self.compiler} {self.version}"

    @classmethod
    def parse(cls, text: str) -> "SourceCompiler":
        kind = "SourceCompiler"
        parts = text.split() if isinstance(text, str) else None
        if parts is None:
            raise TypeError(f"{kind}: expected a string, got {type(text).__name__}")
        if not parts:
            raise ValueError(
                f"{kind}: Expected format '<compiler> <version>', got '{text}'"
            )
        compiler = Compiler.parse(parts[0])
        if len(parts) < 2:
            raise ValueError(
                f"{kind}: Expected format '<compiler> <version>', got '{text}'"
            )
        try:
            version = semver.Version.parse(parts[1])
        except ValueError as exc:
            raise ValueError(f"Error parsing version {exc}") from exc
        return cls(compiler, version)


def _required(data: Mapping[str, Any], key: str) -> Any:
    if key not in data:
        raise ValueError(f"missing field `{key}`")
    return data[key]


@dataclass
class Source:
    """Information about a contract's Wasm code."""

    hash: CodeHash
    language: SourceLanguage
    compiler: SourceCompiler
    wasm: Optional[SourceWasm] = None
    build_info: Optional[dict[str, Any]] = field(default=None)

    def to_dict(self) -> dict[str, Any]:
        """JSON-ready mapping; absent optional fields are left out."""
        result: dict[str, Any] = {
            "hash": self.hash.to_json(),
            "language": str(self.language),
            "compiler": str(self.compiler),
        }
        if self.wasm is not None:
            result["wasm"] = self.wasm.to_json()
        if self.build_info is not None:
            result["build_info"] = dict(self.build_info)
        return result

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Source":
        """Build from a parsed JSON mapping; unknown keys are ignored."""
        if not isinstance(data, Mapping):
            raise TypeError(f"expected a mapping, got {type(data).__name__}")
        wasm = data.get("wasm")
        build_info = data.get("build_info")
        if build_info is not None and not isinstance(build_info, Mapping):
            raise ValueError("field `build_info` must be an object")
        return cls(
            hash=CodeHash.from_json(_required(data, "hash")),
            language=SourceLanguage.parse(_required(data, "language")),
            compiler=SourceCompiler.parse(_required(data, "compiler")),
            wasm=None if wasm is None else SourceWasm.from_json(wasm),
            build_info=None if build_info is None else dict(build_info),
        )