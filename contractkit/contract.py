"""Contract metadata: descriptive fields, user data and the combined document."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable, Mapping, Optional, Union
from urllib.parse import urlsplit, urlunsplit

import semver

from contractkit.compatibility import check_contract_ink_compatibility
from contractkit.source import Language, Source

VersionLike = Union[str, semver.Version]

_SPECIAL_SCHEMES = frozenset({"http", "https", "ws", "wss", "ftp"})
_METADATA_KEYS = frozenset({"source", "contract", "image", "user"})


def _as_version(version: VersionLike) -> semver.Version:
    if isinstance(version, semver.Version):
        return version
    return semver.Version.parse(str(version))


def _as_url(value: str) -> str:
    """Validate an absolute URL and give it a root path where one is implied."""
    if not isinstance(value, str):
        raise TypeError(f"expected a URL string, got {type(value).__name__}")
    parts = urlsplit(value.strip())
    if not parts.scheme:
        raise ValueError(f"invalid URL {value!r}: relative URL without a base")
    scheme = parts.scheme.lower()
    if scheme in _SPECIAL_SCHEMES:
        if not parts.netloc:
            raise ValueError(f"invalid URL {value!r}: empty host")
        path = parts.path or "/"
        return urlunsplit(
            (scheme, parts.netloc.lower(), path, parts.query, parts.fragment)
        )
    return urlunsplit((scheme, parts.netloc, parts.path, parts.query, parts.fragment))


def _required(data: Mapping[str, Any], key: str) -> Any:
    if key not in data:
        raise ValueError(f"missing field `{key}`")
    return data[key]


def _optional_str(data: Mapping[str, Any], key: str) -> Optional[str]:
    value = data.get(key)
    if value is not None and not isinstance(value, str):
        raise ValueError(f"field `{key}` must be a string")
    return value


@dataclass
class Contract:
    """Descriptive metadata about a smart contract."""

    name: str
    version: semver.Version
    authors: list[str]
    description: Optional[str] = None
    documentation: Optional[str] = None
    repository: Optional[str] = None
    homepage: Optional[str] = None
    license: Optional[str] = None

    def __post_init__(self) -> None:
        self.version = _as_version(self.version)
        self.authors = list(self.authors)

    @classmethod
    def builder(cls) -> "ContractBuilder":
        """Start building a contract description."""
        return ContractBuilder()

    def to_dict(self) -> dict[str, Any]:
        """JSON-ready mapping; absent optional fields are left out."""
        result: dict[str, Any] = {
            "name": self.name,
            "version": str(self.version),
            "authors": list(self.authors),
        }
        optional = (
            ("description", self.description),
            ("documentation", self.documentation),
            ("repository", self.repository),
            ("homepage", self.homepage),
            ("license", self.license),
        )
        result.update((key, value) for key, value in optional if value is not None)
        return result

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Contract":
        """Build from a parsed JSON mapping; unknown keys are ignored."""
        if not isinstance(data, Mapping):
            raise TypeError(f"expected a mapping, got {type(data).__name__}")
        name = _required(data, "name")
        if not isinstance(name, str):
            raise ValueError("field `name` must be a string")
        authors = _required(data, "authors")
        if not isinstance(authors, list) or not all(isinstance(a, str) for a in authors):
            raise ValueError("field `authors` must be a list of strings")

        def url(key: str) -> Optional[str]:
            value = _optional_str(data, key)
            return None if value is None else _as_url(value)

        return cls(
            name=name,
            version=_as_version(_required(data, "version")),
            authors=authors,
            description=_optional_str(data, "description"),
            documentation=url("documentation"),
            repository=url("repository"),
            homepage=url("homepage"),
            license=_optional_str(data, "license"),
        )


class ContractBuilder:
    """Builds a :class:`Contract`; each field may be set only once."""

    def __init__(self) -> None:
        self._name: Optional[str] = None
        self._version: Optional[semver.Version] = None
        self._authors: Optional[list[str]] = None
        self._description: Optional[str] = None
        self._documentation: Optional[str] = None
        self._repository: Optional[str] = None
        self._homepage: Optional[str] = None
        self._license: Optional[str] = None

    def name(self, name: str) -> "ContractBuilder":
        """Set the contract name (required)."""
        if self._name is not None:
            raise ValueError("name has already been set")
        self._name = str(name)
        return self

    def version(self, version: VersionLike) -> "ContractBuilder":
        """Set the contract version (required)."""
        if self._version is not None:
            raise ValueError("version has already been set")
        self._version = _as_version(version)
        return self

    def authors(self, authors: Iterable[str]) -> "ContractBuilder":
        """Set the contract authors (required, at least one)."""
        if self._authors is not None:
            raise ValueError("authors has already been set")
        collected = [str(author) for author in authors]
        if not collected:
            raise ValueError("must have at least one author")
        self._authors = collected
        return self

    def description(self, description: str) -> "ContractBuilder":
        """Set the contract description (optional)."""
        if self._description is not None:
            raise ValueError("description has already been set")
        self._description = str(description)
        return self

    def documentation(self, documentation: str) -> "ContractBuilder":
        """Set the documentation URL (optional)."""
        if self._documentation is not None:
            raise ValueError("documentation is already set")
        self._documentation = _as_url(documentation)
        return self

    def repository(self, repository: str) -> "ContractBuilder":
        """Set the repository URL (optional)."""
        if self._repository is not None:
            raise ValueError("repository is already set")
        self._repository = _as_url(repository)
        return self

    def homepage(self, homepage: str) -> "ContractBuilder":
        """Set the homepage URL (optional)."""
        if self._homepage is not None:
            raise ValueError("homepage is already set")
        self._homepage = _as_url(homepage)
        return self

    def license(self, license: str) -> "ContractBuilder":
        """Set the contract license (optional)."""
        if self._license is not None:
            raise ValueError("license has already been set")
        self._license = str(license)
        return self

    def build(self) -> Contract:
        """Finish the contract; raises ``ValueError`` naming missing required fields."""
        missing = [
            key
            for key, value in (
                ("name", self._name),
                ("version", self._version),
                ("authors", self._authors),
            )
            if value is None
        ]
        if missing:
            raise ValueError(
                f"Missing required non-default fields: {', '.join(missing)}"
            )
        return Contract(
            name=self._name,  # type: ignore[arg-type]
            version=self._version,  # type: ignore[arg-type]
            authors=list(self._authors),  # type: ignore[arg-type]
            description=self._description,
            documentation=self._documentation,
            repository=self._repository,
            homepage=self._homepage,
            license=self._license,
        )


@dataclass
class User:
    """Additional user-defined metadata: any JSON object."""

    json: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """The user JSON as a new mapping."""
        return dict(self.json)


@dataclass
class ContractMetadata:
    """Complete contract metadata with the ABI fields flattened in."""

    source: Source
    contract: Contract
    image: Optional[str] = None
    user: Optional[User] = None
    abi: dict[str, Any] = field(default_factory=dict)

    def remove_source_wasm_attribute(self) -> None:
        """Drop the bundled Wasm code."""
        self.source.wasm = None

    @classmethod
    def load(cls, metadata_path: Union[str, os.PathLike]) -> "ContractMetadata":
        """Read and parse a metadata file."""
        path = Path(metadata_path)
        try:
            handle = path.open(encoding="utf-8")
        except OSError as exc:
            raise OSError(f"Failed to open metadata file {path}") from exc
        with handle:
            try:
                return cls.from_dict(json.load(handle))
            except (ValueError, TypeError) as exc:
                raise ValueError(f"Failed to deserialize metadata file {path}") from exc

    def check_ink_compatibility(
        self, compatibility_list, cargo_contract_version: Optional[VersionLike] = None
    ) -> None:
        """Raise ``CompatibilityError`` if an ink! contract's version is unsupported."""
        if self.source.language.language is Language.INK:
            check_contract_ink_compatibility(
                self.source.language.version,
                cargo_contract_version,
                compatibility_list,
            )

    def to_dict(self) -> dict[str, Any]:
        """JSON-ready mapping; ``image`` is always present, ``user`` only if set."""
        result: dict[str, Any] = {
            "source": self.source.to_dict(),
            "contract": self.contract.to_dict(),
            "image": self.image,
        }
        if self.user is not None:
            result["user"] = self.user.to_dict()
        result.update(self.abi)
        return result

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ContractMetadata":
        """Build from a parsed JSON mapping; remaining keys form the ABI."""
        if not isinstance(data, Mapping):
            raise TypeError(f"expected a mapping, got {type(data).__name__}")
        user = data.get("user")
        if user is not None and not isinstance(user, Mapping):
            raise ValueError("field `user` must be an object")
        return cls(
            source=Source.from_dict(_required(data, "source")),
            contract=Contract.from_dict(_required(data, "contract")),
            image=_optional_str(data, "image"),
            user=None if user is None else User(dict(user)),
            abi={k: v for k, v in data.items() if k not in _METADATA_KEYS},
        )