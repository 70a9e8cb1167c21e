"""Checks that a contract's ink! version suits the tool version in use."""

from __future__ import annotations

import json
import os
import re
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Mapping, Optional, Union

import semver

CURRENT_VERSION = "4.0.0"

_WILDCARDS = ("*", "x", "X")
_IDENTIFIER = re.compile(r"^[0-9A-Za-z-]+$")

VersionLike = Union[str, semver.Version]


class CompatibilityError(Exception):
    """The contract's ink! version cannot be used with this tool version."""


class Op(Enum):
    """Comparison operator of a requirement."""

    EXACT = "="
    GREATER = ">"
    GREATER_EQ = ">="
    LESS = "<"
    LESS_EQ = "<="
    TILDE = "~"
    CARET = "^"
    WILDCARD = "*"


_OP_PREFIXES = (
    (">=", Op.GREATER_EQ),
    ("<=", Op.LESS_EQ),
    ("=", Op.EXACT),
    (">", Op.GREATER),
    ("<", Op.LESS),
    ("~", Op.TILDE),
    ("^", Op.CARET),
)


def _to_version(version: VersionLike) -> semver.Version:
    if isinstance(version, semver.Version):
        return version
    return semver.Version.parse(str(version))


def _pre_cmp(left: str, right: str) -> int:
    """Compare prerelease tags; an empty tag ranks above any other."""
    return semver.Version(0, 0, 0, prerelease=left or None).compare(
        semver.Version(0, 0, 0, prerelease=right or None)
    )


def _parse_number(text: str, source: str) -> int:
    if not text.isdigit() or not text.isascii():
        raise ValueError(f"invalid version requirement {source!r}: bad number {text!r}")
    if len(text) > 1 and text.startswith("0"):
        raise ValueError(f"invalid version requirement {source!r}: leading zero in {text!r}")
    return int(text)


@dataclass(frozen=True)
class Comparator:
    """A single operator applied to a possibly partial version."""

    op: Op
    major: int
    minor: Optional[int] = None
    patch: Optional[int] = None
    pre: str = ""

    def __str__(self) -> str:
        text = ("" if self.op is Op.WILDCARD else self.op.value) + str(self.major)
        if self.minor is not None:
            text += f".{self.minor}"
            if self.patch is not None:
                text += f".{self.patch}"
                if self.pre:
                    text += f"-{self.pre}"
            elif self.op is Op.WILDCARD:
                text += ".*"
        elif self.op is Op.WILDCARD:
            text += ".*"
        return text

    def _pre(self, version: semver.Version) -> str:
        return version.prerelease or ""

    def _exact(self, v: semver.Version) -> bool:
        if v.major != self.major:
            return False
        if self.minor is not None and v.minor != self.minor:
            return False
        if self.patch is not None and v.patch != self.patch:
            return False
        return self._pre(v) == self.pre

    def _greater(self, v: semver.Version) -> bool:
        if v.major != self.major:
            return v.major > self.major
        if self.minor is None:
            return False
        if v.minor != self.minor:
            return v.minor > self.minor
        if self.patch is None:
            return False
        if v.patch != self.patch:
            return v.patch > self.patch
        return _pre_cmp(self._pre(v), self.pre) > 0

    def _less(self, v: semver.Version) -> bool:
        if v.major != self.major:
            return v.major < self.major
        if self.minor is None:
            return False
        if v.minor != self.minor:
            return v.minor < self.minor
        if self.patch is None:
            return False
        if v.patch != self.patch:
            return v.patch < self.patch
        return _pre_cmp(self._pre(v), self.pre) < 0

    def _tilde(self, v: semver.Version) -> bool:
        if v.major != self.major:
            return False
        if self.minor is not None and v.minor != self.minor:
            return False
        if self.patch is not None and v.patch != self.patch:
            return v.patch > self.patch
        return _pre_cmp(self._pre(v), self.pre) >= 0

    def _caret(self, v: semver.Version) -> bool:
        if v.major != self.major:
            return False
        if self.minor is None:
            return True
        minor = self.minor
        if self.patch is None:
            return v.minor >= minor if self.major > 0 else v.minor == minor
        patch = self.patch
        if self.major > 0:
            if v.minor != minor:
                return v.minor > minor
            if v.patch != patch:
                return v.patch > patch
        elif minor > 0:
            if v.minor != minor:
                return False
            if v.patch != patch:
                return v.patch > patch
        elif v.minor != minor or v.patch != patch:
            return False
        return _pre_cmp(self._pre(v), self.pre) >= 0

    def matches(self, version: semver.Version) -> bool:
        """Whether ``version`` satisfies this comparator alone."""
        if self.op in (Op.EXACT, Op.WILDCARD):
            return self._exact(version)
        if self.op is Op.GREATER:
            return self._greater(version)
        if self.op is Op.GREATER_EQ:
            return self._exact(version) or self._greater(version)
        if self.op is Op.LESS:
            return self._less(version)
        if self.op is Op.LESS_EQ:
            return self._exact(version) or self._less(version)
        if self.op is Op.TILDE:
            return self._tilde(version)
        return self._caret(version)

    def allows_prerelease_of(self, version: semver.Version) -> bool:
        return (
            bool(self.pre)
            and self.major == version.major
            and self.minor == version.minor
            and self.patch == version.patch
        )

    @classmethod
    def parse(cls, text: str, source: str) -> Optional["Comparator"]:
        """Parse one comparator; ``None`` stands for a bare wildcard."""
        rest = text.strip()
        op: Optional[Op] = None
        for prefix, candidate in _OP_PREFIXES:
            if rest.startswith(prefix):
                op = candidate
                rest = rest[len(prefix):].lstrip()
                break
        if not rest:
            raise ValueError(f"invalid version requirement {source!r}: missing version")
        rest = rest.split("+", 1)[0]
        core, dash, pre = rest.partition("-")
        parts = core.split(".")
        if len(parts) > 3:
            raise ValueError(f"invalid version requirement {source!r}: too many components")

        numbers: list[Optional[int]] = []
        wildcard = False
        for part in parts:
            if part in _WILDCARDS:
                wildcard = True
                numbers.append(None)
            elif wildcard:
                raise ValueError(
                    f"invalid version requirement {source!r}: number after wildcard"
                )
            else:
                numbers.append(_parse_number(part, source))

        if numbers[0] is None:
            if op not in (None, Op.EXACT) or dash:
                raise ValueError(f"invalid version requirement {source!r}")
            return None

        major = numbers[0]
        minor = numbers[1] if len(numbers) > 1 else None
        patch = numbers[2] if len(numbers) > 2 else None

        if dash:
            if patch is None:
                raise ValueError(
                    f"invalid version requirement {source!r}: "
                    "prerelease requires a full version"
                )
            if not all(_IDENTIFIER.match(ident) for ident in pre.split(".")):
                raise ValueError(
                    f"invalid version requirement {source!r}: bad prerelease {pre!r}"
                )

        if op is None:
            op = Op.WILDCARD if wildcard else Op.CARET
        elif op is Op.EXACT and wildcard:
            op = Op.WILDCARD
        return cls(op, major, minor, patch, pre if dash else "")


@dataclass(frozen=True)
class VersionReq:
    """A set of comparators that a version must all satisfy."""

    comparators: tuple[Comparator, ...] = ()

    @classmethod
    def parse(cls, text: str) -> "VersionReq":
        """Parse a comma separated requirement such as ``^4.0.0`` or ``>=1, <2``."""
        if not isinstance(text, str) or not text.strip():
            raise ValueError(f"invalid version requirement {text!r}: empty")
        pieces = text.split(",")
        comparators = [Comparator.parse(piece, text) for piece in pieces]
        if any(c is None for c in comparators):
            if len(comparators) != 1:
                raise ValueError(
                    f"invalid version requirement {text!r}: wildcard in a list"
                )
            return cls(())
        return cls(tuple(c for c in comparators if c is not None))

    def matches(self, version: VersionLike) -> bool:
        """Whether ``version`` satisfies every comparator."""
        ver = _to_version(version)
        if not all(c.matches(ver) for c in self.comparators):
            return False
        if not ver.prerelease:
            return True
        return any(c.allows_prerelease_of(ver) for c in self.comparators)

    def __str__(self) -> str:
        if not self.comparators:
            return "*"
        return ", ".join(str(c) for c in self.comparators)


Compatibility = dict[semver.Version, list[VersionReq]]


def load_compatibility(data: Union[str, bytes, Mapping]) -> Compatibility:
    """Read a compatibility list mapping tool versions to ink! requirements."""
    raw = json.loads(data) if isinstance(data, (str, bytes)) else data
    if not isinstance(raw, Mapping) or not isinstance(raw.get("cargo-contract"), Mapping):
        raise ValueError("compatibility list lacks a 'cargo-contract' table")
    result: Compatibility = {}
    for version_text, requirements in raw["cargo-contract"].items():
        if not isinstance(requirements, Mapping) or not isinstance(
            requirements.get("ink"), list
        ):
            raise ValueError(
                f"compatibility entry {version_text!r} lacks an 'ink' list"
            )
        result[_to_version(version_text)] = [
            VersionReq.parse(req) for req in requirements["ink"]
        ]
    return result


def _coerce(compatibility_list) -> Compatibility:
    if isinstance(compatibility_list, os.PathLike):
        return load_compatibility(Path(compatibility_list).read_text(encoding="utf-8"))
    if isinstance(compatibility_list, Mapping) and all(
        isinstance(key, semver.Version) for key in compatibility_list
    ) and compatibility_list:
        return dict(compatibility_list)
    return load_compatibility(compatibility_list)


def check_contract_ink_compatibility(
    ink_version: VersionLike,
    cargo_contract_version: Optional[VersionLike],
    compatibility_list,
) -> None:
    """Raise :class:`CompatibilityError` unless the ink! version is supported.

    ``cargo_contract_version`` defaults to :data:`CURRENT_VERSION` when ``None``.
    ``compatibility_list`` is JSON text, a parsed mapping, a path, or the
    result of :func:`load_compatibility`.
    """
    compatibility = _coerce(compatibility_list)
    ink = _to_version(ink_version)
    tool = _to_version(
        CURRENT_VERSION if cargo_contract_version is None else cargo_contract_version
    )

    ink_req = compatibility.get(tool)
    if ink_req is None:
        raise CompatibilityError(
            f"Missing compatibility configuration for cargo-contract: {tool}"
        )
    if not ink_req:
        raise CompatibilityError(f"Missing ink! requirements for cargo-contract: {tool}")

    if any(req.matches(ink) for req in ink_req):
        return

    required = ", ".join(f"'{req}'" for req in ink_req)
    update_message = f"change the ink! version of your contract to {required}"
    not_compatible = (
        "This version of cargo-contract is not compatible with the contract's "
        "ink! version."
    )

    candidates = [
        version
        for version, reqs in compatibility.items()
        if any(req.matches(ink) for req in reqs)
    ]
    if not candidates:
        raise CompatibilityError(f"{not_compatible} {update_message}")
    best = max(candidates, key=lambda v: (not v.prerelease, v))
    raise CompatibilityError(
        f"{not_compatible} Please use cargo-contract in version '{best}' or "
        f"{update_message}"
    )