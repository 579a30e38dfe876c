"""Semantic versions and version requirements.

``Version`` follows SemVer 2.0 precedence: build metadata is carried along but
ignored for ordering and equality. ``VersionRequirement`` accepts Cargo-style
ranges::

    "10"             -> ^10       (>=10.0.0, <11.0.0)
    "^1.2.3"         -> >=1.2.3, <2.0.0   (^0.2.3 -> <0.3.0, ^0.0.3 -> =0.0.3)
    "~1.2.3"         -> >=1.2.3, <1.3.0
    ">=8"            -> >=8.0.0
    "1.2.*", "1.x"   -> wildcards
    ">=1.0, <2.0"    -> conjunction (commas or whitespace)

A pre-release version only satisfies a requirement when one of its
comparators names a pre-release on the same major.minor.patch.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from functools import total_ordering
from typing import TYPE_CHECKING, Any

from pydantic_core import core_schema

from pinion.errors import InvalidRequirementError, InvalidVersionError

if TYPE_CHECKING:
    from collections.abc import Iterable

    from pydantic import GetCoreSchemaHandler

_IDENT = r"[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*"
# Numeric pre-release identifiers must not have leading zeros.
_PRE_PART = r"(?:0|[1-9]\d*|\d*[A-Za-z-][0-9A-Za-z-]*)"
_PRE = rf"{_PRE_PART}(?:\.{_PRE_PART})*"

_VERSION_RE = re.compile(
    r"^[vV]?(?P<major>0|[1-9]\d*)"
    r"\.(?P<minor>0|[1-9]\d*)"
    r"\.(?P<patch>0|[1-9]\d*)"
    rf"(?:-(?P<pre>{_PRE}))?"
    rf"(?:\+(?P<build>{_IDENT}))?$"
)

_COMPARATOR_RE = re.compile(
    rf"""
    \s*(?P<op>\^|~|=|>=|<=|>|<)?\s*
    [vV]?(?P<major>\d+|[*xX])
    (?:\.(?P<minor>\d+|[*xX]))?
    (?:\.(?P<patch>\d+|[*xX]))?
    (?:-(?P<pre>{_PRE}))?
    (?:\+{_IDENT})?
    (?:\s*(?:,|$)|\s+|(?=[\^~=<>]))
    """,
    re.VERBOSE,
)

_WILDCARDS = frozenset({"*", "x", "X"})


def _parse_identifiers(raw: str | None) -> tuple[int | str, ...]:
    if not raw:
        return ()
    return tuple(int(part) if part.isdigit() else part for part in raw.split("."))


@total_ordering
@dataclass(frozen=True, eq=False)
class Version:
    """A semantic version: ``major.minor.patch[-pre][+build]``."""

    major: int
    minor: int
    patch: int
    pre: tuple[int | str, ...] = ()
    build: tuple[str, ...] = ()

    @classmethod
    def parse(cls, text: str) -> Version:
        match = _VERSION_RE.match(text.strip())
        if match is None:
            raise InvalidVersionError(text)
        return cls(
            int(match["major"]),
            int(match["minor"]),
            int(match["patch"]),
            _parse_identifiers(match["pre"]),
            tuple(match["build"].split(".")) if match["build"] else (),
        )

    @property
    def is_prerelease(self) -> bool:
        return bool(self.pre)

    @property
    def release(self) -> tuple[int, int, int]:
        return (self.major, self.minor, self.patch)

    def _key(self) -> tuple[Any, ...]:
        if not self.pre:
            # A release sorts after every pre-release of the same triple.
            return (*self.release, 1, ())
        identifiers = tuple(
            (0, part, "") if isinstance(part, int) else (1, 0, part) for part in self.pre
        )
        return (*self.release, 0, identifiers)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self._key() == other._key()

    def __lt__(self, other: Version) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self._key() < other._key()

    def __hash__(self) -> int:
        return hash(self._key())

    def __str__(self) -> str:
        text = f"{self.major}.{self.minor}.{self.patch}"
        if self.pre:
            text += "-" + ".".join(str(part) for part in self.pre)
        if self.build:
            text += "+" + ".".join(self.build)
        return text

    # pydantic integration: accepted as a string, serialised back to one.

    @classmethod
    def _coerce(cls, value: Any) -> Version:
        if isinstance(value, Version):
            return value
        if isinstance(value, str):
            return cls.parse(value)
        raise ValueError(f"expected a version string, got {type(value).__name__}")

    @classmethod
    def __get_pydantic_core_schema__(
        cls, source_type: Any, handler: GetCoreSchemaHandler
    ) -> core_schema.CoreSchema:
        return core_schema.no_info_plain_validator_function(
            cls._coerce,
            serialization=core_schema.to_string_ser_schema(),
        )


@dataclass(frozen=True)
class _Bound:
    op: str  # "=", ">", ">=", "<", "<="
    version: Version

    def admits(self, version: Version) -> bool:
        match self.op:
            case "=":
                return version == self.version
            case ">":
                return version > self.version
            case ">=":
                return version >= self.version
            case "<":
                return version < self.version
            case "<=":
                return version <= self.version
        raise AssertionError(f"unknown operator {self.op!r}")


def _component(raw: str | None) -> int | None:
    if raw is None or raw in _WILDCARDS:
        return None
    return int(raw)


def _expand(
    op: str,
    major: int | None,
    minor: int | None,
    patch: int | None,
    pre: tuple[int | str, ...],
) -> list[_Bound]:
    """Turn one (possibly partial) comparator into concrete bounds."""
    if major is None:
        return []

    if minor is None:
        low, high = Version(major, 0, 0), Version(major + 1, 0, 0)
        match op:
            case "^" | "~" | "=":
                return [_Bound(">=", low), _Bound("<", high)]
            case ">":
                return [_Bound(">=", high)]
            case ">=":
                return [_Bound(">=", low)]
            case "<":
                return [_Bound("<", low)]
            case "<=":
                return [_Bound("<", high)]

    elif patch is None:
        low, high = Version(major, minor, 0), Version(major, minor + 1, 0)
        match op:
            case "^":
                upper = Version(major + 1, 0, 0) if major > 0 else high
                return [_Bound(">=", low), _Bound("<", upper)]
            case "~" | "=":
                return [_Bound(">=", low), _Bound("<", high)]
            case ">":
                return [_Bound(">=", high)]
            case ">=":
                return [_Bound(">=", low)]
            case "<":
                return [_Bound("<", low)]
            case "<=":
                return [_Bound("<", high)]

    else:
        exact = Version(major, minor, patch, pre)
        match op:
            case "=" | ">" | ">=" | "<" | "<=":
                return [_Bound(op, exact)]
            case "~":
                return [_Bound(">=", exact), _Bound("<", Version(major, minor + 1, 0))]
            case "^":
                if major > 0:
                    upper = Version(major + 1, 0, 0)
                elif minor > 0:
                    upper = Version(0, minor + 1, 0)
                else:
                    upper = Version(0, 0, patch + 1)
                return [_Bound(">=", exact), _Bound("<", upper)]

    raise AssertionError(f"unknown operator {op!r}")


@dataclass(frozen=True)
class VersionRequirement:
    """A parsed semantic-version range."""

    text: str
    bounds: tuple[_Bound, ...]
    prerelease_anchors: frozenset[tuple[int, int, int]] = frozenset()

    @classmethod
    def parse(cls, text: str) -> VersionRequirement:
        source = text.strip()
        if not source or source.endswith(","):
            raise InvalidRequirementError(text)

        bounds: list[_Bound] = []
        anchors: set[tuple[int, int, int]] = set()
        pos = 0
        while pos < len(source):
            match = _COMPARATOR_RE.match(source, pos)
            if match is None or match.end() == pos:
                raise InvalidRequirementError(text)
            pos = match.end()

            major = _component(match["major"])
            minor = _component(match["minor"]) if major is not None else None
            patch = _component(match["patch"]) if minor is not None else None
            pre = _parse_identifiers(match["pre"])
            if pre and patch is None:
                raise InvalidRequirementError(text)
            if pre:
                anchors.add((major, minor, patch))  # type: ignore[arg-type]

            wildcard = any(match[group] in _WILDCARDS for group in ("major", "minor", "patch"))
            default_op = "=" if wildcard else "^"
            bounds.extend(_expand(match["op"] or default_op, major, minor, patch, pre))

        return cls(source, tuple(bounds), frozenset(anchors))

    def matches(self, version: Version) -> bool:
        if version.is_prerelease and version.release not in self.prerelease_anchors:
            return False
        return all(bound.admits(version) for bound in self.bounds)

    def filter(self, versions: Iterable[Version]) -> list[Version]:
        return [version for version in versions if self.matches(version)]

    def __str__(self) -> str:
        return self.text


def matches(requirement: VersionRequirement, version: Version) -> bool:
    return requirement.matches(version)
