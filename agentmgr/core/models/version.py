"""
Version model — parsing, ordering and range matching.

Every "is there an update" decision goes through ``Version.compare``.
Parsing is strict: the text must start with a numeric major component
(optionally prefixed by ``v``).  Tolerant extraction from tool output
lives with the providers, not here.

Ordering follows semver precedence:
    - major, minor, patch compared numerically
    - a release sorts above any prerelease of the same core version
    - prerelease identifiers compared left to right; numeric identifiers
      numerically and below alphanumeric ones
    - when one prerelease is a prefix of the other, the longer one wins
    - build metadata never affects ordering
"""

from __future__ import annotations

import re
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class InvalidVersionFormat(ValueError):
    """Raised when a version string cannot be parsed."""


# Anchored grammar: v?MAJOR[.MINOR[.PATCH]][-PRERELEASE][+BUILD]
_SEMVER_RE = re.compile(
    r"^[vV]?(\d+)(?:\.(\d+))?(?:\.(\d+))?"
    r"(?:-([0-9A-Za-z\-.]+))?"
    r"(?:\+([0-9A-Za-z\-.]+))?$"
)

# Numeric core only, used to tell how many components were written
_CORE_RE = re.compile(r"^[vV]?(\d+)(?:\.(\d+))?(?:\.(\d+))?")

ConstraintOperator = Literal["=", "==", ">", ">=", "<", "<=", "~", "^"]


class Version(BaseModel):
    """A parsed semantic version.

    ``raw`` keeps the original text (including any leading ``v``) for
    display; it is never used for ordering.
    """

    model_config = ConfigDict(frozen=True)

    major: int = 0
    minor: int = 0
    patch: int = 0
    prerelease: str = ""
    build: str = ""
    raw: str = ""

    def __str__(self) -> str:
        if self.raw:
            return self.raw
        s = f"{self.major}.{self.minor}.{self.patch}"
        if self.prerelease:
            s += f"-{self.prerelease}"
        if self.build:
            s += f"+{self.build}"
        return s

    def is_zero(self) -> bool:
        """True only for the empty version.

        A version holding just an unparsed ``raw`` (``"unknown"``) is
        present, so it is not zero.
        """
        return (
            self.major == 0
            and self.minor == 0
            and self.patch == 0
            and not self.prerelease
            and not self.build
            and not self.raw
        )

    def compare(self, other: Version) -> int:
        """Return -1, 0 or 1 as this version is lower, equal or higher."""
        if self.major != other.major:
            return _cmp(self.major, other.major)
        if self.minor != other.minor:
            return _cmp(self.minor, other.minor)
        if self.patch != other.patch:
            return _cmp(self.patch, other.patch)
        return _compare_prerelease(self.prerelease, other.prerelease)

    def is_newer_than(self, other: Version) -> bool:
        return self.compare(other) > 0

    def is_older_than(self, other: Version) -> bool:
        return self.compare(other) < 0

    def equals(self, other: Version) -> bool:
        """Precedence equality (ignores ``raw`` and ``build``)."""
        return self.compare(other) == 0

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self.compare(other) < 0

    def __le__(self, other: object) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self.compare(other) <= 0

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self.compare(other) > 0

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self.compare(other) >= 0

    def specified_parts(self) -> int:
        """How many numeric components the original text spelled out (1-3).

        Versions built without ``raw`` count as fully specified.
        """
        m = _CORE_RE.match(self.raw.strip()) if self.raw else None
        if not m:
            return 3
        return sum(1 for g in m.groups() if g is not None)


def parse_version(text: str) -> Version:
    """Parse a version string.

    Accepts ``1``, ``1.2``, ``1.2.3``, ``v1.2.3``, ``1.2.3-beta.1``,
    ``1.2.3+build.5`` and combinations.  Missing minor/patch default to 0.

    Raises:
        InvalidVersionFormat: If ``text`` is empty or does not start with
            a numeric major component.
    """
    if text is None:
        raise InvalidVersionFormat("empty version string")
    s = text.strip()
    if not s:
        raise InvalidVersionFormat("empty version string")

    m = _SEMVER_RE.match(s)
    if not m:
        raise InvalidVersionFormat(f"invalid version format: {text!r}")

    major, minor, patch, pre, build = m.groups()
    return Version(
        major=int(major),
        minor=int(minor) if minor else 0,
        patch=int(patch) if patch else 0,
        prerelease=pre or "",
        build=build or "",
        raw=s,
    )


def must_parse_version(text: str) -> Version:
    """Parse a version known to be valid (constants, tests)."""
    return parse_version(text)


def _cmp(a: int, b: int) -> int:
    return (a > b) - (a < b)


def _compare_prerelease(a: str, b: str) -> int:
    if a == b:
        return 0
    if not a:
        return 1
    if not b:
        return -1

    a_parts = a.split(".")
    b_parts = b.split(".")
    for x, y in zip(a_parts, b_parts):
        c = _compare_identifier(x, y)
        if c:
            return c
    return _cmp(len(a_parts), len(b_parts))


def _compare_identifier(a: str, b: str) -> int:
    a_num = a.isdigit()
    b_num = b.isdigit()
    if a_num and b_num:
        return _cmp(int(a), int(b))
    # Numeric identifiers have lower precedence
    if a_num:
        return -1
    if b_num:
        return 1
    return (a > b) - (a < b)


class VersionRange(BaseModel):
    """Inclusive range ``from_ <= v <= to``."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    from_: Version = Field(alias="from")
    to: Version

    def contains(self, v: Version) -> bool:
        return not v.is_older_than(self.from_) and not v.is_newer_than(self.to)


class VersionConstraint(BaseModel):
    """A single-operator version predicate such as ``>=1.0.0`` or ``^0.2.3``.

    Tilde and caret treat components omitted from the constraint text as
    wildcards: ``~1.2`` matches any ``1.2.x`` and ``~1`` any ``1.x.y``.
    """

    model_config = ConfigDict(frozen=True)

    operator: ConstraintOperator = "="
    version: Version

    def __str__(self) -> str:
        return f"{self.operator}{self.version}"

    def matches(self, v: Version) -> bool:
        c = self.version
        cmp = v.compare(c)
        op = self.operator

        if op in ("=", "=="):
            return cmp == 0
        if op == ">":
            return cmp > 0
        if op == ">=":
            return cmp >= 0
        if op == "<":
            return cmp < 0
        if op == "<=":
            return cmp <= 0
        if op == "~":
            if c.specified_parts() == 1:
                return v.major == c.major
            return v.major == c.major and v.minor == c.minor and v.patch >= c.patch
        if op == "^":
            if c.major != 0:
                return v.major == c.major and cmp >= 0
            if c.specified_parts() == 1:
                return v.major == 0
            # 0.x is unstable: only patch bumps
            return v.major == 0 and v.minor == c.minor and v.patch >= c.patch
        return False


_CONSTRAINT_RE = re.compile(r"^\s*(==|>=|<=|=|>|<|~|\^)?\s*(.+?)\s*$")


def parse_constraint(text: str) -> VersionConstraint:
    """Build a constraint from text like ``">=1.2"`` or ``"^0.3.1"``.

    A bare version means ``=``.

    Raises:
        InvalidVersionFormat: If the version part does not parse.
    """
    m = _CONSTRAINT_RE.match(text or "")
    if not m:
        raise InvalidVersionFormat(f"invalid version constraint: {text!r}")
    op, ver = m.groups()
    return VersionConstraint(operator=op or "=", version=parse_version(ver))
