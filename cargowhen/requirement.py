"""
cargo-when Requirement Parser — Cargo-style version requirements.

Parses requirement strings such as "^1.70", ">=1.65, <1.75", "~1.2.3" or
"1.*" into a VersionReq that can be matched against a semver.Version.

Supported syntax (same rules Cargo uses for dependency versions):
  - Comparators separated by commas; all of them must match
  - Operators: =, >, >=, <, <=, ~, ^ (no operator means ^)
  - Partial versions: "1" and "1.2" constrain only the components given
  - Wildcards: "*", "1.*", "1.2.*" ("x" and "X" are accepted too)
  - Pre-release and build metadata on full versions ("1.2.3-beta.1+abc")

This module is purely a parser and matcher for a single requirement string.
Deciding which requirements apply is the evaluator's job.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

import semver

from cargowhen.errors import PredicateParseError


class Op(Enum):
    """How a comparator relates a version to its bound."""
    EXACT = "="
    GREATER = ">"
    GREATER_EQ = ">="
    LESS = "<"
    LESS_EQ = "<="
    TILDE = "~"
    CARET = "^"
    WILDCARD = "*"


_OP_RE = re.compile(r"^(>=|<=|>|<|=|~|\^)?\s*(.*)$", re.DOTALL)
_NUMBER_RE = re.compile(r"^(0|[1-9][0-9]*)$")
_IDENTIFIER_RE = re.compile(r"^[0-9A-Za-z-]+$")
_WILDCARDS = {"*", "x", "X"}

# Either a semver.Version or a (major,) / (major, minor) tuple
_Key = Union[semver.Version, tuple[int, ...]]


@dataclass(frozen=True)
class Comparator:
    """One operator applied to a (possibly partial) version."""
    op: Op
    major: Optional[int] = None       # None only for a bare "*"
    minor: Optional[int] = None
    patch: Optional[int] = None
    prerelease: Optional[str] = None  # only with a full major.minor.patch

    @property
    def bound(self) -> semver.Version:
        """The comparator's version with missing components filled with 0."""
        return semver.Version(
            self.major or 0,
            self.minor or 0,
            self.patch or 0,
            prerelease=self.prerelease,
        )

    def _keys(self, version: semver.Version) -> tuple[_Key, _Key]:
        """Truncate both sides to the components this comparator names."""
        if self.minor is None:
            return (version.major,), (self.major,)
        if self.patch is None:
            return (version.major, version.minor), (self.major, self.minor)
        return version, self.bound

    def matches(self, version: semver.Version) -> bool:
        """Check a version against this comparator alone (no pre-release rule)."""
        if self.op is Op.WILDCARD and self.major is None:
            return True

        lhs, rhs = self._keys(version)
        if self.op in (Op.EXACT, Op.WILDCARD):
            return lhs == rhs
        if self.op is Op.GREATER:
            return lhs > rhs
        if self.op is Op.GREATER_EQ:
            return lhs >= rhs
        if self.op is Op.LESS:
            return lhs < rhs
        if self.op is Op.LESS_EQ:
            return lhs <= rhs
        if self.op is Op.TILDE:
            return self._matches_tilde(version)
        return self._matches_caret(version)

    def _matches_tilde(self, version: semver.Version) -> bool:
        # ~1 := 1.*, ~1.2 := 1.2.*, ~1.2.3 := >=1.2.3, <1.3.0
        if version.major != self.major:
            return False
        if self.minor is None:
            return True
        if version.minor != self.minor:
            return False
        if self.patch is None:
            return True
        return version >= self.bound

    def _matches_caret(self, version: semver.Version) -> bool:
        # The left-most non-zero component may not change
        if version.major != self.major:
            return False
        if self.minor is None:
            return True
        if self.patch is None:
            if self.major > 0:
                return version.minor >= self.minor
            return version.minor == self.minor
        if self.major > 0:
            return version >= self.bound
        if version.minor != self.minor:
            return False
        if self.minor > 0:
            return version >= self.bound
        return version.patch == self.patch and version >= self.bound

    def __str__(self) -> str:
        if self.major is None:
            return "*"
        parts = [str(self.major)]
        for part in (self.minor, self.patch):
            if part is None:
                break
            parts.append(str(part))
        if self.op is Op.WILDCARD:
            return ".".join(parts) + ".*"
        text = ".".join(parts)
        if self.prerelease:
            text += f"-{self.prerelease}"
        return f"{self.op.value}{text}"


@dataclass(frozen=True)
class VersionReq:
    """A parsed requirement: a conjunction of comparators."""
    text: str                           # the requirement as written
    comparators: tuple[Comparator, ...]

    def matches(self, version: semver.Version) -> bool:
        """Check whether a version satisfies every comparator.

        A pre-release version only matches when some comparator names the
        same major.minor.patch with a pre-release of its own, so "^1.2"
        never admits "1.3.0-alpha".
        """
        if not all(c.matches(version) for c in self.comparators):
            return False
        if not version.prerelease:
            return True
        return any(
            c.prerelease
            and (c.major, c.minor, c.patch) == (version.major, version.minor, version.patch)
            for c in self.comparators
        )

    def __str__(self) -> str:
        return ", ".join(str(c) for c in self.comparators)


def _parse_number(part: str, text: str) -> int:
    if not _NUMBER_RE.match(part):
        raise PredicateParseError(
            "version", text, f"expected a version number without leading zeros, found {part!r}",
        )
    return int(part)


def _parse_identifiers(value: str, what: str, text: str, numeric_check: bool) -> str:
    """Validate a dot-separated pre-release or build identifier list."""
    for ident in value.split("."):
        if not _IDENTIFIER_RE.match(ident):
            raise PredicateParseError("version", text, f"invalid {what} identifier {ident!r}")
        if numeric_check and ident.isdigit() and len(ident) > 1 and ident.startswith("0"):
            raise PredicateParseError(
                "version", text, f"{what} identifier {ident!r} has a leading zero",
            )
    return value


def parse_comparator(part: str, text: str) -> Comparator:
    """Parse a single comparator such as ">=1.2" or "1.*".

    Args:
        part: The comparator text (one comma-separated piece of `text`).
        text: The whole requirement string, for error reporting.

    Raises:
        PredicateParseError: If the comparator is malformed.
    """
    part = part.strip()
    if not part:
        raise PredicateParseError("version", text, "empty comparator")

    op_match = _OP_RE.match(part)
    op_text, rest = op_match.group(1), op_match.group(2).strip()
    if not rest:
        raise PredicateParseError("version", text, f"missing version after {op_text!r}")

    rest, has_build, build = rest.partition("+")
    core, has_pre, prerelease = rest.partition("-")
    if build:
        _parse_identifiers(build, "build", text, numeric_check=False)
    elif has_build:
        raise PredicateParseError("version", text, "empty build metadata")
    if has_pre:
        if not prerelease:
            raise PredicateParseError("version", text, "empty pre-release")
        _parse_identifiers(prerelease, "pre-release", text, numeric_check=True)

    pieces = core.split(".")
    if len(pieces) > 3:
        raise PredicateParseError("version", text, f"too many version components in {core!r}")

    numbers: list[Optional[int]] = []
    wildcard = False
    for piece in pieces:
        if piece in _WILDCARDS:
            wildcard = True
            numbers.append(None)
        elif wildcard:
            raise PredicateParseError(
                "version", text, f"unexpected version number {piece!r} after a wildcard",
            )
        else:
            numbers.append(_parse_number(piece, text))
    numbers.extend([None] * (3 - len(numbers)))
    major, minor, patch = numbers

    if wildcard:
        if op_text not in (None, "="):
            raise PredicateParseError(
                "version", text, f"wildcard cannot be combined with {op_text!r}",
            )
        if has_pre:
            raise PredicateParseError("version", text, "wildcard cannot have a pre-release")
        return Comparator(Op.WILDCARD, major, minor, patch)

    if has_pre and patch is None:
        raise PredicateParseError(
            "version", text, "pre-release requires a full major.minor.patch version",
        )

    op = Op(op_text) if op_text else Op.CARET
    return Comparator(op, major, minor, patch, prerelease or None)


def parse_requirement(text: str) -> VersionReq:
    """Parse a Cargo-style version requirement string.

    Args:
        text: e.g. "^1.70", ">=1.65, <1.75", "1.*".

    Returns:
        The parsed VersionReq.

    Raises:
        PredicateParseError: If the string is empty or any comparator is malformed.
    """
    if not text.strip():
        raise PredicateParseError("version", text, "empty version requirement")

    comparators = tuple(parse_comparator(part, text) for part in text.split(","))
    return VersionReq(text=text, comparators=comparators)
