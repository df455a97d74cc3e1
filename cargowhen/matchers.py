"""
cargo-when Matchers — The four independent predicate kinds.

Each matcher takes zero or more candidates and answers one yes/no question.
Candidates within a kind are OR-ed together, and a kind with no candidates
is a vacuous match (it was not requested):

  - channel:  rustc release channel equals any candidate (case-insensitive)
  - version:  rustc version satisfies any version requirement
  - exists:   any named environment variable is set
  - equals:   any NAME=VALUE pair holds exactly in the environment
"""

import os
from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Optional, Sequence

from cargowhen.errors import PredicateParseError
from cargowhen.requirement import VersionReq
from cargowhen.version_detector import CompilerInfo

# Read-only view of the process environment taken once per run
EnvSnapshot = Mapping[str, str]


@dataclass(frozen=True)
class EnvRequirement:
    """A required value for one environment variable."""
    name: str
    value: str

    def __str__(self) -> str:
        return f"{self.name}={self.value}"


def snapshot_environment(environ: Optional[Mapping[str, str]] = None) -> EnvSnapshot:
    """Copy the environment into an immutable mapping."""
    if environ is None:
        environ = os.environ
    return MappingProxyType(dict(environ))


def parse_env_requirement(text: str) -> EnvRequirement:
    """Parse a NAME=VALUE string, splitting on the first '='.

    The value may itself contain '=' and may be empty.

    Raises:
        PredicateParseError: If there is no '=' or the name is empty.
    """
    name, sep, value = text.partition("=")
    if not sep:
        raise PredicateParseError("equals", text, "expected NAME=VALUE")
    if not name:
        raise PredicateParseError("equals", text, "variable name is empty")
    return EnvRequirement(name=name, value=value)


def channel_matches(info: CompilerInfo, channels: Sequence[str]) -> bool:
    """True if the compiler's channel is any of `channels`, ignoring case."""
    if not channels:
        return True
    current = info.channel.lower()
    return any(current == channel.lower() for channel in channels)


def version_matches(info: CompilerInfo, requirements: Sequence[VersionReq]) -> bool:
    """True if the compiler's stripped version satisfies any requirement."""
    if not requirements:
        return True
    return any(req.matches(info.version) for req in requirements)


def env_exists(env: EnvSnapshot, names: Sequence[str]) -> bool:
    """True if any of `names` is set, whatever its value."""
    if not names:
        return True
    return any(name in env for name in names)


def env_equals(env: EnvSnapshot, requirements: Sequence[EnvRequirement]) -> bool:
    """True if any requirement's variable is set to exactly its value.

    No case folding or whitespace stripping is applied to the value.
    """
    if not requirements:
        return True
    return any(
        req.name in env and env[req.name] == req.value
        for req in requirements
    )
