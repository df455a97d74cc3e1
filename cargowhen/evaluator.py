"""
cargo-when Evaluator — Combine the matchers into one run/skip decision.

Ties together the requirement parser, the matchers and the probed compiler
info. Candidates are OR-ed within a predicate kind, and the kinds are
AND-ed together:

    -c stable,beta -v ">=1.70"   ->   (stable OR beta) AND (>=1.70)

Usage:
    from cargowhen.evaluator import PredicateSpec, Mode, decide

    spec = PredicateSpec(channels=["nightly"])
    run = decide(Mode.UNLESS, spec, info, snapshot_environment())
"""

import logging
from dataclasses import dataclass, field
from enum import Enum

from cargowhen.matchers import (
    EnvRequirement,
    EnvSnapshot,
    channel_matches,
    env_equals,
    env_exists,
    parse_env_requirement,
    version_matches,
)
from cargowhen.requirement import VersionReq, parse_requirement
from cargowhen.version_detector import CompilerInfo

logger = logging.getLogger(__name__)


class Mode(Enum):
    """Whether the wrapped command runs on a match or on a mismatch."""
    WHEN = "when"        # run only when the conditions match
    UNLESS = "unless"    # run except when the conditions match


@dataclass
class PredicateSpec:
    """Raw candidate strings for each predicate kind, as given on the command line.

    An empty list means that kind was not requested.
    """
    channels: list[str] = field(default_factory=list)
    version_ranges: list[str] = field(default_factory=list)
    env_names: list[str] = field(default_factory=list)
    env_requirements: list[str] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (self.channels or self.version_ranges
                    or self.env_names or self.env_requirements)


@dataclass(frozen=True)
class CompiledPredicate:
    """A PredicateSpec with every value parsed and validated."""
    channels: tuple[str, ...] = ()
    version_ranges: tuple[VersionReq, ...] = ()
    env_names: tuple[str, ...] = ()
    env_requirements: tuple[EnvRequirement, ...] = ()


def compile_predicate(spec: PredicateSpec) -> CompiledPredicate:
    """Parse every candidate string in a PredicateSpec.

    Kinds are handled in a fixed order (channel, version, exists, equals)
    and the first malformed value aborts compilation.

    Raises:
        PredicateParseError: On the first version range or NAME=VALUE
            string that cannot be parsed.
    """
    return CompiledPredicate(
        channels=tuple(spec.channels),
        version_ranges=tuple(parse_requirement(text) for text in spec.version_ranges),
        env_names=tuple(spec.env_names),
        env_requirements=tuple(parse_env_requirement(text) for text in spec.env_requirements),
    )


def evaluate(predicate: CompiledPredicate, info: CompilerInfo, env: EnvSnapshot) -> bool:
    """Return True if every requested predicate kind matches.

    Args:
        predicate: The compiled predicate.
        info: Probed compiler info.
        env: Environment snapshot for the exists/equals kinds.

    Returns:
        The "conditions matched" decision.
    """
    results = {
        "channel": channel_matches(info, predicate.channels),
        "version": version_matches(info, predicate.version_ranges),
        "exists": env_exists(env, predicate.env_names),
        "equals": env_equals(env, predicate.env_requirements),
    }
    for kind, result in results.items():
        logger.debug("%s predicate: %s", kind, "match" if result else "no match")

    matched = all(results.values())
    logger.debug("Conditions %s for %s", "matched" if matched else "not matched", info)
    return matched


def should_dispatch(mode: Mode, matched: bool) -> bool:
    """Apply the mode to a match result: UNLESS is the exact negation of WHEN."""
    if mode is Mode.UNLESS:
        return not matched
    return matched


def decide(mode: Mode, spec: PredicateSpec, info: CompilerInfo, env: EnvSnapshot) -> bool:
    """Compile, evaluate and apply the mode in one step."""
    return should_dispatch(mode, evaluate(compile_predicate(spec), info, env))
