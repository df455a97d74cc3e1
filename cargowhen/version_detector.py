"""
cargo-when Version Detector — Read the rustc version of the host toolchain.

Runs ``rustc -V`` once and turns its output into a CompilerInfo:
  1. Take the second whitespace-separated token ("rustc 1.74.0 (hash date)")
  2. Parse it as a semantic version (major.minor.patch[-pre][+build])
  3. Derive the release channel from the first pre-release identifier
  4. Keep only major.minor.patch for version-range matching

The raw version text can come from any zero-argument callable, so the
parsing and channel logic can be exercised without a toolchain installed.
"""

import logging
import subprocess
from dataclasses import dataclass
from typing import Callable, Optional

import semver

from cargowhen.config import DEFAULT_RUSTC
from cargowhen.errors import ProbeFailure

logger = logging.getLogger(__name__)


STABLE_CHANNEL = "stable"
UNKNOWN_CHANNEL = "unknown"

# Returns the raw output of `rustc -V`
VersionProvider = Callable[[], str]


@dataclass(frozen=True)
class CompilerInfo:
    """Release channel and numeric version of the rust compiler."""
    channel: str              # e.g. "stable", "nightly", "unknown"
    version: semver.Version   # major.minor.patch only, no pre-release/build

    def __str__(self) -> str:
        return f"rustc {self.version} ({self.channel})"


def read_compiler_version(rustc: str = DEFAULT_RUSTC) -> str:
    """Run `rustc -V` and return its standard output as text.

    Args:
        rustc: The compiler binary to invoke.

    Returns:
        The decoded standard output.

    Raises:
        ProbeFailure: If the compiler cannot be spawned or its output is not UTF-8.
    """
    command = [rustc, "-V"]
    logger.debug("Probing compiler: %s", " ".join(command))
    try:
        # stderr is inherited so rustc's own complaints reach the user
        result = subprocess.run(
            command,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
        )
    except OSError as e:
        raise ProbeFailure(f"failed to run {rustc!r}: {e}", cause=e) from e

    if result.returncode != 0:
        logger.warning("%s -V exited with status %d", rustc, result.returncode)

    try:
        return result.stdout.decode("utf-8")
    except UnicodeDecodeError as e:
        raise ProbeFailure(f"{rustc} -V produced non-UTF-8 output", cause=e) from e


def derive_channel(version: semver.Version) -> str:
    """Classify the release channel from a version's pre-release tag.

    Only the first dot-separated pre-release identifier is considered:
    "1.76.0-nightly" -> "nightly", "1.75.0-beta.3" -> "beta",
    "1.2.3-1.alpha" -> "unknown", "1.74.0" -> "stable".
    """
    if not version.prerelease:
        return STABLE_CHANNEL

    first = version.prerelease.split(".", 1)[0]
    if first.isdigit():
        return UNKNOWN_CHANNEL
    return first


def parse_compiler_version(output: str) -> CompilerInfo:
    """Parse the output of `rustc -V` into a CompilerInfo.

    Args:
        output: Raw version output, e.g. "rustc 1.76.0-nightly (a1b2c3 2023-11-20)".

    Returns:
        CompilerInfo with the derived channel and the stripped version.

    Raises:
        ProbeFailure: If the output is empty or the version token is missing
            or not a valid semantic version.
    """
    tokens = output.split()
    if not tokens:
        raise ProbeFailure("rustc version output was empty")
    if len(tokens) < 2:
        raise ProbeFailure(f"failed to get rustc version string from {output.strip()!r}")

    version_text = tokens[1]
    try:
        version = semver.Version.parse(version_text)
    except ValueError as e:
        raise ProbeFailure(f"failed to parse rustc version {version_text!r}: {e}", cause=e) from e

    return CompilerInfo(
        channel=derive_channel(version),
        version=version.finalize_version(),
    )


def probe_compiler(
    version_provider: Optional[VersionProvider] = None,
    rustc: str = DEFAULT_RUSTC,
) -> CompilerInfo:
    """Obtain the rust compiler info for this environment.

    Args:
        version_provider: Callable returning the raw `rustc -V` output.
            Defaults to actually running ``rustc``.
        rustc: Compiler binary used by the default provider.

    Returns:
        The CompilerInfo for this run.
    """
    if version_provider is None:
        output = read_compiler_version(rustc)
    else:
        output = version_provider()

    logger.debug("Raw compiler version: %r", output)
    info = parse_compiler_version(output)
    logger.debug("Detected %s", info)
    return info
