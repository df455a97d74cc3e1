"""
cargo-when Dispatcher — Run (or skip) the wrapped cargo subcommand.

The trailing arguments are passed to cargo untouched. The child inherits
stdin/stdout/stderr and is waited on without a timeout; its exit status
becomes ours.
"""

import logging
import subprocess
from typing import Callable, Sequence

from cargowhen.config import DEFAULT_CARGO
from cargowhen.errors import DispatchFailure, UsageError

logger = logging.getLogger(__name__)


# Spawns argv with inherited stdio, waits, and returns the return code
Runner = Callable[[list[str]], int]


def build_command(cargo: str, argv: Sequence[str]) -> list[str]:
    """Prefix the passthrough arguments with the cargo binary."""
    return [cargo, *argv]


def require_subcommand(argv: Sequence[str]) -> None:
    """Raise UsageError if no wrapped subcommand was given."""
    if not argv:
        raise UsageError("no cargo subcommand given to run")


def dispatch(
    run: bool,
    argv: Sequence[str],
    cargo: str = DEFAULT_CARGO,
    runner: Runner = subprocess.call,
) -> int:
    """Run `cargo <argv>` if `run` is set and return the exit code to use.

    Args:
        run: The final decision after the mode has been applied.
        argv: Subcommand name and its arguments, forwarded verbatim.
        cargo: The cargo binary to invoke.
        runner: Spawns the command and returns its return code.

    Returns:
        0 when skipped, otherwise the child's own exit code.

    Raises:
        UsageError: If `argv` is empty.
        DispatchFailure: If the command cannot be spawned or is killed by a signal.
    """
    require_subcommand(argv)

    if not run:
        logger.debug("Conditions not met, skipping: %s", " ".join(argv))
        return 0

    command = build_command(cargo, argv)
    logger.debug("Running: %s", " ".join(command))
    try:
        returncode = runner(command)
    except OSError as e:
        raise DispatchFailure(f"failed to run {cargo!r}: {e}", command, cause=e) from e

    # Negative return codes mean the child was killed by that signal
    if returncode < 0:
        raise DispatchFailure(
            f"{' '.join(command)} terminated by signal {-returncode}",
            command,
            signal=-returncode,
        )
    return returncode
