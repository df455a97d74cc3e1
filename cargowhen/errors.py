"""
cargo-when Errors — Failure types for a single gate invocation.

Every failure is terminal: library code raises one of these, and only the
CLI entry point turns them into a diagnostic and a process exit code.

  - ProbeFailure: rustc could not be run or its output could not be parsed
  - PredicateParseError: a malformed version range or NAME=VALUE string
  - UsageError: the command line is missing something it needs
  - DispatchFailure: the wrapped command could not be spawned, or died
    without an exit status
"""

from typing import Optional


# Exit status used when the wrapped command produced no status of its own
DISPATCH_FAILURE_EXIT_CODE = 127


class CargoWhenError(Exception):
    """Base exception for all cargo-when failures.

    Attributes:
        message: Human-readable description, printed after ``error:``.
        exit_code: Process exit status the CLI should use.
        show_usage: Whether the CLI should print usage after the message.
    """

    exit_code: int = 1
    show_usage: bool = False

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ProbeFailure(CargoWhenError):
    """The compiler could not be invoked, or its version output is unusable."""

    def __init__(self, message: str, cause: Optional[Exception] = None):
        super().__init__(message)
        self.cause = cause


class PredicateParseError(CargoWhenError):
    """A predicate value could not be parsed.

    Attributes:
        kind: Which predicate kind the value belongs to (e.g. "version").
        text: The offending value exactly as given.
    """

    show_usage = True

    def __init__(self, kind: str, text: str, reason: str):
        super().__init__(f"invalid {kind} predicate {text!r}: {reason}")
        self.kind = kind
        self.text = text
        self.reason = reason


class UsageError(CargoWhenError):
    """The invocation is missing a required part of the command line."""

    show_usage = True


class DispatchFailure(CargoWhenError):
    """The wrapped command could not be run to a normal exit.

    Attributes:
        command: The full argv that was (or would have been) spawned.
        signal: Signal number that killed the child, if any.
    """

    exit_code = DISPATCH_FAILURE_EXIT_CODE

    def __init__(
        self,
        message: str,
        command: list[str],
        signal: Optional[int] = None,
        cause: Optional[Exception] = None,
    ):
        super().__init__(message)
        self.command = command
        self.signal = signal
        self.cause = cause
