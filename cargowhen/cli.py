"""
cargo-when — Run cargo subcommands conditionally upon the rustc version.

Cargo runs plugins as `cargo-<name> <name> ...`, so both console scripts
share one parser with `when` and `unless` subcommands:

Usage:
    cargo when   -c nightly build --features unstable
    cargo unless -v "^1.70" -x CI test
    cargo when   -e PROFILE=release -c stable,beta bench

Invoked directly as `cargo-when` or `cargo-unless`, the subcommand may be
left out and is taken from the program name.
"""

import argparse
import logging
import subprocess
import sys
from pathlib import Path
from typing import Mapping, Optional, Sequence

from cargowhen import __version__
from cargowhen.config import Settings, load_settings
from cargowhen.dispatcher import Runner, dispatch, require_subcommand
from cargowhen.errors import CargoWhenError, UsageError
from cargowhen.evaluator import Mode, PredicateSpec, compile_predicate, evaluate, should_dispatch
from cargowhen.matchers import snapshot_environment
from cargowhen.version_detector import VersionProvider, probe_compiler

logger = logging.getLogger(__name__)


CHANNELS = ("stable", "beta", "nightly")
_TOP_LEVEL_FLAGS = {"-h", "--help", "-V", "--version"}

AFTER_HELP = (
    "To specify a set of multiple possible matches for an option, separate "
    "the values by a comma and no spaces. At least one match option is "
    "required. If multiple match options are present, each option specifies "
    "an additional match requirement for any of the set of possible values "
    "for that option."
)

ABOUT = {
    Mode.WHEN: (
        "Runs subsequent cargo command only when the specified options match "
        "the current rustc version and environment."
    ),
    Mode.UNLESS: (
        "Runs subsequent cargo command except when the specified options match "
        "the current rustc version and environment. This is the negation of "
        "'cargo when'."
    ),
}


class _ArgumentParser(argparse.ArgumentParser):
    """ArgumentParser that exits with status 1 on usage errors."""

    def error(self, message: str):
        self.print_usage(sys.stderr)
        self.exit(1, f"{self.prog}: error: {message}\n")


def comma_list(value: str) -> list[str]:
    """Split a comma-delimited option value, rejecting empty elements."""
    items = value.split(",")
    if any(not item for item in items):
        raise argparse.ArgumentTypeError(f"empty value in {value!r}")
    return items


def channel_list(value: str) -> list[str]:
    """Comma list of channel names, lower-cased and validated."""
    channels = [item.lower() for item in comma_list(value)]
    for channel in channels:
        if channel not in CHANNELS:
            raise argparse.ArgumentTypeError(
                f"invalid channel {channel!r} (choose from {', '.join(CHANNELS)})"
            )
    return channels


def _add_mode_parser(sub, mode: Mode) -> None:
    parser = sub.add_parser(
        mode.value,
        usage=f"cargo {mode.value} [OPTIONS] <CARGO SUBCOMMAND> [SUBCOMMAND OPTIONS]",
        help=ABOUT[mode],
        description=ABOUT[mode],
        epilog=AFTER_HELP,
    )
    parser.add_argument(
        "--channel", "-c",
        dest="channels", type=channel_list, action="extend", metavar="CHANNEL",
        help=f"Matches rustc release channel(s): {', '.join(CHANNELS)}",
    )
    parser.add_argument(
        "--version", "-v",
        dest="version_ranges", type=comma_list, action="extend", metavar="VERSION",
        help="Matches rustc version(s) using same rules and version syntax as Cargo",
    )
    parser.add_argument(
        "--exists", "-x",
        dest="env_names", type=comma_list, action="extend", metavar="VAR",
        help="Matches if environment variable(s) are set",
    )
    parser.add_argument(
        "--equals", "-e",
        dest="env_requirements", type=comma_list, action="extend", metavar="NAME=VALUE",
        help="Matches if environment variable(s) are set to the given value",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "command",
        nargs=argparse.REMAINDER,
        metavar="CARGO SUBCOMMAND",
        help="Cargo subcommand to run, followed by its own arguments",
    )
    parser.set_defaults(mode=mode, parser=parser)


def build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        prog="cargo",
        description="Runs other cargo commands conditionally upon rustc version.",
    )
    parser.add_argument(
        "-V", "--version",
        action="version",
        version=f"cargo-when {__version__}",
    )

    sub = parser.add_subparsers(dest="verb", required=True, parser_class=_ArgumentParser)
    _add_mode_parser(sub, Mode.WHEN)
    _add_mode_parser(sub, Mode.UNLESS)

    return parser


def normalize_argv(argv: Sequence[str], prog: str) -> list[str]:
    """Insert the subcommand when invoked directly as cargo-when/cargo-unless."""
    argv = list(argv)
    modes = {mode.value for mode in Mode}
    if argv and (argv[0] in modes or argv[0] in _TOP_LEVEL_FLAGS):
        return argv
    if prog.endswith("unless"):
        return [Mode.UNLESS.value, *argv]
    if prog.endswith("when"):
        return [Mode.WHEN.value, *argv]
    return argv


def configure_logging(debug: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="[%(name)s] %(levelname)s: %(message)s",
        stream=sys.stderr,
    )


def run(
    args: argparse.Namespace,
    settings: Settings,
    version_provider: Optional[VersionProvider] = None,
    environ: Optional[Mapping[str, str]] = None,
    runner: Runner = subprocess.call,
) -> int:
    """Evaluate the parsed command line and dispatch. Returns the exit code."""
    spec = PredicateSpec(
        channels=args.channels or [],
        version_ranges=args.version_ranges or [],
        env_names=args.env_names or [],
        env_requirements=args.env_requirements or [],
    )
    if spec.is_empty:
        raise UsageError(
            "at least one of --channel, --version, --exists or --equals is required"
        )

    command = list(args.command)
    if command and command[0] == "--":
        command = command[1:]
    require_subcommand(command)
    logger.debug("cargo %s: %s -> %s", args.mode.value, spec, command)

    predicate = compile_predicate(spec)
    info = probe_compiler(version_provider, rustc=settings.rustc)
    matched = evaluate(predicate, info, snapshot_environment(environ))
    return dispatch(should_dispatch(args.mode, matched), command, cargo=settings.cargo, runner=runner)


def main(
    argv: Optional[Sequence[str]] = None,
    prog: Optional[str] = None,
    version_provider: Optional[VersionProvider] = None,
    environ: Optional[Mapping[str, str]] = None,
    runner: Runner = subprocess.call,
) -> int:
    if argv is None:
        argv = sys.argv[1:]
    if prog is None:
        prog = Path(sys.argv[0]).name

    settings = load_settings(environ)
    parser = build_parser()
    argv = normalize_argv(argv, prog)
    if not argv:
        parser.print_help(sys.stderr)
        return 1

    args = parser.parse_args(argv)
    configure_logging(args.debug or settings.debug)

    # `cargo when` with nothing else prints that subcommand's help
    if len(argv) == 1:
        args.parser.print_help(sys.stderr)
        return 1

    try:
        return run(args, settings, version_provider=version_provider,
                   environ=environ, runner=runner)
    except CargoWhenError as e:
        print(f"error: {e.message}", file=sys.stderr)
        if e.show_usage:
            args.parser.print_usage(sys.stderr)
        return e.exit_code


if __name__ == "__main__":
    sys.exit(main())
