"""
cargo-when — Conditional cargo command gate.

Runs a cargo subcommand only when the rustc version, release channel and
environment match the requested conditions (or, for `cargo unless`, only
when they do not).
"""

__version__ = "0.1.0"
