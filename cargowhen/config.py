"""Runtime settings read from the process environment.

Cargo exports ``RUSTC`` and ``CARGO`` to the plugins it runs, so honouring
them keeps the probe and the wrapped command on the same toolchain that
invoked us.
"""

import os
from dataclasses import dataclass
from typing import Mapping, Optional


DEFAULT_RUSTC = "rustc"
DEFAULT_CARGO = "cargo"

RUSTC_ENV = "RUSTC"
CARGO_ENV = "CARGO"
DEBUG_ENV = "CARGO_WHEN_DEBUG"

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    """Binaries to use and whether debug logging is on."""
    rustc: str = DEFAULT_RUSTC
    cargo: str = DEFAULT_CARGO
    debug: bool = False


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """Build Settings from an environment mapping (defaults to os.environ).

    Empty values are treated as unset.
    """
    if environ is None:
        environ = os.environ

    return Settings(
        rustc=environ.get(RUSTC_ENV) or DEFAULT_RUSTC,
        cargo=environ.get(CARGO_ENV) or DEFAULT_CARGO,
        debug=environ.get(DEBUG_ENV, "").strip().lower() in _TRUTHY,
    )
