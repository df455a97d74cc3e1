"""Shared fixtures: fake rustc output and a recording command runner."""

import pytest


STABLE_OUTPUT = "rustc 1.74.0 (79e9716c9 2023-11-13)\n"
NIGHTLY_OUTPUT = "rustc 1.74.0-nightly (59bb9505b 2023-09-15)\n"


class FakeRunner:
    """Stands in for subprocess.call: records argv, returns a fixed code."""

    def __init__(self, returncode: int = 0):
        self.returncode = returncode
        self.calls: list[list[str]] = []

    def __call__(self, command: list[str]) -> int:
        self.calls.append(list(command))
        return self.returncode


@pytest.fixture
def runner():
    return FakeRunner()


@pytest.fixture
def make_runner():
    return FakeRunner


@pytest.fixture
def unreachable_provider():
    """Version provider that fails the test if the compiler is probed."""
    def provider() -> str:
        pytest.fail("compiler should not have been probed")
    return provider
