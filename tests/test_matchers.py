"""Tests for the four predicate matchers."""

import pytest
import semver

from cargowhen.errors import PredicateParseError
from cargowhen.matchers import (
    EnvRequirement,
    channel_matches,
    env_equals,
    env_exists,
    parse_env_requirement,
    snapshot_environment,
    version_matches,
)
from cargowhen.requirement import parse_requirement
from cargowhen.version_detector import CompilerInfo


STABLE = CompilerInfo(channel="stable", version=semver.Version(1, 74, 0))
NIGHTLY = CompilerInfo(channel="nightly", version=semver.Version(1, 76, 0))


class TestChannelMatches:
    """channel_matches(): case-insensitive OR over candidates."""

    def test_vacuous_when_empty(self):
        assert channel_matches(STABLE, []) is True

    def test_single_match(self):
        assert channel_matches(NIGHTLY, ["nightly"]) is True

    def test_any_candidate(self):
        assert channel_matches(STABLE, ["beta", "stable"]) is True

    def test_no_match(self):
        assert channel_matches(NIGHTLY, ["stable", "beta"]) is False

    def test_case_insensitive(self):
        assert channel_matches(STABLE, ["STABLE"]) is True
        info = CompilerInfo(channel="Nightly", version=semver.Version(1, 76, 0))
        assert channel_matches(info, ["nightly"]) is True


class TestVersionMatches:
    """version_matches(): OR over parsed requirements."""

    def test_vacuous_when_empty(self):
        assert version_matches(STABLE, []) is True

    def test_any_requirement(self):
        requirements = [parse_requirement("<1.0"), parse_requirement("^1.70")]
        assert version_matches(STABLE, requirements) is True

    def test_none_match(self):
        requirements = [parse_requirement("<1.0"), parse_requirement(">=1.75")]
        assert version_matches(STABLE, requirements) is False

    def test_uses_stripped_version(self):
        # 1.76.0-nightly is stored as 1.76.0, so a caret range still matches
        assert version_matches(NIGHTLY, [parse_requirement("^1.70")]) is True


class TestEnvExists:
    """env_exists(): presence only, value ignored."""

    def test_vacuous_when_empty(self):
        assert env_exists({}, []) is True

    def test_set_to_empty_string_counts(self):
        assert env_exists({"CI": ""}, ["CI"]) is True

    def test_any_name(self):
        assert env_exists({"B": "1"}, ["A", "B"]) is True

    def test_none_set(self):
        assert env_exists({"C": "1"}, ["A", "B"]) is False


class TestParseEnvRequirement:
    """parse_env_requirement(): split on the first '='."""

    def test_simple(self):
        assert parse_env_requirement("FOO=bar") == EnvRequirement("FOO", "bar")

    def test_value_may_contain_equals(self):
        assert parse_env_requirement("FLAGS=-C opt-level=3") == EnvRequirement("FLAGS", "-C opt-level=3")

    def test_empty_value_allowed(self):
        assert parse_env_requirement("FOO=") == EnvRequirement("FOO", "")

    def test_missing_equals(self):
        with pytest.raises(PredicateParseError) as excinfo:
            parse_env_requirement("FOO")
        assert excinfo.value.kind == "equals"
        assert excinfo.value.text == "FOO"

    def test_empty_name(self):
        with pytest.raises(PredicateParseError):
            parse_env_requirement("=bar")

    def test_str(self):
        assert str(EnvRequirement("FOO", "a=b")) == "FOO=a=b"


class TestEnvEquals:
    """env_equals(): exact, case-sensitive value comparison."""

    def test_vacuous_when_empty(self):
        assert env_equals({}, []) is True

    def test_exact_value(self):
        assert env_equals({"FOO": "bar"}, [EnvRequirement("FOO", "bar")]) is True

    def test_case_sensitive(self):
        assert env_equals({"FOO": "Bar"}, [EnvRequirement("FOO", "bar")]) is False

    def test_no_whitespace_normalization(self):
        assert env_equals({"FOO": "bar "}, [EnvRequirement("FOO", "bar")]) is False

    def test_unset_variable(self):
        assert env_equals({}, [EnvRequirement("FOO", "bar")]) is False

    def test_unset_does_not_equal_empty(self):
        assert env_equals({}, [EnvRequirement("FOO", "")]) is False
        assert env_equals({"FOO": ""}, [EnvRequirement("FOO", "")]) is True

    def test_any_requirement(self):
        requirements = [EnvRequirement("A", "1"), EnvRequirement("B", "2")]
        assert env_equals({"A": "0", "B": "2"}, requirements) is True


class TestSnapshotEnvironment:
    """snapshot_environment(): an immutable copy."""

    def test_copies_mapping(self):
        source = {"FOO": "bar"}
        snapshot = snapshot_environment(source)
        source["FOO"] = "changed"
        assert snapshot["FOO"] == "bar"

    def test_read_only(self):
        snapshot = snapshot_environment({"FOO": "bar"})
        with pytest.raises(TypeError):
            snapshot["FOO"] = "baz"

    def test_defaults_to_process_environment(self, monkeypatch):
        monkeypatch.setenv("CARGO_WHEN_TEST_VAR", "1")
        assert snapshot_environment()["CARGO_WHEN_TEST_VAR"] == "1"
