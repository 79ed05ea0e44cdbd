#=============================================================================
# File        : tests/test_config.py
# Project     : TrackObjects v1.0
# Component   : Configuration Test Suite
# Description : Token parsing, environment overrides and merging
# Version     : 1.0.0
# Created     : 2025-09-02
#=============================================================================

import re

import pytest

from trackobjects.conditions import (
    LiteralCondition,
    PatternCondition,
    PredicateCondition,
)
from trackobjects.config import (
    ConfigurationError,
    TrackerConfig,
    parse_condition,
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("TRACKOBJECTS", "TRACKOBJECTS_VERBOSE",
                 "TRACKOBJECTS_NOEND", "TRACKOBJECTS_DEBUG"):
        monkeypatch.delenv(name, raising=False)


class TestParseCondition:
    """Turning single tokens into conditions."""

    def test_plain_string_is_literal(self):
        assert parse_condition("myapp.models.User") == LiteralCondition("myapp.models.User")

    def test_slashed_string_is_pattern(self):
        c = parse_condition("/^Bar/")
        assert isinstance(c, PatternCondition)
        assert c.matches("Barista")
        assert not c.matches("Foobar")

    def test_pattern_flags(self):
        c = parse_condition("/^bar/i")
        assert c.pattern.flags & re.IGNORECASE
        assert c.matches("Barista")

    def test_compiled_pattern(self):
        rx = re.compile(r"Conn")
        assert parse_condition(rx) == PatternCondition(rx)

    def test_callable_is_predicate(self):
        c = parse_condition(str.isupper)
        assert isinstance(c, PredicateCondition)
        assert c.matches("ABC")

    def test_condition_passes_through(self):
        c = LiteralCondition("Foo")
        assert parse_condition(c) is c

    @pytest.mark.parametrize("token", ["/unterminated", "/a/q"])
    def test_malformed_pattern(self, token):
        with pytest.raises(ConfigurationError, match="malformed pattern"):
            parse_condition(token)

    def test_invalid_regex(self):
        with pytest.raises(ConfigurationError, match="invalid pattern"):
            parse_condition("/(unbalanced/")

    @pytest.mark.parametrize("token", [42, None, 3.5])
    def test_unsupported_token(self, token):
        with pytest.raises(ConfigurationError, match="unsupported condition"):
            parse_condition(token)

    def test_empty_string_rejected(self):
        with pytest.raises(ConfigurationError):
            parse_condition("")

    def test_error_is_value_error(self):
        assert issubclass(ConfigurationError, ValueError)


class TestTrackerConfig:
    """Building configurations from tokens."""

    def test_defaults_track_nothing(self):
        config = TrackerConfig()
        assert config.conditions == ()
        assert not config.has_conditions
        assert not (config.verbose or config.no_end or config.debug)

    def test_options_set_flags(self):
        config = TrackerConfig.from_tokens(["-verbose", "-noend", "-debug"])
        assert config.verbose and config.no_end and config.debug
        assert config.conditions == ()

    def test_mixed_tokens_keep_order(self):
        config = TrackerConfig.from_tokens(["Foo", "-verbose", "/^Bar/"])
        assert [c.kind for c in config.conditions] == ["literal", "pattern"]
        assert config.verbose

    def test_unknown_option(self):
        with pytest.raises(ConfigurationError, match="unknown option frobnicate"):
            TrackerConfig.from_tokens(["Foo", "-frobnicate"])

    def test_tokens_accumulate_on_base(self):
        base = TrackerConfig.from_tokens(["Foo", "-verbose"])
        config = TrackerConfig.from_tokens(["Bar", "-noend"], base=base)
        assert [c.describe() for c in config.conditions] == ["Foo", "Bar"]
        assert config.verbose and config.no_end
        # base is immutable
        assert len(base.conditions) == 1
        assert not base.no_end

    def test_failed_parse_leaves_base_untouched(self):
        base = TrackerConfig.from_tokens(["Foo"])
        with pytest.raises(ConfigurationError):
            TrackerConfig.from_tokens(["Bar", "-bogus"], base=base)
        assert [c.describe() for c in base.conditions] == ["Foo"]

    def test_non_condition_rejected(self):
        with pytest.raises(ConfigurationError):
            TrackerConfig(conditions=("Foo",))

    def test_options_round_trip(self):
        config = TrackerConfig.from_tokens(["-noend", "-debug"])
        assert config.options() == ("-debug", "-noend")
        assert TrackerConfig.from_tokens(config.options()) == config

    def test_merge(self):
        config = TrackerConfig.from_tokens(["Foo"])
        merged = config.merge(verbose=True)
        assert merged.verbose
        assert merged.conditions == config.conditions
        assert not config.verbose

    def test_repr_is_short(self):
        config = TrackerConfig.from_tokens(["Foo", "/^Bar/"])
        assert repr(config) == ("TrackerConfig(conditions=2, verbose=False, "
                                "no_end=False, debug=False)")


class TestEnvironment:
    """TRACKOBJECTS* environment variables."""

    def test_empty_environment(self):
        assert TrackerConfig.from_env() == TrackerConfig()

    def test_token_list(self, monkeypatch):
        monkeypatch.setenv("TRACKOBJECTS", "'/^app\\./i' -verbose myapp.Foo")
        config = TrackerConfig.from_env()
        assert [c.describe() for c in config.conditions] == ["/^app\\./", "myapp.Foo"]
        assert config.conditions[0].matches("APP.models")
        assert config.verbose

    def test_boolean_overrides(self, monkeypatch):
        monkeypatch.setenv("TRACKOBJECTS_NOEND", "yes")
        monkeypatch.setenv("TRACKOBJECTS_DEBUG", "1")
        config = TrackerConfig.from_env()
        assert config.no_end and config.debug
        assert not config.verbose

    def test_boolean_never_clears_flag(self, monkeypatch):
        monkeypatch.setenv("TRACKOBJECTS_VERBOSE", "0")
        monkeypatch.setenv("TRACKOBJECTS_NOEND", "off")
        monkeypatch.setenv("TRACKOBJECTS", "-noend")
        config = TrackerConfig.from_env(base=TrackerConfig(verbose=True))
        assert config.verbose
        assert config.no_end

    def test_bad_quoting(self, monkeypatch):
        monkeypatch.setenv("TRACKOBJECTS", "'unterminated")
        with pytest.raises(ConfigurationError, match="TRACKOBJECTS"):
            TrackerConfig.from_env()

    def test_bad_token(self, monkeypatch):
        monkeypatch.setenv("TRACKOBJECTS", "-nope")
        with pytest.raises(ConfigurationError):
            TrackerConfig.from_env()
