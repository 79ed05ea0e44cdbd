#=============================================================================
# File        : trackobjects/config.py
# Project     : TrackObjects v1.0
# Component   : Configuration - Tracker Configuration Dataclass
# Description : Immutable tracker configuration built from option tokens
#               • Token parsing (conditions, -debug/-verbose/-noend options)
#               • Environment variable overrides for ops
#               • Accumulating merge for repeated configuration calls
# Version     : 1.0.0
# Technology  : Python 3.8+, Dataclasses
# Standards   : PEP 8, Type Hints, Immutable Configuration
# Created     : 2025-09-02
# Dependencies: dataclasses, typing, os, shlex, conditions
# License     : MIT License
#=============================================================================

from __future__ import annotations

import os
import re
import shlex
from dataclasses import dataclass, replace
from typing import Any, Iterable, Optional, Tuple

from .conditions import (
    Condition,
    LiteralCondition,
    PatternCondition,
    PredicateCondition,
)

# Option tokens look like "-verbose"; the name maps onto a config field.
_OPTION_RE = re.compile(r"^-(\w+)$")
OPTION_FIELDS = {
    "debug": "debug",
    "verbose": "verbose",
    "noend": "no_end",
}

# "/source/flags" as typed on a command line, flags as in Perl's qr//
_PATTERN_TOKEN_RE = re.compile(r"^/(.*)/([imsx]*)$", re.DOTALL)
_PATTERN_FLAGS = {
    "i": re.IGNORECASE,
    "m": re.MULTILINE,
    "s": re.DOTALL,
    "x": re.VERBOSE,
}

ENV_TOKENS = "TRACKOBJECTS"


class ConfigurationError(ValueError):
    """Invalid tracker configuration (unknown option, bad pattern, ...)."""


def compile_pattern_token(token: str) -> PatternCondition:
    """Compile a ``/source/flags`` token into a pattern condition."""
    m = _PATTERN_TOKEN_RE.match(token)
    if not m:
        raise ConfigurationError(f"malformed pattern {token!r}, expected /regex/")
    source, flag_chars = m.groups()
    flags = 0
    for ch in flag_chars:
        flags |= _PATTERN_FLAGS[ch]
    try:
        return PatternCondition(re.compile(source, flags))
    except re.error as e:
        raise ConfigurationError(f"invalid pattern {token!r}: {e}") from e


def parse_condition(token: Any) -> Condition:
    """
    Turn one configuration token into a condition.

    Strings starting with "/" are compiled as patterns, other strings are
    literal names. Compiled patterns and callables are taken as they are.
    """
    if isinstance(token, Condition):
        return token
    if isinstance(token, re.Pattern):
        return PatternCondition(token)
    if isinstance(token, str):
        if token.startswith("/"):
            return compile_pattern_token(token)
        if not token:
            raise ConfigurationError("empty condition")
        return LiteralCondition(token)
    if callable(token):
        return PredicateCondition(token)
    raise ConfigurationError(f"unsupported condition {token!r}")


def _env_bool(name: str, default: bool) -> bool:
    v = os.getenv(name)
    if v is None: return default
    return v.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class TrackerConfig:
    """
    Tracker runtime configuration.

    Defaults track nothing: with no conditions the construction hook is
    never installed and tracking costs nothing.
    """
    conditions: Tuple[Condition, ...] = ()
    verbose: bool = False   # detailed instead of compact reports
    no_end: bool = False    # no report at interpreter exit
    debug: bool = False     # trace every registration

    def __post_init__(self):
        conditions = tuple(self.conditions)
        for c in conditions:
            if not isinstance(c, Condition):
                raise ConfigurationError(f"Not a condition: {c!r}")
        object.__setattr__(self, "conditions", conditions)

    # --------- Factory helpers ---------

    @classmethod
    def from_tokens(cls, tokens: Iterable[Any],
                    base: Optional["TrackerConfig"] = None) -> "TrackerConfig":
        """
        Parse configuration tokens on top of ``base``.

        Each token is either an option (``-debug``, ``-verbose``,
        ``-noend``) or a condition (literal name, ``/pattern/`` string,
        compiled pattern or callable). Conditions are appended to those of
        ``base`` and options are switched on; nothing is ever switched off.

        Raises:
            ConfigurationError: unknown option or malformed condition. The
                base config is left untouched.
        """
        base = base or cls()
        conditions = list(base.conditions)
        flags = {name: getattr(base, name) for name in OPTION_FIELDS.values()}

        for token in tokens:
            if isinstance(token, str):
                m = _OPTION_RE.match(token)
                if m:
                    field_name = OPTION_FIELDS.get(m.group(1))
                    if field_name is None:
                        raise ConfigurationError(f"unknown option {m.group(1)}")
                    flags[field_name] = True
                    continue
            conditions.append(parse_condition(token))

        return replace(base, conditions=tuple(conditions), **flags)

    @classmethod
    def from_env(cls, base: Optional["TrackerConfig"] = None) -> "TrackerConfig":
        """
        Build config from environment variables, overlaying a base config.
        Supported envs:
          TRACKOBJECTS           shell-quoted token list, e.g. "/^app\\./ -verbose"
          TRACKOBJECTS_VERBOSE   (0|1)
          TRACKOBJECTS_NOEND     (0|1)
          TRACKOBJECTS_DEBUG     (0|1)
        The boolean variables can only switch an option on; like option
        tokens they never clear a flag already set.
        """
        base = base or cls()
        raw = os.getenv(ENV_TOKENS, "")
        try:
            tokens = shlex.split(raw)
        except ValueError as e:
            raise ConfigurationError(f"{ENV_TOKENS}: {e}") from e

        cfg = cls.from_tokens(tokens, base=base)
        return replace(
            cfg,
            verbose=cfg.verbose or _env_bool("TRACKOBJECTS_VERBOSE", False),
            no_end=cfg.no_end or _env_bool("TRACKOBJECTS_NOEND", False),
            debug=cfg.debug or _env_bool("TRACKOBJECTS_DEBUG", False),
        )

    def merge(self, **overrides) -> "TrackerConfig":
        """Return a copy with provided fields overridden (immutably)."""
        return replace(self, **overrides)

    # --------- Convenience getters ---------

    @property
    def has_conditions(self) -> bool:
        return bool(self.conditions)

    def options(self) -> Tuple[str, ...]:
        """Option tokens equivalent to the flags currently set."""
        return tuple(f"-{opt}" for opt, name in OPTION_FIELDS.items()
                     if getattr(self, name))

    def __repr__(self) -> str:
        return (f"TrackerConfig(conditions={len(self.conditions)}, "
                f"verbose={self.verbose}, no_end={self.no_end}, debug={self.debug})")
