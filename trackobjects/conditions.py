#=============================================================================
# File        : trackobjects/conditions.py
# Project     : TrackObjects v1.0
# Component   : Conditions - Which Constructions Get Tracked
# Description : Tagged condition variants with uniform matching
#               • Literal names, regex patterns and predicate callables
#               • OR semantics with first-match short circuit
# Version     : 1.0.0
# Technology  : Python 3.8+, Dataclasses
# Standards   : PEP 8, Type Hints
# Created     : 2025-09-02
# Dependencies: re, dataclasses, typing
# License     : MIT License
#=============================================================================

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Tuple


class Condition:
    """Base for all condition kinds; subclasses implement ``matches``."""

    kind = "condition"

    def matches(self, value: str) -> bool:
        raise NotImplementedError

    def describe(self) -> str:
        raise NotImplementedError


@dataclass(frozen=True)
class LiteralCondition(Condition):
    """Exact class or module name."""
    name: str

    kind = "literal"

    def matches(self, value: str) -> bool:
        return value == self.name

    def describe(self) -> str:
        return self.name


@dataclass(frozen=True)
class PatternCondition(Condition):
    """Regular expression searched anywhere in the name."""
    pattern: "re.Pattern[str]"

    kind = "pattern"

    def matches(self, value: str) -> bool:
        return self.pattern.search(value) is not None

    def describe(self) -> str:
        return f"/{self.pattern.pattern}/"


@dataclass(frozen=True)
class PredicateCondition(Condition):
    """User callable deciding on a name; any truthy result is a match."""
    func: Callable[[str], Any]

    kind = "predicate"

    def matches(self, value: str) -> bool:
        return bool(self.func(value))

    def describe(self) -> str:
        module = getattr(self.func, "__module__", None) or "?"
        name = getattr(self.func, "__qualname__", None) or repr(self.func)
        return f"{module}:{name}"


class ConditionSet:
    """
    Ordered set of conditions evaluated with OR semantics.

    Every condition kind is tested against the constructing module name
    first and the class name second; the first hit wins. An empty set
    matches everything, which only matters if a hook was installed
    without conditions.
    """

    def __init__(self, conditions: Iterable[Condition] = ()):
        self._conditions: Tuple[Condition, ...] = tuple(conditions)

    @property
    def conditions(self) -> Tuple[Condition, ...]:
        return self._conditions

    def extend(self, conditions: Iterable[Condition]) -> None:
        # Rebinding the tuple keeps concurrent readers consistent.
        self._conditions = self._conditions + tuple(conditions)

    def matches(self, caller_package: str, class_name: str) -> bool:
        conditions = self._conditions
        if not conditions:
            return True
        for c in conditions:
            if c.matches(caller_package) or c.matches(class_name):
                return True
        return False

    def __len__(self) -> int:
        return len(self._conditions)

    def __bool__(self) -> bool:
        return bool(self._conditions)

    def __iter__(self):
        return iter(self._conditions)

    def __repr__(self) -> str:
        return f"ConditionSet({', '.join(c.describe() for c in self._conditions)})"
