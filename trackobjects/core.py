#=============================================================================
# File        : trackobjects/core.py
# Project     : TrackObjects v1.0
# Component   : Core Orchestrator - Tracker Context and Process API
# Description : Ties conditions, registry, interceptor and reporter together
#               • Tracker context object (independent instances for tests)
#               • Process-wide default tracker: track(), show_tracked()
#               • Automatic leak report at interpreter exit
# Version     : 1.0.0
# Technology  : Python 3.8+, Threading
# Standards   : PEP 8, Type Hints, Production Safety
# Created     : 2025-09-02
# Dependencies: config, conditions, registry, report, guards
# License     : MIT License
#=============================================================================

from __future__ import annotations

import atexit
import logging
import threading
import time
from typing import Any, Dict, Optional, TextIO

from .conditions import ConditionSet
from .config import TrackerConfig
from .guards.construction_guard import ConstructionInterceptor
from .registry import WeakRegistry, class_name_of
from .report import Reporter

_logger = logging.getLogger(__name__)
_logger.setLevel(logging.WARNING)  # Only WARN/ERROR by default


class Tracker:
    """
    One leak tracker: its configuration, registry and construction hook.

    The hook is installed as soon as the tracker has at least one
    condition and stays installed for the rest of the process. Without
    conditions nothing is installed and constructing objects costs nothing
    extra.

    Example:
        tracker = Tracker.from_tokens("/^myapp\\.net\\./", "-verbose")
        ...
        tracker.show_tracked(" after shutdown")
    """

    def __init__(self, config: Optional[TrackerConfig] = None,
                 stream: Optional[TextIO] = None):
        self._config = config or TrackerConfig()
        self._lock = threading.RLock()
        self._end_reported = False
        self._created_at = time.time()

        self.conditions = ConditionSet(self._config.conditions)
        self.registry = WeakRegistry(debug=self._config.debug, stream=stream)
        self.reporter = Reporter(self.registry, stream=stream)
        self.interceptor = ConstructionInterceptor(self.conditions, self.registry)

        if self.conditions:
            self.arm()

    @classmethod
    def from_tokens(cls, *tokens: Any, stream: Optional[TextIO] = None) -> "Tracker":
        return cls(TrackerConfig.from_tokens(tokens), stream=stream)

    # --------- Configuration ---------

    @property
    def config(self) -> TrackerConfig:
        return self._config

    @property
    def stream(self) -> Optional[TextIO]:
        return self.reporter.stream

    @stream.setter
    def stream(self, stream: Optional[TextIO]) -> None:
        self.reporter.stream = stream
        self.registry.stream = stream

    def configure(self, *tokens: Any) -> "Tracker":
        """
        Add conditions and switch on options.

        Tokens are parsed completely before anything changes, so a
        ConfigurationError leaves the tracker as it was.
        """
        with self._lock:
            new_config = TrackerConfig.from_tokens(tokens, base=self._config)
            added = new_config.conditions[len(self._config.conditions):]
            self._config = new_config
            self.conditions.extend(added)
            self.registry.debug = new_config.debug
            if self.conditions:
                self.arm()
        return self

    def arm(self) -> bool:
        """Install the construction hook; True if this call installed it."""
        if not self.conditions:
            _logger.debug("No conditions configured, construction hook not installed")
            return False
        installed = self.interceptor.install()
        if installed:
            _logger.info(f"Tracking objects matching {self.conditions!r}")
        return installed

    @property
    def is_armed(self) -> bool:
        return self.interceptor.installed

    def instrument(self, cls: type) -> type:
        """
        Class decorator routing construction of ``cls`` through this tracker.

        Needed for classes created before the hook was installed.

        Raises:
            TypeError: if the class cannot be instrumented.
        """
        if not self.interceptor.instrument(cls):
            raise TypeError(f"Cannot track instances of {class_name_of(cls)}")
        return cls

    # --------- Reporting ---------

    def show_tracked(self, prefix: str = "", collect: bool = False):
        """Detailed report if ``-verbose`` was given, compact otherwise."""
        return self.reporter.report(prefix, verbose=self._config.verbose,
                                    collect=collect)

    def show_tracked_compact(self, prefix: str = "", collect: bool = False):
        return self.reporter.report_compact(prefix, collect=collect)

    def show_tracked_detailed(self, prefix: str = "", collect: bool = False):
        return self.reporter.report_detailed(prefix, collect=collect)

    def end_report(self) -> bool:
        """
        Report once at shutdown unless ``-noend`` was given.

        Only armed trackers report; returns True if a report was written.
        """
        with self._lock:
            if self._end_reported or self._config.no_end or not self.is_armed:
                return False
            self._end_reported = True
        self.show_tracked()
        return True

    def get_status(self) -> Dict[str, Any]:
        return {
            'is_armed': self.is_armed,
            'conditions': [c.describe() for c in self.conditions],
            'options': list(self._config.options()),
            'registry_size': len(self.registry),
            'uptime_seconds': time.time() - self._created_at,
            'performance_stats': self.interceptor.get_performance_stats(),
        }

    def __repr__(self) -> str:
        return f"Tracker({self._config!r}, armed={self.is_armed})"


# Process-wide default tracker, created on first use
_default_tracker: Optional[Tracker] = None
_default_lock = threading.Lock()


def get_tracker() -> Tracker:
    """Return the process-wide tracker, creating it unconfigured if needed."""
    global _default_tracker
    with _default_lock:
        if _default_tracker is None:
            _default_tracker = Tracker()
        return _default_tracker


def track(*tokens: Any) -> Tracker:
    """
    Configure the process-wide tracker.

    Call as early as possible: only classes created after the first
    condition is configured are tracked automatically.

        import trackobjects
        trackobjects.track("/^socket\\./", "-verbose")
    """
    return get_tracker().configure(*tokens)


def instrument(cls: type) -> type:
    return get_tracker().instrument(cls)


def show_tracked(prefix: str = "", collect: bool = False):
    return get_tracker().show_tracked(prefix, collect=collect)


def show_tracked_compact(prefix: str = "", collect: bool = False):
    return get_tracker().show_tracked_compact(prefix, collect=collect)


def show_tracked_detailed(prefix: str = "", collect: bool = False):
    return get_tracker().show_tracked_detailed(prefix, collect=collect)


def get_status() -> Dict[str, Any]:
    return get_tracker().get_status()


# Module cleanup on exit
def _report_on_exit():
    """Write the end-of-process report of the default tracker."""
    tracker = _default_tracker
    if tracker is None:
        return
    try:
        tracker.end_report()
    except Exception as e:
        _logger.error(f"Leak report at exit failed: {e}")


atexit.register(_report_on_exit)


__all__ = [
    'Tracker',
    'get_tracker',
    'track',
    'instrument',
    'show_tracked',
    'show_tracked_compact',
    'show_tracked_detailed',
    'get_status',
]
