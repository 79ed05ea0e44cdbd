#=============================================================================
# File        : trackobjects/__init__.py
# Project     : TrackObjects v1.0
# Component   : Package Initialization
# Description : Track construction of objects and report the ones that
#               are still alive (probably leaking)
#               • Construction hook installed only when conditions exist
#               • Weak references: tracking never keeps an object alive
#               • Compact and detailed LEAK reports, on demand and at exit
# Version     : 1.0.0
# Technology  : Python 3.8+, Weak References, Runtime Instrumentation
# Standards   : PEP 8, Type Hints, Dataclasses
# Created     : 2025-09-02
# Dependencies: logging, weakref, threading
# License     : MIT License
#=============================================================================

"""
TrackObjects - find objects that outlive their welcome

Hooks object construction, remembers a weak reference plus the file and
line for every object whose class (or constructing module) matches one of
the configured conditions, and reports the survivors.

Quick Start:
    import trackobjects
    trackobjects.track("/^myapp\\.net\\./")    # as early as possible

    import myapp.net
    ...
    trackobjects.show_tracked()    # LEAK >> myapp.net.Connection=3 --

Conditions are literal names ("myapp.models.User"), "/regex/" strings,
compiled patterns or callables taking a name. "-verbose" switches to the
detailed report, "-noend" disables the report at exit and "-debug" traces
every registration.

From the command line:
    trackobjects run -c '/^myapp\\./' --verbose server.py
"""

import logging

from .conditions import (
    Condition,
    ConditionSet,
    LiteralCondition,
    PatternCondition,
    PredicateCondition,
)

from .config import (
    ConfigurationError,
    TrackerConfig,
    parse_condition,
)

from .registry import (
    TrackedHandle,
    TrackedObject,
    WeakRegistry,
)

from .report import Reporter

from .guards.construction_guard import ConstructionInterceptor

from .core import (
    Tracker,
    get_tracker,
    track,
    instrument,
    show_tracked,
    show_tracked_compact,
    show_tracked_detailed,
    get_status,
)

__version__ = "1.0.0"
__license__ = "MIT"
__description__ = "Track object construction and report leaked objects"

# Add console handler only if none exists
_logger = logging.getLogger(__name__)
if not _logger.handlers and not logging.getLogger().handlers:
    _console_handler = logging.StreamHandler()
    _console_handler.setLevel(logging.WARNING)
    _formatter = logging.Formatter('[TrackObjects] %(levelname)s: %(message)s')
    _console_handler.setFormatter(_formatter)
    _logger.addHandler(_console_handler)

__all__ = [
    # Process-wide API
    "track",
    "instrument",
    "show_tracked",
    "show_tracked_compact",
    "show_tracked_detailed",
    "get_tracker",
    "get_status",

    # Building blocks
    "Tracker",
    "TrackerConfig",
    "ConditionSet",
    "Condition",
    "LiteralCondition",
    "PatternCondition",
    "PredicateCondition",
    "WeakRegistry",
    "TrackedHandle",
    "TrackedObject",
    "Reporter",
    "ConstructionInterceptor",
    "parse_condition",

    # Errors
    "ConfigurationError",

    # Metadata
    "__version__",
    "__license__",
]
