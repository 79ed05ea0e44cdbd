#=============================================================================
# File        : trackobjects/registry.py
# Project     : TrackObjects v1.0
# Component   : Weak Registry - Non-owning Store of Tracked Objects
# Description : Append-only store of weak handles with lazy pruning
#               • O(1) registration under a short lock
#               • Prune-and-copy snapshots safe against concurrent GC
#               • Optional per-registration debug trace
# Version     : 1.0.0
# Technology  : Python 3.8+, Weak References, Threading
# Standards   : PEP 8, Type Hints, Thread Safety
# Created     : 2025-09-02
# Dependencies: weakref, threading, logging
# License     : MIT License
#=============================================================================

from __future__ import annotations

import logging
import sys
import threading
import weakref
from dataclasses import dataclass
from typing import Any, List, NamedTuple, Optional, TextIO

_logger = logging.getLogger(__name__)
_logger.setLevel(logging.WARNING)  # Only WARN/ERROR by default


def class_name_of(cls: type) -> str:
    """Dotted ``module.QualName`` used for conditions and reports."""
    module = getattr(cls, "__module__", None)
    qualname = getattr(cls, "__qualname__", None) or cls.__name__
    if not module or module == "builtins":
        return qualname
    return f"{module}.{qualname}"


@dataclass(frozen=True)
class TrackedHandle:
    """Weak handle to a tracked object plus the site that constructed it."""
    reference: weakref.ref
    source_file: str
    source_line: int

    @property
    def is_alive(self) -> bool:
        return self.reference() is not None


class TrackedObject(NamedTuple):
    """Live tracked object as handed out by snapshots and detailed reports."""
    obj: Any
    source_file: str
    source_line: int


class WeakRegistry:
    """
    Registry of weak handles to tracked objects.

    Handles are never removed when their object dies, only by ``prune``,
    which every snapshot runs first. Registration never prunes so its cost
    does not depend on the registry size.
    """

    def __init__(self, debug: bool = False, stream: Optional[TextIO] = None):
        self.debug = debug
        self.stream = stream
        self._handles: List[TrackedHandle] = []
        self._lock = threading.RLock()  # finalizers may construct tracked objects

    def register(self, obj: Any, source_file: str, source_line: int) -> bool:
        """
        Add a weak handle for ``obj``.

        Returns False if the object cannot be weakly referenced, in which
        case nothing is stored.
        """
        try:
            ref = weakref.ref(obj)
        except TypeError:
            _logger.debug(f"Cannot track {class_name_of(type(obj))}: "
                          f"no weak reference support")
            return False

        if self.debug:
            self._trace(obj, source_file, source_line)

        handle = TrackedHandle(ref, source_file, source_line)
        with self._lock:
            self._handles.append(handle)
        return True

    def prune(self) -> int:
        """Drop handles whose object has been collected; returns how many."""
        with self._lock:
            return self._prune_locked()

    def snapshot(self) -> List[TrackedObject]:
        """
        Prune, then resolve every remaining handle once.

        The returned objects are strong references; an object collected
        while the snapshot is taken is left out rather than returned as
        a dead entry.
        """
        with self._lock:
            self._prune_locked()
            live = []
            for h in self._handles:
                obj = h.reference()
                if obj is not None:
                    live.append(TrackedObject(obj, h.source_file, h.source_line))
            return live

    def _prune_locked(self) -> int:
        before = len(self._handles)
        self._handles = [h for h in self._handles if h.reference() is not None]
        return before - len(self._handles)

    def _trace(self, obj: Any, source_file: str, source_line: int) -> None:
        stream = self.stream or sys.stderr
        try:
            stream.write(f"TrackObjects: register {class_name_of(type(obj))} "
                         f"object at {id(obj):#x} {source_file}:{source_line}\n")
        except (OSError, ValueError) as e:
            _logger.debug(f"Debug trace failed: {e}")

    def __len__(self) -> int:
        with self._lock:
            return len(self._handles)

    def __repr__(self) -> str:
        return f"WeakRegistry(handles={len(self)}, debug={self.debug})"
