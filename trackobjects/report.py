#=============================================================================
# File        : trackobjects/report.py
# Project     : TrackObjects v1.0
# Component   : Report - Leak Report Formatting and Output
# Description : Compact (per class counts) and detailed (per object) reports
#               • Structured results for programmatic use
#               • Line-oriented "LEAK" diagnostics for humans and scripts
# Version     : 1.0.0
# Technology  : Python 3.8+
# Standards   : PEP 8, Type Hints
# Created     : 2025-09-02
# Dependencies: registry, sys, logging
# License     : MIT License
#=============================================================================

from __future__ import annotations

import logging
import sys
from collections import Counter
from typing import Any, Dict, List, Optional, TextIO, Union

from .registry import TrackedObject, WeakRegistry, class_name_of

_logger = logging.getLogger(__name__)
_logger.setLevel(logging.WARNING)  # Only WARN/ERROR by default

# Tokens downstream tools parse; keep them exact.
LEAK_TAG = "LEAK"
OPEN_TOKEN = ">>"
CLOSE_TOKEN = "--"
EMPTY_WORD = "empty"

CompactResult = Optional[Dict[str, int]]
DetailedResult = List[TrackedObject]


def describe_object(obj: Any) -> str:
    """repr() of a tracked object, falling back to its class and address."""
    try:
        return repr(obj)
    except Exception:
        return f"<{class_name_of(type(obj))} object at {id(obj):#x}>"


def count_by_class(objects: List[TrackedObject]) -> Dict[str, int]:
    return dict(Counter(class_name_of(type(o.obj)) for o in objects))


def format_compact(counts: CompactResult, prefix: str = "") -> str:
    """``LEAK<prefix> >> A=1 B=2 --`` with class names sorted."""
    msg = f"{LEAK_TAG}{prefix} {OPEN_TOKEN} "
    if counts:
        for name in sorted(counts):
            msg += f"{name}={counts[name]} "
    else:
        msg += f"{EMPTY_WORD} "
    return msg + CLOSE_TOKEN


def format_detailed(objects: DetailedResult, prefix: str = "") -> List[str]:
    """Header, one ``-- <obj> | <file>:<line>`` line per object, footer."""
    if not objects:
        return [f"{LEAK_TAG}{prefix} {OPEN_TOKEN} {EMPTY_WORD} {CLOSE_TOKEN}"]
    lines = [f"{LEAK_TAG}{prefix} {OPEN_TOKEN}"]
    for o in objects:
        lines.append(f"{CLOSE_TOKEN} {describe_object(o.obj)} | "
                     f"{o.source_file}:{o.source_line}")
    lines.append(f"{LEAK_TAG}{prefix} {CLOSE_TOKEN}")
    return lines


class Reporter:
    """
    Reports what a registry still holds.

    Each report either returns data (``collect=True``) or writes text to
    the diagnostic stream, never both.
    """

    def __init__(self, registry: WeakRegistry, stream: Optional[TextIO] = None):
        self.registry = registry
        self.stream = stream

    def report(self, prefix: str = "", verbose: bool = False,
               collect: bool = False) -> Union[CompactResult, DetailedResult]:
        if verbose:
            return self.report_detailed(prefix, collect=collect)
        return self.report_compact(prefix, collect=collect)

    def report_compact(self, prefix: str = "", collect: bool = False) -> CompactResult:
        """
        Count live tracked objects per class.

        Returns:
            With ``collect`` the ``{class_name: count}`` mapping, or None
            when nothing is tracked. Otherwise None, after writing one line.
        """
        counts = count_by_class(self.registry.snapshot())
        if collect:
            return counts or None
        self._write([format_compact(counts, prefix)])
        return None

    def report_detailed(self, prefix: str = "", collect: bool = False) -> Optional[DetailedResult]:
        """
        List live tracked objects with their construction site.

        Returns:
            With ``collect`` the list of ``(obj, file, line)`` triples
            (possibly empty). Otherwise None, after writing the block.
        """
        objects = self.registry.snapshot()
        if collect:
            return objects
        self._write(format_detailed(objects, prefix))
        return None

    def _write(self, lines: List[str]) -> None:
        stream = self.stream or sys.stderr
        stream.write("".join(line + "\n" for line in lines))
        try:
            stream.flush()
        except (AttributeError, OSError, ValueError) as e:
            _logger.debug(f"Could not flush diagnostic stream: {e}")
