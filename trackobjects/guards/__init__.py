#=============================================================================
# File        : trackobjects/guards/__init__.py
# Project     : TrackObjects v1.0
# Component   : Guards Package - Runtime Instrumentation Exports
# Description : Package initialization for runtime guards and instrumentation
#               • Object construction interception exports
# Version     : 1.0.0
# Technology  : Python 3.8+, Runtime Instrumentation
# Standards   : PEP 8, Type Hints, Safe Monkey Patching
# Created     : 2025-09-02
# Dependencies: construction_guard
# License     : MIT License
#=============================================================================

from .construction_guard import (
    ConstructionInterceptor,
    TrackedNew,
)

__all__ = [
    "ConstructionInterceptor",
    "TrackedNew",
]
