#=============================================================================
# File        : tests/conftest.py
# Project     : TrackObjects v1.0
# Component   : Shared Test Fixtures
# Description : Fixtures isolating the process-wide construction hook
# Version     : 1.0.0
# Created     : 2025-09-02
#=============================================================================

import builtins
import io
import sys
from pathlib import Path

import pytest

# Add trackobjects to path for testing
sys.path.insert(0, str(Path(__file__).parent.parent))

from trackobjects import core


@pytest.fixture(autouse=True)
def restore_class_builder(monkeypatch):
    """Undo any construction hook a test installs."""
    monkeypatch.setattr(builtins, "__build_class__", builtins.__build_class__)
    yield


@pytest.fixture
def fresh_default_tracker(monkeypatch):
    """Give the process-wide API a brand new tracker for one test."""
    monkeypatch.setattr(core, "_default_tracker", None)
    yield


@pytest.fixture
def stream():
    """Diagnostic stream capturing LEAK lines."""
    return io.StringIO()
