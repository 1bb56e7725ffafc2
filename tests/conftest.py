"""
Configuration for pytest: import path setup and call-tracking fixtures.
"""

import sys
from pathlib import Path
import pytest


# Add the project root to the Python path so lazyseq imports without install
parent_dir = Path(__file__).parent.parent
sys.path.insert(0, str(parent_dir))


class CallRecorder:
    """Wraps a function and remembers every argument it was called with."""

    def __init__(self, fn=None):
        self.fn = fn or (lambda *args: args[0] if args else None)
        self.calls = []

    def __call__(self, *args):
        self.calls.append(args[0] if len(args) == 1 else args)
        return self.fn(*args)

    @property
    def count(self):
        return len(self.calls)


@pytest.fixture
def recorder():
    """Factory fixture: recorder(fn) returns a CallRecorder around fn."""
    return CallRecorder


@pytest.fixture
def counter_generator():
    """Zero-argument function returning 0, 1, 2, ... on successive calls."""
    state = {"next": 0}

    def _gen():
        value = state["next"]
        state["next"] += 1
        return value

    return _gen
