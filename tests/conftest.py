"""
Pytest configuration and shared fixtures for all schema migration tests.
"""

import sys
import pytest
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))
sys.path.insert(0, str(Path(__file__).parent))
from test_utils import make_options, run_migration


@pytest.fixture
def options():
    """Options for the in-memory `/project` layout."""
    return make_options()


@pytest.fixture
def migrate():
    """The full pipeline as a function of `{path: code}` and option overrides."""
    return run_migration
