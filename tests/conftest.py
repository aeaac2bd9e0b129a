"""
Pytest Configuration for CompRange Engine Testing
==================================================

Root conftest.py - shared fixtures live in tests/fixtures/.
"""

import pytest

# Import shared fixtures
from tests.fixtures import *


def pytest_collection_modifyitems(config, items):
    """Automatically add markers based on test location."""
    for item in items:
        if "/unit/" in item.nodeid:
            item.add_marker(pytest.mark.unit)
            item.add_marker(pytest.mark.fast)  # Unit tests are fast by default
        elif "/integration/" in item.nodeid:
            item.add_marker(pytest.mark.integration)
            item.add_marker(pytest.mark.slow)

        if "/cli/" in item.nodeid:
            item.add_marker(pytest.mark.cli)
        if "config" in item.nodeid.lower():
            item.add_marker(pytest.mark.config)
