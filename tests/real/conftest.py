"""
Pytest configuration for live SSH tests.

These tests are excluded by default (addopts in pyproject.toml). Run with:
    SSHLINK_TEST_HOST=deploy@host SSHLINK_TEST_KEY=~/.ssh/id_rsa \\
        python -m pytest tests/real -v -o "addopts="
"""

import pytest

from sshlink import connect
from tests.real.devices import live_options, ssh_available


def pytest_collection_modifyitems(config, items):
    """Add 'real' marker to all tests in this directory."""
    for item in items:
        if "tests/real" in str(item.fspath) or "tests\\real" in str(item.fspath):
            item.add_marker(pytest.mark.real)


@pytest.fixture(scope="module")
def live_client():
    """One connected client shared by a test module."""
    if not ssh_available():
        pytest.skip("SSH test host not reachable")
    client = connect(live_options())
    yield client
    client.close()
