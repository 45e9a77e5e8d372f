"""
Shared pytest fixtures for sshlink unit tests.

This module provides common fixtures used across multiple test files.
"""

from unittest import mock

import pytest

from sshlink import config
from tests.fakes import FakeSFTP, MockGSSAPIModule, make_client


@pytest.fixture(autouse=True)
def reset_config():
    """Drop configure() overrides between tests."""
    config.reset()
    yield
    config.reset()


@pytest.fixture
def fake_sftp():
    """Empty in-memory SFTP view (only "/" exists)."""
    return FakeSFTP()


@pytest.fixture
def sftp_client(fake_sftp):
    """Connected Client whose SFTP sub-connection is ``fake_sftp``."""
    return make_client(sftp=fake_sftp)


@pytest.fixture
def mock_gssapi():
    """Fixture that patches gssapi module with MockGSSAPIModule.

    Usage:
        def test_something(mock_gssapi):
            from sshlink.auth import KerberosAuth
            proof = KerberosAuth()  # Uses mock gssapi
    """
    mock_module = MockGSSAPIModule()
    with mock.patch.dict("sys.modules", {"gssapi": mock_module}):
        yield mock_module
