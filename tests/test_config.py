"""Tests for sshlink.config - process-wide defaults and configure()."""

import os
from unittest import mock

import pytest

from sshlink import config


class TestDefaults:
    def test_builtin_defaults(self):
        with (
            mock.patch.object(config, "_env_timeout", None),
            mock.patch.object(config, "_env_connect_attempts", None),
            mock.patch.object(config, "_env_retry_delay", None),
        ):
            assert config.get_timeout() == 30.0
            assert config.get_connect_attempts() == 3
            assert config.get_retry_delay() == 10.0

    def test_env_values_used(self):
        with (
            mock.patch.object(config, "_env_timeout", 5.0),
            mock.patch.object(config, "_env_connect_attempts", 7),
            mock.patch.object(config, "_env_retry_delay", 0.0),
        ):
            assert config.get_timeout() == 5.0
            assert config.get_connect_attempts() == 7
            assert config.get_retry_delay() == 0.0

    def test_nonpositive_env_timeout_ignored(self):
        with mock.patch.object(config, "_env_timeout", 0.0):
            assert config.get_timeout() == config.DEFAULT_TIMEOUT

    def test_known_hosts_expanded(self):
        with mock.patch.object(config, "_env_known_hosts", None):
            assert config.get_known_hosts() == os.path.expanduser("~/.ssh/known_hosts")


class TestEnvParsing:
    def test_int_parsed(self):
        with mock.patch.dict(os.environ, {"SSHLINK_X": "4"}):
            assert config._get_env_int("SSHLINK_X") == 4

    def test_int_missing_returns_default(self):
        with mock.patch.dict(os.environ, {}, clear=True):
            assert config._get_env_int("SSHLINK_X", 9) == 9

    def test_int_invalid_raises(self):
        with mock.patch.dict(os.environ, {"SSHLINK_X": "four"}):
            with pytest.raises(ValueError, match="SSHLINK_X must be an integer"):
                config._get_env_int("SSHLINK_X")

    def test_float_invalid_raises(self):
        with mock.patch.dict(os.environ, {"SSHLINK_X": "soon"}):
            with pytest.raises(ValueError, match="must be a number"):
                config._get_env_float("SSHLINK_X")


class TestConfigure:
    def test_configure_overrides_env(self):
        with mock.patch.object(config, "_env_timeout", 5.0):
            config.configure(timeout=12.5)
            assert config.get_timeout() == 12.5

    def test_none_arguments_leave_values(self):
        config.configure(connect_attempts=5)
        config.configure(timeout=1.0)
        assert config.get_connect_attempts() == 5

    def test_reset_drops_overrides(self):
        config.configure(retry_delay=1.0, known_hosts="/tmp/kh")
        config.reset()
        with mock.patch.object(config, "_env_retry_delay", None), mock.patch.object(config, "_env_known_hosts", None):
            assert config.get_retry_delay() == 10.0
            assert config.get_known_hosts().endswith("known_hosts")
            assert config.get_known_hosts() != "/tmp/kh"

    @pytest.mark.parametrize(
        "kwargs",
        [{"timeout": 0}, {"timeout": -1.0}, {"connect_attempts": 0}, {"retry_delay": -0.5}],
    )
    def test_invalid_values_rejected(self, kwargs):
        with pytest.raises(ValueError):
            config.configure(**kwargs)


class TestTerm:
    def test_term_from_environment(self):
        with mock.patch.dict(os.environ, {"TERM": "vt100"}):
            assert config.get_term() == "vt100"

    def test_term_fallback(self):
        env = {k: v for k, v in os.environ.items() if k != "TERM"}
        with mock.patch.dict(os.environ, env, clear=True):
            assert config.get_term() == "xterm-256color"

    def test_empty_term_falls_back(self):
        with mock.patch.dict(os.environ, {"TERM": ""}):
            assert config.get_term() == "xterm-256color"
