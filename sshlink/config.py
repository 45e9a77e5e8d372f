"""
Process-wide defaults for sshlink.

Resolution order (highest first): explicit ConnectionOptions field, values set
via configure(), environment variables read at import, built-in defaults.

Environment variables:
    SSHLINK_TIMEOUT            dial timeout in seconds (default 30)
    SSHLINK_CONNECT_ATTEMPTS   dial/SFTP attempts before giving up (default 3)
    SSHLINK_RETRY_DELAY        seconds between attempts (default 10)
    SSHLINK_KNOWN_HOSTS        known_hosts file (default ~/.ssh/known_hosts)
"""

import os
import threading
from typing import Optional

DEFAULT_TIMEOUT = 30.0
DEFAULT_CONNECT_ATTEMPTS = 3
DEFAULT_RETRY_DELAY = 10.0
DEFAULT_KNOWN_HOSTS = "~/.ssh/known_hosts"
DEFAULT_TERM = "xterm-256color"


def _get_env_int(name: str, default: Optional[int] = None) -> Optional[int]:
    """Get environment variable as int."""
    val = os.environ.get(name)
    if val is None:
        return default
    try:
        return int(val)
    except ValueError:
        raise ValueError(f"Environment variable {name} must be an integer, got {val!r}")


def _get_env_float(name: str, default: Optional[float] = None) -> Optional[float]:
    """Get environment variable as float."""
    val = os.environ.get(name)
    if val is None:
        return default
    try:
        return float(val)
    except ValueError:
        raise ValueError(f"Environment variable {name} must be a number, got {val!r}")


# Read environment variables at import time
_env_timeout = _get_env_float("SSHLINK_TIMEOUT")
_env_connect_attempts = _get_env_int("SSHLINK_CONNECT_ATTEMPTS")
_env_retry_delay = _get_env_float("SSHLINK_RETRY_DELAY")
_env_known_hosts = os.environ.get("SSHLINK_KNOWN_HOSTS")

_lock = threading.Lock()

# User-configured settings (set via configure())
_config_timeout: Optional[float] = None
_config_connect_attempts: Optional[int] = None
_config_retry_delay: Optional[float] = None
_config_known_hosts: Optional[str] = None


def configure(
    timeout: Optional[float] = None,
    connect_attempts: Optional[int] = None,
    retry_delay: Optional[float] = None,
    known_hosts: Optional[str] = None,
) -> None:
    """Override process-wide connection defaults.

    Only arguments that are not None are applied. Affects clients created
    after the call; live clients keep the values they were built with.

    Args:
        timeout: Dial timeout in seconds (default: SSHLINK_TIMEOUT or 30)
        connect_attempts: Attempts per dial/SFTP phase (default: SSHLINK_CONNECT_ATTEMPTS or 3)
        retry_delay: Seconds between attempts (default: SSHLINK_RETRY_DELAY or 10)
        known_hosts: known_hosts file path (default: SSHLINK_KNOWN_HOSTS or ~/.ssh/known_hosts)

    Raises:
        ValueError: If a numeric value is out of range
    """
    global _config_timeout, _config_connect_attempts, _config_retry_delay, _config_known_hosts

    if timeout is not None and timeout <= 0:
        raise ValueError(f"timeout must be positive, got {timeout}")
    if connect_attempts is not None and connect_attempts < 1:
        raise ValueError(f"connect_attempts must be >= 1, got {connect_attempts}")
    if retry_delay is not None and retry_delay < 0:
        raise ValueError(f"retry_delay must be >= 0, got {retry_delay}")

    with _lock:
        if timeout is not None:
            _config_timeout = timeout
        if connect_attempts is not None:
            _config_connect_attempts = connect_attempts
        if retry_delay is not None:
            _config_retry_delay = retry_delay
        if known_hosts is not None:
            _config_known_hosts = known_hosts


def reset() -> None:
    """Drop all configure() overrides (environment values still apply)."""
    global _config_timeout, _config_connect_attempts, _config_retry_delay, _config_known_hosts

    with _lock:
        _config_timeout = None
        _config_connect_attempts = None
        _config_retry_delay = None
        _config_known_hosts = None


def get_timeout() -> float:
    if _config_timeout is not None:
        return _config_timeout
    if _env_timeout is not None and _env_timeout > 0:
        return _env_timeout
    return DEFAULT_TIMEOUT


def get_connect_attempts() -> int:
    if _config_connect_attempts is not None:
        return _config_connect_attempts
    if _env_connect_attempts is not None and _env_connect_attempts > 0:
        return _env_connect_attempts
    return DEFAULT_CONNECT_ATTEMPTS


def get_retry_delay() -> float:
    if _config_retry_delay is not None:
        return _config_retry_delay
    if _env_retry_delay is not None and _env_retry_delay >= 0:
        return _env_retry_delay
    return DEFAULT_RETRY_DELAY


def get_known_hosts() -> str:
    """known_hosts path with ``~`` expanded."""
    path = _config_known_hosts or _env_known_hosts or DEFAULT_KNOWN_HOSTS
    return os.path.expanduser(path)


def get_term() -> str:
    """TERM from the enclosing environment, or the fallback terminal type."""
    return os.environ.get("TERM") or DEFAULT_TERM


__all__ = [
    "DEFAULT_TIMEOUT",
    "DEFAULT_CONNECT_ATTEMPTS",
    "DEFAULT_RETRY_DELAY",
    "DEFAULT_TERM",
    "configure",
    "reset",
    "get_timeout",
    "get_connect_attempts",
    "get_retry_delay",
    "get_known_hosts",
    "get_term",
]
