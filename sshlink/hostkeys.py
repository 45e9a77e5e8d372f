"""
Host-identity policies.

A policy is a callable ``(hostname, key) -> bool`` consulted after the SSH
handshake; returning False aborts the connection attempt. ``hostname`` is in
known_hosts form: ``host`` for port 22, ``[host]:port`` otherwise.
"""

import logging
import os
from typing import Callable, Optional

import paramiko

from sshlink import config

logger = logging.getLogger(__name__)

HostKeyCallback = Callable[[str, paramiko.PKey], bool]


def host_entry(host: str, port: int) -> str:
    """Hostname as it appears in known_hosts."""
    if port == 22:
        return host
    return f"[{host}]:{port}"


def accept_any() -> HostKeyCallback:
    """Policy that trusts every host key. For tests and throwaway hosts only."""
    warned: set[str] = set()

    def _accept(hostname: str, key: paramiko.PKey) -> bool:
        if hostname not in warned:
            warned.add(hostname)
            logger.warning("Accepting unverified %s host key for %s", key.get_name(), hostname)
        return True

    return _accept


def known_hosts(path: Optional[str] = None) -> HostKeyCallback:
    """Policy that accepts only keys recorded in an OpenSSH known_hosts file.

    Args:
        path: known_hosts file (default: config.get_known_hosts())

    A missing file means no host is trusted.
    """
    filename = os.path.expanduser(path) if path else config.get_known_hosts()
    host_keys = paramiko.HostKeys()
    if os.path.exists(filename):
        host_keys.load(filename)
    else:
        logger.debug("known_hosts file %s not found; every host will be rejected", filename)

    def _check(hostname: str, key: paramiko.PKey) -> bool:
        ok = host_keys.check(hostname, key)
        if not ok:
            logger.debug("Host key %s for %s not in %s", key.get_name(), hostname, filename)
        return ok

    return _check


__all__ = ["HostKeyCallback", "host_entry", "accept_any", "known_hosts"]
