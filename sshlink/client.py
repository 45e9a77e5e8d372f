"""
Connection lifecycle: dial an SSH transport, layer SFTP on it, tear both down.

Uses paramiko Transport + SFTPClient. A Client owns exactly one transport and
one SFTP sub-connection bound to it; the SFTP channel is only valid while the
transport is alive, so close() always releases SFTP first.

Example:
    from sshlink import ConnectionOptions, auth, connect

    opts = ConnectionOptions("target.example.org", username="deploy", auth=auth.password("pw"))
    with connect(opts) as client:
        client.upload("./build", "/srv/app")
"""

from __future__ import annotations

import getpass
import logging
import socket
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Callable, Optional, Sequence, TypeVar, Union

import paramiko

from sshlink import config
from sshlink.auth import Auth, combine
from sshlink.errors import CloseError, NilHandleError, SSHConnectionError, TransferLayerError
from sshlink.hostkeys import HostKeyCallback, host_entry, known_hosts

if TYPE_CHECKING:
    from sshlink.session import Command

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Failures treated as transient by the dial and SFTP retry loops
_RETRYABLE = (socket.error, OSError, EOFError, paramiko.SSHException)


# ---------------------------------------------------------------------------
# ConnectionOptions
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ConnectionOptions:
    """Everything needed to dial one host.

    Args:
        host: SSH server hostname (required, non-empty)
        port: SSH port (default 22)
        username: SSH username (default: current OS user)
        auth: One proof or an ordered sequence of proofs (at least one)
        host_key_callback: ``(hostname, key) -> bool``; None uses known_hosts
        timeout: Dial timeout in seconds; None or <= 0 means the default (30)
        connect_attempts: Attempts per dial/SFTP phase (default 3)
        retry_delay: Seconds between attempts (default 10)
        keepalive: Transport keepalive interval in seconds, 0 disables
    """

    host: str
    port: int = 22
    username: Optional[str] = None
    auth: Union[Auth, Sequence[Auth]] = ()
    host_key_callback: Optional[HostKeyCallback] = field(default=None, repr=False)
    timeout: Optional[float] = None
    connect_attempts: Optional[int] = None
    retry_delay: Optional[float] = None
    keepalive: int = 30

    def __post_init__(self):
        if not self.host or not self.host.strip():
            raise ValueError("host must be a non-empty string")
        if not isinstance(self.port, int) or self.port < 1 or self.port > 65535:
            raise ValueError(f"port must be 1-65535, got {self.port}")
        # frozen: normalize through object.__setattr__
        object.__setattr__(self, "auth", combine(self.auth))
        if not self.auth:
            raise ValueError("at least one authentication proof is required")
        if self.connect_attempts is not None and self.connect_attempts < 1:
            raise ValueError(f"connect_attempts must be >= 1, got {self.connect_attempts}")
        if self.retry_delay is not None and self.retry_delay < 0:
            raise ValueError(f"retry_delay must be >= 0, got {self.retry_delay}")

    @property
    def effective_username(self) -> str:
        return self.username or getpass.getuser()

    @property
    def effective_timeout(self) -> float:
        if self.timeout is None or self.timeout <= 0:
            return config.get_timeout()
        return self.timeout

    @property
    def effective_attempts(self) -> int:
        if self.connect_attempts is None:
            return config.get_connect_attempts()
        return self.connect_attempts

    @property
    def effective_retry_delay(self) -> float:
        if self.retry_delay is None:
            return config.get_retry_delay()
        return self.retry_delay


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------


class ConnectionState(Enum):
    UNCONNECTED = "unconnected"
    DIALING = "dialing"
    SHELL_CONNECTED = "shell_connected"
    FULLY_CONNECTED = "fully_connected"
    FAILED = "failed"
    CLOSING = "closing"
    CLOSED = "closed"


def _with_retries(op: Callable[[], T], what: str, attempts: int, delay: float) -> T:
    """Run op up to ``attempts`` times, sleeping ``delay`` between failures.

    Re-raises the last failure once attempts are exhausted.
    """
    for attempt in range(1, attempts + 1):
        try:
            return op()
        except _RETRYABLE as e:
            if attempt == attempts:
                raise
            logger.warning("%s failed (attempt %d/%d): %s; retrying in %gs", what, attempt, attempts, e, delay)
            time.sleep(delay)
    raise AssertionError("unreachable")


class Client:
    """Live SSH transport plus the SFTP sub-connection layered on it.

    Built by connect(). Not thread-safe: callers sharing one client across
    threads must serialize run/shell/transfer calls themselves.
    """

    def __init__(self, options: ConnectionOptions):
        self.options = options
        self.transport: Optional[paramiko.Transport] = None
        self.sftp: Optional[paramiko.SFTPClient] = None
        self.state = ConnectionState.UNCONNECTED

    @property
    def connected(self) -> bool:
        return self.state is ConnectionState.FULLY_CONNECTED

    # -- dialing ------------------------------------------------------------

    def _dial_once(self) -> paramiko.Transport:
        """One attempt: TCP connect, handshake, host key check, authenticate."""
        opts = self.options
        timeout = opts.effective_timeout
        sock = socket.create_connection((opts.host, opts.port), timeout=timeout)
        try:
            transport = paramiko.Transport(sock)
        except Exception:
            sock.close()
            raise

        try:
            transport.banner_timeout = timeout
            transport.auth_timeout = timeout
            transport.start_client(timeout=timeout)
            self._verify_host_key(transport)
            self._authenticate(transport)
            if opts.keepalive:
                transport.set_keepalive(opts.keepalive)
        except BaseException:
            try:
                transport.close()
            except Exception as close_exc:
                logger.debug("Ignoring close failure after failed dial: %s", close_exc)
            raise
        return transport

    def _verify_host_key(self, transport: paramiko.Transport) -> None:
        opts = self.options
        callback = opts.host_key_callback or known_hosts()
        key = transport.get_remote_server_key()
        hostname = host_entry(opts.host, opts.port)
        if not callback(hostname, key):
            raise paramiko.SSHException(f"Host key {key.get_name()} for {hostname} rejected by policy")

    def _authenticate(self, transport: paramiko.Transport) -> None:
        """Offer each proof in order until one is accepted."""
        opts = self.options
        username = opts.effective_username
        last_error: Optional[paramiko.AuthenticationException] = None
        for proof in opts.auth:
            try:
                proof.authenticate(transport, username, opts.host)
            except paramiko.AuthenticationException as e:
                logger.debug("%s authentication for %s@%s failed: %s", proof.auth_type, username, opts.host, e)
                last_error = e
                continue
            if transport.is_authenticated():
                logger.debug("Authenticated %s@%s via %s", username, opts.host, proof.auth_type)
                return
        if last_error is not None:
            raise last_error
        raise paramiko.AuthenticationException(f"No proof authenticated {username}@{opts.host}")

    def _open_sftp_once(self) -> paramiko.SFTPClient:
        if self.transport is None:
            raise paramiko.SSHException("No SSH transport to open SFTP on")
        sftp = paramiko.SFTPClient.from_transport(self.transport)
        if sftp is None:
            raise paramiko.SSHException("Failed to open SFTP session")
        return sftp

    def _connect(self) -> None:
        opts = self.options
        attempts = opts.effective_attempts
        delay = opts.effective_retry_delay

        self.state = ConnectionState.DIALING
        try:
            self.transport = _with_retries(self._dial_once, f"Dial {opts.host}:{opts.port}", attempts, delay)
        except paramiko.AuthenticationException as e:
            self.state = ConnectionState.FAILED
            raise SSHConnectionError(f"Authentication failed: {e}", opts.host, opts.port, attempts) from e
        except _RETRYABLE as e:
            self.state = ConnectionState.FAILED
            raise SSHConnectionError(f"Connection failed: {e}", opts.host, opts.port, attempts) from e
        self.state = ConnectionState.SHELL_CONNECTED

        try:
            self.sftp = _with_retries(self._open_sftp_once, f"SFTP on {opts.host}", attempts, delay)
        except _RETRYABLE as e:
            self.state = ConnectionState.FAILED
            raise TransferLayerError(
                f"Failed to start SFTP on {opts.host}:{opts.port} after {attempts} attempt(s): {e}", client=self
            ) from e
        self.state = ConnectionState.FULLY_CONNECTED
        logger.info("Connected to %s@%s:%d", opts.effective_username, opts.host, opts.port)

    # -- operations ---------------------------------------------------------

    def run(self, command: Command) -> None:
        """Run a command; see sshlink.session.run()."""
        from sshlink.session import run

        run(self, command)

    def shell(self, **kwargs) -> int:
        """Start an interactive shell; see sshlink.session.shell()."""
        from sshlink.session import shell

        return shell(self, **kwargs)

    def upload(self, src: str, dest: str) -> None:
        from sshlink.transfer import upload

        upload(self, src, dest)

    def upload_directory(self, src: str, dest: str) -> None:
        from sshlink.transfer import upload_directory

        upload_directory(self, src, dest)

    def upload_file(self, src: str, dest: str) -> None:
        from sshlink.transfer import upload_file

        upload_file(self, src, dest)

    def download(self, src: str, dest: str) -> None:
        from sshlink.transfer import download

        download(self, src, dest)

    def download_directory(self, src: str, dest: str) -> None:
        from sshlink.transfer import download_directory

        download_directory(self, src, dest)

    def download_file(self, src: str, dest: str) -> None:
        from sshlink.transfer import download_file

        download_file(self, src, dest)

    # -- teardown -----------------------------------------------------------

    def close(self) -> None:
        """Close SFTP, then the SSH transport.

        A failure closing SFTP aborts before the transport is touched.
        Repeated calls are passed through to paramiko rather than skipped.

        Raises:
            CloseError: If either close fails
        """
        self.state = ConnectionState.CLOSING
        if self.sftp is not None:
            try:
                self.sftp.close()
            except Exception as e:
                raise CloseError(f"Failed to close SFTP session: {e}") from e

        if self.transport is not None:
            try:
                self.transport.close()
            except Exception as e:
                raise CloseError(f"Failed to close SSH transport: {e}") from e

        self.state = ConnectionState.CLOSED
        logger.info("SSH client for %s closed", self.options.host)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    def __repr__(self):
        return f"Client({self.options.host}:{self.options.port}, {self.state.value})"


def connect(options: ConnectionOptions) -> Client:
    """Dial the host and layer SFTP on the new transport.

    Raises:
        SSHConnectionError: If every dial attempt failed
        TransferLayerError: If SFTP could not be started; ``err.client`` still
            holds an open transport and must be closed by the caller
    """
    client = Client(options)
    client._connect()
    return client


def close(client: Optional[Client]) -> None:
    """Close a client built by connect().

    Raises:
        NilHandleError: If client is None
        CloseError: If closing SFTP or the transport fails
    """
    if client is None:
        raise NilHandleError()
    client.close()


__all__ = [
    "ConnectionOptions",
    "ConnectionState",
    "Client",
    "connect",
    "close",
]
