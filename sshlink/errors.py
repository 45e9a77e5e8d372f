"""
Exceptions raised by sshlink.

Every failure surfaced to callers is a subclass of SSHLinkError. Errors that
wrap a collaborator failure (socket, paramiko, filesystem) chain it via
``__cause__`` (standard ``raise ... from exc`` pattern).
"""

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from sshlink.client import Client


class SSHLinkError(Exception):
    """Base exception for sshlink operations."""


# ---------------------------------------------------------------------------
# Key material
# ---------------------------------------------------------------------------


class KeyMaterialError(SSHLinkError):
    """Base for key file and key parsing failures."""


class KeyNotFoundError(KeyMaterialError):
    """A private key or its ``.pub`` sibling does not exist.

    Attributes:
        path: Path that was looked up
        which: "private" or "public"
    """

    def __init__(self, path: str, which: str = "private"):
        self.path = path
        self.which = which
        super().__init__(f"failed reading {which} key: {path} not found")


class KeyIsDirectoryError(KeyMaterialError):
    """The private key path names a directory."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"failed reading private key: {path} is a directory")


class KeyDecodeError(KeyMaterialError):
    """Private key material is malformed, encrypted, or the passphrase is wrong."""


class KeyGenerationError(KeyMaterialError):
    """Key pair generation or encoding failed."""


class KeyStorageError(KeyMaterialError):
    """Filesystem failure while reading or writing key files."""


# ---------------------------------------------------------------------------
# Connection lifecycle
# ---------------------------------------------------------------------------


class SSHConnectionError(SSHLinkError):
    """Dialing the SSH transport failed after exhausting all attempts."""

    def __init__(self, message: str, host: Optional[str] = None, port: Optional[int] = None, attempts: int = 0):
        self.host = host
        self.port = port
        self.attempts = attempts
        where = f" ({host}:{port})" if host else ""
        super().__init__(f"{message}{where}")


class TransferLayerError(SSHLinkError):
    """The SFTP sub-protocol could not be started on an open SSH transport.

    The shell transport is left open. The partially built client is attached
    so the caller can release it with ``err.client.close()``.
    """

    def __init__(self, message: str, client: "Optional[Client]" = None):
        self.client = client
        super().__init__(message)


class NilHandleError(SSHLinkError):
    """close() was called without a client."""

    def __init__(self, message: str = "cannot close: client is None"):
        super().__init__(message)


class CloseError(SSHLinkError):
    """Closing the SFTP sub-connection or the SSH transport failed."""


# ---------------------------------------------------------------------------
# Sessions
# ---------------------------------------------------------------------------


class SessionError(SSHLinkError):
    """Base for failures while running a command or shell."""


class EnvRejectedError(SessionError):
    """The remote side refused an environment variable."""

    def __init__(self, name: str, reason: str = ""):
        self.name = name
        detail = f": {reason}" if reason else ""
        super().__init__(f"environment variable {name!r} rejected{detail}")


class PtyError(SessionError):
    """Pseudo-terminal request or terminal size query failed."""


class RawModeError(SessionError):
    """The controlling terminal could not be put into (or out of) raw mode."""


class ShellError(SessionError):
    """Interactive shell could not be started or the session broke."""


class CommandExecutionError(SessionError):
    """Remote command failed to run or exited with non-zero status.

    Attributes:
        command: Command line that was executed
        exit_code: Remote exit status, or None when the command never ran
        detail: Transport error text or remote exit detail
    """

    def __init__(self, command: str, exit_code: Optional[int] = None, detail: str = ""):
        self.command = command
        self.exit_code = exit_code
        self.detail = detail
        if exit_code is None:
            msg = f"Command {command!r} failed: {detail}"
        else:
            msg = f"Command {command!r} failed (exit={exit_code})"
            if detail:
                msg += f": {detail}"
        super().__init__(msg)

    def __repr__(self) -> str:
        return f"CommandExecutionError(command={self.command!r}, exit_code={self.exit_code!r})"


# ---------------------------------------------------------------------------
# Transfers
# ---------------------------------------------------------------------------


class TransferError(SSHLinkError):
    """I/O failure while copying files between hosts."""


class SourceNotFoundError(TransferError):
    """Transfer source does not exist."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"source not found: {path}")


class SourceIsDirectoryError(TransferError):
    """A file operation was invoked on a directory source."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"source is directory: {path}")


class SourceIsFileError(TransferError):
    """A directory operation was invoked on a file source."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"source is file: {path}")


__all__ = [
    "SSHLinkError",
    "KeyMaterialError",
    "KeyNotFoundError",
    "KeyIsDirectoryError",
    "KeyDecodeError",
    "KeyGenerationError",
    "KeyStorageError",
    "SSHConnectionError",
    "TransferLayerError",
    "NilHandleError",
    "CloseError",
    "SessionError",
    "EnvRejectedError",
    "PtyError",
    "RawModeError",
    "ShellError",
    "CommandExecutionError",
    "TransferError",
    "SourceNotFoundError",
    "SourceIsDirectoryError",
    "SourceIsFileError",
]
