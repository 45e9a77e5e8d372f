"""
sshlink - SSH command execution, interactive shells, and recursive SFTP transfer.

Quick start:
    import sys

    import sshlink
    from sshlink import auth

    opts = sshlink.ConnectionOptions(
        "target.example.org",
        username="deploy",
        auth=auth.password("secret"),
        host_key_callback=sshlink.hostkeys.known_hosts(),
    )
    with sshlink.connect(opts) as client:
        client.run(sshlink.Command("uname -a", stdout=sys.stdout.buffer))
        client.upload("./dist", "/srv/app/dist")
        client.download("/var/log/app", "./logs")
"""

import logging

from sshlink import auth, hostkeys, keys  # noqa: F401
from sshlink.auth import Auth, KerberosAuth, KeyAuth, PasswordAuth  # noqa: F401
from sshlink.client import Client, ConnectionOptions, ConnectionState, close, connect  # noqa: F401
from sshlink.config import configure, reset  # noqa: F401
from sshlink.errors import (  # noqa: F401
    CloseError,
    CommandExecutionError,
    EnvRejectedError,
    KeyDecodeError,
    KeyGenerationError,
    KeyIsDirectoryError,
    KeyMaterialError,
    KeyNotFoundError,
    KeyStorageError,
    NilHandleError,
    PtyError,
    RawModeError,
    SessionError,
    ShellError,
    SourceIsDirectoryError,
    SourceIsFileError,
    SourceNotFoundError,
    SSHConnectionError,
    SSHLinkError,
    TransferError,
    TransferLayerError,
)
from sshlink.keys import KeyPair  # noqa: F401
from sshlink.session import Command, run, shell  # noqa: F401
from sshlink.transfer import (  # noqa: F401
    SourceKind,
    download,
    download_directory,
    download_file,
    upload,
    upload_directory,
    upload_file,
)

__version__ = "0.1.0"

logger = logging.getLogger(__name__)

__all__ = [
    # Modules
    "auth",
    "hostkeys",
    "keys",
    # Connection
    "ConnectionOptions",
    "ConnectionState",
    "Client",
    "connect",
    "close",
    "configure",
    "reset",
    # Auth
    "Auth",
    "PasswordAuth",
    "KeyAuth",
    "KerberosAuth",
    # Keys
    "KeyPair",
    # Sessions
    "Command",
    "run",
    "shell",
    # Transfers
    "SourceKind",
    "upload",
    "upload_directory",
    "upload_file",
    "download",
    "download_directory",
    "download_file",
    # Errors
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
