"""
Key pair storage: read, generate, and persist RSA key pairs.

A key pair lives in two sibling files sharing a base path: the PEM private
key at ``path`` (mode 0600) and the authorized-key public line at
``path.pub`` (mode 0644).

Example:
    from sshlink import keys

    pair = keys.read_or_generate("~/.config/myapp/id_rsa")
    print(pair.public_key)
"""

import io
import logging
import os
from dataclasses import dataclass, field
from typing import Optional

import paramiko

from sshlink.errors import (
    KeyGenerationError,
    KeyIsDirectoryError,
    KeyMaterialError,
    KeyNotFoundError,
    KeyStorageError,
)

logger = logging.getLogger(__name__)

DEFAULT_BITS = 2048
PRIVATE_MODE = 0o600
PUBLIC_MODE = 0o644


@dataclass(frozen=True)
class KeyPair:
    """Private key (PEM text) and its public key (authorized_keys line)."""

    private_key: str = field(repr=False)
    public_key: str


def _public_path(path: str) -> str:
    return path + ".pub"


def read(path: str) -> KeyPair:
    """Read both halves of a key pair verbatim.

    Raises:
        KeyNotFoundError: If ``path`` (which="private") or ``path.pub``
            (which="public") does not exist
        KeyIsDirectoryError: If ``path`` is a directory
        KeyStorageError: On any other filesystem failure
    """
    path = os.path.expanduser(path)
    if not os.path.lexists(path):
        raise KeyNotFoundError(path, "private")
    if os.path.isdir(path):
        raise KeyIsDirectoryError(path)

    try:
        with open(path, "r") as f:
            private_key = f.read()
    except OSError as e:
        raise KeyStorageError(f"failed reading private key: {e}") from e

    pub_path = _public_path(path)
    try:
        with open(pub_path, "r") as f:
            public_key = f.read()
    except FileNotFoundError as e:
        raise KeyNotFoundError(pub_path, "public") from e
    except OSError as e:
        raise KeyStorageError(f"failed reading public key: {e}") from e

    return KeyPair(private_key=private_key, public_key=public_key)


def generate(bits: int = DEFAULT_BITS, comment: Optional[str] = None) -> KeyPair:
    """Generate a fresh RSA key pair.

    The private half is a traditional PEM ``RSA PRIVATE KEY`` block; the public
    half is ``"ssh-rsa <base64>[ <comment>]\\n"``.

    Raises:
        KeyGenerationError: On entropy or encoding failure
    """
    try:
        key = paramiko.RSAKey.generate(bits)
    except (ValueError, paramiko.SSHException) as e:
        raise KeyGenerationError(f"failed generating private key: {e}") from e

    buf = io.StringIO()
    try:
        key.write_private_key(buf)
    except (ValueError, paramiko.SSHException) as e:
        raise KeyGenerationError(f"failed encoding private key: {e}") from e

    public_key = f"{key.get_name()} {key.get_base64()}"
    if comment:
        public_key += f" {comment}"
    return KeyPair(private_key=buf.getvalue(), public_key=public_key + "\n")


def _write_file(path: str, text: str, mode: int) -> None:
    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, mode)
    try:
        # O_CREAT mode only applies to new files; tighten before writing
        os.fchmod(fd, mode)
    except OSError:
        os.close(fd)
        raise
    with os.fdopen(fd, "w") as f:
        f.write(text)


def write(path: str, public_key: str, private_key: str) -> None:
    """Persist a key pair, creating the parent directory if needed.

    Partial writes are not rolled back: if the public key fails after the
    private key was written, the private key stays on disk.

    Raises:
        KeyStorageError: On any filesystem failure
    """
    path = os.path.expanduser(path)
    directory = os.path.dirname(path)
    try:
        if directory and not os.path.isdir(directory):
            os.makedirs(directory, exist_ok=True)
        _write_file(path, private_key, PRIVATE_MODE)
        _write_file(_public_path(path), public_key, PUBLIC_MODE)
    except OSError as e:
        raise KeyStorageError(f"failed writing keys to {path}: {e}") from e
    logger.debug("Wrote key pair to %s", path)


def read_or_generate(path: str, bits: int = DEFAULT_BITS, comment: Optional[str] = None) -> KeyPair:
    """Read the key pair at ``path``, generating and persisting one on failure.

    Any read failure (missing, unreadable or half-present pair) falls back to
    generate() followed by write(). Replacing an existing private key file is
    logged as a warning.

    Raises:
        KeyStorageError: If the new pair cannot be written (e.g. ``path`` is
            a directory)
        KeyGenerationError: If generation fails
    """
    try:
        return read(path)
    except KeyMaterialError as e:
        if os.path.lexists(os.path.expanduser(path)):
            logger.warning("Replacing unreadable key pair at %s: %s", path, e)
        else:
            logger.info("No key at %s, generating a %d-bit RSA key pair", path, bits)


    pair = generate(bits, comment=comment)
    write(path, pair.public_key, pair.private_key)
    return pair


__all__ = [
    "KeyPair",
    "read",
    "generate",
    "write",
    "read_or_generate",
]
