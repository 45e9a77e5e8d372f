"""
Recursive file and directory transfer over a client's SFTP sub-connection.

upload()/download() classify the source once and delegate to the directory
or file variant with ``verify_source=False`` so the source is not stat'ed a
second time. Called directly, the variants verify the source themselves.

Directory transfers walk the whole source tree and copy every non-directory
entry to the same relative path under the destination. The first failure
aborts the walk; files already copied stay in place.

Remote paths always use POSIX separators.
"""

from __future__ import annotations

import logging
import os
import posixpath
import shutil
import stat
from enum import Enum
from typing import TYPE_CHECKING, Iterator

import paramiko

from sshlink.errors import (
    SourceIsDirectoryError,
    SourceIsFileError,
    SourceNotFoundError,
    TransferError,
)

if TYPE_CHECKING:
    from sshlink.client import Client

logger = logging.getLogger(__name__)

_BUF_SIZE = 32768
_IO_ERRORS = (OSError, EOFError, paramiko.SSHException)


class SourceKind(Enum):
    MISSING = "missing"
    FILE = "file"
    DIRECTORY = "directory"


def _sftp(client: Client) -> paramiko.SFTPClient:
    if client.sftp is None:
        raise TransferError(f"No SFTP session on {client!r}")
    return client.sftp


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------


def classify_local(path: str) -> SourceKind:
    try:
        st = os.stat(path)
    except FileNotFoundError:
        return SourceKind.MISSING
    except OSError as e:
        raise TransferError(f"Failed to stat {path}: {e}") from e
    return SourceKind.DIRECTORY if stat.S_ISDIR(st.st_mode) else SourceKind.FILE


def classify_remote(sftp: paramiko.SFTPClient, path: str) -> SourceKind:
    try:
        attrs = sftp.stat(path)
    except FileNotFoundError:
        return SourceKind.MISSING
    except _IO_ERRORS as e:
        raise TransferError(f"Failed to stat remote {path}: {e}") from e
    if attrs.st_mode is not None and stat.S_ISDIR(attrs.st_mode):
        return SourceKind.DIRECTORY
    return SourceKind.FILE


def _require(kind: SourceKind, path: str, expected: SourceKind) -> None:
    if kind is SourceKind.MISSING:
        raise SourceNotFoundError(path)
    if kind is not expected:
        if expected is SourceKind.FILE:
            raise SourceIsDirectoryError(path)
        raise SourceIsFileError(path)


# ---------------------------------------------------------------------------
# Walking and directory creation
# ---------------------------------------------------------------------------


def _raise_walk_error(err: OSError) -> None:
    raise err


def _walk_local_files(top: str) -> Iterator[str]:
    """Yield every non-directory path under ``top``; walk errors propagate."""
    for dirpath, _dirnames, filenames in os.walk(top, onerror=_raise_walk_error):
        for name in sorted(filenames):
            yield os.path.join(dirpath, name)


def _walk_remote_files(sftp: paramiko.SFTPClient, top: str) -> Iterator[str]:
    """Yield every non-directory path under remote ``top``, depth first."""
    for attrs in sorted(sftp.listdir_attr(top), key=lambda a: a.filename):
        path = posixpath.join(top, attrs.filename)
        if attrs.st_mode is not None and stat.S_ISDIR(attrs.st_mode):
            yield from _walk_remote_files(sftp, path)
        else:
            yield path


def _remote_makedirs(sftp: paramiko.SFTPClient, directory: str) -> None:
    """mkdir -p on the remote side."""
    if directory in ("", "/", "."):
        return
    try:
        sftp.stat(directory)
        return
    except FileNotFoundError:
        pass
    _remote_makedirs(sftp, posixpath.dirname(directory.rstrip("/")))
    logger.debug("Creating remote directory %s", directory)
    sftp.mkdir(directory)


def _copy(src_file, dest_file) -> None:
    shutil.copyfileobj(src_file, dest_file, _BUF_SIZE)


# ---------------------------------------------------------------------------
# Upload (local -> remote)
# ---------------------------------------------------------------------------


def upload(client: Client, src: str, dest: str) -> None:
    """Copy a local file or directory tree to ``dest`` on the remote host.

    Raises:
        SourceNotFoundError: If ``src`` does not exist
        TransferError: On any other I/O failure
    """
    kind = classify_local(src)
    if kind is SourceKind.MISSING:
        raise SourceNotFoundError(src)
    if kind is SourceKind.DIRECTORY:
        upload_directory(client, src, dest, verify_source=False)
    else:
        upload_file(client, src, dest, verify_source=False)


def upload_directory(client: Client, src: str, dest: str, *, verify_source: bool = True) -> None:
    """Recursively copy local directory ``src`` into remote ``dest``.

    ``src/a/b.txt`` lands at ``dest/a/b.txt``.

    Raises:
        SourceNotFoundError: If ``src`` does not exist
        SourceIsFileError: If ``src`` is a file
        TransferError: On walk or copy failure (aborts immediately)
    """
    if verify_source:
        _require(classify_local(src), src, SourceKind.DIRECTORY)

    count = 0
    try:
        for file_src in _walk_local_files(src):
            rel = os.path.relpath(file_src, src)
            file_dest = posixpath.join(dest, *rel.split(os.sep))
            upload_file(client, file_src, file_dest, verify_source=False)
            count += 1
    except OSError as e:
        raise TransferError(f"Failed walking {src}: {e}") from e
    logger.info("Uploaded %d file(s) from %s to %s:%s", count, src, client.options.host, dest)


def upload_file(client: Client, src: str, dest: str, *, verify_source: bool = True) -> None:
    """Copy local file ``src`` to remote ``dest`` (created or truncated).

    Missing remote parent directories are created.

    Raises:
        SourceNotFoundError: If ``src`` does not exist
        SourceIsDirectoryError: If ``src`` is a directory
        TransferError: On I/O failure
    """
    if verify_source:
        _require(classify_local(src), src, SourceKind.FILE)

    sftp = _sftp(client)
    try:
        _remote_makedirs(sftp, posixpath.dirname(dest))
        with open(src, "rb") as src_file, sftp.open(dest, "wb") as dest_file:
            _copy(src_file, dest_file)
    except _IO_ERRORS as e:
        raise TransferError(f"Failed uploading {src} to {dest}: {e}") from e
    logger.debug("Uploaded %s -> %s", src, dest)


# ---------------------------------------------------------------------------
# Download (remote -> local)
# ---------------------------------------------------------------------------


def download(client: Client, src: str, dest: str) -> None:
    """Copy a remote file or directory tree to local ``dest``.

    Raises:
        SourceNotFoundError: If remote ``src`` does not exist
        TransferError: On any other I/O failure
    """
    kind = classify_remote(_sftp(client), src)
    if kind is SourceKind.MISSING:
        raise SourceNotFoundError(src)
    if kind is SourceKind.DIRECTORY:
        download_directory(client, src, dest, verify_source=False)
    else:
        download_file(client, src, dest, verify_source=False)


def download_directory(client: Client, src: str, dest: str, *, verify_source: bool = True) -> None:
    """Recursively copy remote directory ``src`` into local ``dest``.

    Raises:
        SourceNotFoundError: If ``src`` does not exist
        SourceIsFileError: If ``src`` is a file
        TransferError: On walk or copy failure (aborts immediately)
    """
    sftp = _sftp(client)
    if verify_source:
        _require(classify_remote(sftp, src), src, SourceKind.DIRECTORY)

    count = 0
    try:
        for file_src in _walk_remote_files(sftp, src):
            rel = posixpath.relpath(file_src, src)
            file_dest = os.path.join(dest, *rel.split("/"))
            download_file(client, file_src, file_dest, verify_source=False)
            count += 1
    except _IO_ERRORS as e:
        raise TransferError(f"Failed walking remote {src}: {e}") from e
    logger.info("Downloaded %d file(s) from %s:%s to %s", count, client.options.host, src, dest)


def download_file(client: Client, src: str, dest: str, *, verify_source: bool = True) -> None:
    """Copy remote file ``src`` to local ``dest`` (created or truncated).

    Missing local parent directories are created.

    Raises:
        SourceNotFoundError: If ``src`` does not exist
        SourceIsDirectoryError: If ``src`` is a directory
        TransferError: On I/O failure
    """
    sftp = _sftp(client)
    if verify_source:
        _require(classify_remote(sftp, src), src, SourceKind.FILE)

    try:
        directory = os.path.dirname(dest)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with sftp.open(src, "rb") as src_file, open(dest, "wb") as dest_file:
            _copy(src_file, dest_file)
    except _IO_ERRORS as e:
        raise TransferError(f"Failed downloading {src} to {dest}: {e}") from e
    logger.debug("Downloaded %s -> %s", src, dest)


__all__ = [
    "SourceKind",
    "classify_local",
    "classify_remote",
    "upload",
    "upload_directory",
    "upload_file",
    "download",
    "download_directory",
    "download_file",
]
