"""
Remote command and interactive shell execution.

Each call opens a fresh SSH session channel on the client's transport and
closes it before returning; channels are never reused.

run() streams up to three byte streams concurrently: input is copied from
``Command.stdin`` into the channel on a background thread, output and error
are copied from the channel into ``Command.stdout``/``Command.stderr`` on two
more. Output and error pumps are joined (bounded by ``drain_timeout``) once the
remote command exits; the input pump is detached, since its source may never
reach EOF (e.g. an interactive stdin).

Example:
    import io
    from sshlink.session import Command, run

    out = io.BytesIO()
    run(client, Command("echo hi", stdout=out, pty=False))
    assert out.getvalue() == b"hi\\n"
"""

from __future__ import annotations

import logging
import os
import select
import socket
import struct
import sys
import threading
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, BinaryIO, Callable, Optional, Union

import paramiko
from paramiko.common import cMSG_CHANNEL_REQUEST
from paramiko.message import Message

from sshlink import config, terminal
from sshlink.errors import CommandExecutionError, EnvRejectedError, PtyError, ShellError

if TYPE_CHECKING:
    from sshlink.client import Client

logger = logging.getLogger(__name__)

PTY_COLUMNS = 80
PTY_ROWS = 40
DRAIN_TIMEOUT = 5.0
_BUF_SIZE = 32768

_TRANSPORT_ERRORS = (paramiko.SSHException, socket.error, OSError, EOFError)

# RFC 4254 section 8 opcodes: echo off, 14.4 kbaud in and out, output processing on
TERMINAL_MODES = ((53, 0), (128, 14400), (129, 14400), (70, 1))
_TTY_OP_END = b"\x00"


@dataclass
class Command:
    """A remote command line plus its environment and stream endpoints.

    Stream endpoints are binary file-like objects. A missing endpoint means
    that stream is not forwarded (remote output is read and discarded so the
    channel window never stalls).
    """

    cmd: str
    env: dict[str, str] = field(default_factory=dict)
    stdin: Optional[BinaryIO] = None
    stdout: Optional[BinaryIO] = None
    stderr: Optional[BinaryIO] = None
    pty: bool = True


def _open_channel(client: Client) -> paramiko.Channel:
    transport = client.transport
    if transport is None or not transport.is_active():
        raise paramiko.SSHException("Transport is no longer active")
    return transport.open_session()


def encode_modes(modes) -> bytes:
    """Encode (opcode, value) pairs as a pty-req terminal modes string."""
    return b"".join(struct.pack(">BI", opcode, value) for opcode, value in modes) + _TTY_OP_END


def _channel_request(chan: paramiko.Channel, kind: str, *fields: Union[str, bytes, int]) -> None:
    """Send a channel request with want-reply set and wait for the answer.

    Fields are encoded in order: ints as uint32, everything else as an SSH
    string. A refusal closes the channel and raises paramiko.SSHException.
    """
    m = Message()
    m.add_byte(cMSG_CHANNEL_REQUEST)
    m.add_int(chan.remote_chanid)
    m.add_string(kind)
    m.add_boolean(True)
    for value in fields:
        if isinstance(value, int):
            m.add_int(value)
        else:
            m.add_string(value)
    chan._event_pending()
    chan.transport._send_user_message(m)
    chan._wait_for_event()


def _request_pty(chan: paramiko.Channel, columns: int, rows: int) -> None:
    try:
        _channel_request(chan, "pty-req", config.get_term(), columns, rows, 0, 0, encode_modes(TERMINAL_MODES))
    except _TRANSPORT_ERRORS as e:
        raise PtyError(f"PTY request failed: {e}") from e


def _binary(stream: Any) -> Any:
    """Underlying byte stream of a text stream (sys.stdout -> sys.stdout.buffer)."""
    return getattr(stream, "buffer", stream)


def _pump(
    read: Callable[[int], bytes],
    write: Callable[[bytes], Any],
    name: str,
    flush: Optional[Callable[[], Any]] = None,
    on_eof: Optional[Callable[[], Any]] = None,
    drain_on_error: bool = False,
) -> threading.Thread:
    """Copy chunks from read() to write() on a daemon thread until EOF.

    Failures are logged, never raised: stream delivery is best-effort. With
    ``drain_on_error`` a failing sink does not stop the reads; the rest of
    the stream is read and discarded so the channel window keeps moving.
    """

    def _copy():
        total = 0
        discarding = False
        try:
            while True:
                data = read(_BUF_SIZE)
                if not data:
                    break
                total += len(data)
                if discarding:
                    continue
                try:
                    write(data)
                    if flush is not None:
                        flush()
                except Exception as e:
                    if not drain_on_error:
                        raise
                    logger.warning("%s sink failed, discarding remaining output: %s", name, e)
                    discarding = True
        except Exception as e:
            logger.debug("%s pump stopped after %d bytes: %s", name, total, e)
        else:
            logger.debug("%s pump finished after %d bytes", name, total)
        finally:
            if on_eof is not None:
                try:
                    on_eof()
                except Exception as e:
                    logger.debug("%s pump EOF handling failed: %s", name, e)

    thread = threading.Thread(target=_copy, name=f"sshlink-{name}", daemon=True)
    thread.start()
    return thread


def _sink(stream: Optional[BinaryIO]) -> tuple[Callable[[bytes], Any], Optional[Callable[[], Any]]]:
    if stream is None:
        return (lambda data: None), None
    return stream.write, getattr(stream, "flush", None)


def run(client: Client, command: Command, *, drain_timeout: float = DRAIN_TIMEOUT) -> None:
    """Run one command on the remote host and wait for it to exit.

    Order: set environment variables, request a PTY (80x40 with
    TERMINAL_MODES, TERM from the local environment), execute, stream, wait
    for exit status. Each environment variable and the PTY request wait for
    the server's answer.

    Raises:
        EnvRejectedError: If an environment variable is refused (command not run)
        PtyError: If the PTY request fails (command not run)
        CommandExecutionError: If the session cannot be opened, the command
            cannot be started, or it exits with non-zero status
    """
    try:
        chan = _open_channel(client)
    except _TRANSPORT_ERRORS as e:
        raise CommandExecutionError(command.cmd, detail=f"failed to open session: {e}") from e

    try:
        for name, value in command.env.items():
            try:
                _channel_request(chan, "env", name, value)
            except paramiko.SSHException as e:
                raise EnvRejectedError(name, str(e)) from e

        if command.pty:
            _request_pty(chan, PTY_COLUMNS, PTY_ROWS)

        try:
            chan.exec_command(command.cmd)
        except _TRANSPORT_ERRORS as e:
            raise CommandExecutionError(command.cmd, detail=str(e)) from e
        logger.debug("Started %r on %s", command.cmd, client.options.host)

        if command.stdin is not None:
            source = command.stdin
            _pump(getattr(source, "read1", source.read), chan.sendall, "stdin", on_eof=chan.shutdown_write)

        out_write, out_flush = _sink(command.stdout)
        err_write, err_flush = _sink(command.stderr)
        readers = [
            _pump(chan.recv, out_write, "stdout", flush=out_flush, drain_on_error=True),
            _pump(chan.recv_stderr, err_write, "stderr", flush=err_flush, drain_on_error=True),
        ]

        try:
            exit_code = chan.recv_exit_status()
        except _TRANSPORT_ERRORS as e:
            raise CommandExecutionError(command.cmd, detail=str(e)) from e

        for thread in readers:
            thread.join(drain_timeout)
            if thread.is_alive():
                logger.debug("%s still draining after %gs; output may be truncated", thread.name, drain_timeout)

        if exit_code == -1:
            raise CommandExecutionError(command.cmd, detail="connection closed without an exit status")
        if exit_code != 0:
            raise CommandExecutionError(command.cmd, exit_code, f"Process exited with status {exit_code}")
    finally:
        chan.close()


def _interactive(chan: paramiko.Channel, in_fd: int, out: Any, err: Any) -> None:
    """Shuttle bytes between the local terminal and the channel until remote EOF."""
    stdin_open = True
    while True:
        watch: list = [chan, in_fd] if stdin_open else [chan]
        r, _, _ = select.select(watch, [], [], 1.0)

        while chan.recv_stderr_ready():
            err.write(chan.recv_stderr(_BUF_SIZE))
            err.flush()

        if chan in r:
            data = chan.recv(_BUF_SIZE)
            if not data:
                break
            out.write(data)
            out.flush()

        if in_fd in r:
            data = os.read(in_fd, _BUF_SIZE)
            if not data:
                chan.shutdown_write()
                stdin_open = False
            else:
                chan.sendall(data)


def shell(client: Client, *, stdin: Any = None, stdout: Any = None, stderr: Any = None) -> int:
    """Start an interactive login shell attached to the local terminal.

    The PTY is sized to the local terminal. The terminal is held in raw mode
    until the remote shell exits, and restored on every exit path.

    Args:
        stdin/stdout/stderr: Local streams (default: sys.stdin/stdout/stderr)

    Returns:
        Remote shell exit status (-1 if none was reported)

    Raises:
        PtyError: If the terminal size query or PTY request fails
        RawModeError: If the terminal cannot enter or leave raw mode
        ShellError: If the session cannot be opened or the shell fails
    """
    stdin = stdin if stdin is not None else sys.stdin
    out = _binary(stdout if stdout is not None else sys.stdout)
    err = _binary(stderr if stderr is not None else sys.stderr)
    fd = stdin.fileno()

    try:
        chan = _open_channel(client)
    except _TRANSPORT_ERRORS as e:
        raise ShellError(f"Failed to open session: {e}") from e

    try:
        columns, rows = terminal.get_size(fd)
        _request_pty(chan, columns, rows)

        with terminal.raw_mode(fd):
            try:
                chan.invoke_shell()
                _interactive(chan, fd, out, err)
            except _TRANSPORT_ERRORS as e:
                raise ShellError(f"Interactive shell failed: {e}") from e

        exit_code = chan.recv_exit_status()
        logger.debug("Shell on %s exited with status %d", client.options.host, exit_code)
        return exit_code
    finally:
        chan.close()


__all__ = ["Command", "run", "shell", "encode_modes", "PTY_COLUMNS", "PTY_ROWS", "TERMINAL_MODES"]
