"""Tests for sshlink.terminal - terminal size and raw mode."""

import logging
import os
from unittest import mock

import pytest

from sshlink import terminal
from sshlink.errors import PtyError, RawModeError, ShellError

termios = pytest.importorskip("termios")


class TestGetSize:
    @mock.patch("sshlink.terminal.os.get_terminal_size", return_value=os.terminal_size((132, 43)))
    def test_columns_then_rows(self, mock_size):
        assert terminal.get_size(3) == (132, 43)
        mock_size.assert_called_once_with(3)

    @mock.patch("sshlink.terminal.os.get_terminal_size", side_effect=OSError(25, "Inappropriate ioctl for device"))
    def test_not_a_terminal(self, mock_size):
        with pytest.raises(PtyError, match="terminal size"):
            terminal.get_size(3)


@mock.patch("tty.setraw")
@mock.patch("termios.tcsetattr")
@mock.patch("termios.tcgetattr", return_value=["saved-mode"])
class TestRawMode:
    def test_enters_and_restores(self, mock_get, mock_set, mock_setraw):
        with terminal.raw_mode(5):
            mock_setraw.assert_called_once_with(5)
            mock_set.assert_not_called()
        mock_set.assert_called_once_with(5, termios.TCSADRAIN, ["saved-mode"])

    def test_restores_on_exception(self, mock_get, mock_set, mock_setraw):
        with pytest.raises(RuntimeError):
            with terminal.raw_mode(5):
                raise RuntimeError("boom")
        mock_set.assert_called_once_with(5, termios.TCSADRAIN, ["saved-mode"])

    def test_enter_failure(self, mock_get, mock_set, mock_setraw):
        mock_get.side_effect = termios.error(25, "Inappropriate ioctl for device")
        with pytest.raises(RawModeError, match="enter raw mode"):
            with terminal.raw_mode(5):
                pass
        mock_setraw.assert_not_called()
        mock_set.assert_not_called()

    def test_restore_failure(self, mock_get, mock_set, mock_setraw):
        mock_set.side_effect = termios.error(5, "Input/output error")
        with pytest.raises(RawModeError, match="restore"):
            with terminal.raw_mode(5):
                pass

    def test_restore_failure_does_not_mask_block_error(self, mock_get, mock_set, mock_setraw, caplog):
        mock_set.side_effect = termios.error(5, "Input/output error")
        with caplog.at_level(logging.WARNING, logger="sshlink.terminal"):
            with pytest.raises(ShellError, match="remote shell died"):
                with terminal.raw_mode(5):
                    raise ShellError("remote shell died")
        mock_set.assert_called_once_with(5, termios.TCSADRAIN, ["saved-mode"])
        assert "Failed to restore terminal mode" in caplog.text
