from __future__ import annotations

from typing import Any, Dict, List, Optional
from unittest.mock import MagicMock

import pytest

from remotebox.connection import Connection


class RecordingConnection(Connection):
    """Connection stub that records every call and returns canned results."""

    def __init__(self, output: str = "", records: Optional[List[Dict[str, Any]]] = None, is_alive: bool = True):
        self.output = output
        self.records = records or []
        self.is_alive = is_alive
        self.calls: List[tuple] = []
        self.tunnel_calls: List[Any] = []
        self.closed = False

    def bash(self, command: str, user: Optional[str] = None) -> str:
        self.calls.append((command, user))
        return self.output

    def processes(self) -> List[Dict[str, Any]]:
        return list(self.records)

    def alive(self) -> bool:
        return self.is_alive

    def ensure_tunnel(self, timeout: Any = None, **options: Any) -> None:
        self.tunnel_calls.append(timeout)

    def close(self) -> None:
        self.closed = True


class FakeChannel:
    """paramiko.Channel stand-in serving canned stdout/stderr bytes.

    With ``stderr_first`` the stdout stream stays empty until stderr has been
    read out, like a command blocked on a full stderr window.
    """

    def __init__(self, stdout: bytes = b"", stderr: bytes = b"", exit_status: int = 0, stderr_first: bool = False):
        self.stdout = stdout
        self.stderr = stderr
        self.exit_status = exit_status
        self.stderr_first = stderr_first
        self.closed = False
        self.shutdown_write = MagicMock(name="shutdown_write")

    def recv_ready(self) -> bool:
        if self.stderr_first and self.stderr:
            return False
        return bool(self.stdout)

    def recv(self, size: int) -> bytes:
        chunk, self.stdout = self.stdout[:size], self.stdout[size:]
        return chunk

    def recv_stderr_ready(self) -> bool:
        return bool(self.stderr)

    def recv_stderr(self, size: int) -> bytes:
        chunk, self.stderr = self.stderr[:size], self.stderr[size:]
        return chunk

    def exit_status_ready(self) -> bool:
        return not self.stdout and not self.stderr

    def recv_exit_status(self) -> int:
        return self.exit_status


@pytest.fixture
def recording():
    return RecordingConnection()


@pytest.fixture
def ssh_client(monkeypatch):
    """Replace paramiko.SSHClient with a mock whose transport is always active."""
    import remotebox.remote as remote

    client = MagicMock(name="SSHClient()")
    client.get_transport.return_value.is_active.return_value = True
    channel = FakeChannel()
    stdin = MagicMock(name="stdin")
    stdin.channel = channel
    stdout = MagicMock(name="stdout")
    stdout.channel = channel
    stderr = MagicMock(name="stderr")
    stderr.channel = channel
    client.exec_command.return_value = (stdin, stdout, stderr)

    factory = MagicMock(return_value=client)
    monkeypatch.setattr(remote.paramiko, "SSHClient", factory)
    monkeypatch.setattr("remotebox.utils.getpass.getuser", lambda: "local-user")
    client.factory = factory
    client.channel = channel
    return client
