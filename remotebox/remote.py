import shlex
import socket
import threading
import time
from typing import Any, Dict, List, Optional, Tuple
import paramiko

from remotebox.command import shell_argv
from remotebox.config import (
    ALIVE_CHECK, BUFFER_SIZE, DEFAULT_TUNNEL_TIMEOUT, KEEPALIVE_INTERVAL, POLL_INTERVAL,
    PS_COMMAND, config
)
from remotebox.connection import Connection
from remotebox.errors import CommandExecutionFailed, ConnectionUnavailable
from remotebox.utils import (
    clean_output, event_log_path, iso_now, json_line, log_error, parse_host,
    parse_ps_output, resolve_timeout
)

TRANSPORT_ERRORS = (paramiko.SSHException, socket.error, EOFError)


class RemoteConnection(Connection):
    """SSH tunnel to ``[user@]hostname[:port]``, opened on first use."""

    def __init__(self, host: str):
        self.host = host
        self.user, self.hostname, self.port = parse_host(host, config.SSH_PORT)

        self.client: Optional[paramiko.SSHClient] = None
        self.is_dead = False
        self.death_reason = ""

        self.lock = threading.Lock()
        self.log_path = event_log_path(host)

    def _log(self, payload: Dict[str, Any]) -> None:
        if not self.log_path:
            return
        data = {"ts": iso_now(), "host": self.host}
        data.update(payload)
        json_line(self.log_path, data)

    def _connect(self, timeout: Optional[float]) -> None:
        self._close_client()
        client = paramiko.SSHClient()
        if config.SSH_VERIFY_HOST_KEY:
            client.load_system_host_keys()
        else:
            client.set_missing_host_key_policy(paramiko.AutoAddPolicy())

        connect_kwargs = {
            "hostname": self.hostname,
            "port": self.port,
            "username": self.user,
            "timeout": timeout,
            "banner_timeout": timeout,
            "auth_timeout": timeout,
            "allow_agent": True,
            "look_for_keys": True,
        }
        if config.SSH_PASSWORD:
            connect_kwargs["password"] = config.SSH_PASSWORD
        if config.SSH_KEY_PATH:
            connect_kwargs["key_filename"] = config.SSH_KEY_PATH
            if config.SSH_KEY_PASSPHRASE:
                connect_kwargs["passphrase"] = config.SSH_KEY_PASSPHRASE

        try:
            client.connect(**connect_kwargs)
        except (paramiko.SSHException, OSError) as exc:
            client.close()
            self._log({"event": "connect_failed", "error": str(exc)})
            log_error(f"connect to {self.host} failed: {exc}")
            raise ConnectionUnavailable(self.host, str(exc)) from exc

        transport = client.get_transport()
        if transport:
            transport.set_keepalive(KEEPALIVE_INTERVAL)

        self.client = client
        self.is_dead = False
        self.death_reason = ""
        self._log({"event": "connected", "hostname": self.hostname, "port": self.port, "user": self.user})

    def _mark_dead(self, reason: str) -> None:
        if self.is_dead:
            return
        self.is_dead = True
        self.death_reason = reason
        self._log({"event": "connection_dead", "reason": reason})

    def is_connected(self) -> bool:
        if self.is_dead or not self.client:
            return False
        try:
            transport = self.client.get_transport()
            return bool(transport and transport.is_active())
        except Exception:
            return False

    def ensure_tunnel(self, timeout: Any = DEFAULT_TUNNEL_TIMEOUT, **options: Any) -> None:
        with self.lock:
            if self.is_connected():
                return
            self._connect(resolve_timeout(timeout, DEFAULT_TUNNEL_TIMEOUT))

    @staticmethod
    def _drain(channel: paramiko.Channel) -> Tuple[bytes, bytes]:
        # Both streams are read as data arrives; a full stderr window would
        # otherwise stall the remote command before stdout reaches EOF.
        out_chunks: List[bytes] = []
        err_chunks: List[bytes] = []
        while True:
            received = False
            if channel.recv_ready():
                out_chunks.append(channel.recv(BUFFER_SIZE))
                received = True
            if channel.recv_stderr_ready():
                err_chunks.append(channel.recv_stderr(BUFFER_SIZE))
                received = True
            if received:
                continue
            finished = channel.exit_status_ready() or channel.closed
            if finished and not channel.recv_ready() and not channel.recv_stderr_ready():
                break
            time.sleep(POLL_INTERVAL)
        return b"".join(out_chunks), b"".join(err_chunks)

    def bash(self, command: str, user: Optional[str] = None) -> str:
        self.ensure_tunnel()
        remote_command = " ".join(shlex.quote(word) for word in shell_argv(user))
        try:
            stdin, stdout, stderr = self.client.exec_command(remote_command)
            stdin.write(command)
            stdin.flush()
            stdin.channel.shutdown_write()
            out, err = self._drain(stdout.channel)
            status = stdout.channel.recv_exit_status()
        except TRANSPORT_ERRORS as exc:
            self._mark_dead(f"exec failed: {exc}")
            raise ConnectionUnavailable(self.host, str(exc)) from exc

        if status != 0:
            stderr_text = clean_output(err.decode("utf-8", errors="replace"))
            raise CommandExecutionFailed(command, stderr=stderr_text, exit_status=status)
        return out.decode("utf-8", errors="replace")

    def processes(self) -> List[Dict[str, Any]]:
        return parse_ps_output(self.bash(PS_COMMAND))

    def alive(self) -> bool:
        try:
            self.bash(ALIVE_CHECK)
        except (ConnectionUnavailable, CommandExecutionFailed):
            return False
        return True

    def _close_client(self) -> None:
        try:
            if self.client:
                self.client.close()
        except Exception:
            pass
        self.client = None

    def close(self) -> None:
        with self.lock:
            if self.client:
                self._log({"event": "closed"})
            self._close_client()

    def __repr__(self) -> str:
        return f"RemoteConnection({self.user}@{self.hostname}:{self.port})"
