"""
A box is a single unix machine: a server, workstation, or VPS instance.

Specify a box by hostname (default ``localhost``). If the box is remote, the
first action performed opens an SSH tunnel. Index the box with a path to
reach the filesystem, or call ``processes()`` for the process list::

    local = Box("localhost")
    local["/etc/hosts"].contents()
    local.processes()
"""

import threading
from typing import Any, List, Mapping, Optional

from remotebox.command import command_with_environment
from remotebox.config import DEFAULT_TUNNEL_TIMEOUT, LOCALHOST
from remotebox.connection import Connection
from remotebox.entry import Dir, Entry
from remotebox.errors import ConnectionUnavailable
from remotebox.local import LocalConnection
from remotebox.process import Process
from remotebox.remote import RemoteConnection


class Box:
    def __init__(self, host: str = LOCALHOST):
        """
        No connection is made until an action needs one. Give a username with
        the host if the remote ssh user differs from the local one, e.g.
        ``Box("deploy@web1")``.
        """
        self.host = host
        self._connection: Optional[Connection] = None
        self._connection_lock = threading.Lock()

    def __str__(self) -> str:
        return self.host

    def __repr__(self) -> str:
        return self.host

    def filesystem(self) -> Dir:
        """The root directory, ``/``, on this box."""
        return Entry.factory("/", self)

    def lookup(self, path: str) -> Entry:
        """
        Look up an entry on the filesystem. A trailing slash gives a Dir,
        anything else a File.
        """
        return self.filesystem()[path]

    def __getitem__(self, path: str) -> Entry:
        return self.lookup(path)

    def processes(self) -> List[Process]:
        return [Process(record, self) for record in self.connection.processes()]

    def bash(
        self,
        command: str,
        user: Optional[str] = None,
        env: Optional[Mapping[str, str]] = None,
        **options: Any,
    ) -> str:
        """
        Run a command in the standard unix shell and return its stdout.

        Args:
            command: Shell command line.
            user: Unix username to become via sudo.
            env: Environment variables exported before the command runs.
            escape_env: Escape single quotes inside env values.

        Example::

            box.bash("/etc/init.d/mysql restart", user="root")
            box.bash("rake db:migrate", user="www", env={"RAILS_ENV": "production"})
        """
        escape = bool(options.get("escape_env", False))
        return self.connection.bash(command_with_environment(command, env, escape=escape), user)

    execute = bash

    def alive(self) -> bool:
        """True if the box is responding to commands."""
        try:
            return self.connection.alive()
        except ConnectionUnavailable:
            return False

    def establish_connection(self, timeout: Any = DEFAULT_TUNNEL_TIMEOUT, **options: Any) -> None:
        """
        Called automatically by the first action, but can be used ahead of
        time to have the tunnel up already. ``timeout`` is seconds, or
        ``"infinite"`` (or None) to wait as long as it takes.
        """
        self.connection.ensure_tunnel(timeout=timeout)

    @property
    def connection(self) -> Connection:
        if self._connection is None:
            with self._connection_lock:
                if self._connection is None:
                    self._connection = self.make_connection()
        return self._connection

    def make_connection(self) -> Connection:
        if self.host == LOCALHOST:
            return LocalConnection()
        return RemoteConnection(self.host)

    def close(self) -> None:
        with self._connection_lock:
            connection, self._connection = self._connection, None
        if connection is not None:
            connection.close()

    def __enter__(self) -> "Box":
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Box):
            return NotImplemented
        return self.host == other.host

    def __hash__(self) -> int:
        return hash(self.host)
