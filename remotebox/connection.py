"""Connection interface shared by the local and remote strategies."""

import abc
from typing import Any, Dict, List, Optional

from remotebox.config import DEFAULT_TUNNEL_TIMEOUT


class Connection(abc.ABC):
    """
    Runs commands against one machine on behalf of a Box.

    There are exactly two implementations: LocalConnection (subprocess on
    this machine) and RemoteConnection (paramiko SSH tunnel). A Box picks
    one from its host string and keeps it for its whole life.
    """

    @abc.abstractmethod
    def bash(self, command: str, user: Optional[str] = None) -> str:
        """
        Run ``command`` through bash and return its stdout.

        Args:
            command: Shell script to feed to bash.
            user: Unix user to become via sudo, or None for the default identity.

        Raises:
            CommandExecutionFailed: on non-zero exit or launch failure.
            ConnectionUnavailable: when the machine cannot be reached.
        """
        ...

    @abc.abstractmethod
    def processes(self) -> List[Dict[str, Any]]:
        """Return one raw record per running process."""
        ...

    @abc.abstractmethod
    def alive(self) -> bool:
        """Return True if the machine answers; never raises for reachability."""
        ...

    @abc.abstractmethod
    def ensure_tunnel(self, timeout: Any = DEFAULT_TUNNEL_TIMEOUT, **options: Any) -> None:
        """Open the channel if it is not open yet. No-op when already live."""
        ...

    def close(self) -> None:
        """Release the channel, if any."""
        pass
