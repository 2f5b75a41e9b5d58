"""
Local connection: runs commands on this machine with subprocess.
"""

import subprocess
from typing import Any, Dict, List, Optional

from remotebox.command import shell_argv
from remotebox.config import DEFAULT_TUNNEL_TIMEOUT, PS_COMMAND
from remotebox.connection import Connection
from remotebox.errors import CommandExecutionFailed
from remotebox.utils import log_error, parse_ps_output


class LocalConnection(Connection):
    def bash(self, command: str, user: Optional[str] = None) -> str:
        argv = shell_argv(user)
        try:
            result = subprocess.run(
                argv,
                input=command,
                capture_output=True,
                text=True,
                errors="replace",
            )
        except OSError as exc:
            log_error(f"local launch failed ({argv[0]}): {exc}")
            raise CommandExecutionFailed(command, stderr=str(exc)) from exc

        if result.returncode != 0:
            raise CommandExecutionFailed(command, stderr=result.stderr, exit_status=result.returncode)
        return result.stdout

    def processes(self) -> List[Dict[str, Any]]:
        return parse_ps_output(self.bash(PS_COMMAND))

    def alive(self) -> bool:
        return True

    def ensure_tunnel(self, timeout: Any = DEFAULT_TUNNEL_TIMEOUT, **options: Any) -> None:
        pass

    def __repr__(self) -> str:
        return "LocalConnection()"
