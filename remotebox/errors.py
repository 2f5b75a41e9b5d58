"""
Exceptions raised by connections and filesystem entries.

Box itself raises none of these; it lets them reach the caller unchanged.
"""

from typing import Optional


class BoxError(Exception):
    """Base exception for all remotebox errors."""
    pass


# =============================================================================
# Connection Errors
# =============================================================================
class ConnectionUnavailable(BoxError):
    """Raised when the tunnel to a box cannot be opened or was lost."""
    def __init__(self, host: str, reason: str = ""):
        self.host = host
        self.reason = reason
        super().__init__(f"Connection to {host} unavailable: {reason}")


class CommandExecutionFailed(BoxError):
    """Raised when a command exits non-zero or cannot be launched."""
    def __init__(self, command: str, stderr: str = "", exit_status: Optional[int] = None):
        self.command = command
        self.stderr = stderr
        self.exit_status = exit_status
        detail = stderr.strip() or "no output on stderr"
        if exit_status is None:
            super().__init__(f"Command could not be run: {detail}")
        else:
            super().__init__(f"Command exited with status {exit_status}: {detail}")


# =============================================================================
# Filesystem Errors
# =============================================================================
class EntryNotFound(BoxError):
    """Raised when a file or directory does not exist on the box."""
    def __init__(self, path: str):
        self.path = path
        super().__init__(f"No such entry: {path}")


class InvalidPath(BoxError):
    """Raised when a path cannot name an entry (e.g. it is not absolute)."""
    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Invalid path: {path!r}")
