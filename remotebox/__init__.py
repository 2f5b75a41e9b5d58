from remotebox.box import Box
from remotebox.errors import (
    BoxError, CommandExecutionFailed, ConnectionUnavailable, EntryNotFound, InvalidPath
)

__all__ = [
    "Box",
    "BoxError",
    "CommandExecutionFailed",
    "ConnectionUnavailable",
    "EntryNotFound",
    "InvalidPath",
]
