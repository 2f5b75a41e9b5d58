from typing import Any, Dict, List, Optional


class Process:
    """One row of a box's process table."""

    def __init__(self, record: Dict[str, Any], box):
        self.box = box
        self.pid: int = record["pid"]
        self.uid: Optional[int] = record.get("uid")
        self.parent_pid: Optional[int] = record.get("parent_pid")
        self.command: str = record.get("command", "")
        self.cmdline: str = record.get("cmdline", self.command)
        self.mem: int = record.get("mem", 0)
        self.cpu: int = record.get("cpu", 0)

    def alive(self) -> bool:
        return any(process.pid == self.pid for process in self.box.processes())

    def kill(self, signal: str = "TERM") -> None:
        self.box.bash(f"kill -{signal} {self.pid}")

    def parent(self) -> Optional["Process"]:
        for process in self.box.processes():
            if process.pid == self.parent_pid:
                return process
        return None

    def children(self) -> List["Process"]:
        return [process for process in self.box.processes() if process.parent_pid == self.pid]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Process):
            return NotImplemented
        return self.pid == other.pid and self.box == other.box

    def __hash__(self) -> int:
        return hash((self.pid, self.box))

    def __str__(self) -> str:
        return self.command

    def __repr__(self) -> str:
        return f"Process({self.pid}, {self.command!r} on {self.box})"
