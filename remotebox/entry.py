"""
Filesystem entries bound to a box.

Every operation is a shell command sent through the owning box, so the same
code works for local and remote machines.
"""

import base64
import posixpath
from typing import List, Optional

from remotebox.command import quote_path
from remotebox.errors import CommandExecutionFailed, EntryNotFound, InvalidPath


class Entry:
    def __init__(self, full_path: str, box):
        self.full_path = full_path
        self.box = box

    @staticmethod
    def factory(full_path: str, box) -> "Entry":
        """Dir if the path ends with a slash, File otherwise."""
        if not full_path or not full_path.startswith("/"):
            raise InvalidPath(full_path)
        if full_path.endswith("/"):
            return Dir(full_path, box)
        return File(full_path, box)

    @property
    def name(self) -> str:
        stripped = self.full_path.rstrip("/")
        return posixpath.basename(stripped) if stripped else "/"

    @property
    def parent(self) -> Optional["Dir"]:
        stripped = self.full_path.rstrip("/")
        if not stripped:
            return None
        parent_path = posixpath.dirname(stripped)
        return Dir(parent_path.rstrip("/") + "/", self.box)

    @property
    def quoted_path(self) -> str:
        return quote_path(self.full_path)

    def exists(self) -> bool:
        try:
            self.box.bash(f"test -e {self.quoted_path}")
        except CommandExecutionFailed:
            return False
        return True

    def _run(self, command: str) -> str:
        try:
            return self.box.bash(command)
        except CommandExecutionFailed as exc:
            if not self.exists():
                raise EntryNotFound(self.full_path) from exc
            raise

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Entry):
            return NotImplemented
        return self.full_path == other.full_path and self.box == other.box

    def __hash__(self) -> int:
        return hash((self.full_path, self.box))

    def __str__(self) -> str:
        return f"{self.box}:{self.full_path}"

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self})"


class Dir(Entry):
    def __getitem__(self, key: str) -> Entry:
        return Entry.factory(self.full_path + key.lstrip("/"), self.box)

    lookup = __getitem__

    def entries(self) -> List[Entry]:
        # -p marks directories with a trailing slash, which picks the variant
        listing = self._run(f"ls -1Ap {self.quoted_path}")
        return [self[line] for line in listing.splitlines() if line]

    def files(self) -> List["File"]:
        return [entry for entry in self.entries() if isinstance(entry, File)]

    def dirs(self) -> List["Dir"]:
        return [entry for entry in self.entries() if isinstance(entry, Dir)]

    def create(self) -> "Dir":
        self.box.bash(f"mkdir -p {self.quoted_path}")
        return self

    def destroy(self) -> None:
        self.box.bash(f"rm -rf {self.quoted_path}")


class File(Entry):
    def contents(self) -> str:
        return self._run(f"cat {self.quoted_path}")

    def size(self) -> int:
        return int(self._run(f"wc -c < {self.quoted_path}").strip())

    def _write(self, text: str, redirect: str) -> None:
        payload = base64.encodebytes(text.encode("utf-8")).decode("ascii")
        self.box.bash(f"base64 -d {redirect} {self.quoted_path} <<'REMOTEBOX_EOF'\n{payload}REMOTEBOX_EOF")

    def write(self, text: str) -> "File":
        self._write(text, ">")
        return self

    def append(self, text: str) -> "File":
        self._write(text, ">>")
        return self

    def create(self) -> "File":
        self.box.bash(f"touch {self.quoted_path}")
        return self

    def destroy(self) -> None:
        self.box.bash(f"rm -f {self.quoted_path}")
