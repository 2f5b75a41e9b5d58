import os
import re
import sys
import json
import getpass
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple
from remotebox.config import (
    ANSI_ESCAPE, CONTROL_CHARS, INFINITE_TIMEOUT, MAX_TUNNEL_TIMEOUT, config
)

def log_error(message: str) -> None:
    print(f"[remotebox] {message}", file=sys.stderr, flush=True)

def clamp_float(value: Any, default: float, min_value: float, max_value: float) -> float:
    try:
        numeric = float(value)
    except Exception:
        numeric = default
    if numeric < min_value:
        return min_value
    if numeric > max_value:
        return max_value
    return numeric

def resolve_timeout(value: Any, default: float) -> Optional[float]:
    """Seconds to wait for a tunnel, or None to wait indefinitely."""
    if value is None:
        return None
    if isinstance(value, str) and value.strip().lower() == INFINITE_TIMEOUT:
        return None
    return clamp_float(value, default, 0.1, MAX_TUNNEL_TIMEOUT)

def iso_now() -> str:
    return datetime.now().isoformat(timespec="milliseconds")

def safe_name(text: str) -> str:
    cleaned = re.sub(r"[^a-zA-Z0-9._-]+", "_", text.strip())
    return cleaned[:80] if cleaned else "unnamed"

def clean_output(text: str) -> str:
    if not text:
        return ""
    text = ANSI_ESCAPE.sub("", text)
    text = CONTROL_CHARS.sub("", text)
    return text.replace("\r\n", "\n").replace("\r", "\n")

def json_line(path: str, payload: Dict[str, Any]) -> None:
    try:
        with open(path, "a", encoding="utf-8") as handle:
            handle.write(json.dumps(payload, ensure_ascii=False) + "\n")
    except Exception as exc:
        log_error(f"log write failed ({path}): {exc}")

def event_log_path(host: str) -> Optional[str]:
    if not config.LOG_DIR:
        return None
    log_dir = os.path.abspath(os.path.expanduser(config.LOG_DIR))
    os.makedirs(log_dir, exist_ok=True)
    return os.path.join(log_dir, f"{safe_name(host)}.log")

def parse_host(host: str, default_port: int) -> Tuple[str, str, int]:
    """Split ``[user@]hostname[:port]``; user defaults to the invoking user.

    IPv6 addresses take a port only in brackets (``[2001:db8::1]:2222``);
    a bare address with several colons is used whole on the default port.
    """
    user, sep, rest = host.rpartition("@")
    if not sep:
        user = getpass.getuser()
    if rest.startswith("["):
        hostname, bracket, tail = rest[1:].partition("]")
        if not bracket or (tail and not tail.startswith(":")):
            raise ValueError(f"malformed bracketed address in {host!r}")
        port = tail[1:]
    elif rest.count(":") > 1:
        hostname, port = rest, ""
    else:
        hostname, _, port = rest.partition(":")
    if not hostname:
        raise ValueError(f"no hostname in {host!r}")
    return user, hostname, int(port) if port else default_port

def parse_ps_output(output: str) -> List[Dict[str, Any]]:
    processes = []
    for line in clean_output(output).splitlines():
        fields = line.split(None, 5)
        if len(fields) < 6:
            continue
        pid, uid, ppid, rss, cpu, cmdline = fields
        try:
            record = {
                "pid": int(pid),
                "uid": int(uid),
                "parent_pid": int(ppid),
                "mem": int(rss),
                "cpu": int(cpu),
            }
        except ValueError:
            continue
        record["cmdline"] = cmdline.strip()
        record["command"] = os.path.basename(record["cmdline"].split()[0])
        processes.append(record)
    return processes
