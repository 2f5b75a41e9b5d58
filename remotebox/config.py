import os
import re
from typing import Optional

# ========= Static config =========
LOCALHOST = "localhost"

KEEPALIVE_INTERVAL = 30
BUFFER_SIZE = 4096
POLL_INTERVAL = 0.01

DEFAULT_TUNNEL_TIMEOUT = 10.0
MAX_TUNNEL_TIMEOUT = 3600.0
INFINITE_TIMEOUT = "infinite"

DEFAULT_SSH_PORT = 22
ALIVE_CHECK = "echo alive"

# pid, uid, ppid, rss (KiB), cumulative cpu seconds, full args
PS_FORMAT = "pid=,uid=,ppid=,rss=,times=,args="
PS_COMMAND = f"ps -eo {PS_FORMAT}"

# ========= Output cleanup =========
ANSI_ESCAPE = re.compile(r"\x1B(?:[@-Z\\-_]|\[[0-?]*[ -/]*[@-~])")
CONTROL_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f]")

# ========= Runtime Configuration =========
class BoxConfig:
    def __init__(self):
        self.SSH_PORT: int = DEFAULT_SSH_PORT
        self.SSH_PASSWORD: Optional[str] = None
        self.SSH_KEY_PATH: Optional[str] = None
        self.SSH_KEY_PASSPHRASE: Optional[str] = None
        self.SSH_VERIFY_HOST_KEY: bool = True
        self.LOG_DIR: Optional[str] = None

    def load_from_env(self):
        self.SSH_PORT = int(os.environ.get("REMOTEBOX_SSH_PORT", self.SSH_PORT))
        self.SSH_PASSWORD = os.environ.get("REMOTEBOX_SSH_PASSWORD", self.SSH_PASSWORD)
        self.SSH_KEY_PATH = os.environ.get("REMOTEBOX_SSH_KEY_PATH", self.SSH_KEY_PATH)
        self.SSH_KEY_PASSPHRASE = os.environ.get("REMOTEBOX_SSH_KEY_PASSPHRASE", self.SSH_KEY_PASSPHRASE)
        self.LOG_DIR = os.environ.get("REMOTEBOX_LOG_DIR", self.LOG_DIR)

        verify_host_env = os.environ.get("REMOTEBOX_SSH_VERIFY_HOST_KEY")
        if verify_host_env is not None:
            self.SSH_VERIFY_HOST_KEY = verify_host_env.lower() in ("true", "1", "yes")

# Global instance, CLI flags are applied on top
config = BoxConfig()
config.load_from_env()
