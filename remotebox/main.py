import sys
import argparse
from typing import Dict, List, Optional
from remotebox.box import Box
from remotebox.config import LOCALHOST, config
from remotebox.errors import BoxError
from remotebox.utils import log_error


def _parse_env(pairs: List[str], parser: argparse.ArgumentParser) -> Dict[str, str]:
    env: Dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            parser.error(f"--env expects NAME=VALUE, got {pair!r}")
        env[key] = value
    return env


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Run commands, list processes and read files on a local or remote box"
    )
    parser.add_argument("--host", default=LOCALHOST, help="[user@]hostname[:port] of the box (default: localhost)")
    parser.add_argument("--port", type=int, help="SSH port (overrides REMOTEBOX_SSH_PORT env)")
    parser.add_argument("--key", help="Path to SSH private key (overrides REMOTEBOX_SSH_KEY_PATH env)")
    parser.add_argument("--no-verify-host", action="store_true", help="Disable SSH host key verification")
    parser.add_argument("--timeout", default=None, help="Seconds to wait for the tunnel, or 'infinite'")
    parser.add_argument("--log-dir", help="Directory for connection event logs (overrides REMOTEBOX_LOG_DIR env)")

    commands = parser.add_subparsers(dest="action", required=True)

    bash = commands.add_parser("bash", help="Run a shell command")
    bash.add_argument("command")
    bash.add_argument("--user", help="Unix user to become via sudo")
    bash.add_argument("--env", action="append", default=[], metavar="NAME=VALUE", help="Export a variable first")

    commands.add_parser("ps", help="List running processes")
    commands.add_parser("alive", help="Check whether the box responds")

    cat = commands.add_parser("cat", help="Print a file")
    cat.add_argument("path")

    ls = commands.add_parser("ls", help="List a directory")
    ls.add_argument("path", nargs="?", default="/")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    # Apply args over env vars
    if args.port: config.SSH_PORT = args.port
    if args.key: config.SSH_KEY_PATH = args.key
    if args.log_dir: config.LOG_DIR = args.log_dir
    if args.no_verify_host:
        config.SSH_VERIFY_HOST_KEY = False

    env = _parse_env(args.env, parser) if args.action == "bash" else {}

    with Box(args.host) as box:
        try:
            if args.timeout is not None:
                box.establish_connection(timeout=args.timeout)

            if args.action == "bash":
                sys.stdout.write(box.bash(args.command, user=args.user, env=env))
            elif args.action == "ps":
                for process in box.processes():
                    print(f"{process.pid:>7} {process.uid:>6} {process.mem:>9} {process.cmdline}")
            elif args.action == "alive":
                alive = box.alive()
                print("alive" if alive else "dead")
                return 0 if alive else 1
            elif args.action == "cat":
                sys.stdout.write(box[args.path].contents())
            elif args.action == "ls":
                path = args.path if args.path.endswith("/") else args.path + "/"
                for entry in box[path].entries():
                    print(entry.name + ("/" if entry.full_path.endswith("/") else ""))
        except BoxError as exc:
            log_error(f"{box}: {exc}")
            return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
