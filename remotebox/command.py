from typing import List, Mapping, Optional

def command_with_environment(
    command: str,
    env: Optional[Mapping[str, str]] = None,
    escape: bool = False,
) -> str:
    """
    Prefix ``command`` with one ``export NAME='VALUE'`` line per variable.

    Values are wrapped in single quotes as-is, so a value holding a quote
    breaks out of it. Pass ``escape=True`` to render embedded quotes as
    ``'\\''`` instead.
    """
    if not env:
        return command
    lines = []
    for key, value in env.items():
        value = str(value)
        if escape:
            value = value.replace("'", "'\\''")
        lines.append(f"export {key}='{value}'")
    lines.append(command)
    return "\n".join(lines)

def shell_argv(user: Optional[str] = None) -> List[str]:
    # The script is fed on stdin so exports run inside the target user's shell.
    if user:
        return ["sudo", "-H", "-u", user, "bash"]
    return ["bash"]

def quote_path(path: str) -> str:
    return "'" + path.replace("'", "'\\''") + "'"
