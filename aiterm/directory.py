"""
Virtual working directory helpers.

Every command the session runs is a fresh child process, so a `cd` inside one
of them is lost as soon as it exits. The session keeps its own notion of the
current directory instead and passes it as the `cwd` of every child. These
helpers resolve `cd` targets against that directory and spot `cd` commands in
generated scripts.
"""

import os
import re

from typing import Optional

from . import AitermError

# `cd` as a word, then a target up to the next whitespace or `;`.
_CD_PATTERN = re.compile(r"(?<![\w./-])cd[ \t]+([^\s;]+)")


class DirectoryNotFoundError(AitermError):
    def __init__(self, path: str):
        super().__init__(f"Directory does not exist: {path}")
        self.path = path


def resolve_directory(target: str, current_dir: str) -> str:
    """
    Resolves a `cd` target the way a shell would, relative to `current_dir`.

    An empty target means the home directory, `~` prefixes are expanded,
    relative paths are joined with `current_dir` and the result is
    normalised. Existence is not checked here.
    """
    target = _unquote(target.strip())
    if not target:
        return os.path.expanduser("~")

    target = os.path.expanduser(target)
    if not os.path.isabs(target):
        target = os.path.join(current_dir, target)
    return os.path.normpath(target)


def change_directory(target: str, current_dir: str) -> str:
    """
    Returns the new virtual directory for `cd <target>`.

    Raises:
        DirectoryNotFoundError: if the target does not name an existing
            directory. The caller keeps its current directory in that case.
    """
    new_dir = resolve_directory(target, current_dir)
    if not os.path.isdir(new_dir):
        raise DirectoryNotFoundError(new_dir)
    return new_dir


def parse_cd_command(command: str) -> Optional[str]:
    """
    If `command` is a bare `cd` (with or without a target) returns the
    target, "" meaning home. Returns None for anything else.
    """
    if command == "cd":
        return ""
    if command.startswith("cd ") or command.startswith("cd\t"):
        return command[3:].strip()
    return None


def detect_cd_target(script: str) -> Optional[str]:
    """
    Finds the first `cd <target>` in a generated script. Only the first one
    counts; quoting, comments and later `cd` calls are not interpreted.
    """
    match = _CD_PATTERN.search(script)
    if not match:
        return None
    return match.group(1)


def is_sole_cd_command(script: str, target: str) -> bool:
    """True when the whole script is nothing but `cd <target>`."""
    match = re.fullmatch(r"cd[ \t]+(\S+?);?", script.strip())
    return match is not None and match.group(1) == target


def _unquote(target: str) -> str:
    if len(target) >= 2 and target[0] == target[-1] and target[0] in ("'", '"'):
        return target[1:-1]
    return target
