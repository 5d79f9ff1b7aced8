import contextlib
import os
import re
import subprocess
import tempfile

from typing import TextIO

from . import AitermError
from .log import get_logger

logger = get_logger(__name__)

SHEBANG = "#!/bin/bash\n"
SCRIPT_MODE = 0o700
SCRIPT_HEADER = "-------------------- Proposed Script --------------------"
SCRIPT_FOOTER = "---------------------------------------------------------"
CONFIRM_PROMPT = "Execute this script? (Y/n): "
AFFIRMATIVE_ANSWERS = ("", "y", "yes")

_CREATE_FLAGS = os.O_WRONLY | os.O_CREAT | os.O_EXCL | getattr(os, "O_NOFOLLOW", 0)

_CODE_BLOCK_PATTERN = re.compile(
    r"```(?:bash|sh|shell)[ \t]*\r?\n(.*?)\r?\n[ \t]*```", re.DOTALL
)


class ScriptStagingError(AitermError):
    """Raised when a script can't be written to its temporary file. The
    `stage` attribute names the step that failed."""

    def __init__(self, stage: str, cause: Exception):
        super().__init__(f"failed to {stage}: {cause}")
        self.stage = stage
        self.cause = cause


class CommandError(AitermError):
    """Raised when a child shell can't be started or exits with an error."""


def extract_bash_code_block(response: str) -> str:
    """
    Returns the body of the first ```bash fenced block in a model response,
    stripped of surrounding whitespace, or "" if there is none.
    """
    match = _CODE_BLOCK_PATTERN.search(response)
    if not match:
        return ""
    return match.group(1).strip()


def get_script_path() -> str:
    # One staged script per process at a time, so the PID is a unique enough name.
    return os.path.join(tempfile.gettempdir(), f"aiterm-{os.getpid()}.sh")


def stage_script(code: str) -> str:
    """
    Writes `code` to an executable temporary bash script and returns its path.

    The file holds the shebang, the code and exactly one trailing newline.
    The caller owns the file and must remove it with `remove_script`.

    Raises:
        ScriptStagingError: naming the step that failed. No partial file is
            left behind.
    """
    path = get_script_path()
    try:
        # The name is predictable, so never reuse or follow whatever is there.
        remove_script(path)
        fd = os.open(path, _CREATE_FLAGS, SCRIPT_MODE)
    except OSError as e:
        raise ScriptStagingError("create temp file", e) from e

    try:
        script_file = os.fdopen(fd, "w", encoding="utf-8")
    except OSError as e:
        os.close(fd)
        remove_script(path)
        raise ScriptStagingError("create temp file", e) from e

    steps = (
        ("write shebang", SHEBANG),
        ("write code", code.rstrip("\n")),
        ("write trailing newline", "\n"),
    )
    for stage, text in steps:
        try:
            script_file.write(text)
        except OSError as e:
            with contextlib.suppress(OSError):
                script_file.close()
            remove_script(path)
            raise ScriptStagingError(stage, e) from e

    try:
        script_file.close()
    except OSError as e:
        remove_script(path)
        raise ScriptStagingError("close temp file", e) from e

    try:
        os.chmod(path, SCRIPT_MODE)
    except OSError as e:
        remove_script(path)
        raise ScriptStagingError("set executable permission", e) from e

    logger.debug("Staged script at %s", path)
    return path


def remove_script(path: str):
    try:
        os.remove(path)
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.warning("Could not remove staged script %s: %s", path, e)


def display_script(path: str, output: TextIO):
    """Prints the staged script between delimiter lines."""
    with open(path, "r", encoding="utf-8") as script_file:
        content = script_file.read()

    output.write(f"{SCRIPT_HEADER}\n")
    output.write(content)
    output.write(f"{SCRIPT_FOOTER}\n")
    output.flush()


def confirm_execution() -> bool:
    """Asks before running a script. An empty answer means yes."""
    try:
        answer = input(CONFIRM_PROMPT)
    except (KeyboardInterrupt, EOFError):
        print()
        return False
    return answer.strip().lower() in AFFIRMATIVE_ANSWERS


def run_script(path: str, working_dir: str):
    """
    Runs a staged script with bash in `working_dir`. The child shares our
    terminal, so it can prompt the user and print as it goes.

    Raises:
        CommandError: if bash can't be started or the script fails.
    """
    _run(["bash", path], working_dir)


def run_command(command: str, working_dir: str):
    """Runs a one-line shell command with `bash -c` in `working_dir`."""
    _run(["bash", "-c", command], working_dir)


def _run(args, working_dir: str):
    logger.info("Running %s in %s", args, working_dir)
    try:
        subprocess.run(args, cwd=working_dir, check=True)
    except subprocess.CalledProcessError as e:
        raise CommandError(f"exit status {e.returncode}") from e
    except OSError as e:
        raise CommandError(str(e)) from e
