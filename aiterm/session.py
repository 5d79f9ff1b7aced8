import os
import readline  # noqa: F401  (line editing and history for input())

from typing import Optional

from rich.console import Console
from rich.markup import escape

from .ai import Provider, ProviderError
from .config import ConfigError, get_config_path, open_in_editor
from .directory import (
    DirectoryNotFoundError,
    change_directory,
    detect_cd_target,
    is_sole_cd_command,
    parse_cd_command,
)
from .log import get_logger
from .script import (
    CommandError,
    ScriptStagingError,
    confirm_execution,
    display_script,
    extract_bash_code_block,
    remove_script,
    run_command,
    run_script,
    stage_script,
)

logger = get_logger(__name__)

EXIT_COMMAND = "exit"
CLEAR_COMMAND = "clear"
CONFIG_COMMAND = "config"
SHELL_PREFIX = "$"


class Session:
    """
    The interactive loop. Each line typed is one of:

    - `exit`: leave the session.
    - `clear`: forget the conversation (the system prompt is kept).
    - `config`: open the configuration file in $EDITOR.
    - `$<command>`: run a shell command directly. `$cd <dir>` moves the
      session's virtual directory without spawning anything.
    - anything else: a request for the model. If the reply carries a bash
      block it is staged, shown, and run once the user confirms.
    """

    def __init__(
        self,
        provider: Provider,
        current_dir: Optional[str] = None,
        console: Optional[Console] = None,
        err_console: Optional[Console] = None,
    ):
        self.provider = provider
        self.history = provider.new_history()
        self.current_dir = current_dir or _initial_directory()
        self.console = console or Console()
        self.err_console = err_console or Console(stderr=True)

    @property
    def prompt(self) -> str:
        name = os.path.basename(self.current_dir.rstrip(os.sep)) or self.current_dir
        return f"aiterm:{name}> "

    def run(self):
        """Reads and dispatches lines until `exit` or end of input."""
        while True:
            try:
                line = input(self.prompt)
            except EOFError:
                self.console.print()
                break
            except KeyboardInterrupt:
                # Drop the half-typed line, like a shell would.
                self.console.print()
                continue

            try:
                if not self.handle_line(line):
                    break
            except KeyboardInterrupt:
                self.console.print()
                self._error("Interrupted")

    def handle_line(self, line: str) -> bool:
        """Dispatches one input line. Returns False when the session should end."""
        line = line.strip()
        if not line:
            return True

        if line == EXIT_COMMAND:
            return False
        if line == CLEAR_COMMAND:
            self.clear()
        elif line == CONFIG_COMMAND:
            self.open_config()
        elif line.startswith(SHELL_PREFIX):
            self.run_direct_command(line[len(SHELL_PREFIX):].strip())
        else:
            self.ask(line)
        return True

    def clear(self):
        self.provider.clear_history(self.history)
        self.console.print("Conversation history cleared.")

    def open_config(self):
        try:
            config_path = get_config_path()
        except ConfigError as e:
            self._error("Error getting config path", e)
            return

        self.console.print(f"Opening config file: {escape(config_path)}")
        try:
            open_in_editor(config_path)
        except ConfigError as e:
            self._error("Error opening config file", e)

    def run_direct_command(self, command: str):
        if not command:
            return

        cd_target = parse_cd_command(command)
        if cd_target is not None:
            try:
                self.current_dir = change_directory(cd_target, self.current_dir)
            except DirectoryNotFoundError as e:
                self._error(str(e))
            return

        try:
            run_command(command, self.current_dir)
        except CommandError as e:
            self._error("Error executing command", e)

    def ask(self, prompt: str):
        """Sends a request to the model and acts on any script in the reply."""
        output = self.console.file
        output.write("AI: ")
        output.flush()
        try:
            response = self.provider.send(self.history, prompt, output)
        except ProviderError as e:
            self._error("Error processing prompt", e)
            return

        code = extract_bash_code_block(response)
        if code:
            self.handle_script(code)

    def handle_script(self, code: str):
        """
        Applies any `cd` found in the script to the virtual directory, then
        stages the script, shows it and runs it if the user agrees. A script
        that is only a `cd` is not run at all.
        """
        cd_target = detect_cd_target(code)
        if cd_target is not None:
            self._follow_cd(cd_target)
            if is_sole_cd_command(code, cd_target):
                return

        try:
            path = stage_script(code)
        except ScriptStagingError as e:
            self._error("Error saving script", e)
            return

        try:
            try:
                display_script(path, self.console.file)
            except OSError as e:
                self._error("Error reading script", e)
                return

            if confirm_execution():
                try:
                    run_script(path, self.current_dir)
                except CommandError as e:
                    self._error("Error executing script", e)
            else:
                self.console.print("Script not executed.")
        finally:
            remove_script(path)

    def _follow_cd(self, target: str):
        try:
            new_dir = change_directory(target, self.current_dir)
        except DirectoryNotFoundError as e:
            self._error(str(e))
            return

        if new_dir != self.current_dir:
            self.current_dir = new_dir
            self.console.print(f"[green]Changed directory to:[/] {escape(new_dir)}")

    def _error(self, message: str, cause: Optional[Exception] = None):
        if cause is not None:
            logger.info("%s: %s", message, cause)
            message = f"{message}: {cause}"
        self.err_console.print(f"[red]{escape(message)}[/]", highlight=False)


def _initial_directory() -> str:
    try:
        return os.getcwd()
    except OSError:
        # The directory we were started in has been removed.
        return os.path.expanduser("~")
