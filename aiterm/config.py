import json
import os
import shlex
import subprocess

from dataclasses import asdict, dataclass, field
from typing import Dict, Optional

from . import AitermError
from .log import get_logger

logger = get_logger(__name__)

CONFIG_FILE_NAME = ".aiterm"
DEFAULT_EDITOR = "vim"

DEFAULT_PROVIDER = "gemini"
DEFAULT_MODEL = "gemini-2.0-flash"
DEFAULT_MAX_TOKENS = 1024
DEFAULT_TEMPERATURE = 0.8


class ConfigError(AitermError):
    """Raised when the configuration file can't be read, parsed or written."""


@dataclass
class Config:
    provider: str = DEFAULT_PROVIDER
    model: str = DEFAULT_MODEL
    max_tokens: int = DEFAULT_MAX_TOKENS
    temperature: float = DEFAULT_TEMPERATURE
    api_keys: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict) -> "Config":
        """Builds a config from parsed JSON. Missing keys take their defaults
        and unknown keys are ignored."""
        if not isinstance(data, dict):
            raise ConfigError("the top level of the config file must be a JSON object")

        config = cls()
        try:
            if "provider" in data:
                config.provider = str(data["provider"]).strip().lower()
            if "model" in data:
                config.model = str(data["model"])
            if "max_tokens" in data:
                config.max_tokens = int(data["max_tokens"])
            if "temperature" in data:
                config.temperature = float(data["temperature"])
        except (TypeError, ValueError) as e:
            raise ConfigError(f"invalid value in config file: {e}") from e

        api_keys = data.get("api_keys") or {}
        if not isinstance(api_keys, dict):
            raise ConfigError("'api_keys' must be an object mapping provider names to keys")
        config.api_keys = {str(k).lower(): str(v) for k, v in api_keys.items() if v}
        return config

    def to_dict(self) -> Dict:
        return asdict(self)

    def get_api_key(self, provider: str) -> str:
        """
        Returns the API key for `provider`. A key in the config file wins,
        otherwise the `<PROVIDER>_API_KEY` environment variable is used.
        An empty string means no key is available.
        """
        provider = provider.lower()
        key = self.api_keys.get(provider, "")
        if key:
            return key
        return os.environ.get(f"{provider.upper()}_API_KEY", "")


def get_config_path() -> str:
    home_dir = os.path.expanduser("~")
    if not home_dir or home_dir == "~":
        raise ConfigError("failed to get home directory")
    return os.path.join(home_dir, CONFIG_FILE_NAME)


def save_config(config: Config, path: Optional[str] = None):
    config_path = path or get_config_path()
    config_dir = os.path.dirname(config_path)
    try:
        if config_dir:
            os.makedirs(config_dir, exist_ok=True)
        with open(config_path, "w", encoding="utf-8") as config_file:
            json.dump(config.to_dict(), config_file, indent=2)
            config_file.write("\n")
    except OSError as e:
        raise ConfigError(f"failed to write config file: {e}") from e


def load_config(path: Optional[str] = None) -> Config:
    """
    Loads the configuration, creating the file with defaults on first run.

    Environment overrides are applied on top of the file: `AITERM_PROVIDER`
    and `AITERM_MODEL`. API keys are resolved lazily by `Config.get_api_key`.

    Raises:
        ConfigError: if the file exists but can't be read or parsed.
    """
    config_path = path or get_config_path()

    if not os.path.exists(config_path):
        logger.info("No config file at %s, creating one with defaults", config_path)
        config = Config()
        try:
            save_config(config, config_path)
        except ConfigError as e:
            raise ConfigError(f"failed to create default config: {e}") from e
    else:
        try:
            with open(config_path, "r", encoding="utf-8") as config_file:
                data = json.load(config_file)
        except json.JSONDecodeError as e:
            raise ConfigError(f"failed to parse config file: {e}") from e
        except OSError as e:
            raise ConfigError(f"failed to read config file: {e}") from e
        config = Config.from_dict(data)

    return _apply_env_overrides(config)


def _apply_env_overrides(config: Config) -> Config:
    provider = os.environ.get("AITERM_PROVIDER", "").strip().lower()
    if provider:
        config.provider = provider

    model = os.environ.get("AITERM_MODEL", "").strip()
    if model:
        config.model = model

    logger.debug("Using provider=%s model=%s", config.provider, config.model)
    return config


def open_in_editor(path: str):
    """
    Opens `path` with the user's editor ($EDITOR, falling back to vim) and
    waits for it to exit.

    Raises:
        ConfigError: if the editor can't be found or exits with an error.
    """
    editor = os.getenv("EDITOR") or DEFAULT_EDITOR
    try:
        # The editor may carry its own flags, e.g. EDITOR="code --wait".
        editor_args = shlex.split(editor)
    except ValueError as e:
        raise ConfigError(f"invalid editor command '{editor}': {e}") from e

    try:
        subprocess.run([*editor_args, path], check=True)
    except FileNotFoundError as e:
        raise ConfigError(f"Could not find editor '{editor}'") from e
    except subprocess.CalledProcessError as e:
        raise ConfigError(f"editor '{editor}' exited with status {e.returncode}") from e
    except OSError as e:
        raise ConfigError(f"failed to start editor '{editor}': {e}") from e
