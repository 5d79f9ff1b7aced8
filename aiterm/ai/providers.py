import sys

from abc import ABC, abstractmethod
from typing import Dict, List, Optional, TextIO, Type

from .. import AitermError
from ..config import Config
from ..log import get_logger
from .history import ConversationHistory
from .llm import LLMClient
from .prompts import SYSTEM_PROMPT

logger = get_logger(__name__)

PROVIDERS: Dict[str, Type["Provider"]] = {}


class ProviderError(AitermError):
    """Raised when a provider can't be created or fails to answer a prompt."""


def register_provider(name: str):
    """Class decorator adding a provider to the registry under `name`."""

    def decorator(cls):
        if name in PROVIDERS:
            raise ValueError(f"Provider '{name}' is already registered.")
        cls.name = name
        PROVIDERS[name] = cls
        return cls

    return decorator


def create_provider(config: Config) -> "Provider":
    provider_cls = PROVIDERS.get(config.provider)
    if provider_cls is None:
        available = ", ".join(sorted(PROVIDERS))
        raise ProviderError(
            f"unsupported provider: {config.provider} (available: {available})"
        )
    return provider_cls(config)


class Provider(ABC):
    """
    The interface the session talks to. A provider turns a prompt plus the
    conversation so far into a reply, streaming it as it is produced.

    Providers hold no conversation state of their own: the caller owns the
    `ConversationHistory` and passes it into every call.
    """

    name: str = ""

    def __init__(self, config: Config):
        self.config = config

    def new_history(self) -> ConversationHistory:
        """Returns an empty history primed with the system prompt."""
        return ConversationHistory(SYSTEM_PROMPT)

    @abstractmethod
    def send(self, history: ConversationHistory, prompt: str, output: TextIO) -> str:
        """
        Sends `prompt` in the context of `history`, writes the reply to
        `output` as it arrives and returns the full text. The exchange is
        appended to `history` only when it succeeds.

        Raises:
            ProviderError: if no reply could be obtained.
        """

    def clear_history(self, history: ConversationHistory):
        """Drops the conversation, keeping the system priming entry."""
        history.clear()

    @abstractmethod
    def close(self):
        pass


class AISuiteProvider(Provider):
    """
    Base for providers reached through aisuite. Subclasses only describe how
    to configure the aisuite backend; requests, streaming and the single
    non-streaming fallback live here.
    """

    backend: str = ""

    def __init__(self, config: Config):
        super().__init__(config)
        api_key = config.get_api_key(self.name)
        if not api_key:
            raise ProviderError(
                f"{self.name.upper()}_API_KEY not found in config or environment"
            )
        try:
            self.llm: Optional[LLMClient] = LLMClient(self._provider_configs(api_key))
        except Exception as e:
            raise ProviderError(f"failed to create {self.name} client: {e}") from e

    @abstractmethod
    def _provider_configs(self, api_key: str) -> Dict:
        pass

    @property
    def model(self) -> str:
        return f"{self.backend}:{self.config.model}"

    def _request_options(self) -> Dict:
        return {
            "max_tokens": self.config.max_tokens,
            "temperature": self.config.temperature,
        }

    def send(self, history: ConversationHistory, prompt: str, output: TextIO) -> str:
        if self.llm is None:
            raise ProviderError(f"{self.name} client is closed")

        messages = history.messages + [LLMClient.format_user_message(prompt)]
        try:
            reply = self._send_streaming(messages, output)
        except Exception as e:
            # Any transport failure mid-stream gets exactly one blocking retry.
            logger.info("Streaming from %s failed: %s", self.name, e)
            print(f"\nStreaming error: {e}, falling back to non-streaming", file=sys.stderr)
            reply = self._send_blocking(messages, output)

        history.append_exchange(prompt, reply)
        return reply

    def _send_streaming(self, messages: List[Dict], output: TextIO) -> str:
        parts = []
        for text in self.llm.stream(self.model, messages, **self._request_options()):
            output.write(text)
            output.flush()
            parts.append(text)
        output.write("\n")
        output.flush()
        return "".join(parts)

    def _send_blocking(self, messages: List[Dict], output: TextIO) -> str:
        try:
            response = self.llm.completion(self.model, messages, **self._request_options())
        except Exception as e:
            raise ProviderError(f"failed to generate content: {e}") from e

        if not response.assistant_message:
            raise ProviderError("no response candidates returned")

        reply = response.content or ""
        output.write(reply)
        output.write("\n")
        output.flush()
        return reply

    def close(self):
        if self.llm is not None:
            self.llm.close()
            self.llm = None


@register_provider("gemini")
class GeminiProvider(AISuiteProvider):
    """Google Gemini, reached through its OpenAI-compatible endpoint."""

    backend = "openai"
    base_url = "https://generativelanguage.googleapis.com/v1beta/openai/"

    def _provider_configs(self, api_key: str) -> Dict:
        return {self.backend: {"api_key": api_key, "base_url": self.base_url}}


@register_provider("openai")
class OpenAIProvider(AISuiteProvider):
    backend = "openai"

    def _provider_configs(self, api_key: str) -> Dict:
        return {self.backend: {"api_key": api_key}}
