"""
The `ai` package talks to the language model: the LLM client wrapper, the
conversation history that is threaded through every request, and the
provider registry the session picks its backend from.
"""

from .history import ConversationHistory
from .llm import LLMClient, LLMCompletionResponse
from .providers import (
    PROVIDERS,
    Provider,
    ProviderError,
    create_provider,
    register_provider,
)

__all__ = [
    "ConversationHistory",
    "LLMClient",
    "LLMCompletionResponse",
    "PROVIDERS",
    "Provider",
    "ProviderError",
    "create_provider",
    "register_provider",
]
