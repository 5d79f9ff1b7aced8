from typing import Dict, List

from .llm import LLMClient


class ConversationHistory:
    """
    The ordered list of chat messages exchanged with a provider.

    The session owns the history and hands it to the provider on every call.
    An optional system message at the head of the list primes the model and
    survives `clear()`.
    """

    def __init__(self, system_prompt: str = ""):
        self._messages: List[Dict] = []
        if system_prompt:
            self._messages.append(LLMClient.format_system_message(system_prompt))

    @property
    def messages(self) -> List[Dict]:
        """A copy of the messages, safe to hand to an API client."""
        return [dict(m) for m in self._messages]

    @property
    def has_priming_entry(self) -> bool:
        return bool(self._messages) and self._messages[0]["role"] == "system"

    def append_exchange(self, prompt: str, reply: str):
        """Records a completed exchange. An empty reply is not recorded."""
        self._messages.append(LLMClient.format_user_message(prompt))
        if reply:
            self._messages.append(LLMClient.format_assistant_message(reply))

    def clear(self):
        if self.has_priming_entry:
            del self._messages[1:]
        else:
            self._messages.clear()

    def __len__(self) -> int:
        return len(self._messages)
