from dataclasses import dataclass
import aisuite

from typing import Dict, Iterator, List, Optional


@dataclass
class LLMCompletionResponse:
    """Wraps the full assistant message from the LLM API."""

    assistant_message: Dict

    @property
    def content(self) -> Optional[str]:
        """The text content of the message, if any."""
        return self.assistant_message.get("content")


class LLMClient:
    """
    A thin wrapper around aisuite so the rest of the code never touches a
    provider library directly.
    """

    def __init__(self, provider_configs: Dict):
        """
        Initializes the LLM client.

        Args:
            provider_configs: aisuite provider configuration, keyed by backend
                name (e.g. {"openai": {"api_key": "...", "base_url": "..."}}).
        """
        self.client = aisuite.Client(provider_configs)

    @staticmethod
    def format_system_message(content: str) -> Dict:
        return {"role": "system", "content": content}

    @staticmethod
    def format_user_message(content: str) -> Dict:
        return {"role": "user", "content": content}

    @staticmethod
    def format_assistant_message(content: str) -> Dict:
        return {"role": "assistant", "content": content}

    def completion(
        self, model: str, messages: List[Dict], **kwargs
    ) -> LLMCompletionResponse:
        response = self.client.chat.completions.create(
            model=model, messages=messages, **kwargs
        )

        if not response.choices:
            return LLMCompletionResponse(assistant_message={})

        # The message object from aisuite/openai can be converted to a dict.
        # We exclude unset values to keep the payload clean and compatible.
        message_dict = response.choices[0].message.model_dump(exclude_unset=True)
        return LLMCompletionResponse(assistant_message=message_dict)

    def stream(self, model: str, messages: List[Dict], **kwargs) -> Iterator[str]:
        """
        Yields the text deltas of a streamed completion as they arrive.
        Chunks without text (role announcements, finish markers) are skipped.
        """
        response = self.client.chat.completions.create(
            model=model, messages=messages, stream=True, **kwargs
        )
        for chunk in response:
            if not chunk.choices:
                continue
            text = getattr(chunk.choices[0].delta, "content", None)
            if text:
                yield text

    def close(self):
        self.client = None
