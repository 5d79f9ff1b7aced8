import unittest
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

from aiterm.ai.llm import LLMClient, LLMCompletionResponse


def _chunk(text):
    return SimpleNamespace(choices=[SimpleNamespace(delta=SimpleNamespace(content=text))])


class TestLLMClient(unittest.TestCase):
    """Tests for the aisuite wrapper."""

    def setUp(self):
        patcher = patch("aiterm.ai.llm.aisuite.Client")
        self.MockClient = patcher.start()
        self.addCleanup(patcher.stop)
        self.create = self.MockClient.return_value.chat.completions.create
        self.llm = LLMClient({"openai": {"api_key": "test-key"}})

    def test_client_receives_provider_configs(self):
        self.MockClient.assert_called_once_with({"openai": {"api_key": "test-key"}})

    def test_completion_returns_assistant_message(self):
        """Verify the first choice is converted into an LLMCompletionResponse."""
        # Arrange
        message = MagicMock()
        message.model_dump.return_value = {"role": "assistant", "content": "ls -la"}
        self.create.return_value = SimpleNamespace(choices=[SimpleNamespace(message=message)])
        messages = [LLMClient.format_user_message("list files")]

        # Action
        response = self.llm.completion("openai:gpt-4o", messages, max_tokens=10)

        # Assert
        self.create.assert_called_once_with(model="openai:gpt-4o", messages=messages, max_tokens=10)
        message.model_dump.assert_called_once_with(exclude_unset=True)
        self.assertEqual(response.content, "ls -la")

    def test_completion_without_choices(self):
        self.create.return_value = SimpleNamespace(choices=[])

        response = self.llm.completion("openai:gpt-4o", [])

        self.assertEqual(response.assistant_message, {})
        self.assertIsNone(response.content)

    def test_stream_yields_text_deltas(self):
        """Verify only chunks carrying text are yielded, in order."""
        # Arrange
        self.create.return_value = iter([
            _chunk(None),
            _chunk("Hel"),
            SimpleNamespace(choices=[]),
            _chunk("lo"),
            _chunk(""),
        ])

        # Action
        parts = list(self.llm.stream("openai:gpt-4o", [], temperature=0.5))

        # Assert
        self.assertEqual(parts, ["Hel", "lo"])
        self.create.assert_called_once_with(
            model="openai:gpt-4o", messages=[], stream=True, temperature=0.5
        )

    def test_message_helpers(self):
        self.assertEqual(LLMClient.format_system_message("s"), {"role": "system", "content": "s"})
        self.assertEqual(LLMClient.format_user_message("u"), {"role": "user", "content": "u"})
        self.assertEqual(LLMClient.format_assistant_message("a"), {"role": "assistant", "content": "a"})

    def test_close_drops_client(self):
        self.llm.close()
        self.assertIsNone(self.llm.client)


class TestLLMCompletionResponse(unittest.TestCase):
    def test_content_missing(self):
        self.assertIsNone(LLMCompletionResponse({"role": "assistant"}).content)


if __name__ == "__main__":
    unittest.main()
