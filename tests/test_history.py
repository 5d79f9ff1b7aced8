import unittest

from aiterm.ai.history import ConversationHistory


class TestConversationHistory(unittest.TestCase):
    """Tests for the conversation history value."""

    def test_primed_history_starts_with_system_message(self):
        history = ConversationHistory("be brief")
        self.assertEqual(history.messages, [{"role": "system", "content": "be brief"}])
        self.assertTrue(history.has_priming_entry)

    def test_unprimed_history_is_empty(self):
        history = ConversationHistory()
        self.assertEqual(len(history), 0)
        self.assertFalse(history.has_priming_entry)

    def test_append_exchange_records_prompt_and_reply(self):
        history = ConversationHistory("sys")
        history.append_exchange("list files", "```bash\nls\n```")

        self.assertEqual(
            history.messages[1:],
            [
                {"role": "user", "content": "list files"},
                {"role": "assistant", "content": "```bash\nls\n```"},
            ],
        )

    def test_empty_reply_is_not_recorded(self):
        history = ConversationHistory()
        history.append_exchange("hello", "")
        self.assertEqual(history.messages, [{"role": "user", "content": "hello"}])

    def test_clear_keeps_priming_entry(self):
        """Verify clearing drops the exchanges but keeps the system prompt."""
        history = ConversationHistory("sys")
        history.append_exchange("a", "b")
        history.append_exchange("c", "d")

        history.clear()

        self.assertEqual(history.messages, [{"role": "system", "content": "sys"}])

    def test_clear_without_priming_entry_empties(self):
        history = ConversationHistory()
        history.append_exchange("a", "b")
        history.clear()
        self.assertEqual(len(history), 0)

    def test_messages_are_copies(self):
        history = ConversationHistory("sys")
        history.messages[0]["content"] = "tampered"
        history.messages.append({"role": "user", "content": "x"})
        self.assertEqual(history.messages, [{"role": "system", "content": "sys"}])


if __name__ == "__main__":
    unittest.main()
