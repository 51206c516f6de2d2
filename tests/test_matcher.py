"""Unit tests for the wake-phrase matcher."""

from __future__ import annotations

import unittest

from wordy.wakeword.matcher import WakePhraseMatcher


class TestWakePhraseMatcher(unittest.TestCase):
    """Tests for WakePhraseMatcher."""

    def setUp(self) -> None:
        self.matcher = WakePhraseMatcher()

    def test_trigger_phrase_any_case(self) -> None:
        for text in ("hey wordy", "HEY WORDY", "  Hey Wordy, what's up", "ok hey   wordy"):
            self.assertTrue(self.matcher.matches(text), text)

    def test_alias_inside_token(self) -> None:
        self.assertTrue(self.matcher.matches("hey wordie"))
        self.assertTrue(self.matcher.matches("words"))

    def test_no_match(self) -> None:
        for text in ("", "   ", "hello world", "what time is it", "hey siri"):
            self.assertFalse(self.matcher.matches(text), text)

    def test_custom_phrases(self) -> None:
        m = WakePhraseMatcher(phrases=("hello computer",), aliases=())
        self.assertTrue(m("well Hello Computer"))
        self.assertFalse(m("hello"))
        self.assertFalse(m("hey wordy"))


if __name__ == "__main__":
    unittest.main()
