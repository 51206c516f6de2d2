"""Unit tests for the SQLite word store."""

from __future__ import annotations

import tempfile
import unittest
from datetime import datetime, timedelta, timezone
from pathlib import Path

from wordy.storage import WordRecord, WordStore


class TestWordStore(unittest.TestCase):
    """Tests for WordStore."""

    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.store = WordStore(Path(self._tmp.name) / "nested" / "words.db")

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def test_round_trip_preserves_identity(self) -> None:
        record = WordRecord(word="ephemeral", definition="Lasting a short time.")
        self.store.save(record)
        loaded = self.store.get(record.id)
        self.assertEqual(loaded.id, record.id)
        self.assertEqual(loaded.word, "ephemeral")
        self.assertEqual(loaded.definition, "Lasting a short time.")
        self.assertEqual(loaded.created_at, record.created_at)
        self.assertEqual(loaded.review_count, 0)
        self.assertIsNone(loaded.last_reviewed_at)

    def test_save_never_touches_review_fields(self) -> None:
        record = WordRecord(word="apple", definition="A fruit.")
        self.store.save(record)
        self.store.mark_reviewed(record.id)
        self.store.save(WordRecord(word="Apple", definition="A round fruit.", id=record.id))
        loaded = self.store.get(record.id)
        self.assertEqual(loaded.definition, "A round fruit.")
        self.assertEqual(loaded.word, "Apple")
        self.assertEqual(loaded.review_count, 1)
        self.assertIsNotNone(loaded.last_reviewed_at)
        self.assertEqual(loaded.created_at, record.created_at)

    def test_mark_reviewed_increments(self) -> None:
        record = WordRecord(word="apple", definition="A fruit.")
        self.store.save(record)
        when = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
        self.store.mark_reviewed(record.id, when)
        updated = self.store.mark_reviewed(record.id, when + timedelta(days=1))
        self.assertEqual(updated.review_count, 2)
        self.assertEqual(updated.last_reviewed_at, when + timedelta(days=1))
        self.assertIsNone(self.store.mark_reviewed("missing"))

    def test_fetch_all_newest_first(self) -> None:
        base = datetime(2024, 1, 1, tzinfo=timezone.utc)
        for i, word in enumerate(["first", "second", "third"]):
            self.store.save(WordRecord(word=word, definition="x", created_at=base + timedelta(hours=i)))
        self.assertEqual([r.word for r in self.store.fetch_all()], ["third", "second", "first"])
        self.assertEqual(self.store.count(), 3)

    def test_fetch_by_word_ignores_case(self) -> None:
        self.store.save(WordRecord(word="Quixotic", definition="Idealistic."))
        self.assertEqual(self.store.fetch_by_word("quixotic").definition, "Idealistic.")
        self.assertEqual(self.store.fetch_by_word("  QUIXOTIC ").word, "Quixotic")
        self.assertIsNone(self.store.fetch_by_word("banal"))

    def test_delete(self) -> None:
        a = WordRecord(word="a", definition="x")
        b = WordRecord(word="b", definition="y")
        self.store.save(a)
        self.store.save(b)
        self.assertTrue(self.store.delete(a.id))
        self.assertFalse(self.store.delete(a.id))
        self.assertIsNone(self.store.get(a.id))
        self.assertEqual(self.store.delete_all(), 1)
        self.assertEqual(self.store.count(), 0)

    def test_negative_review_count_rejected(self) -> None:
        with self.assertRaises(ValueError):
            WordRecord(word="a", definition="x", review_count=-1)

    def test_persists_across_instances(self) -> None:
        record = WordRecord(word="apple", definition="A fruit.")
        self.store.save(record)
        reopened = WordStore(self.store.path)
        self.assertEqual(reopened.get(record.id).word, "apple")


if __name__ == "__main__":
    unittest.main()
