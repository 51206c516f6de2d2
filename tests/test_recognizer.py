"""Unit tests for the streaming recognizer's background task."""

from __future__ import annotations

import threading
import unittest
from typing import List

import numpy as np

from wordy.errors import RecognitionCancelled, RecognitionFailure
from wordy.recognition import RecognitionRequest, RecognizerConfig, StreamingRecognizer

CONFIG = RecognizerConfig(context_sec=1.0, update_interval_sec=0.1, min_audio_sec=0.1)
BLOCK = np.zeros(CONFIG.chunk_samples, dtype=np.float32)


class _Collector:
    def __init__(self) -> None:
        self.results: List = []
        self.errors: List = []
        self.done = threading.Event()

    def on_result(self, result) -> None:
        self.results.append(result)
        if result.is_final:
            self.done.set()

    def on_error(self, exc) -> None:
        self.errors.append(exc)
        self.done.set()


def _scripted(outputs: List[str]):
    """transcribe() that returns the given window texts, repeating the last."""
    calls = {"n": 0}

    def transcribe(audio: np.ndarray) -> str:
        i = min(calls["n"], len(outputs) - 1)
        calls["n"] += 1
        return outputs[i]

    return transcribe


class TestStreamingRecognizer(unittest.TestCase):
    """Tests for StreamingRecognizer / RecognitionTask."""

    def test_partials_then_final(self) -> None:
        recognizer = StreamingRecognizer(_scripted(["hey", "hey wordy"]), CONFIG)
        request = RecognitionRequest()
        c = _Collector()
        task = recognizer.recognition_task(request, c.on_result, c.on_error)
        request.append(BLOCK)
        request.append(BLOCK)
        request.end_audio()
        self.assertTrue(c.done.wait(5.0))
        task.join(2.0)
        self.assertEqual(c.errors, [])
        self.assertEqual([r.text for r in c.results if not r.is_final], ["hey", "hey wordy"])
        self.assertEqual(c.results[-1].text, "hey wordy")
        self.assertTrue(c.results[-1].is_final)

    def test_unchanged_window_is_not_reported_twice(self) -> None:
        recognizer = StreamingRecognizer(_scripted(["apple"]), CONFIG)
        request = RecognitionRequest()
        c = _Collector()
        recognizer.recognition_task(request, c.on_result, c.on_error)
        for _ in range(3):
            request.append(BLOCK)
        request.end_audio()
        self.assertTrue(c.done.wait(5.0))
        partials = [r for r in c.results if not r.is_final]
        self.assertEqual([r.text for r in partials], ["apple"])

    def test_cancel_reports_cancellation_only(self) -> None:
        recognizer = StreamingRecognizer(_scripted(["x"]), CONFIG)
        request = RecognitionRequest()
        c = _Collector()
        task = recognizer.recognition_task(request, c.on_result, c.on_error)
        task.cancel()
        self.assertTrue(c.done.wait(5.0))
        self.assertEqual(len(c.errors), 1)
        self.assertIsInstance(c.errors[0], RecognitionCancelled)
        self.assertFalse(any(r.is_final for r in c.results))

    def test_transcriber_error_becomes_recognition_failure(self) -> None:
        def broken(audio: np.ndarray) -> str:
            raise RuntimeError("model exploded")

        recognizer = StreamingRecognizer(broken, CONFIG)
        request = RecognitionRequest()
        c = _Collector()
        recognizer.recognition_task(request, c.on_result, c.on_error)
        request.append(BLOCK)
        self.assertTrue(c.done.wait(5.0))
        self.assertIsInstance(c.errors[0], RecognitionFailure)
        self.assertNotIsInstance(c.errors[0], RecognitionCancelled)
        self.assertIn("model exploded", str(c.errors[0]))

    def test_append_after_end_is_ignored(self) -> None:
        request = RecognitionRequest()
        request.end_audio()
        request.append(BLOCK)
        self.assertTrue(request.ended)
        self.assertIsNone(request.read(0.01))


if __name__ == "__main__":
    unittest.main()
