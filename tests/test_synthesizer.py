"""Unit tests for the TTS backend's event reporting (backends mocked)."""

from __future__ import annotations

import threading
import unittest
from unittest import mock

from wordy.speech import SpeechSynthesizer, Utterance


class _Events:
    def __init__(self, synth: SpeechSynthesizer) -> None:
        self.items = []
        self.done = threading.Event()
        synth.on_start = lambda u: self.items.append(("start", u.id))
        synth.on_finish = self._end("finish")
        synth.on_cancel = self._end("cancel")

    def _end(self, kind: str):
        def handler(u: Utterance) -> None:
            self.items.append((kind, u.id))
            self.done.set()

        return handler


class TestSpeechSynthesizer(unittest.TestCase):
    """Tests for SpeechSynthesizer."""

    def test_edge_tts_success_reports_finish(self) -> None:
        synth = SpeechSynthesizer()
        events = _Events(synth)
        u = Utterance("hello")
        with mock.patch.object(SpeechSynthesizer, "_speak_edge_tts", return_value=True) as edge, \
                mock.patch.object(SpeechSynthesizer, "_speak_pyttsx3") as offline:
            synth.speak(u)
            self.assertTrue(events.done.wait(2.0))
        edge.assert_called_once()
        offline.assert_not_called()
        self.assertEqual(events.items, [("start", u.id), ("finish", u.id)])

    def test_falls_back_to_pyttsx3(self) -> None:
        synth = SpeechSynthesizer()
        events = _Events(synth)
        with mock.patch.object(SpeechSynthesizer, "_speak_edge_tts", return_value=False), \
                mock.patch.object(SpeechSynthesizer, "_speak_pyttsx3", return_value=True) as offline:
            synth.speak(Utterance("hello"))
            self.assertTrue(events.done.wait(2.0))
        offline.assert_called_once()

    def test_no_backend_still_finishes(self) -> None:
        synth = SpeechSynthesizer()
        events = _Events(synth)
        with mock.patch.object(SpeechSynthesizer, "_speak_edge_tts", return_value=False), \
                mock.patch.object(SpeechSynthesizer, "_speak_pyttsx3", return_value=False), \
                self.assertLogs("wordy.speech.synthesizer", level="ERROR"):
            synth.speak(Utterance("hello"))
            self.assertTrue(events.done.wait(2.0))
        self.assertEqual(events.items[-1][0], "finish")

    def test_stop_reports_cancel(self) -> None:
        synth = SpeechSynthesizer()
        events = _Events(synth)
        playing = threading.Event()

        def slow_edge(self_, utterance, playback):
            playing.set()
            playback.stop_event.wait(2.0)
            return True

        with mock.patch.object(SpeechSynthesizer, "_speak_edge_tts", slow_edge):
            u = Utterance("a long definition")
            synth.speak(u)
            self.assertTrue(playing.wait(2.0))
            synth.stop()
            self.assertTrue(events.done.wait(2.0))
        self.assertEqual(events.items[-1], ("cancel", u.id))


class _Player:
    """Popen lookalike that plays until terminated."""

    def __init__(self) -> None:
        self.terminated = threading.Event()

    def wait(self, timeout=None) -> int:
        self.terminated.wait(timeout)
        return -15 if self.terminated.is_set() else 0

    def poll(self):
        return -15 if self.terminated.is_set() else None

    def terminate(self) -> None:
        self.terminated.set()


async def _no_render(self_, edge_tts, utterance, path) -> None:
    return None


class TestPlayerHandoff(unittest.TestCase):
    """Pre-empting speech with the edge-tts player path (player processes faked)."""

    def setUp(self) -> None:
        self.synth = SpeechSynthesizer()
        self.items = []
        self.ended = threading.Semaphore(0)
        self.launched = threading.Semaphore(0)
        self.players = []
        self.synth.on_start = lambda u: self.items.append(("start", u.id))
        self.synth.on_finish = self._end("finish")
        self.synth.on_cancel = self._end("cancel")

    def _end(self, kind: str):
        def handler(u: Utterance) -> None:
            self.items.append((kind, u.id))
            self.ended.release()

        return handler

    def _launch(self, cmd, **kwargs) -> _Player:
        player = _Player()
        self.players.append(player)
        self.launched.release()
        return player

    def test_each_utterance_stops_only_its_own_player(self) -> None:
        first, second = Utterance("first"), Utterance("second")
        with mock.patch.object(SpeechSynthesizer, "_render", _no_render), \
                mock.patch("wordy.speech.synthesizer.subprocess.Popen", side_effect=self._launch):
            self.synth.speak(first)
            self.assertTrue(self.launched.acquire(timeout=2.0))
            self.synth.speak(second)
            self.assertTrue(self.launched.acquire(timeout=2.0))
            self.assertTrue(self.players[0].terminated.is_set())
            self.assertFalse(self.players[1].terminated.is_set())
            self.synth.stop()
            self.assertTrue(self.ended.acquire(timeout=2.0))
            self.assertTrue(self.ended.acquire(timeout=2.0))
        self.assertTrue(self.players[1].terminated.is_set())
        self.assertEqual(
            self.items,
            [("start", first.id), ("cancel", first.id), ("start", second.id), ("cancel", second.id)],
        )

    def test_stop_before_launch_never_starts_player(self) -> None:
        synth = self.synth

        async def render_then_stop(self_, edge_tts, utterance, path) -> None:
            synth.stop()

        u = Utterance("never heard")
        with mock.patch.object(SpeechSynthesizer, "_render", render_then_stop), \
                mock.patch("wordy.speech.synthesizer.subprocess.Popen", side_effect=self._launch) as popen, \
                mock.patch.object(SpeechSynthesizer, "_speak_pyttsx3") as offline:
            synth.speak(u)
            self.assertTrue(self.ended.acquire(timeout=2.0))
        popen.assert_not_called()
        offline.assert_not_called()
        self.assertEqual(self.items, [("start", u.id), ("cancel", u.id)])


if __name__ == "__main__":
    unittest.main()
