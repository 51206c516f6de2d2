"""
Text-to-speech backend. Tries edge-tts (AI-style voice) then falls back to
pyttsx3 (offline).

Each utterance is spoken on its own worker thread and reported through the
``on_start`` / ``on_finish`` / ``on_cancel`` callbacks (called on that worker
thread). ``stop()`` interrupts whatever is playing; ``speak()`` waits for the
interrupted worker to exit before the next one starts.
"""

from __future__ import annotations

import asyncio
import itertools
import logging
import subprocess
import tempfile
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)

DEFAULT_VOICE = "en-US-AriaNeural"
# Rate scale: 0.0 (slowest) .. 1.0 (fastest), 0.5 is normal speed
NORMAL_RATE = 0.5
PYTTSX3_NORMAL_WPM = 150
# How long speak() waits for the previous utterance's worker to exit
WORKER_JOIN_SEC = 2.0

PLAYERS = (
    ["mpv", "--no-video", "--really-quiet"],
    ["ffplay", "-nodisp", "-autoexit", "-loglevel", "quiet"],
)

_ids = itertools.count(1)


@dataclass(frozen=True)
class Utterance:
    text: str
    rate: float = NORMAL_RATE
    voice: Optional[str] = None
    id: int = field(default_factory=lambda: next(_ids))


def edge_rate(rate: float) -> str:
    """0.5 -> '+0%', 0.45 -> '-10%', 1.0 -> '+100%'."""
    pct = round((rate / NORMAL_RATE - 1.0) * 100)
    return f"{pct:+d}%"


def pyttsx3_rate(rate: float) -> int:
    """Words per minute for pyttsx3 (0.5 -> 150)."""
    return max(40, int(PYTTSX3_NORMAL_WPM * rate / NORMAL_RATE))


class _Playback:
    """Per-utterance slot: its stop flag and whatever is producing sound for it."""

    def __init__(self) -> None:
        self.stop_event = threading.Event()
        self.player: Optional[subprocess.Popen] = None
        self.engine: Any = None


class SpeechSynthesizer:
    """Speaks one utterance at a time through edge-tts or pyttsx3."""

    def __init__(self, voice: str = DEFAULT_VOICE):
        self.voice = voice
        self.on_start: Optional[Callable[[Utterance], None]] = None
        self.on_finish: Optional[Callable[[Utterance], None]] = None
        self.on_cancel: Optional[Callable[[Utterance], None]] = None

        # Guards _playback and every player launch / engine start
        self._lock = threading.Lock()
        self._playback: Optional[_Playback] = None
        self._worker: Optional[threading.Thread] = None

    def speak(self, utterance: Utterance) -> None:
        """Start speaking in the background. Interrupts anything playing."""
        self.stop()
        previous = self._worker
        if previous is not None and previous is not threading.current_thread():
            # pyttsx3 shares one engine per process; its run loop must be gone first.
            previous.join(WORKER_JOIN_SEC)
            if previous.is_alive():
                logger.warning("Previous utterance still winding down after %.1fs", WORKER_JOIN_SEC)
        playback = _Playback()
        with self._lock:
            self._playback = playback
        t = threading.Thread(
            target=self._run,
            args=(utterance, playback),
            name=f"wordy-tts-{utterance.id}",
            daemon=True,
        )
        self._worker = t
        t.start()

    def stop(self) -> None:
        with self._lock:
            playback, self._playback = self._playback, None
            if playback is None:
                return
            playback.stop_event.set()
            player = playback.player
            engine = playback.engine
        if player is not None and player.poll() is None:
            player.terminate()
        if engine is not None:
            try:
                engine.stop()
            except Exception as exc:
                logger.debug("pyttsx3 stop failed: %s", exc)

    def _run(self, utterance: Utterance, playback: _Playback) -> None:
        stop_event = playback.stop_event
        self._emit(self.on_start, utterance)
        spoken = False
        if utterance.text.strip():
            spoken = self._speak_edge_tts(utterance, playback) or (
                not stop_event.is_set() and self._speak_pyttsx3(utterance, playback)
            )
            if not spoken and not stop_event.is_set():
                logger.error("No text-to-speech backend could speak %r", utterance.text)
        with self._lock:
            if self._playback is playback:
                self._playback = None
        if stop_event.is_set():
            self._emit(self.on_cancel, utterance)
        else:
            self._emit(self.on_finish, utterance)

    @staticmethod
    def _emit(callback: Optional[Callable[[Utterance], None]], utterance: Utterance) -> None:
        if callback is not None:
            callback(utterance)

    def _speak_edge_tts(self, utterance: Utterance, playback: _Playback) -> bool:
        """Use Microsoft Edge TTS (needs internet). Returns True if played."""
        try:
            import edge_tts
        except ImportError:
            return False
        with tempfile.NamedTemporaryFile(suffix=".mp3", delete=False) as f:
            path = f.name
        try:
            asyncio.run(self._render(edge_tts, utterance, path))
            return self._play(path, playback)
        except Exception as exc:
            logger.debug("edge-tts failed: %s", exc)
            return False
        finally:
            Path(path).unlink(missing_ok=True)

    async def _render(self, edge_tts: Any, utterance: Utterance, path: str) -> None:
        communicate = edge_tts.Communicate(
            utterance.text.strip(),
            utterance.voice or self.voice,
            rate=edge_rate(utterance.rate),
        )
        await communicate.save(path)

    def _play(self, path: str, playback: _Playback) -> bool:
        for cmd in PLAYERS:
            with self._lock:
                if playback.stop_event.is_set():
                    return True
                try:
                    player = subprocess.Popen(
                        cmd + [path],
                        stdout=subprocess.DEVNULL,
                        stderr=subprocess.DEVNULL,
                    )
                except FileNotFoundError:
                    continue
                playback.player = player
            code = player.wait(timeout=120)
            if code == 0 or playback.stop_event.is_set():
                return True
        return False

    def _speak_pyttsx3(self, utterance: Utterance, playback: _Playback) -> bool:
        """Use pyttsx3 (offline, e.g. espeak on Linux). Returns True if spoken."""
        try:
            import pyttsx3
        except ImportError:
            return False
        try:
            with self._lock:
                if playback.stop_event.is_set():
                    return True
                engine = pyttsx3.init()
                engine.setProperty("rate", pyttsx3_rate(utterance.rate))
                engine.say(utterance.text.strip())
                playback.engine = engine
            engine.runAndWait()
            return True
        except Exception as exc:
            logger.debug("pyttsx3 failed: %s", exc)
            return False
