"""Streaming speech-to-text engine: audio -> rolling window -> transcribe -> stitch.

Glue between the microphone tap and any transcriber. The transcriber is a
callable (audio float32 mono 16 kHz -> text) so you can plug NeMo, a test
double, or anything else.

Streaming: rolling context window (2 s by default), re-transcribed every
250 ms while audio keeps arriving. Each task reports:
  on_result(RecognitionResult(text, is_final=False))   # partials, cumulative
  on_result(RecognitionResult(text, is_final=True))    # after end_audio()
  on_error(RecognitionFailure | RecognitionCancelled)
Callbacks run on the task's worker thread.
"""

from __future__ import annotations

import logging
import queue
import threading
from dataclasses import dataclass
from typing import Callable, Optional

import numpy as np

from wordy.audio.buffer import RingBuffer
from wordy.errors import RecognitionCancelled, RecognitionFailure
from wordy.recognition.transcript import stitch_transcript

logger = logging.getLogger(__name__)

Transcribe = Callable[[np.ndarray], str]
ResultCallback = Callable[["RecognitionResult"], None]
ErrorCallback = Callable[[Exception], None]

# How long the worker waits for audio before re-checking cancel/end
POLL_SEC = 0.05


@dataclass(frozen=True)
class RecognizerConfig:
    """Streaming recognizer parameters."""

    context_sec: float = 2.0
    update_interval_sec: float = 0.25
    sample_rate: int = 16_000
    min_audio_sec: float = 0.3

    @property
    def context_samples(self) -> int:
        return int(self.context_sec * self.sample_rate)

    @property
    def chunk_samples(self) -> int:
        return int(self.update_interval_sec * self.sample_rate)

    @property
    def min_samples(self) -> int:
        return int(self.min_audio_sec * self.sample_rate)


@dataclass(frozen=True)
class RecognitionResult:
    text: str
    is_final: bool = False


class RecognitionRequest:
    """Audio sink for one recognition task; the microphone tap appends here."""

    def __init__(self) -> None:
        self._blocks: "queue.Queue[np.ndarray]" = queue.Queue()
        self._ended = threading.Event()

    def append(self, block: np.ndarray) -> None:
        if self._ended.is_set():
            return
        self._blocks.put(np.asarray(block, dtype=np.float32))

    def end_audio(self) -> None:
        """No more audio will be appended."""
        self._ended.set()

    @property
    def ended(self) -> bool:
        return self._ended.is_set()

    def read(self, timeout: float) -> Optional[np.ndarray]:
        try:
            return self._blocks.get(timeout=timeout)
        except queue.Empty:
            return None


class RecognitionTask:
    """Worker thread turning one request's audio into transcript events."""

    def __init__(
        self,
        request: RecognitionRequest,
        transcribe: Transcribe,
        config: RecognizerConfig,
        on_result: ResultCallback,
        on_error: ErrorCallback,
    ):
        self._request = request
        self._transcribe = transcribe
        self.config = config
        self._on_result = on_result
        self._on_error = on_error
        self._cancelled = threading.Event()
        self._thread = threading.Thread(target=self._run, name="wordy-recognition", daemon=True)

    def start(self) -> "RecognitionTask":
        self._thread.start()
        return self

    def cancel(self) -> None:
        """Stop the task; it reports RecognitionCancelled and nothing else."""
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def join(self, timeout: Optional[float] = None) -> None:
        self._thread.join(timeout)

    def _run(self) -> None:
        ring = RingBuffer(self.config.context_samples)
        transcript = ""
        pending = 0
        try:
            while not self._cancelled.is_set():
                block = self._request.read(POLL_SEC)
                if block is None:
                    if self._request.ended:
                        break
                    continue
                ring.push(block)
                pending += len(block)
                if pending >= self.config.chunk_samples and len(ring) >= self.config.min_samples:
                    pending = 0
                    updated = stitch_transcript(transcript, self._transcribe(ring.snapshot()))
                    if updated != transcript and not self._cancelled.is_set():
                        transcript = updated
                        self._on_result(RecognitionResult(transcript))

            if self._cancelled.is_set():
                self._on_error(RecognitionCancelled())
                return
            if pending and len(ring) >= self.config.min_samples:
                transcript = stitch_transcript(transcript, self._transcribe(ring.snapshot()))
            self._on_result(RecognitionResult(transcript, is_final=True))
        except Exception as exc:
            if self._cancelled.is_set():
                self._on_error(RecognitionCancelled())
            else:
                logger.debug("Recognition task failed", exc_info=True)
                self._on_error(RecognitionFailure(f"Recognition error: {exc}"))


class StreamingRecognizer:
    """Creates recognition tasks that share one transcriber.

    Interface:
      recognizer = StreamingRecognizer(transcribe=NemoTranscriber("stt_en_conformer_ctc_small"))
      request = RecognitionRequest()
      task = recognizer.recognition_task(request, on_result=print, on_error=print)
      request.append(block); ...; request.end_audio()   # or task.cancel()
    """

    def __init__(self, transcribe: Transcribe, config: Optional[RecognizerConfig] = None):
        self.transcribe = transcribe
        self.config = config or RecognizerConfig()
        self._lock = threading.Lock()

    def _transcribe_serialized(self, audio: np.ndarray) -> str:
        # Models are not re-entrant; a finishing task may overlap the next one.
        with self._lock:
            return self.transcribe(audio)

    def recognition_task(
        self,
        request: RecognitionRequest,
        on_result: ResultCallback,
        on_error: ErrorCallback,
    ) -> RecognitionTask:
        return RecognitionTask(
            request,
            self._transcribe_serialized,
            self.config,
            on_result,
            on_error,
        ).start()
