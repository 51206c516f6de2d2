"""Audio input, shared session handle, permissions and acknowledgment tone."""

from wordy.audio.buffer import RingBuffer
from wordy.audio.chime import Chime
from wordy.audio.config import AudioConfig
from wordy.audio.microphone import Microphone
from wordy.audio.permissions import MicrophonePermission, PermissionState
from wordy.audio.session import AudioSession, SessionMode

__all__ = [
    "AudioConfig",
    "AudioSession",
    "Chime",
    "Microphone",
    "MicrophonePermission",
    "PermissionState",
    "RingBuffer",
    "SessionMode",
]
