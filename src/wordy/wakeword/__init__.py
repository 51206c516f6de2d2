"""Wake-phrase matching and the continuous wake-phrase monitor."""

from wordy.wakeword.matcher import WakePhraseMatcher
from wordy.wakeword.monitor import MonitorConfig, MonitorState, WakePhraseMonitor

__all__ = ["MonitorConfig", "MonitorState", "WakePhraseMatcher", "WakePhraseMonitor"]
