"""NeMo ASR transcriber for the streaming recognizer.

NeMo models take raw 16 kHz mono audio and do their own preprocessing and
decoding, so the transcriber hands the rolling window straight to
``model.transcribe``.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional, Union

import numpy as np

DEFAULT_MODEL = "stt_en_conformer_ctc_small"


def _get_nemo():
    import nemo.collections.asr as nemo_asr
    return nemo_asr


def load_nemo_model(source: Union[str, Path], device: Optional[str] = None) -> Any:
    """Load a NeMo ASR model from a .nemo checkpoint or a pretrained name.

    Args:
        source: Path to a .nemo file, or an NGC/HF pretrained model name.
        device: 'cuda', 'cpu', ... If None, uses CUDA if available else CPU.
    """
    import torch

    nemo_asr = _get_nemo()
    if device is None:
        device = "cuda" if torch.cuda.is_available() else "cpu"

    path = Path(source)
    if path.suffix == ".nemo":
        if not path.exists():
            raise FileNotFoundError(f"NeMo model not found: {path}")
        model = nemo_asr.models.ASRModel.restore_from(
            restore_path=str(path),
            map_location=torch.device(device),
        )
    else:
        model = nemo_asr.models.ASRModel.from_pretrained(
            model_name=str(source),
            map_location=torch.device(device),
        )
    model.eval()
    return model


def _hypothesis_text(item: Any) -> str:
    # transcribe() returns plain strings on older releases, Hypothesis objects on newer
    text = getattr(item, "text", item)
    return text if isinstance(text, str) else ""


class NemoTranscriber:
    """Callable: audio (samples,) float32 mono 16 kHz -> lowercase text.

    The model is loaded lazily on the first call so constructing the pipeline
    stays cheap.
    """

    def __init__(self, source: Union[str, Path] = DEFAULT_MODEL, device: Optional[str] = None):
        self.source = source
        self.device = device
        self._model: Any = None

    @property
    def model(self) -> Any:
        if self._model is None:
            self._model = load_nemo_model(self.source, self.device)
        return self._model

    def __call__(self, audio: np.ndarray) -> str:
        import torch

        if audio.size == 0:
            return ""
        with torch.no_grad():
            out = self.model.transcribe([audio.astype(np.float32)], batch_size=1, verbose=False)
        if isinstance(out, tuple):
            out = out[0]
        if not out:
            return ""
        return _hypothesis_text(out[0]).strip().lower()
