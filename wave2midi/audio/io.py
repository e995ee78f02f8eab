from __future__ import annotations

import io
from typing import Tuple

import numpy as np
import soundfile as sf


def decode_audio_bytes(data: bytes) -> Tuple[np.ndarray, int]:
    """
    Decode an in-memory audio file (wav/flac/ogg, and mp3 with libsndfile >= 1.1)
    into mono float32 audio.
    """
    audio, sr = sf.read(io.BytesIO(data), dtype="float32", always_2d=False)
    if isinstance(audio, np.ndarray) and audio.ndim > 1:
        audio = audio.mean(axis=1).astype(np.float32)
    audio = np.asarray(audio, dtype=np.float32)
    audio = np.clip(audio, -1.0, 1.0)
    return audio, sr


def waveform_peaks(audio: np.ndarray, n_bars: int) -> np.ndarray:
    """Peak amplitude per bar, normalized to 0..1."""
    n_bars = max(1, int(n_bars))
    audio = np.abs(np.asarray(audio, dtype=np.float32))
    if audio.size == 0:
        return np.zeros(n_bars, dtype=np.float32)

    edges = np.linspace(0, audio.size, n_bars + 1).astype(int)
    peaks = np.zeros(n_bars, dtype=np.float32)
    for i in range(n_bars):
        lo, hi = edges[i], max(edges[i + 1], edges[i] + 1)
        chunk = audio[lo:hi]
        if chunk.size:
            peaks[i] = float(chunk.max())

    top = float(peaks.max())
    if top > 0:
        peaks /= top
    return peaks
