"""
Audio decoding front-end.

Turns an uploaded file or byte stream into float samples at the file's
native sample rate. Everything format-specific is left to librosa.
"""

from __future__ import annotations

import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import IO, Union

import librosa
import numpy as np

from .errors import DecodeFailure

logger = logging.getLogger(__name__)

AudioSource = Union[str, Path, bytes, IO[bytes]]


@dataclass
class DecodedAudio:
    """Decoded PCM, one row per channel."""

    channels: np.ndarray  # shape (n_channels, n_samples), float32 in [-1, 1]
    sample_rate: int

    @property
    def channel_count(self) -> int:
        return self.channels.shape[0]

    @property
    def sample_count(self) -> int:
        return self.channels.shape[1]

    @property
    def duration(self) -> float:
        return self.sample_count / self.sample_rate

    def channel(self, index: int = 0) -> np.ndarray:
        return self.channels[index]


def decode_audio(source: AudioSource, suffix: str = "") -> DecodedAudio:
    """Decode an audio file, raw bytes, or binary file object.

    Byte input is spooled to a temporary file so every librosa backend
    (soundfile and audioread) can open it.

    Raises:
        DecodeFailure: if the container cannot be decoded
    """
    if isinstance(source, (str, Path)):
        return _decode_path(str(source))

    data = source if isinstance(source, bytes) else source.read()
    if not data:
        raise DecodeFailure("empty upload")

    fd, tmp_path = tempfile.mkstemp(suffix=suffix)
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
        return _decode_path(tmp_path)
    finally:
        os.unlink(tmp_path)


def _decode_path(path: str) -> DecodedAudio:
    try:
        y, sr = librosa.load(path, sr=None, mono=False)
    except Exception as e:
        logger.error(f"[Decoder] Could not decode {Path(path).name}: {e}")
        raise DecodeFailure(str(e)) from e

    if y.ndim == 1:
        y = y[np.newaxis, :]

    if sr <= 0:
        raise DecodeFailure(f"invalid sample rate {sr}")

    logger.info(f"[Decoder] Decoded {Path(path).name}: {y.shape[0]} ch @ {sr} Hz")
    return DecodedAudio(channels=y, sample_rate=int(sr))
