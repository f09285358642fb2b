"""
Waveform Feature Extractor.

Derives the two numbers the choreographer needs from raw samples:
- Tempo: peak-picking onsets on a strided scan, then 60 / mean interval
- Energy: fixed-size RMS envelope scaled to 0-255

Both are cheap enough to run on a full track without a spectrogram.
"""

from __future__ import annotations

import logging
import math
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

import numpy as np

from .. import mode_settings
from .decoder import decode_audio

logger = logging.getLogger(__name__)


@dataclass
class FeatureExtractorConfig:
    """Tunable extraction constants.

    The onset threshold and refractory window were tuned by ear; keep them
    configurable rather than treating them as hard rules.
    """

    onset_stride: int = 200  # Only every Nth sample is inspected
    onset_threshold: float = 0.8  # |amplitude| on a [-1, 1] scale
    refractory_samples: int = 10000  # Skip after an onset so one hit counts once
    energy_buckets: int = 100
    default_bpm: float = 120.0
    min_onsets: int = 3  # Below this the tempo falls back to default_bpm

    @classmethod
    def from_settings(cls) -> FeatureExtractorConfig:
        """Build a config from the persisted feature_extractor settings."""
        config = cls()
        settings = mode_settings.get_mode_settings("feature_extractor")
        config.onset_stride = int(settings.get("onset_stride", config.onset_stride))
        config.onset_threshold = settings.get("onset_threshold", config.onset_threshold)
        config.refractory_samples = int(settings.get("refractory_samples", config.refractory_samples))
        config.energy_buckets = int(settings.get("energy_buckets", config.energy_buckets))
        config.default_bpm = settings.get("default_bpm", config.default_bpm)
        return config


@dataclass
class AudioAnalysis:
    """Feature summary of one track.

    This is the whole contract handed to the choreography generator and
    shown in the UI.
    """

    bpm: float
    energy: list[float] = field(default_factory=list)
    duration: float = 0.0
    name: str = ""

    @property
    def mean_energy(self) -> float:
        if not self.energy:
            return 0.0
        return float(sum(self.energy) / len(self.energy))

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def detect_onsets(
    samples: np.ndarray,
    sample_rate: int,
    config: FeatureExtractorConfig | None = None,
) -> np.ndarray:
    """Find onset times (seconds) with a strided peak scan.

    A scanned sample louder than the threshold is an onset. Scanning then
    resumes refractory + stride samples later, so the stride grid shifts
    after every onset.
    """
    config = config or FeatureExtractorConfig()
    if sample_rate <= 0:
        raise ValueError(f"Sample rate must be positive, got {sample_rate}")

    samples = np.asarray(samples, dtype=np.float64)
    stride = max(1, config.onset_stride)
    n_samples = len(samples)

    onsets: list[int] = []
    position = 0
    while position < n_samples:
        scanned = np.abs(samples[position::stride])
        hits = np.flatnonzero(scanned > config.onset_threshold)
        if hits.size == 0:
            break
        index = position + int(hits[0]) * stride
        onsets.append(index)
        position = index + config.refractory_samples + stride

    return np.asarray(onsets, dtype=np.float64) / sample_rate


def estimate_tempo(
    onset_times: np.ndarray,
    config: FeatureExtractorConfig | None = None,
) -> float:
    """Tempo from the mean inter-onset interval, rounded half-up to a whole BPM."""
    config = config or FeatureExtractorConfig()
    onset_times = np.asarray(onset_times, dtype=np.float64)

    if len(onset_times) < config.min_onsets:
        logger.debug(
            f"[FeatureExtractor] Only {len(onset_times)} onsets - using default {config.default_bpm} BPM"
        )
        return float(config.default_bpm)

    mean_interval = float(np.mean(np.diff(onset_times)))
    if mean_interval <= 0:
        return float(config.default_bpm)

    bpm = math.floor(60.0 / mean_interval + 0.5)
    if bpm < 1:
        # Hits two minutes or more apart round to 0 BPM
        logger.debug(f"[FeatureExtractor] Onsets too sparse - using default {config.default_bpm} BPM")
        return float(config.default_bpm)
    return float(bpm)


def compute_energy_envelope(
    samples: np.ndarray,
    config: FeatureExtractorConfig | None = None,
) -> np.ndarray:
    """RMS loudness of equal-length buckets, scaled by 255.

    Bucket length is floor(len / buckets); trailing samples that do not
    fill a bucket are dropped. Inputs shorter than the bucket count give
    an all-zero envelope.
    """
    config = config or FeatureExtractorConfig()
    buckets = config.energy_buckets
    samples = np.asarray(samples, dtype=np.float64)

    bucket_size = len(samples) // buckets
    if bucket_size == 0:
        return np.zeros(buckets)

    frames = samples[: bucket_size * buckets].reshape(buckets, bucket_size)
    return np.sqrt(np.mean(frames**2, axis=1)) * 255.0


def extract_features(
    samples: np.ndarray,
    sample_rate: int,
    config: FeatureExtractorConfig | None = None,
) -> tuple[float, np.ndarray]:
    """Return (bpm, energy envelope) for a mono sample buffer."""
    config = config or FeatureExtractorConfig()
    onset_times = detect_onsets(samples, sample_rate, config)
    bpm = estimate_tempo(onset_times, config)
    energy = compute_energy_envelope(samples, config)
    return bpm, energy


def analyze_samples(
    samples: np.ndarray,
    sample_rate: int,
    name: str = "",
    config: FeatureExtractorConfig | None = None,
) -> AudioAnalysis:
    """Run the full extractor over a decoded mono buffer."""
    bpm, energy = extract_features(samples, sample_rate, config)
    duration = len(samples) / sample_rate
    logger.info(f"[FeatureExtractor] {name or 'track'}: {bpm:.0f} BPM, {duration:.1f}s")
    return AudioAnalysis(
        bpm=bpm,
        energy=[float(v) for v in energy],
        duration=float(duration),
        name=name,
    )


def analyze_audio(
    source: Any,
    name: str = "",
    config: FeatureExtractorConfig | None = None,
) -> AudioAnalysis:
    """Decode a file or byte stream and analyze its first channel.

    Raises:
        DecodeFailure: the container could not be decoded
    """
    decoded = decode_audio(source, suffix=Path(name).suffix if name else "")
    return analyze_samples(decoded.channel(0), decoded.sample_rate, name, config)
