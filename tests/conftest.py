import io

import numpy as np
import pytest
import soundfile as sf

from gendance import mode_settings


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    """Keep settings writes out of the package directory."""
    monkeypatch.setattr(mode_settings, "_CONFIG_PATH", tmp_path / "mode_settings.json")
    monkeypatch.setattr(
        mode_settings,
        "_settings",
        {k: v.copy() for k, v in mode_settings._DEFAULTS.items()},
    )


def click_track(bpm: float, sample_rate: int = 44100, seconds: float = 10.0, burst: int = 400) -> np.ndarray:
    """Silence with a loud 400-sample burst on every beat."""
    samples = np.zeros(int(sample_rate * seconds), dtype=np.float32)
    interval = int(round(sample_rate * 60.0 / bpm))
    for start in range(1000, len(samples) - burst, interval):
        samples[start : start + burst] = 0.9
    return samples


def wav_bytes(samples: np.ndarray, sample_rate: int) -> bytes:
    buf = io.BytesIO()
    sf.write(buf, samples, sample_rate, format="WAV", subtype="FLOAT")
    return buf.getvalue()


@pytest.fixture
def click_wav(tmp_path):
    """Path to a 10 s, 120 BPM click track."""
    path = tmp_path / "clicks.wav"
    sf.write(path, click_track(120), 44100, subtype="FLOAT")
    return path
