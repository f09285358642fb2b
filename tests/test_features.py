import numpy as np
import pytest

from conftest import click_track, wav_bytes
from gendance.core.errors import DecodeFailure
from gendance.core.features import (
    AudioAnalysis,
    FeatureExtractorConfig,
    analyze_audio,
    analyze_samples,
    compute_energy_envelope,
    detect_onsets,
    estimate_tempo,
    extract_features,
)


@pytest.mark.parametrize("length", [0, 1, 99, 100, 101, 12345, 44100 * 3])
def test_envelope_always_has_100_non_negative_entries(length):
    rng = np.random.default_rng(length)
    samples = rng.uniform(-1, 1, size=length)

    energy = compute_energy_envelope(samples)

    assert len(energy) == 100
    assert np.all(energy >= 0)
    assert not np.any(np.isnan(energy))


def test_envelope_is_rms_scaled_to_255():
    samples = np.full(1000, -0.5)
    energy = compute_energy_envelope(samples)
    assert energy == pytest.approx(np.full(100, 127.5))


def test_envelope_drops_samples_past_last_full_bucket():
    # 1050 samples -> 10-sample buckets; the loud tail of 50 is not counted
    samples = np.concatenate([np.zeros(1000), np.ones(50)])
    energy = compute_energy_envelope(samples)
    assert np.all(energy == 0)


def test_envelope_tracks_loud_sections():
    samples = np.concatenate([np.zeros(5000), np.full(5000, 0.8)])
    energy = compute_energy_envelope(samples)
    assert np.all(energy[:50] == 0)
    assert energy[50:] == pytest.approx(np.full(50, 0.8 * 255))


def test_onsets_respect_stride_and_refractory_window():
    samples = np.zeros(50000)
    samples[400] = 0.9  # on the stride grid
    samples[10400] = 0.9  # inside the refractory window after 400
    samples[10600] = -0.95  # first scanned point after it
    samples[20801] = 0.9  # off the shifted stride grid

    onsets = detect_onsets(samples, sample_rate=1000)

    assert onsets.tolist() == [0.4, 10.6]


def test_threshold_is_strict():
    samples = np.zeros(1000)
    samples[200] = 0.8
    assert detect_onsets(samples, 1000).size == 0


def test_onset_detection_rejects_bad_sample_rate():
    with pytest.raises(ValueError):
        detect_onsets(np.zeros(10), 0)


@pytest.mark.parametrize(
    "onsets",
    [[], [1.0], [1.0, 1.5]],
)
def test_fewer_than_three_onsets_falls_back_to_120(onsets):
    assert estimate_tempo(np.array(onsets)) == 120


def test_tempo_from_mean_interval():
    assert estimate_tempo(np.array([0.0, 0.4, 0.8, 1.2])) == 150
    assert estimate_tempo(np.array([0.0, 0.5, 1.1])) == 109  # 60 / 0.55 = 109.09


def test_sparse_hits_fall_back_to_default_tempo():
    samples = np.zeros(400 * 1000)
    samples[[0, 150_000, 300_000]] = 0.9

    analysis = analyze_samples(samples, 1000)

    assert analysis.bpm == 120
    assert estimate_tempo(np.array([0.0, 150.0, 300.0])) == 120


def test_coincident_onsets_fall_back_to_default_tempo():
    assert estimate_tempo(np.array([1.0, 1.0, 1.0])) == 120


def test_silence_gives_default_tempo():
    bpm, energy = extract_features(np.zeros(44100 * 2), 44100)
    assert bpm == 120
    assert np.all(energy == 0)


@pytest.mark.parametrize("bpm", [90, 120, 128])
def test_click_track_tempo(bpm):
    detected, _ = extract_features(click_track(bpm), 44100)
    assert detected == bpm


def test_custom_threshold_and_default():
    config = FeatureExtractorConfig(onset_threshold=0.95, default_bpm=100.0)
    bpm, _ = extract_features(click_track(120), 44100, config)
    assert bpm == 100.0


def test_extraction_is_deterministic():
    samples = click_track(128, seconds=5)
    first = extract_features(samples, 44100)
    second = extract_features(samples, 44100)
    assert first[0] == second[0]
    assert np.array_equal(first[1], second[1])


def test_analyze_samples_builds_summary():
    analysis = analyze_samples(click_track(120), 44100, name="clicks.wav")

    assert isinstance(analysis, AudioAnalysis)
    assert analysis.bpm == 120
    assert analysis.duration == pytest.approx(10.0)
    assert len(analysis.energy) == 100
    assert set(analysis.to_dict()) == {"bpm", "energy", "duration", "name"}
    assert analysis.mean_energy > 0


def test_analyze_audio_decodes_first_channel():
    left = click_track(120, seconds=6)
    right = np.zeros_like(left)
    data = wav_bytes(np.stack([left, right], axis=1), 44100)

    analysis = analyze_audio(data, name="stereo.wav")

    assert analysis.bpm == 120
    assert analysis.duration == pytest.approx(6.0)


def test_analyze_audio_reports_decode_failure():
    with pytest.raises(DecodeFailure) as exc_info:
        analyze_audio(b"definitely not audio", name="junk.mp3")
    assert "Failed to process audio" in str(exc_info.value)
