"""Beat Pulse Oscillator."""

from __future__ import annotations


def beat_phase(bpm: float, current_time: float) -> float:
    """Position within the current beat, in [0, 1)."""
    if bpm <= 0:
        raise ValueError(f"BPM must be positive, got {bpm}")
    return (current_time * (bpm / 60.0)) % 1.0


def beat_pulse(bpm: float, current_time: float) -> float:
    """Percussive emphasis envelope.

    Jumps to 1 on every beat and decays as (1 - phase)^3 until the next
    one. Period is 60 / bpm seconds.
    """
    return (1.0 - beat_phase(bpm, current_time)) ** 3
