"""
PlaybackClock - stand-in for the audio player's position.

The tick loop polls this once per frame. Seeking just moves the origin;
nothing downstream keeps history, so any jump is safe.
"""

from __future__ import annotations

import threading
import time
from typing import Callable


class PlaybackClock:
    """Pausable, seekable playback position in seconds."""

    def __init__(self, time_source: Callable[[], float] = time.monotonic):
        self._now = time_source
        self._lock = threading.Lock()
        self._position = 0.0  # Position when last paused/seeked
        self._started_at: float | None = None  # None while paused

    @property
    def is_running(self) -> bool:
        return self._started_at is not None

    def start(self) -> None:
        """Start or resume from the current position."""
        with self._lock:
            if self._started_at is None:
                self._started_at = self._now()

    def pause(self) -> None:
        with self._lock:
            if self._started_at is not None:
                self._position += self._now() - self._started_at
                self._started_at = None

    def seek(self, position: float) -> None:
        """Jump to position (seconds); keeps running if it was running."""
        with self._lock:
            self._position = max(0.0, position)
            if self._started_at is not None:
                self._started_at = self._now()

    def reset(self) -> None:
        """Stop and rewind to zero."""
        with self._lock:
            self._position = 0.0
            self._started_at = None

    def current_time(self) -> float:
        with self._lock:
            if self._started_at is None:
                return self._position
            return self._position + (self._now() - self._started_at)
