"""
Choreography Player - plays a generated routine against a track.

Flow:
1. Analyze - decode the upload and extract tempo + energy
2. Choreograph - ask the generator for a routine, normalize whatever
   comes back
3. Play - poll the playback clock at a fixed rate and render the pose
   for that instant

Every tick is resolved from scratch from (timeline, time, BPM), so
seeking, pausing and restarting need no bookkeeping.
"""

from __future__ import annotations

import asyncio
import logging
import threading
import time
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Optional

from .. import mode_settings
from ..config import PLAYBACK_CONFIG
from ..core.clock import PlaybackClock
from ..core.errors import ChoreographyError, DecodeFailure
from ..core.features import AudioAnalysis, FeatureExtractorConfig, analyze_audio
from ..core.playback import (
    PlaybackCursor,
    display_labels,
    energy_bar_mask,
    format_clock,
    playback_progress,
    resolve_cursor,
    skeleton_pair,
)
from ..core.pulse import beat_pulse
from ..core.timeline import FALLBACK_TIMELINE, Timeline, TimelineLoadResult, load_timeline, timeline_to_payload

if TYPE_CHECKING:
    from ..choreography.client import ChoreographyClient
    from ..core.decoder import AudioSource
    from ..core.figure_mixer import FigureMixer

logger = logging.getLogger(__name__)


class PlayerState(str, Enum):
    IDLE = "idle"
    ANALYZING = "analyzing"
    CHOREOGRAPHING = "choreographing"
    READY = "ready"
    PLAYING = "playing"


@dataclass
class ChoreographyPlayerConfig:
    """Configuration for the Choreography Player."""

    blend_speed: float = 5.0  # Transition completes in 1/blend_speed of a segment
    label_switch: float = 0.5  # Blend at which captions move on to the next move
    tick_rate: float = 60.0  # Playback loop frequency (Hz)


@dataclass
class PlaybackFrame:
    """Everything the UI and renderer need for one instant."""

    time: float
    cursor: PlaybackCursor
    current_pose: str
    next_pose: str
    blend: float
    label: str
    next_label: str
    pulse: float
    progress: float
    clock: str
    energy_bars: list[bool] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class ChoreographyPlayer:
    """Choreography Player - timeline-driven dance mode.

    Decides which moves are active at each instant and sends them to the
    FigureMixer; joint rotations are built by the mixer, never here.
    """

    MODE_ID = "choreography_player"
    MODE_NAME = "Choreography Player"

    def __init__(
        self,
        figure_mixer: FigureMixer,
        client: Optional[ChoreographyClient] = None,
        clock: Optional[PlaybackClock] = None,
    ):
        self.mixer = figure_mixer
        self.running = False

        self.config = ChoreographyPlayerConfig()
        self.extractor_config = FeatureExtractorConfig.from_settings()
        self.client = client
        self.clock = clock or PlaybackClock()

        self.analysis: Optional[AudioAnalysis] = None
        self.timeline: Timeline = list(FALLBACK_TIMELINE)

        # Load settings
        self._load_settings()

        # Threading
        self.stop_event = threading.Event()
        self.play_thread: Optional[threading.Thread] = None

        self._last_frame: Optional[PlaybackFrame] = None

        # Status
        self._status = {
            "mode": self.MODE_ID,
            "running": False,
            "state": PlayerState.IDLE.value,
            "paused": False,
            "bpm": None,
            "track": None,
            "duration": 0.0,
            "moves": len(self.timeline),
            "notice": None,
            "error": None,
            "logs": [],
        }

    def _log(self, message: str) -> None:
        """Add a log message to the status."""
        logger.info(f"[{self.MODE_NAME}] {message}")
        timestamp = time.strftime("%H:%M:%S")
        self._status["logs"].append(f"[{timestamp}] {message}")
        # Keep only last 50 logs
        if len(self._status["logs"]) > 50:
            self._status["logs"] = self._status["logs"][-50:]

    def _set_state(self, state: PlayerState) -> None:
        self._status["state"] = state.value

    @property
    def state(self) -> PlayerState:
        return PlayerState(self._status["state"])

    def _load_settings(self) -> None:
        """Load settings from mode_settings module."""
        settings = mode_settings.get_mode_settings("playback")
        self.config.blend_speed = settings.get("blend_speed", 5.0)
        self.config.label_switch = settings.get("label_switch", 0.5)
        self.config.tick_rate = settings.get("tick_rate", 60.0)

    def apply_settings(self, settings: dict[str, float]) -> None:
        """Apply live setting updates."""
        for key, value in settings.items():
            if hasattr(self.config, key):
                setattr(self.config, key, value)
                logger.info(f"Updated ChoreographyPlayer setting: {key} = {value}")

    @property
    def tick_period(self) -> float:
        """Seconds between ticks, at most one second."""
        return 1.0 / max(1.0, self.config.tick_rate)

    @property
    def bpm(self) -> float:
        if self.analysis is not None:
            return self.analysis.bpm
        return self.extractor_config.default_bpm

    @property
    def duration(self) -> float:
        if self.analysis is not None:
            return self.analysis.duration
        return self.timeline[-1].timestamp if self.timeline else 0.0

    # -- Preparation ------------------------------------------------------

    async def load_audio(self, source: AudioSource, name: str = "") -> AudioAnalysis:
        """Decode and analyze a track; the routine resets to the idle pose.

        Raises:
            DecodeFailure: the upload could not be decoded
        """
        if self.running:
            await self.stop()

        self._set_state(PlayerState.ANALYZING)
        self._status["error"] = None
        self._status["notice"] = None
        self._log(f"Analyzing {name or 'track'}...")

        # Decoding and extraction block; keep them off the event loop
        loop = asyncio.get_running_loop()
        try:
            analysis = await loop.run_in_executor(
                None, analyze_audio, source, name, self.extractor_config
            )
        except DecodeFailure:
            self._status["error"] = DecodeFailure.USER_MESSAGE
            self._set_state(PlayerState.IDLE)
            self._log("Failed to process audio")
            raise

        self.analysis = analysis
        self.timeline = list(FALLBACK_TIMELINE)
        self._status["bpm"] = analysis.bpm
        self._status["track"] = analysis.name
        self._status["duration"] = analysis.duration
        self._status["moves"] = len(self.timeline)
        self._set_state(PlayerState.READY)
        self._log(f"Detected {analysis.bpm:.0f} BPM over {analysis.duration:.1f}s")
        return analysis

    async def choreograph(self) -> TimelineLoadResult:
        """Ask the generator for a routine for the loaded track.

        A malformed routine falls back to the idle pose with a notice.

        Raises:
            ChoreographyError: no generator, or the request failed
        """
        if self.analysis is None:
            raise ChoreographyError("No track analyzed yet")
        if self.client is None:
            raise ChoreographyError("No choreography generator configured")

        if self.running:
            await self.stop()

        self._set_state(PlayerState.CHOREOGRAPHING)
        self._status["error"] = None
        self._log("Generating moves...")

        try:
            text = await self.client.generate(self.analysis, self.mixer.library.names())
        except ChoreographyError as e:
            self._status["error"] = str(e)
            self._set_state(PlayerState.IDLE)
            self._log(f"Error: {e}")
            raise

        return self._apply_timeline(load_timeline(text))

    def set_timeline(self, payload: Any) -> TimelineLoadResult:
        """Use a routine supplied directly instead of the generator."""
        return self._apply_timeline(load_timeline(payload))

    def _apply_timeline(self, result: TimelineLoadResult) -> TimelineLoadResult:
        # Swapped as one reference so a running loop sees old or new, never a mix
        self.timeline = result.timeline
        self._status["moves"] = len(result.timeline)
        self._status["notice"] = result.notice
        if result.notice:
            self._log(result.notice)
        else:
            self._log(f"Choreography ready: {len(result.timeline)} moves")
        if not self.running:
            self._set_state(PlayerState.READY)
        return result

    def timeline_payload(self) -> list[dict[str, Any]]:
        return timeline_to_payload(self.timeline)

    # -- Per-tick resolution ----------------------------------------------

    def frame_at(self, current_time: float) -> PlaybackFrame:
        """Resolve the frame for a playback time. Pure: no state changes."""
        timeline = self.timeline
        cursor = resolve_cursor(timeline, current_time, self.config.blend_speed)
        current_pose, next_pose, blend = skeleton_pair(timeline, cursor)
        label, next_label = display_labels(timeline, cursor, self.config.label_switch)
        bars = (
            energy_bar_mask(len(self.analysis.energy), current_time, self.analysis.duration)
            if self.analysis is not None and self.analysis.energy
            else []
        )
        return PlaybackFrame(
            time=current_time,
            cursor=cursor,
            current_pose=current_pose,
            next_pose=next_pose,
            blend=blend,
            label=label,
            next_label=next_label,
            pulse=beat_pulse(self.bpm, current_time),
            progress=playback_progress(current_time, self.duration),
            clock=format_clock(current_time),
            energy_bars=bars,
        )

    def tick(self, current_time: float) -> PlaybackFrame:
        """Resolve and render one frame."""
        frame = self.frame_at(current_time)
        self.mixer.render(frame.current_pose, frame.next_pose, frame.blend, frame.pulse)
        self._last_frame = frame
        return frame

    # -- Playback -----------------------------------------------------------

    async def start(self) -> None:
        """Start playback (non-blocking)."""
        if self.running:
            return

        if self.state is not PlayerState.READY:
            logger.info(f"[{self.MODE_NAME}] Not ready (state={self.state.value}) - waiting for a track")
            self._log("Waiting for a track...")
            return

        self.running = True
        self._status["running"] = True
        self._status["paused"] = False
        self._set_state(PlayerState.PLAYING)

        self.stop_event.clear()
        self.clock.start()
        self.play_thread = threading.Thread(target=self._play_loop, daemon=True)
        self.play_thread.start()

        self._log(f"Playing at {self.bpm:.0f} BPM")

    def _play_loop(self) -> None:
        """Fixed-rate sampling loop over the playback clock.

        The rate is re-read every tick so live tick_rate changes apply at once.
        """
        end_time = self.duration + PLAYBACK_CONFIG["end_grace_seconds"]

        while not self.stop_event.is_set():
            current_time = self.clock.current_time()
            if self.analysis is not None and current_time >= end_time:
                break

            try:
                self.tick(current_time)
            except Exception as e:
                logger.error(f"[{self.MODE_NAME}] Tick failed at {current_time:.2f}s: {e}")

            self.stop_event.wait(self.tick_period)

        if not self.stop_event.is_set():
            self._finish()

    def _finish(self) -> None:
        """Track ended on its own."""
        self.running = False
        self.clock.reset()
        self.mixer.reset()
        self._status["running"] = False
        self._status["paused"] = False
        self._set_state(PlayerState.READY)
        self._log("Finished")

    def pause(self) -> None:
        """Freeze the clock; the loop keeps rendering the held frame."""
        if self.running:
            self.clock.pause()
            self._status["paused"] = True
            self._log(f"Paused at {format_clock(self.clock.current_time())}")

    def resume(self) -> None:
        if self.running:
            self.clock.start()
            self._status["paused"] = False
            self._log("Resumed")

    def seek(self, position: float) -> None:
        """Jump the clock; the next tick re-resolves from scratch."""
        self.clock.seek(position)
        self._log(f"Seek to {format_clock(position)}")

    async def stop(self) -> None:
        """Stop playback and rewind."""
        if not self.running:
            return

        logger.info(f"[{self.MODE_NAME}] Stopping...")
        self.running = False
        self.stop_event.set()

        # Wait for thread
        if self.play_thread and self.play_thread.is_alive():
            self.play_thread.join(timeout=2.0)
        self.play_thread = None

        self.clock.reset()

        # Return to neutral
        self.mixer.reset()

        self._status["running"] = False
        self._status["paused"] = False
        self._set_state(PlayerState.READY)
        self._log("Stopped")

    def get_status(self) -> dict[str, Any]:
        """Get current status with JSON-serializable values."""
        status = self._status.copy()
        status["logs"] = list(self._status["logs"])
        status["time"] = self.clock.current_time()
        status["frame"] = self._last_frame.to_dict() if self._last_frame and self.running else None
        return status

    def is_running(self) -> bool:
        return self.running
