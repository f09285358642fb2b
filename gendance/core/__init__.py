"""Core components: feature extraction, timeline, playback resolution, pulse, figure mixer."""

from .errors import ChoreographyError, DecodeFailure, GenDanceError, MalformedTimeline
from .features import AudioAnalysis, FeatureExtractorConfig, analyze_audio, analyze_samples, extract_features
from .timeline import TimelineStep, load_timeline, normalize_timeline, parse_timeline
from .playback import PlaybackCursor, display_labels, resolve_cursor, skeleton_pair
from .pulse import beat_pulse
from .figure_mixer import FigureConfig, FigureFrame, FigureMixer
from .clock import PlaybackClock

__all__ = [
    "AudioAnalysis",
    "ChoreographyError",
    "DecodeFailure",
    "FeatureExtractorConfig",
    "FigureConfig",
    "FigureFrame",
    "FigureMixer",
    "GenDanceError",
    "MalformedTimeline",
    "PlaybackClock",
    "PlaybackCursor",
    "TimelineStep",
    "analyze_audio",
    "analyze_samples",
    "beat_pulse",
    "display_labels",
    "extract_features",
    "load_timeline",
    "normalize_timeline",
    "parse_timeline",
    "resolve_cursor",
    "skeleton_pair",
]
