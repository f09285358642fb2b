"""
Default configuration for GenDance.

These values can be overridden via CLI args, environment variables, or
live tuning through mode_settings.
"""

import os

from .core.figure_mixer import FigureConfig
from . import mode_settings


def get_default_figure_config() -> FigureConfig:
    """Get FigureConfig with the persisted emphasis settings applied."""
    settings = mode_settings.get_mode_settings("figure")
    return FigureConfig(
        # Beat emphasis
        base_scale=1.0,
        pulse_scale=settings.get("pulse_scale", 0.05),
        base_emissive=0.4,
        pulse_emissive=settings.get("pulse_emissive", 0.8),

        # Global intensity
        intensity=settings.get("intensity", 1.0),
    )


# App configuration
APP_CONFIG = {
    "host": "0.0.0.0",
    "port": 9000,
    "debug": False,
}

# Upload handling
AUDIO_CONFIG = {
    "max_upload_mb": 50,
}

PLAYBACK_CONFIG = {
    "status_hz": 10.0,  # WebSocket status updates
    "end_grace_seconds": 0.0,  # Keep ticking this long after the track ends
}

# Remote choreography generator
CHOREOGRAPHY_CONFIG = {
    "api_base": "https://generativelanguage.googleapis.com/v1beta",
    "model": "gemini-3-flash-preview",
    "timeout": 60.0,
}


def get_api_key() -> str:
    """API key for the choreography generator (GEMINI_API_KEY, then API_KEY)."""
    return os.getenv("GEMINI_API_KEY") or os.getenv("API_KEY") or ""
