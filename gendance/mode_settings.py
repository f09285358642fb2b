"""
Per-component tunable settings.

Stores the extraction constants, playback feel and figure emphasis that
persist across restarts. Settings can be tuned live via the web API and
are saved to JSON.
"""

import json
from pathlib import Path

# Load overrides from JSON
_CONFIG_PATH = Path(__file__).parent / "mode_settings.json"

# Default values if JSON doesn't exist
_DEFAULTS = {
    "feature_extractor": {
        "onset_stride": 200,  # Samples between scanned points
        "onset_threshold": 0.8,  # Peak amplitude that counts as a beat
        "refractory_samples": 10000,  # Skip after each onset
        "energy_buckets": 100,
        "default_bpm": 120.0,
    },
    "playback": {
        "blend_speed": 5.0,  # Transition finishes in 1/5 of the segment
        "label_switch": 0.5,  # Blend at which the caption flips to the next move
        "tick_rate": 60.0,  # Frames per second of the playback loop
    },
    "figure": {
        "pulse_scale": 0.05,
        "pulse_emissive": 0.8,
        "intensity": 1.0,
    },
}


def _load_from_file() -> dict[str, dict[str, float]]:
    """Load settings from JSON file, layered over the defaults."""
    settings = {k: v.copy() for k, v in _DEFAULTS.items()}
    if _CONFIG_PATH.exists():
        with open(_CONFIG_PATH) as f:
            for section, values in json.load(f).items():
                settings.setdefault(section, {}).update(values)
    return settings


def _save_to_file() -> None:
    """Save current settings to JSON file."""
    with open(_CONFIG_PATH, 'w') as f:
        json.dump(_settings, f, indent=2)
        f.write('\n')


# Runtime state - starts with file values
_settings: dict[str, dict[str, float]] = _load_from_file()


def get_mode_settings(section: str) -> dict[str, float]:
    """Get all settings for a section."""
    key = section.lower()
    if key in _settings:
        return _settings[key].copy()
    return {}


def get_setting(section: str, key: str) -> float:
    """Get a specific setting, falling back to the default."""
    section_key = section.lower()
    if section_key in _settings and key in _settings[section_key]:
        return _settings[section_key][key]
    if section_key in _DEFAULTS and key in _DEFAULTS[section_key]:
        return _DEFAULTS[section_key][key]
    raise KeyError(f"Unknown setting: {section}.{key}")


def set_setting(section: str, key: str, value: float) -> None:
    """Set a specific setting in memory (not saved)."""
    section_key = section.lower()
    _settings.setdefault(section_key, {})[key] = value


def update_mode_settings(section: str, updates: dict[str, float]) -> None:
    """Update multiple settings for a section and save to file."""
    section_key = section.lower()
    _settings.setdefault(section_key, {}).update(updates)
    _save_to_file()


def get_all_settings() -> dict[str, dict[str, float]]:
    """Get all settings for all sections."""
    return {k: v.copy() for k, v in _settings.items()}


def sync_from_file() -> dict[str, dict[str, float]]:
    """Reload settings from JSON file (for sync button)."""
    global _settings
    _settings = _load_from_file()
    return get_all_settings()


def reset_to_defaults() -> dict[str, dict[str, float]]:
    """Reset all settings to defaults and save."""
    global _settings
    _settings = {k: v.copy() for k, v in _DEFAULTS.items()}
    _save_to_file()
    return get_all_settings()
