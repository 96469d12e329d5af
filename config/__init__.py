"""Configuration for the playback core."""

from config.loader import Settings, load_config, settings_from_config, validate_config

__all__ = ["Settings", "load_config", "settings_from_config", "validate_config"]
