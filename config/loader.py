"""Configuration loading for the playback core.

The JSON file is optional; every key falls back to the defaults in
``config.settings`` and a few deployment values can be overridden through
``ENCORE_*`` environment variables.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from typing import Any, Mapping

from config import settings as defaults

_KNOWN_ENGINES = {"youtube", "youtube_music", "soundcloud", "deezer", "spotify"}


@dataclass(frozen=True)
class Settings:
    lavalink_url: str | None = None
    lavalink_password: str | None = None
    provider_backend: str = "lavalink"
    provider_timeout_seconds: float = defaults.PROVIDER_TIMEOUT_SECONDS
    alone_timeout_seconds: float = defaults.ALONE_TIMEOUT_SECONDS
    watchdog_grace_seconds: float = defaults.WATCHDOG_GRACE_SECONDS
    watchdog_poll_seconds: float = defaults.WATCHDOG_POLL_SECONDS
    search_cache_ttl_seconds: float = defaults.SEARCH_CACHE_TTL_SECONDS
    search_cache_compaction_seconds: float = defaults.SEARCH_CACHE_COMPACTION_SECONDS
    search_cache_sample_size: int = defaults.SEARCH_CACHE_SAMPLE_SIZE
    search_cache_expired_ratio: float = defaults.SEARCH_CACHE_EXPIRED_RATIO
    search_cache_max_rounds: int = defaults.SEARCH_CACHE_MAX_ROUNDS
    alternative_engines: tuple[str, ...] = defaults.ALTERNATIVE_ENGINES
    search_engines: tuple[str, ...] = defaults.SEARCH_COMMAND_ENGINES
    search_results_per_engine: int = defaults.SEARCH_RESULTS_PER_ENGINE
    default_search_engine: str = defaults.DEFAULT_SEARCH_ENGINE
    min_guess_confidence: float = defaults.MIN_GUESS_CONFIDENCE
    max_guess_queries: int = defaults.MAX_GUESS_QUERIES
    notify_top_alternatives: int = defaults.NOTIFY_TOP_ALTERNATIVES
    log_dir: str | None = None


def load_config(path):
    with open(path, "r") as f:
        return json.load(f)


def _is_positive_number(value):
    return isinstance(value, (int, float)) and not isinstance(value, bool) and value > 0


def validate_config(config):
    errors = []
    if not isinstance(config, dict):
        return ["config must be a JSON object"]

    lavalink = config.get("lavalink")
    if lavalink is not None:
        if not isinstance(lavalink, dict):
            errors.append("lavalink must be an object")
        else:
            url = lavalink.get("url")
            if url is not None and (not isinstance(url, str) or not url.startswith(("http://", "https://"))):
                errors.append("lavalink.url must be an http(s) URL")

    backend = config.get("provider_backend")
    if backend is not None and backend not in {"lavalink", "ytdlp"}:
        errors.append("provider_backend must be 'lavalink' or 'ytdlp'")

    for key in (
        "provider_timeout_seconds",
        "alone_timeout_seconds",
        "watchdog_grace_seconds",
        "watchdog_poll_seconds",
        "search_cache_ttl_seconds",
        "search_cache_compaction_seconds",
    ):
        value = config.get(key)
        if value is not None and not _is_positive_number(value):
            errors.append(f"{key} must be a positive number")

    for key in (
        "search_cache_sample_size",
        "search_cache_max_rounds",
        "search_results_per_engine",
        "max_guess_queries",
        "notify_top_alternatives",
    ):
        value = config.get(key)
        if value is not None and (not isinstance(value, int) or isinstance(value, bool) or value < 1):
            errors.append(f"{key} must be a positive integer")

    ratio = config.get("search_cache_expired_ratio")
    if ratio is not None:
        if isinstance(ratio, bool) or not isinstance(ratio, (int, float)) or not 0.0 <= float(ratio) <= 1.0:
            errors.append("search_cache_expired_ratio must be between 0 and 1")

    confidence = config.get("min_guess_confidence")
    if confidence is not None:
        if not isinstance(confidence, (int, float)) or not 0.0 <= float(confidence) <= 1.0:
            errors.append("min_guess_confidence must be between 0 and 1")

    for key in ("alternative_engines", "search_engines"):
        engines = config.get(key)
        if engines is None:
            continue
        if not isinstance(engines, list) or not engines:
            errors.append(f"{key} must be a non-empty list")
            continue
        for idx, name in enumerate(engines):
            if name not in _KNOWN_ENGINES:
                errors.append(f"{key}[{idx}] is not a known engine: {name!r}")

    default_engine = config.get("default_search_engine")
    if default_engine is not None and default_engine not in _KNOWN_ENGINES:
        errors.append(f"default_search_engine is not a known engine: {default_engine!r}")

    return errors


def _env_float(env, key):
    raw = env.get(key)
    if raw is None or not str(raw).strip():
        return None
    try:
        value = float(raw)
    except (TypeError, ValueError):
        raise ValueError(f"{key} must be a number, got {raw!r}") from None
    if value <= 0:
        raise ValueError(f"{key} must be positive")
    return value


def settings_from_config(config: Mapping[str, Any] | None = None, env: Mapping[str, str] | None = None) -> Settings:
    """Build ``Settings`` from a validated config dict plus environment overrides."""
    config = dict(config or {})
    env = os.environ if env is None else env
    errors = validate_config(config)
    if errors:
        raise ValueError("invalid config: " + "; ".join(errors))

    lavalink = config.get("lavalink") or {}
    values: dict[str, Any] = {
        "lavalink_url": lavalink.get("url"),
        "lavalink_password": lavalink.get("password"),
    }
    for key in (
        "provider_backend",
        "provider_timeout_seconds",
        "alone_timeout_seconds",
        "watchdog_grace_seconds",
        "watchdog_poll_seconds",
        "search_cache_ttl_seconds",
        "search_cache_compaction_seconds",
        "search_cache_sample_size",
        "search_cache_expired_ratio",
        "search_cache_max_rounds",
        "search_results_per_engine",
        "default_search_engine",
        "min_guess_confidence",
        "max_guess_queries",
        "notify_top_alternatives",
        "log_dir",
    ):
        if config.get(key) is not None:
            values[key] = config[key]
    for key in ("alternative_engines", "search_engines"):
        if config.get(key):
            values[key] = tuple(config[key])

    if env.get("ENCORE_LAVALINK_URL"):
        values["lavalink_url"] = env["ENCORE_LAVALINK_URL"]
    if env.get("ENCORE_LAVALINK_PASSWORD"):
        values["lavalink_password"] = env["ENCORE_LAVALINK_PASSWORD"]
    alone_timeout = _env_float(env, "ENCORE_ALONE_TIMEOUT_SECONDS")
    if alone_timeout is not None:
        values["alone_timeout_seconds"] = alone_timeout
    if env.get("ENCORE_LOG_DIR"):
        values["log_dir"] = env["ENCORE_LOG_DIR"]

    return Settings(**values)
