"""Process bootstrap: logging, provider selection and the shared search cache."""

from __future__ import annotations

import logging
import os
import sys

from yt_dlp.version import __version__ as ytdlp_version

from config.loader import Settings
from matching.matcher import AlternativeMatcher
from playback.controller import PlayerController
from playback.interfaces import Notifier, PlaybackEngine, VoiceTransport
from providers.cache import SearchCache
from providers.lavalink import LavalinkProvider
from providers.types import SearchEngine
from providers.ytdlp import YtDlpProvider

_LOG_FORMAT = "%(asctime)s [%(levelname)s] %(message)s"


def setup_logging(log_dir=None, level=logging.INFO):
    root = logging.getLogger("")
    root.setLevel(level)
    formatter = logging.Formatter(_LOG_FORMAT)

    has_console = any(getattr(handler, "_encore_console", False) for handler in root.handlers)
    if not has_console:
        console = logging.StreamHandler()
        console.setFormatter(formatter)
        console.setLevel(level)
        console._encore_console = True
        root.addHandler(console)

    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
        log_path = os.path.abspath(os.path.join(log_dir, "encore.log"))
        has_file = any(
            isinstance(handler, logging.FileHandler)
            and os.path.abspath(getattr(handler, "baseFilename", "")) == log_path
            for handler in root.handlers
        )
        if not has_file:
            file_handler = logging.FileHandler(log_path)
            file_handler.setFormatter(formatter)
            file_handler.setLevel(level)
            root.addHandler(file_handler)

    for noisy in ("urllib3", "yt_dlp"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def get_runtime_info():
    return {
        "app_version": os.environ.get("ENCORE_VERSION", "0.0.0"),
        "python_version": sys.version.split()[0],
        "yt_dlp_version": ytdlp_version,
    }


def build_provider(settings: Settings):
    if settings.provider_backend == "ytdlp":
        return YtDlpProvider(socket_timeout=settings.provider_timeout_seconds)
    return LavalinkProvider(
        base_url=settings.lavalink_url,
        password=settings.lavalink_password,
        timeout_sec=settings.provider_timeout_seconds,
    )


class Runtime:
    """Owns the search cache, provider and controller for one process.

    Use as ``async with Runtime(...) as runtime:``; the cache's compaction
    task lives exactly as long as the block.
    """

    def __init__(
        self,
        settings: Settings,
        *,
        engine: PlaybackEngine,
        transport: VoiceTransport,
        notifier: Notifier,
        provider=None,
    ) -> None:
        self.settings = settings
        self.cache = SearchCache(
            default_ttl=settings.search_cache_ttl_seconds,
            compaction_interval=settings.search_cache_compaction_seconds,
            sample_size=settings.search_cache_sample_size,
            expired_ratio=settings.search_cache_expired_ratio,
            max_rounds=settings.search_cache_max_rounds,
        )
        self.provider = provider or build_provider(settings)
        self.matcher = AlternativeMatcher(
            self.provider,
            cache=self.cache,
            engines=[SearchEngine.from_name(name) for name in settings.alternative_engines],
            min_guess_confidence=settings.min_guess_confidence,
            max_queries=settings.max_guess_queries,
        )
        self.controller = PlayerController(
            engine=engine,
            transport=transport,
            notifier=notifier,
            provider=self.provider,
            matcher=self.matcher,
            settings=settings,
            cache=self.cache,
        )

    async def __aenter__(self) -> "Runtime":
        setup_logging(self.settings.log_dir)
        self.cache.start()
        logging.info("Playback runtime started %s", get_runtime_info())
        return self

    async def __aexit__(self, *exc_info) -> None:
        try:
            await self.controller.close()
        finally:
            await self.cache.close()
            close = getattr(self.provider, "close", None)
            if callable(close):
                close()
            logging.info("Playback runtime stopped")
