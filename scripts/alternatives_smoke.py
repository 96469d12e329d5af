#!/usr/bin/env python3
from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from config.loader import load_config, settings_from_config  # noqa: E402
from matching.matcher import AlternativeMatcher  # noqa: E402
from playback.messages import format_millis  # noqa: E402
from playback.runtime import build_provider, setup_logging  # noqa: E402
from providers.cache import SearchCache  # noqa: E402
from providers.search import TrackQuery  # noqa: E402
from providers.types import SearchEngine, TrackLoaded  # noqa: E402


async def _run(args) -> int:
    config = load_config(args.config) if args.config else {}
    settings = settings_from_config(config)
    provider = build_provider(settings)
    result = await provider.resolve(args.identifier)
    if not isinstance(result, TrackLoaded):
        print(f"identifier={args.identifier!r} did not load a single track: {result!r}")
        return 1
    track = result.track
    print(f"original: [{format_millis(track.length)}] {track.author} - {track.title} ({track.source_name})")

    async with SearchCache(default_ttl=settings.search_cache_ttl_seconds) as cache:
        matcher = AlternativeMatcher(
            provider,
            cache=cache,
            engines=[SearchEngine.from_name(name) for name in settings.alternative_engines],
            min_guess_confidence=settings.min_guess_confidence,
            max_queries=settings.max_guess_queries,
        )
        alternatives = await matcher.find_alternatives(track, TrackQuery(text=args.identifier))

    print(f"candidates={len(alternatives)}")
    for idx, (score, alt) in enumerate(alternatives[: args.limit], start=1):
        print(f"{idx}. {score:07.3f} [{format_millis(alt.length)}] {alt.author} - {alt.title} | {alt.source_name}")
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(description="Resolve a track and list replacement candidates.")
    parser.add_argument("identifier", help="URL or identifier of the track to replace")
    parser.add_argument("--config", help="Path to a JSON config file")
    parser.add_argument("--limit", type=int, default=10)
    args = parser.parse_args()
    setup_logging()
    return asyncio.run(_run(args))


if __name__ == "__main__":
    raise SystemExit(main())
