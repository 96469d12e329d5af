"""Lavalink v4 REST client used to resolve identifiers and search queries."""

from __future__ import annotations

import asyncio
import logging
import os
from typing import Any

import requests

from providers.types import (
    LoadEmpty,
    LoadFailed,
    LoadResult,
    PlaylistInfo,
    PlaylistLoaded,
    SearchLoaded,
    Track,
    TrackLoaded,
)

logger = logging.getLogger(__name__)


def track_from_payload(payload: dict[str, Any]) -> Track:
    """Normalize one Lavalink track object (``{"encoded": ..., "info": {...}}``)."""
    info = payload.get("info") or {}
    return Track(
        identifier=str(info.get("identifier") or ""),
        title=str(info.get("title") or ""),
        author=str(info.get("author") or ""),
        length=int(info.get("length") or 0),
        source_name=str(info.get("sourceName") or ""),
        uri=info.get("uri") or None,
        artwork_url=info.get("artworkUrl") or None,
        isrc=info.get("isrc") or None,
        encoded=str(payload.get("encoded") or ""),
        user_data=payload.get("userData") or None,
    )


def _failed_from_payload(data: Any) -> LoadFailed:
    data = data if isinstance(data, dict) else {}
    return LoadFailed(
        severity=str(data.get("severity") or "fault"),
        message=str(data.get("message") or "unknown error"),
        cause=str(data.get("cause") or ""),
    )


def parse_load_result(payload: dict[str, Any]) -> LoadResult:
    load_type = str(payload.get("loadType") or "").lower()
    data = payload.get("data")
    if load_type == "track":
        return TrackLoaded(track_from_payload(data or {}))
    if load_type == "playlist":
        data = data or {}
        info = data.get("info") or {}
        tracks = tuple(track_from_payload(item) for item in data.get("tracks") or [])
        playlist = PlaylistInfo(
            name=str(info.get("name") or ""),
            selected_track=int(info.get("selectedTrack", -1)),
        )
        return PlaylistLoaded(playlist, tracks)
    if load_type == "search":
        return SearchLoaded(tuple(track_from_payload(item) for item in data or []))
    if load_type == "empty":
        return LoadEmpty()
    if load_type == "error":
        return _failed_from_payload(data)
    return LoadFailed(severity="fault", message=f"unknown loadType {load_type!r}", cause="")


class LavalinkProvider:
    """Resolve queries against a single Lavalink node."""

    _LOAD_TRACKS_PATH = "/v4/loadtracks"

    def __init__(
        self,
        *,
        base_url: str | None = None,
        password: str | None = None,
        timeout_sec: float = 10.0,
        session: requests.Session | None = None,
    ) -> None:
        base_url = base_url or os.environ.get("LAVALINK_URL")
        if not base_url:
            raise RuntimeError("Lavalink URL is required")
        if not base_url.startswith(("http://", "https://")):
            base_url = f"http://{base_url}"
        self.base_url = base_url.rstrip("/")
        self.password = password or os.environ.get("LAVALINK_PASSWORD") or ""
        self.timeout_sec = timeout_sec
        self._session = session or requests.Session()

    def _load_tracks(self, identifier: str) -> dict[str, Any]:
        response = self._session.get(
            f"{self.base_url}{self._LOAD_TRACKS_PATH}",
            params={"identifier": identifier},
            headers={"Authorization": self.password},
            timeout=self.timeout_sec,
        )
        if response.status_code != 200:
            raise RuntimeError(f"Lavalink request failed ({response.status_code})")
        return response.json()

    async def resolve(self, query: str) -> LoadResult:
        try:
            payload = await asyncio.to_thread(self._load_tracks, query)
        except (requests.RequestException, RuntimeError, ValueError) as exc:
            logger.warning("Lavalink lookup failed query=%s error=%s", query, exc)
            return LoadFailed(severity="fault", message="Lavalink request failed", cause=str(exc))
        if not isinstance(payload, dict):
            return LoadFailed(severity="fault", message="Lavalink returned a non-object payload", cause="")
        return parse_load_result(payload)

    def close(self) -> None:
        self._session.close()
