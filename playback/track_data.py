"""Requester metadata attached to queued tracks."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from playback.errors import MetadataDecodeError
from providers.search import TrackQuery
from providers.types import Track


@dataclass(frozen=True)
class TrackUserData:
    requester_id: int
    query: TrackQuery | None = None

    def to_json(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"requester_id": self.requester_id}
        if self.query is not None:
            payload["query"] = self.query.to_dict()
        return payload

    def attach(self, track: Track) -> Track:
        return track.with_user_data(self.to_json())

    @classmethod
    def from_track(cls, track: Track) -> "TrackUserData":
        """Decode the metadata attached by ``attach``.

        Raises ``MetadataDecodeError`` when it is missing or malformed.
        """
        payload = track.user_data
        if not isinstance(payload, dict):
            raise MetadataDecodeError(f"track {track.identifier} carries no requester metadata")
        requester_id = payload.get("requester_id")
        if isinstance(requester_id, bool) or not isinstance(requester_id, (int, str)):
            raise MetadataDecodeError(f"track {track.identifier} has an invalid requester_id")
        try:
            requester_id = int(requester_id)
        except ValueError:
            raise MetadataDecodeError(f"track {track.identifier} has an invalid requester_id") from None

        raw_query = payload.get("query")
        query = None
        if raw_query is not None:
            if not isinstance(raw_query, dict):
                raise MetadataDecodeError(f"track {track.identifier} has a malformed query")
            try:
                query = TrackQuery.from_dict(raw_query)
            except ValueError as exc:
                raise MetadataDecodeError(f"track {track.identifier} has a malformed query: {exc}") from exc
        return cls(requester_id=requester_id, query=query)
