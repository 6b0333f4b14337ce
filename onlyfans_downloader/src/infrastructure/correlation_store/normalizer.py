"""Normalization of raw API payloads into a flat list of post-like objects"""

from __future__ import annotations

from typing import Any


def normalize_payload(payload: Any) -> list[dict[str, Any]]:
    """
    Turn any supported response shape into a list of post-like dicts.

    Supported shapes:
        - a bare array of posts: `[{...}, {...}]`
        - a paginated envelope: `{"list": [...], "hasMore": true}`
        - a single post carrying its own media: `{"id": 1, "media": [...]}`

    Anything else (including `None`, strings, `{}`) yields an empty list.
    """
    if isinstance(payload, list):
        return [item for item in payload if isinstance(item, dict)]

    if not isinstance(payload, dict):
        return []

    envelope = payload.get('list')
    if isinstance(envelope, list):
        return [item for item in envelope if isinstance(item, dict)]

    if payload.get('id') is not None and isinstance(payload.get('media'), list):
        return [payload]

    return []
