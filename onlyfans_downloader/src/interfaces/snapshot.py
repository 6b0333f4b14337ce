"""Offline inputs of the `scan` command: page snapshot and captured API responses"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, TypeAdapter

from onlyfans_downloader.src.infrastructure.document.dom import LiveDocument

if TYPE_CHECKING:
    from pathlib import Path


class CapturedResponse(BaseModel):
    """API response saved from the browser"""

    url: str
    payload: Any = None


_captures_adapter = TypeAdapter(list[CapturedResponse])


def load_page(path: Path, url: str) -> LiveDocument:
    return LiveDocument(path.read_text(encoding='utf-8'), url=url)


def load_api_dump(path: Path) -> list[CapturedResponse]:
    with path.open(encoding='utf-8') as f:
        return _captures_adapter.validate_python(json.load(f))
