"""Filenames for queued downloads"""

from __future__ import annotations

import time
from typing import TYPE_CHECKING

from onlyfans_downloader.src.infrastructure.loggers.logger_instances import (
    downloader_logger,
)
from onlyfans_downloader.src.infrastructure.path_sanitizer import sanitize_creator

if TYPE_CHECKING:
    from collections.abc import Callable

    from onlyfans_downloader.src.domain.download import DownloadRequest


def base_filename(url: str) -> str:
    """Last path segment of the url, query string excluded."""
    name = url.split('?', 1)[0].split('#', 1)[0].rstrip().split('/')[-1]
    if not name:
        raise ValueError(f'No file name in url: {url!r}')
    return name


def fallback_filename(clock: Callable[[], float] = time.time) -> str:
    return f'download_{int(clock() * 1000)}.file'


def synthesize_filename(
    request: DownloadRequest,
    *,
    create_folder: bool,
    clock: Callable[[], float] = time.time,
) -> str:
    """
    `<creator>/<name>` (or just `<name>`) for the request.

    Never fails: any problem gives a timestamp based placeholder instead.
    """
    try:
        name = base_filename(request.url)
        folder = sanitize_creator(request.creator) if create_folder else None
    except (ValueError, TypeError, AttributeError) as e:
        fallback = fallback_filename(clock)
        downloader_logger.warning(f'Could not name {request.url!r} ({e}), using {fallback}')
        return fallback

    return f'{folder}/{name}' if folder is not None else name
