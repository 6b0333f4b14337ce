"""Module to download files with reporting process mechanisms"""

from __future__ import annotations

import http
from pathlib import Path  # noqa: TC003 (pydantic needs it at runtime)
from typing import Callable

import aiofiles
from aiohttp_retry import RetryClient  # noqa: TC002
from pydantic import BaseModel, ConfigDict, SkipValidation


class DownloadingStatus(BaseModel):
    """
    Model for status of the download.

    Can be used in status update callbacks.
    """

    total_bytes: int | None
    downloaded_bytes: int
    name: str


class DownloadFileConfig(BaseModel):
    """General configuration for the file download"""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    session: SkipValidation[RetryClient]
    url: str
    file_path: Path
    on_status_update: Callable[[DownloadingStatus], None] = lambda _: None
    chunk_size_bytes: int = 64 * 1024


class DownloadFailureError(Exception):
    """Exception raised when the download failed for any reason"""

    def __init__(self, url: str, status: int | None = None) -> None:
        details = f' (HTTP {status})' if status is not None else ''
        super().__init__(f'Failed to download {url}{details}')
        self.url = url
        self.status = status


async def download_file(dl_config: DownloadFileConfig) -> Path:
    """Download a file into `file_path` and report the progress via callback"""
    async with dl_config.session.get(dl_config.url) as response:
        if response.status != http.HTTPStatus.OK:
            raise DownloadFailureError(dl_config.url, response.status)

        dl_config.file_path.parent.mkdir(parents=True, exist_ok=True)
        total_size = response.content_length
        total_downloaded = 0

        async with aiofiles.open(dl_config.file_path, mode='wb') as file:
            async for chunk in response.content.iter_chunked(
                dl_config.chunk_size_bytes
            ):
                total_downloaded += len(chunk)
                await file.write(chunk)
                dl_config.on_status_update(
                    DownloadingStatus(
                        name=dl_config.file_path.name,
                        total_bytes=total_size,
                        downloaded_bytes=total_downloaded,
                    ),
                )

    return dl_config.file_path
