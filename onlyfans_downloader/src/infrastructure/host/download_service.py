"""Download service: turns `{url, filename}` requests into files on disk."""

from __future__ import annotations

import itertools
from pathlib import Path
from typing import TYPE_CHECKING, Literal, Protocol

from pydantic import BaseModel

from onlyfans_downloader.src.infrastructure.file_downloader import (
    DownloadFileConfig,
    download_file,
)
from onlyfans_downloader.src.infrastructure.loggers.logger_instances import (
    downloader_logger,
)
from onlyfans_downloader.src.infrastructure.path_sanitizer import sanitize_string

if TYPE_CHECKING:
    from aiohttp_retry import RetryClient

    from onlyfans_downloader.src.infrastructure.loggers.base import RichLogger


class DownloadOptions(BaseModel):
    """Request accepted by the download service"""

    url: str
    filename: str
    conflict_policy: Literal['uniquify'] = 'uniquify'
    prompt_user: bool = False


class DownloadService(Protocol):
    """Anything able to start a download and return an opaque handle for it"""

    async def download(self, options: DownloadOptions) -> int | None: ...


def uniquify(path: Path) -> Path:
    """Return `name (1).ext`, `name (2).ext`, ... for an already taken path"""
    if not path.exists():
        return path

    for index in itertools.count(1):
        candidate = path.with_name(f'{path.stem} ({index}){path.suffix}')
        if not candidate.exists():
            return candidate

    raise AssertionError('unreachable')


def to_relative_path(filename: str) -> Path:
    """
    Build a safe relative path from a `folder/name` filename.

    Every segment is sanitized, empty and dot segments are dropped,
    so the result never escapes the target directory.
    """
    parts = [sanitize_string(part) for part in filename.split('/')]
    parts = [part for part in parts if part and part not in {'.', '..'}]
    if not parts:
        raise ValueError(f'Unusable filename: {filename!r}')
    return Path(*parts)


class LocalDownloadService:
    """Stream downloads into a local directory, one call per file."""

    def __init__(
        self,
        session: RetryClient,
        target_directory: Path,
        logger: RichLogger = downloader_logger,
    ) -> None:
        self.session = session
        self.target_directory = target_directory
        self.logger = logger
        self._handles = itertools.count(1)

    async def download(self, options: DownloadOptions) -> int:
        relative_path = to_relative_path(options.filename)
        file_path = self.target_directory / relative_path
        if options.conflict_policy == 'uniquify':
            file_path = uniquify(file_path)

        self.logger.wait(f'Downloading {relative_path}', tab_level=1)
        await download_file(
            DownloadFileConfig(
                session=self.session,
                url=options.url,
                file_path=file_path,
            ),
        )
        self.logger.success(
            f'Saved [bold]{file_path.relative_to(self.target_directory)}[/bold]',
            tab_level=1,
        )
        return next(self._handles)
