"""Domain models for the download flow (requests coming from page controls)."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class DownloadLabel(str, Enum):
    """Content label which travels with every download request"""

    download = 'download'
    download_video = 'download video'

    @property
    def is_video(self) -> bool:
        return self == DownloadLabel.download_video


@dataclass(frozen=True)
class DownloadRequest:
    """Request to download one url on behalf of a creator."""

    url: str
    creator: str
    label: DownloadLabel = DownloadLabel.download

    def to_message(self) -> list[str]:
        """Wire representation: `[url, creator, label]`"""
        return [self.url, self.creator, self.label.value]


class DownloadStatus(Enum):
    """Lifecycle of a queued download"""

    pending = 'pending'
    in_flight = 'in-flight'
    done = 'done'
    failed = 'failed'


@dataclass
class DownloadItem:
    """Queue entry: the request plus its synthesized filename"""

    request: DownloadRequest
    filename: str
    status: DownloadStatus = DownloadStatus.pending
