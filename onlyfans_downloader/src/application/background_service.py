"""
Receiving side of download messages.

Messages arrive as raw `[url, creator, label]` triples from the page. They
are validated here, at the boundary: anything malformed is answered with a
failure `Ack` and never reaches the queue.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from onlyfans_downloader.src.domain.download import DownloadLabel, DownloadRequest
from onlyfans_downloader.src.infrastructure.host.runtime_channel import Ack
from onlyfans_downloader.src.infrastructure.loggers.logger_instances import (
    downloader_logger,
)

if TYPE_CHECKING:
    from onlyfans_downloader.src.application.download_queue.queue import (
        DownloadQueue,
    )
    from onlyfans_downloader.src.infrastructure.host.runtime_channel import (
        InProcessRuntimeChannel,
    )
    from onlyfans_downloader.src.infrastructure.loggers.base import RichLogger


class InvalidMessageError(Exception):
    """Download message has an unexpected shape"""


def parse_download_message(message: Any) -> DownloadRequest:
    """
    Parse a `[url, creator, label]` triple.

    `creator` and `label` are optional (`unknown_creator`, `download`),
    the url is not.
    """
    if not isinstance(message, (list, tuple)) or not message:
        raise InvalidMessageError(f'Expected [url, creator, label], got {type(message).__name__}')

    url = message[0]
    if not isinstance(url, str) or not url.strip():
        raise InvalidMessageError('No URL provided')

    creator = message[1] if len(message) > 1 else None
    if creator is None or creator == '':
        creator = 'unknown_creator'
    if not isinstance(creator, str):
        raise InvalidMessageError(f'Creator must be a string, got {type(creator).__name__}')

    raw_label = message[2] if len(message) > 2 else DownloadLabel.download.value
    try:
        label = DownloadLabel(raw_label)
    except ValueError as e:
        raise InvalidMessageError(f'Unknown label: {raw_label!r}') from e

    return DownloadRequest(url=url.strip(), creator=creator, label=label)


class BackgroundService:
    """Validates download messages and hands them to the queue"""

    def __init__(
        self,
        queue: DownloadQueue,
        logger: RichLogger = downloader_logger,
    ) -> None:
        self.queue = queue
        self.logger = logger

    def bind(self, channel: InProcessRuntimeChannel) -> None:
        channel.set_message_handler(self.handle_message)

    async def handle_message(self, message: Any) -> Ack:
        try:
            request = parse_download_message(message)
        except InvalidMessageError as e:
            self.logger.warning(f'Rejected download message: {e}')
            return Ack(success=False, error=str(e))

        self.queue.enqueue(request)
        return Ack(success=True)
