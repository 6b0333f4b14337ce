"""Module contains loggers for different parts of the app"""

from pathlib import Path

from onlyfans_downloader.src.infrastructure.loggers.base import RichLogger
from onlyfans_downloader.src.infrastructure.loggers.failed_downloads_logger import (
    FailedDownloadsLogger,
)

api_logger = RichLogger('OnlyFans_API')
content_logger = RichLogger('Page')
downloader_logger = RichLogger('OnlyFans_Downloader')

failed_downloads_logger = FailedDownloadsLogger(
    file_path=Path('failed_downloads.txt'),
)
