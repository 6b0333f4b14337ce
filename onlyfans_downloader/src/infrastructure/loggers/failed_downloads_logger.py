"""Logger which keeps a plain text journal of failed downloads"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

import aiofiles

if TYPE_CHECKING:
    from pathlib import Path


class FailedDownloadsLogger:
    """Append failed downloads to a file so the user can retry them later."""

    def __init__(self, file_path: Path) -> None:
        self.file_path = file_path

    async def add_error(self, message: str) -> None:
        self.file_path.parent.mkdir(parents=True, exist_ok=True)
        timestamp = datetime.now().strftime('%Y-%m-%d %H:%M:%S')
        async with aiofiles.open(self.file_path, mode='a', encoding='utf-8') as f:
            await f.write(f'[{timestamp}] {message}\n')
