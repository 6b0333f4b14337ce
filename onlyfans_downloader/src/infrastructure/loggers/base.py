"""Rich-powered logger used across the whole app"""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

TAB = '    '


class RichLogger:
    """
    Thin wrapper over `logging` with rich console output.

    Messages may contain rich markup ([bold], [red], ...).
    `tab_level` indents nested messages (e.g. items of a single post).
    """

    def __init__(self, prefix: str, level: int = logging.INFO) -> None:
        self.prefix = prefix
        self.console = Console()
        self._logger = logging.getLogger(prefix)
        self._logger.setLevel(level)
        self._logger.propagate = False

        if not self._logger.handlers:
            handler = RichHandler(
                console=self.console,
                markup=True,
                show_path=False,
                rich_tracebacks=True,
            )
            handler.setFormatter(logging.Formatter('%(message)s'))
            self._logger.addHandler(handler)

    def _format(self, message: str, tab_level: int) -> str:
        return f'[dim]{self.prefix}[/dim] {TAB * tab_level}{message}'

    def set_level(self, level: int) -> None:
        self._logger.setLevel(level)

    def debug(self, message: str, tab_level: int = 0) -> None:
        self._logger.debug(self._format(message, tab_level))

    def info(self, message: str, tab_level: int = 0) -> None:
        self._logger.info(self._format(message, tab_level))

    def wait(self, message: str, tab_level: int = 0) -> None:
        self._logger.info(self._format(f'⏳ {message}', tab_level))

    def success(self, message: str, tab_level: int = 0) -> None:
        self._logger.info(self._format(f'[green]✔[/green] {message}', tab_level))

    def warning(self, message: str, tab_level: int = 0) -> None:
        self._logger.warning(self._format(message, tab_level))

    def error(self, message: str, tab_level: int = 0) -> None:
        self._logger.error(self._format(message, tab_level))

    def exception(self, message: str, tab_level: int = 0) -> None:
        self._logger.exception(self._format(message, tab_level))
