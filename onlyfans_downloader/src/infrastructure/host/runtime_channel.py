"""
Duplex channel between the network side and the page side.

- network -> page: `apiData` messages with freshly fetched API payloads
- page -> downloader: raw `[url, creator, label]` triples, answered with an `Ack`
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Literal, Protocol

from pydantic import BaseModel, ConfigDict, Field

from onlyfans_downloader.src.infrastructure.loggers.logger_instances import (
    api_logger,
)

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable


class Ack(BaseModel):
    """Acknowledgement for a download message"""

    success: bool
    error: str | None = None


class ApiDataMessage(BaseModel):
    """API payload forwarded to the page of the tab which requested it"""

    model_config = ConfigDict(populate_by_name=True)

    type: Literal['apiData'] = 'apiData'
    data: list[dict[str, Any]]
    is_for_dm: bool = Field(default=False, alias='isForDm')
    headers: dict[str, str] = Field(default_factory=dict)


class RuntimeChannel(Protocol):
    """Messaging primitives the app relies on"""

    async def send_to_tab(self, tab_id: int, message: ApiDataMessage) -> bool: ...

    async def send_message(self, message: Any) -> Ack: ...


class InProcessRuntimeChannel:
    """Channel for components living in the same process and event loop"""

    def __init__(self) -> None:
        self._tabs: dict[int, Callable[[ApiDataMessage], None]] = {}
        self._message_handler: Callable[[Any], Awaitable[Ack]] | None = None

    def register_tab(
        self, tab_id: int, handler: Callable[[ApiDataMessage], None]
    ) -> Callable[[], None]:
        self._tabs[tab_id] = handler

        def unregister() -> None:
            if self._tabs.get(tab_id) is handler:
                del self._tabs[tab_id]

        return unregister

    def set_message_handler(self, handler: Callable[[Any], Awaitable[Ack]]) -> None:
        self._message_handler = handler

    async def send_to_tab(self, tab_id: int, message: ApiDataMessage) -> bool:
        handler = self._tabs.get(tab_id)
        if handler is None:
            api_logger.debug(f'No page listens on tab {tab_id}, message dropped')
            return False

        handler(message)
        return True

    async def send_message(self, message: Any) -> Ack:
        if self._message_handler is None:
            return Ack(success=False, error='No receiver for download messages')
        return await self._message_handler(message)
