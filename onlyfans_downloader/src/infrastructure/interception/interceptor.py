"""
Interception of the page's own API traffic.

For every watched request the page sends, the same resource is fetched once
more with the same headers, the JSON is recorded in the correlation store and
forwarded to the page of the originating tab. The page's own request is never
delayed: the refetch runs in a background task and every failure stays there.
"""

from __future__ import annotations

import asyncio
import re
from typing import TYPE_CHECKING

import aiohttp
from pydantic import BaseModel, Field

from onlyfans_downloader.src.infrastructure.correlation_store.normalizer import (
    normalize_payload,
)
from onlyfans_downloader.src.infrastructure.host.runtime_channel import (
    ApiDataMessage,
)
from onlyfans_downloader.src.infrastructure.interception.refetch_client import (
    RefetchError,
    is_refetch,
)
from onlyfans_downloader.src.infrastructure.loggers.logger_instances import (
    api_logger,
)

if TYPE_CHECKING:
    from onlyfans_downloader.src.infrastructure.correlation_store.store import (
        CorrelationStore,
    )
    from onlyfans_downloader.src.infrastructure.host.runtime_channel import (
        RuntimeChannel,
    )
    from onlyfans_downloader.src.infrastructure.interception.refetch_client import (
        ApiRefetchClient,
    )
    from onlyfans_downloader.src.infrastructure.loggers.base import RichLogger

# Filters for the host interception API (user, post, chat listings + numeric paths)
WATCHED_URL_PATTERNS: tuple[str, ...] = (
    '*://*.onlyfans.com/api2/v2/users/*',
    '*://*.onlyfans.com/api2/v2/posts/*',
    '*://*.onlyfans.com/api2/v2/chats/*',
    '*://*.onlyfans.com/*/',
)

RELEVANT_ENDPOINT_RE = re.compile(
    r'(onlyfans\.com/api2/v2/(users|posts|chats)|onlyfans\.com/[0-9]+/)'
)

# Browser fingerprinting headers are not replayed
EXCLUDED_HEADERS = frozenset(
    {
        'sec-fetch-site',
        'sec-fetch-mode',
        'sec-fetch-dest',
        'sec-fetch-user',
        'dnt',
        'user-agent',
    }
)


class HttpHeader(BaseModel):
    """Single request header as reported by the host"""

    name: str
    value: str = ''


class InterceptedRequest(BaseModel):
    """Outgoing request observed by the host interception API"""

    url: str
    tab_id: int = Field(default=-1)
    request_headers: list[HttpHeader] = Field(default_factory=list)


def extract_headers(request_headers: list[HttpHeader]) -> dict[str, str]:
    return {
        header.name: header.value
        for header in request_headers
        if header.name.lower() not in EXCLUDED_HEADERS
    }


class RequestInterceptor:
    """Watch API requests and feed their responses to the store and the page."""

    def __init__(
        self,
        refetch_client: ApiRefetchClient,
        store: CorrelationStore,
        channel: RuntimeChannel,
        logger: RichLogger = api_logger,
    ) -> None:
        self.refetch_client = refetch_client
        self.store = store
        self.channel = channel
        self.logger = logger
        self._tasks: set[asyncio.Task[ApiDataMessage | None]] = set()

    def should_handle(self, request: InterceptedRequest) -> bool:
        if request.tab_id < 0 or is_refetch(request.url):
            return False
        return RELEVANT_ENDPOINT_RE.search(request.url) is not None

    def on_send_headers(
        self, request: InterceptedRequest
    ) -> asyncio.Task[ApiDataMessage | None] | None:
        """Host callback: schedule the refetch and return immediately."""
        if not self.should_handle(request):
            return None

        task = asyncio.get_running_loop().create_task(self.process(request))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def process(self, request: InterceptedRequest) -> ApiDataMessage | None:
        """Refetch, record and forward; returns the forwarded message, if any."""
        headers = extract_headers(request.request_headers)

        try:
            payload = await self.refetch_client.refetch(request.url, headers)
        except (RefetchError, aiohttp.ClientError, asyncio.TimeoutError) as e:
            self.logger.warning(f'Failed to refetch {request.url}: {e}')
            return None

        data = normalize_payload(payload)
        if not data:
            self.logger.debug(f'Nothing to record in the response of {request.url}')
            return None

        self.store.record_response(request.url, payload)

        message = ApiDataMessage(
            data=data,
            is_for_dm='messages' in request.url,
            headers=headers,
        )
        delivered = await self.channel.send_to_tab(request.tab_id, message)
        if not delivered:
            self.logger.debug(f'Tab {request.tab_id} did not receive the api data')
        return message

    async def wait_pending(self) -> None:
        """Wait for every scheduled refetch (used on shutdown and in tests)."""
        if self._tasks:
            await asyncio.gather(*self._tasks)
