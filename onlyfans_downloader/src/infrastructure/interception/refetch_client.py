"""Client re-issuing intercepted API requests to read their responses."""

from __future__ import annotations

from http import HTTPStatus
from typing import TYPE_CHECKING, Any

import aiohttp

if TYPE_CHECKING:
    from collections.abc import Mapping

REFETCH_FRAGMENT = 'trilobite'


class RefetchError(Exception):
    """Base class for all refetch related errors."""


class RefetchStatusError(RefetchError):
    """Raised when the API answers with a non-2xx status."""

    status: int

    def __init__(self, url: str, status: int) -> None:
        super().__init__(f'HTTP {status} for {url}')
        self.status = status


class RefetchPayloadError(RefetchError):
    """Raised when the API answers with something that is not JSON."""


def mark_as_refetch(url: str) -> str:
    """Tag the url so our own request is not intercepted again."""
    base = url.split('#', 1)[0]
    return f'{base}#{REFETCH_FRAGMENT}'


def is_refetch(url: str) -> bool:
    return f'#{REFETCH_FRAGMENT}' in url


class ApiRefetchClient:
    """
    Replays a GET request with the headers the page itself has used.

    No authentication of its own: the cookies and tokens of the page are
    part of the replayed headers.
    """

    def __init__(self, session: aiohttp.ClientSession) -> None:
        self.session = session

    async def refetch(self, url: str, headers: Mapping[str, str]) -> Any:
        """Fetch the url once, return the decoded JSON body."""
        async with self.session.get(mark_as_refetch(url), headers=dict(headers)) as response:
            if not HTTPStatus.OK <= response.status < HTTPStatus.MULTIPLE_CHOICES:
                raise RefetchStatusError(url, response.status)

            try:
                return await response.json(content_type=None)
            except ValueError as e:
                raise RefetchPayloadError(f'Malformed JSON from {url}') from e
