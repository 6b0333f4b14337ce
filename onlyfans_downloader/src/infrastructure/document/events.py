"""Typed change events emitted by the observation layer"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, TypeVar

if TYPE_CHECKING:
    from collections.abc import Callable

    from bs4 import Tag

    from onlyfans_downloader.src.infrastructure.document.scheduling import Debouncer


class ItemKind(Enum):
    post = 'post'
    message = 'message'
    viewer = 'viewer'


@dataclass(eq=False)
class ChangeEvent:
    node: Tag


@dataclass(eq=False)
class ItemAdded(ChangeEvent):
    """Post, chat message or viewer was inserted"""

    kind: ItemKind


@dataclass(eq=False)
class ItemRemoved(ChangeEvent):
    kind: ItemKind


@dataclass(eq=False)
class ActiveItemChanged(ChangeEvent):
    """Another slide of a viewer became visible"""


@dataclass(eq=False)
class ContentChanged(ChangeEvent):
    """Anything else worth a re-scan (media inserted, class/style changed)"""


_E = TypeVar('_E', bound=ChangeEvent)


class EventBus:
    """
    Publish/subscribe for change events.

    Subscribers are either immediate (called during `publish`) or coalesced
    through a `Debouncer`, in which case the handler gets no event at all.
    """

    def __init__(self) -> None:
        self._subscribers: list[tuple[type[ChangeEvent], Callable[[Any], None]]] = []

    def subscribe(
        self,
        event_type: type[_E],
        handler: Callable[[_E], None],
    ) -> Callable[[], None]:
        entry = (event_type, handler)
        self._subscribers.append(entry)

        def unsubscribe() -> None:
            self._subscribers = [s for s in self._subscribers if s is not entry]

        return unsubscribe

    def subscribe_coalesced(
        self,
        event_type: type[ChangeEvent],
        debouncer: Debouncer,
    ) -> Callable[[], None]:
        return self.subscribe(event_type, lambda _event: debouncer.trigger())

    def publish(self, event: ChangeEvent) -> None:
        for event_type, handler in list(self._subscribers):
            if isinstance(event, event_type):
                handler(event)

    def clear(self) -> None:
        self._subscribers.clear()
