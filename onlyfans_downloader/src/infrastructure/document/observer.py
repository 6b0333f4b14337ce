"""Turns raw mutation records into typed change events."""

from __future__ import annotations

from typing import TYPE_CHECKING

from onlyfans_downloader.src.infrastructure.document.dom import (
    MutationObserver,
    ObserveOptions,
    attribute_text,
)
from onlyfans_downloader.src.infrastructure.document.events import (
    ActiveItemChanged,
    ContentChanged,
    ItemAdded,
    ItemKind,
    ItemRemoved,
)
from onlyfans_downloader.src.infrastructure.loggers.logger_instances import (
    content_logger,
)

if TYPE_CHECKING:
    from bs4 import Tag

    from onlyfans_downloader.src.infrastructure.document.dom import (
        LiveDocument,
        MutationRecord,
    )
    from onlyfans_downloader.src.infrastructure.document.events import (
        ChangeEvent,
        EventBus,
    )
    from onlyfans_downloader.src.infrastructure.document.markup import DocumentMarkup

WATCHED_ATTRIBUTES = frozenset({'class', 'aria-hidden', 'style'})


class StructuralObserver:
    """
    Watches the document body and publishes what changed.

    - post / chat message / viewer inserted -> `ItemAdded`
    - post / chat message removed -> `ItemRemoved`
    - viewer slide got `aria-hidden="false"` -> `ActiveItemChanged`
    - everything else -> `ContentChanged`

    Changes made to (or inside) `ignored_selector` (our own controls) are ignored,
    otherwise every injection would trigger the next one.
    """

    def __init__(
        self,
        document: LiveDocument,
        markup: DocumentMarkup,
        bus: EventBus,
        ignored_selector: str,
    ) -> None:
        self.document = document
        self.markup = markup
        self.bus = bus
        self.ignored_selector = ignored_selector
        self._observer = MutationObserver(document, self._on_mutations)

    @property
    def connected(self) -> bool:
        return self._observer.connected

    def connect(self) -> None:
        self._observer.observe(
            self.document.body,
            ObserveOptions(
                child_list=True,
                subtree=True,
                attributes=True,
                attribute_filter=WATCHED_ATTRIBUTES,
            ),
        )

    def disconnect(self) -> None:
        self._observer.disconnect()

    # --------------------------------------------------------------------------

    def _is_own(self, node: Tag) -> bool:
        return self.document.closest(node, self.ignored_selector) is not None

    def _item_kind(self, node: Tag) -> ItemKind | None:
        if self.document.matches(node, self.markup.post):
            return ItemKind.post
        if self.document.matches(node, self.markup.message):
            return ItemKind.message
        if self.document.matches(node, self.markup.viewer):
            return ItemKind.viewer
        return None

    def _items_within(self, node: Tag) -> list[tuple[Tag, ItemKind]]:
        kind = self._item_kind(node)
        if kind is not None:
            return [(node, kind)]

        found: list[tuple[Tag, ItemKind]] = []
        for selector, nested_kind in (
            (self.markup.post, ItemKind.post),
            (self.markup.message, ItemKind.message),
            (self.markup.viewer, ItemKind.viewer),
        ):
            found.extend((item, nested_kind) for item in node.select(selector))
        return found

    def classify(self, record: MutationRecord) -> list[ChangeEvent]:
        if self._is_own(record.target):
            return []

        if record.type == 'attributes':
            if (
                record.attribute_name == 'aria-hidden'
                and attribute_text(record.target, 'aria-hidden') == 'false'
                and self.document.matches(record.target, self.markup.viewer_slide)
            ):
                return [ActiveItemChanged(record.target)]
            if (
                record.attribute_name == 'class'
                and self._item_kind(record.target) is ItemKind.viewer
            ):
                return [ItemAdded(record.target, kind=ItemKind.viewer)]
            return [ContentChanged(record.target)]

        events: list[ChangeEvent] = []
        for node in record.added_nodes:
            if self._is_own(node):
                continue
            items = self._items_within(node)
            if items:
                events.extend(ItemAdded(item, kind=kind) for item, kind in items)
            else:
                events.append(ContentChanged(node))

        for node in record.removed_nodes:
            if self._is_own(node):
                continue
            kind = self._item_kind(node)
            if kind is not None:
                events.append(ItemRemoved(node, kind=kind))

        return events

    def _on_mutations(self, records: list[MutationRecord]) -> None:
        for record in records:
            for event in self.classify(record):
                content_logger.debug(f'{type(event).__name__} <{event.node.name}>')
                self.bus.publish(event)
