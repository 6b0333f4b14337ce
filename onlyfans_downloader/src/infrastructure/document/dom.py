"""
Live document model.

The page is a BeautifulSoup tree that is only mutated through `LiveDocument`,
so every change can be reported to observers as a mutation record, the same
way a browser reports them: batched and delivered on the next loop turn.

Identity matters here: bs4 tags compare equal by content, so two identical
posts are `==`. Everything in this module compares nodes with `is`.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Literal, Protocol

import soupsieve
from bs4 import BeautifulSoup, Tag
from yarl import URL

from onlyfans_downloader.src.infrastructure.loggers.logger_instances import (
    content_logger,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable


# ------------------------------------------------------------------------------
# Layout


@dataclass(frozen=True)
class Rect:
    """Axis-aligned box in layout units"""

    top: float
    left: float
    width: float = 0
    height: float = 0

    @property
    def bottom(self) -> float:
        return self.top + self.height

    @property
    def right(self) -> float:
        return self.left + self.width

    @property
    def area(self) -> float:
        return self.width * self.height

    def expanded(self, margin: float) -> Rect:
        return Rect(
            top=self.top - margin,
            left=self.left - margin,
            width=self.width + 2 * margin,
            height=self.height + 2 * margin,
        )

    def intersection_ratio(self, other: Rect) -> float:
        """Share of this box which lies inside `other` (0..1)."""
        width = min(self.right, other.right) - max(self.left, other.left)
        height = min(self.bottom, other.bottom) - max(self.top, other.top)
        if width < 0 or height < 0:
            return 0.0
        if self.area == 0:
            # Zero-sized boxes count as visible when they touch the other box
            return 1.0
        return (width * height) / self.area


class LayoutProvider(Protocol):
    """Source of element boxes (the host renders, we only read)"""

    def rect_of(self, element: Tag) -> Rect | None: ...


class StaticLayout:
    """Layout given explicitly per element (snapshots, tests)."""

    def __init__(self) -> None:
        self._rects: dict[int, tuple[Tag, Rect]] = {}

    def set(self, element: Tag, rect: Rect) -> None:
        # Keep the element alive so its id() can't be reused
        self._rects[id(element)] = (element, rect)

    def rect_of(self, element: Tag) -> Rect | None:
        entry = self._rects.get(id(element))
        return entry[1] if entry else None


# ------------------------------------------------------------------------------
# Mutations


@dataclass(eq=False)
class MutationRecord:
    """Single structural or attribute change"""

    type: Literal['childList', 'attributes']
    target: Tag
    added_nodes: list[Tag] = field(default_factory=list)
    removed_nodes: list[Tag] = field(default_factory=list)
    attribute_name: str | None = None
    old_value: str | None = None


@dataclass(frozen=True)
class ObserveOptions:
    child_list: bool = True
    subtree: bool = True
    attributes: bool = False
    attribute_filter: frozenset[str] | None = None


class MutationObserver:
    """Receives batches of mutation records for one observed root."""

    def __init__(
        self,
        document: LiveDocument,
        callback: Callable[[list[MutationRecord]], None],
    ) -> None:
        self.document = document
        self.callback = callback
        self._root: Tag | None = None
        self._options = ObserveOptions()
        self._records: list[MutationRecord] = []

    @property
    def connected(self) -> bool:
        return self._root is not None

    def observe(self, root: Tag, options: ObserveOptions) -> None:
        self._root = root
        self._options = options
        self.document._register_observer(self)  # noqa: SLF001

    def disconnect(self) -> None:
        self._root = None
        self._records.clear()
        self.document._unregister_observer(self)  # noqa: SLF001

    def take_records(self) -> list[MutationRecord]:
        records, self._records = self._records, []
        return records

    def _wants(self, record: MutationRecord) -> bool:
        if self._root is None:
            return False

        options = self._options
        if record.type == 'childList' and not options.child_list:
            return False
        if record.type == 'attributes':
            if not options.attributes:
                return False
            if (
                options.attribute_filter is not None
                and record.attribute_name not in options.attribute_filter
            ):
                return False

        if record.target is self._root:
            return True
        return options.subtree and is_descendant(record.target, self._root)

    def _enqueue(self, record: MutationRecord) -> bool:
        if not self._wants(record):
            return False
        self._records.append(record)
        return True

    def _deliver(self) -> None:
        records = self.take_records()
        if records and self.connected:
            self.callback(records)


# ------------------------------------------------------------------------------
# Input events


@dataclass(eq=False)
class InputEvent:
    """User or media event dispatched by the host"""

    type: str
    target: Tag | None = None
    key: str | None = None
    x: float = 0
    y: float = 0
    url: str | None = None


# ------------------------------------------------------------------------------
# Helpers


def is_descendant(node: Tag, ancestor: Tag) -> bool:
    return any(parent is ancestor for parent in node.parents)


def contains(ancestor: Tag, node: Tag) -> bool:
    return node is ancestor or is_descendant(node, ancestor)


def index_of(nodes: Iterable[Tag], node: Tag) -> int:
    for index, candidate in enumerate(nodes):
        if candidate is node:
            return index
    return -1


def class_list(element: Tag) -> list[str]:
    classes = element.get('class') or []
    if isinstance(classes, str):
        classes = classes.split()
    return list(classes)


def has_class(element: Tag, name: str) -> bool:
    return name in class_list(element)


def attribute_text(element: Tag, name: str) -> str | None:
    """Attribute as a string (`class` is joined back), None if absent."""
    value = element.get(name)
    if value is None:
        return None
    if isinstance(value, list):
        return ' '.join(value)
    return str(value)


# ------------------------------------------------------------------------------
# Document


class LiveDocument:
    """
    Mutable page with observers, layout, location and input events.

    All mutations must go through this class, otherwise observers won't see them.
    """

    def __init__(
        self,
        html: str = '<html><body></body></html>',
        url: str = 'https://onlyfans.com/',
        layout: LayoutProvider | None = None,
        viewport: Rect | None = None,
    ) -> None:
        self.soup = BeautifulSoup(html, 'html.parser')
        if self.soup.body is None:
            # Fragments end up inside a body, like a browser would put them
            body = self.soup.new_tag('body')
            for child in list(self.soup.contents):
                body.append(child.extract())
            self.soup.append(body)

        self._location = URL(url)
        self.layout: LayoutProvider = layout or StaticLayout()
        self.viewport = viewport or Rect(top=0, left=0, width=1280, height=800)

        self._observers: list[MutationObserver] = []
        self._delivery_scheduled = False
        self._listeners: dict[str, list[Callable[[InputEvent], None]]] = {}

    # --------------------------------------------------------------------------
    # Location

    @property
    def body(self) -> Tag:
        return self.soup.body  # type: ignore[return-value]

    @property
    def location(self) -> str:
        return str(self._location)

    @property
    def pathname(self) -> str:
        return self._location.path

    def navigate(self, url: str, *, history_event: bool = False) -> None:
        """
        Change the location like client-side routing does.

        `history_event=True` also dispatches `popstate` (back/forward buttons).
        """
        self._location = URL(url)
        if history_event:
            self.dispatch(InputEvent(type='popstate', url=url))

    # --------------------------------------------------------------------------
    # Queries

    def select(self, selector: str, root: Tag | None = None) -> list[Tag]:
        return list((root or self.body).select(selector))

    def select_one(self, selector: str, root: Tag | None = None) -> Tag | None:
        return (root or self.body).select_one(selector)

    @staticmethod
    def matches(element: Tag, selector: str) -> bool:
        return soupsieve.match(selector, element)

    @staticmethod
    def closest(element: Tag, selector: str) -> Tag | None:
        return soupsieve.closest(selector, element)

    def is_attached(self, element: Tag) -> bool:
        return contains(self.soup, element)

    def rect_of(self, element: Tag) -> Rect | None:
        return self.layout.rect_of(element)

    # --------------------------------------------------------------------------
    # Mutations

    def create_element(
        self,
        name: str,
        attrs: dict[str, str] | None = None,
        text: str | None = None,
    ) -> Tag:
        element = self.soup.new_tag(name, attrs=attrs or {})
        if text is not None:
            element.string = text
        return element

    def append_child(self, parent: Tag, child: Tag) -> Tag:
        old_parent = child.parent
        if old_parent is not None:
            self.remove(child)
        parent.append(child)
        self._record(MutationRecord(type='childList', target=parent, added_nodes=[child]))
        return child

    def insert_first(self, parent: Tag, child: Tag) -> Tag:
        if child.parent is not None:
            self.remove(child)
        parent.insert(0, child)
        self._record(MutationRecord(type='childList', target=parent, added_nodes=[child]))
        return child

    def remove(self, element: Tag) -> None:
        parent = element.parent
        if parent is None:
            return
        element.extract()
        self._record(
            MutationRecord(type='childList', target=parent, removed_nodes=[element])
        )

    def set_text(self, element: Tag, text: str) -> None:
        element.string = text

    def set_attribute(self, element: Tag, name: str, value: str | None) -> None:
        old_value = attribute_text(element, name)
        if value is None:
            if name in element.attrs:
                del element[name]
        elif name == 'class':
            element[name] = value.split()
        else:
            element[name] = value

        if old_value != attribute_text(element, name):
            self._record(
                MutationRecord(
                    type='attributes',
                    target=element,
                    attribute_name=name,
                    old_value=old_value,
                )
            )

    def add_class(self, element: Tag, name: str) -> None:
        classes = class_list(element)
        if name not in classes:
            self.set_attribute(element, 'class', ' '.join([*classes, name]))

    def remove_class(self, element: Tag, name: str) -> None:
        classes = class_list(element)
        if name in classes:
            classes.remove(name)
            self.set_attribute(element, 'class', ' '.join(classes) or None)

    # --------------------------------------------------------------------------
    # Observer plumbing

    def _register_observer(self, observer: MutationObserver) -> None:
        if not any(existing is observer for existing in self._observers):
            self._observers.append(observer)

    def _unregister_observer(self, observer: MutationObserver) -> None:
        self._observers = [o for o in self._observers if o is not observer]

    def _record(self, record: MutationRecord) -> None:
        queued = False
        for observer in self._observers:
            queued = observer._enqueue(record) or queued  # noqa: SLF001

        if not queued or self._delivery_scheduled:
            return

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No loop: records wait for an explicit flush_mutations()
            return

        self._delivery_scheduled = True
        loop.call_soon(self.flush_mutations)

    def flush_mutations(self) -> None:
        """Deliver every pending record to its observer right now."""
        self._delivery_scheduled = False
        for observer in list(self._observers):
            observer._deliver()  # noqa: SLF001

    # --------------------------------------------------------------------------
    # Events

    def add_event_listener(
        self, event_type: str, listener: Callable[[InputEvent], None]
    ) -> Callable[[], None]:
        self._listeners.setdefault(event_type, []).append(listener)

        def remove() -> None:
            listeners = self._listeners.get(event_type, [])
            if listener in listeners:
                listeners.remove(listener)

        return remove

    def dispatch(self, event: InputEvent) -> None:
        for listener in list(self._listeners.get(event.type, [])):
            try:
                listener(event)
            except Exception:  # noqa: BLE001 one broken listener must not break the page
                content_logger.exception(f'Listener for "{event.type}" failed')

    def click(self, element: Tag) -> None:
        self.dispatch(InputEvent(type='click', target=element))

    def context_menu(self, element: Tag) -> None:
        self.dispatch(InputEvent(type='contextmenu', target=element))

    def keydown(self, key: str, target: Tag | None = None) -> None:
        self.dispatch(InputEvent(type='keydown', key=key, target=target))

    def touch(self, target: Tag, start: tuple[float, float], end: tuple[float, float]) -> None:
        self.dispatch(InputEvent(type='touchstart', target=target, x=start[0], y=start[1]))
        self.dispatch(InputEvent(type='touchend', target=target, x=end[0], y=end[1]))

    def media_event(self, event_type: Literal['load', 'play'], video: Tag) -> None:
        self.dispatch(InputEvent(type=event_type, target=video))

    def scroll_to(self, top: float, target: Tag | None = None) -> None:
        self.viewport = Rect(
            top=top,
            left=self.viewport.left,
            width=self.viewport.width,
            height=self.viewport.height,
        )
        self.dispatch(InputEvent(type='scroll', target=target))
