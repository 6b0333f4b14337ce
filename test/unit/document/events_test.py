from unittest.mock import MagicMock

from onlyfans_downloader.src.infrastructure.document.dom import LiveDocument
from onlyfans_downloader.src.infrastructure.document.events import (
    ChangeEvent,
    ContentChanged,
    EventBus,
    ItemAdded,
    ItemKind,
)


def make_node():
    return LiveDocument().body


def test_handlers_receive_matching_events_only():
    bus = EventBus()
    added, changed = [], []
    bus.subscribe(ItemAdded, added.append)
    bus.subscribe(ContentChanged, changed.append)
    event = ItemAdded(make_node(), kind=ItemKind.post)

    bus.publish(event)

    assert added == [event]
    assert changed == []


def test_base_type_subscription_sees_everything():
    bus = EventBus()
    seen = []
    bus.subscribe(ChangeEvent, seen.append)

    bus.publish(ItemAdded(make_node(), kind=ItemKind.viewer))
    bus.publish(ContentChanged(make_node()))

    assert len(seen) == 2


def test_unsubscribe_and_clear():
    bus = EventBus()
    seen = []
    unsubscribe = bus.subscribe(ContentChanged, seen.append)
    unsubscribe()
    bus.publish(ContentChanged(make_node()))

    bus.subscribe(ContentChanged, seen.append)
    bus.clear()
    bus.publish(ContentChanged(make_node()))

    assert seen == []


def test_coalesced_subscription_triggers_debouncer():
    bus = EventBus()
    debouncer = MagicMock()
    bus.subscribe_coalesced(ContentChanged, debouncer)

    bus.publish(ContentChanged(make_node()))
    bus.publish(ContentChanged(make_node()))

    assert debouncer.trigger.call_count == 2
