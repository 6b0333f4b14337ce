import pytest

from onlyfans_downloader.src.infrastructure.correlation_store.normalizer import (
    normalize_payload,
)
from onlyfans_downloader.src.infrastructure.correlation_store.store import (
    CorrelationStore,
)


def test_array_payload():
    assert normalize_payload([{'id': 1}, {'id': 2}]) == [{'id': 1}, {'id': 2}]


def test_list_envelope():
    payload = {'list': [{'id': 1}], 'hasMore': True}

    assert normalize_payload(payload) == [{'id': 1}]


def test_single_post_with_media():
    payload = {'id': 1, 'media': []}

    assert normalize_payload(payload) == [payload]


def test_non_dict_items_are_dropped():
    assert normalize_payload([{'id': 1}, 'x', None, 3]) == [{'id': 1}]


@pytest.mark.parametrize('payload', [{}, None, 'string', 42, {'id': 1}, {'media': []}])
def test_malformed_payload_yields_nothing(payload):
    assert normalize_payload(payload) == []


@pytest.mark.parametrize('payload', [{}, None, 'string'])
def test_malformed_payload_stores_nothing(payload):
    store = CorrelationStore()

    stored = store.record_response('https://onlyfans.com/api2/v2/posts/1', payload)

    assert stored == 0
    assert len(store) == 0
    assert store.posts_count == 0
