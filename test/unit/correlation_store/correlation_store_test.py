from onlyfans_downloader.src.domain.media import MediaKind, QualityTier
from onlyfans_downloader.src.infrastructure.correlation_store.store import (
    BoundedMapping,
    CorrelationStore,
)

VIDEO_POST = {
    'id': '42',
    'media': [
        {
            'type': 'video',
            'preview': 'https://x/p.jpg?z=1',
            'source': {'source': 'https://x/full.mp4'},
            'videoSources': {720: 'https://x/720.mp4'},
        },
    ],
}


def test_preferred_quality_is_used_when_present():
    store = CorrelationStore()
    store.record_response('https://onlyfans.com/api2/v2/posts/42', VIDEO_POST)

    assert store.resolve('https://x/p.jpg', QualityTier.p720) == 'https://x/720.mp4'


def test_full_quality_resolves_to_original_source():
    store = CorrelationStore()
    store.record_response('https://onlyfans.com/api2/v2/posts/42', VIDEO_POST)

    assert store.resolve('https://x/p.jpg', QualityTier.full) == 'https://x/full.mp4'


def test_missing_quality_falls_back_to_full():
    store = CorrelationStore()
    store.record_response('https://onlyfans.com/api2/v2/posts/42', VIDEO_POST)

    assert store.resolve('https://x/p.jpg', QualityTier.p240) == 'https://x/full.mp4'


def test_missing_quality_without_full_resolves_to_nothing():
    store = CorrelationStore()
    store.record_post(
        {
            'id': 1,
            'media': [
                {
                    'type': 'video',
                    'preview': 'https://x/p.jpg',
                    'videoSources': {'240': 'https://x/240.mp4'},
                },
            ],
        },
    )

    assert store.resolve('https://x/p.jpg', QualityTier.p720) is None
    assert store.resolve('https://x/p.jpg', QualityTier.p240) == 'https://x/240.mp4'


def test_fingerprint_lookup_ignores_query_string():
    store = CorrelationStore()
    store.record_post(
        {'id': 1, 'media': [{'type': 'photo', 'preview': 'a.jpg', 'src': 'a-full.jpg'}]},
    )

    assert store.resolve('a.jpg?x=1') == 'a-full.jpg'
    assert store.resolve('a.jpg?y=2') == 'a-full.jpg'
    assert store.resolve('a.jpg') == 'a-full.jpg'
    assert store.lookup('a.jpg?x=1') is store.lookup('a.jpg?y=2')


def test_every_preview_kind_is_a_key():
    store = CorrelationStore()
    store.record_post(
        {
            'id': 7,
            'media': [
                {
                    'type': 'video',
                    'preview': 'https://x/preview.jpg?a=1',
                    'squarePreview': 'https://x/square.jpg?a=2',
                    'thumb': 'https://x/thumb.jpg?a=3',
                    'source': {'source': 'https://x/full.mp4'},
                },
            ],
        },
    )

    for preview in ('https://x/preview.jpg', 'https://x/square.jpg', 'https://x/thumb.jpg'):
        assert store.resolve(preview) == 'https://x/full.mp4'


def test_image_source_fallbacks():
    store = CorrelationStore()
    store.record_post(
        {
            'id': 1,
            'media': [
                {'type': 'photo', 'preview': 'https://x/1.jpg', 'full': 'https://x/1-full.jpg'},
                {
                    'type': 'photo',
                    'preview': 'https://x/2.jpg',
                    'source': {'source': 'https://x/2-source.jpg'},
                },
            ],
        },
    )

    assert store.resolve('https://x/1.jpg') == 'https://x/1-full.jpg'
    assert store.resolve('https://x/2.jpg') == 'https://x/2-source.jpg'


def test_later_write_overwrites_earlier_one():
    store = CorrelationStore()
    store.record_post(
        {'id': 1, 'media': [{'type': 'photo', 'preview': 'p.jpg', 'src': 'old.jpg'}]},
    )
    store.record_post(
        {'id': 2, 'media': [{'type': 'photo', 'preview': 'p.jpg?v=2', 'src': 'new.jpg'}]},
    )

    assert store.resolve('p.jpg') == 'new.jpg'


def test_post_record_keeps_assets_in_order():
    store = CorrelationStore()
    store.record_response(
        'https://onlyfans.com/api2/v2/chats/5/messages',
        {
            'list': [
                {
                    'id': 9,
                    'media': [
                        {'type': 'photo', 'preview': 'a.jpg', 'src': 'a-full.jpg'},
                        {'type': 'video', 'preview': 'b.jpg', 'source': {'source': 'b.mp4'}},
                    ],
                },
            ],
        },
    )

    post = store.get_post('9')
    assert post is not None
    assert post.is_for_dm is True
    assert [asset.kind for asset in post.assets] == [MediaKind.image, MediaKind.video]
    assert store.resolve_post_video('9') == 'b.mp4'


def test_posts_without_id_are_skipped():
    store = CorrelationStore()

    stored = store.record_response(
        'https://onlyfans.com/api2/v2/users/1/posts',
        [{'media': []}, {'id': None, 'media': []}, {'id': 3, 'media': 'broken'}],
    )

    assert stored == 1
    assert store.get_post('3') is not None


def test_broken_media_entries_do_not_hide_the_others():
    store = CorrelationStore()
    store.record_post(
        {
            'id': 1,
            'media': [
                'not a media',
                {'preview': 'no-type.jpg'},
                {'type': 'photo', 'preview': 'ok.jpg', 'src': 'ok-full.jpg'},
            ],
        },
    )

    assert store.resolve('ok.jpg') == 'ok-full.jpg'


def test_bounded_mapping_evicts_least_recently_used():
    mapping: BoundedMapping[str, int] = BoundedMapping(capacity=2)
    mapping.set('a', 1)
    mapping.set('b', 2)
    mapping.get('a')
    mapping.set('c', 3)

    assert mapping.get('a') == 1
    assert mapping.get('b') is None
    assert mapping.get('c') == 3


def test_bounded_mapping_expires_old_entries():
    now = [100.0]
    mapping: BoundedMapping[str, int] = BoundedMapping(ttl_seconds=10, clock=lambda: now[0])
    mapping.set('a', 1)

    now[0] = 105.0
    assert mapping.get('a') == 1

    now[0] = 120.0
    assert mapping.get('a') is None
    assert len(mapping) == 0


def test_unbounded_store_keeps_everything():
    store = CorrelationStore(capacity=None)
    for index in range(500):
        store.record_post(
            {'id': index, 'media': [{'type': 'photo', 'preview': f'{index}.jpg', 'src': f'{index}-f.jpg'}]},
        )

    assert len(store) == 500
    assert store.resolve('0.jpg') == '0-f.jpg'
