from unittest.mock import MagicMock

from bs4 import BeautifulSoup

from onlyfans_downloader.src.application.resolution.cascade import ResolutionCascade
from onlyfans_downloader.src.domain.download import DownloadLabel
from onlyfans_downloader.src.domain.media import QualityTier
from onlyfans_downloader.src.infrastructure.correlation_store.store import (
    CorrelationStore,
)


def container(html: str):
    return BeautifulSoup(html, 'html.parser').select_one('.video-wrapper')


def test_player_without_source_resolves_through_store():
    store = CorrelationStore()
    store.record_post(
        {
            'id': '42',
            'media': [
                {
                    'type': 'video',
                    'preview': 'https://x/p.jpg?z=1',
                    'source': {'source': 'https://x/full.mp4'},
                    'videoSources': {'720': 'https://x/720.mp4'},
                },
            ],
        },
    )
    cascade = ResolutionCascade(store, logger=MagicMock())
    wrapper = container(
        '<div class="b-post" data-id="42"><div class="video-wrapper">'
        '<video class="vjs-tech"></video></div></div>'
    )

    assert cascade.resolve(wrapper, QualityTier.p720).url == 'https://x/720.mp4'
    assert cascade.resolve(wrapper, QualityTier.full).url == 'https://x/full.mp4'


def test_embedded_original_source_beats_the_store():
    store = CorrelationStore()
    store.record_post(
        {'id': '1', 'media': [{'type': 'video', 'source': {'source': 'https://x/api.mp4'}}]},
    )
    cascade = ResolutionCascade(store, logger=MagicMock())
    wrapper = container(
        '<div class="b-post" data-id="1"><div class="video-wrapper"><video>'
        '<source src="https://x/orig.mp4" label="original"></video></div></div>'
    )

    result = cascade.resolve(wrapper)

    assert result.url == 'https://x/orig.mp4'
    assert result.label is DownloadLabel.download_video


def test_miss_is_logged_not_raised():
    logger = MagicMock()
    cascade = ResolutionCascade(CorrelationStore(), logger=logger)

    result = cascade.resolve(container('<div class="video-wrapper"><video></video></div>'))

    assert result is None
    logger.debug.assert_called_once()


def test_custom_strategies():
    cascade = ResolutionCascade(CorrelationStore(), strategies=[], logger=MagicMock())

    assert cascade.resolve(container('<div class="video-wrapper"><video src="a.mp4"></video></div>')) is None
