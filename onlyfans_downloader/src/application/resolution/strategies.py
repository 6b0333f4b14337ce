"""
Url extraction strategies.

Each strategy is a plain function `ResolutionContext -> ResolvedUrl | None`,
ordered from the most authoritative source to the best guess. They don't
mutate anything, so every one of them can be tested alone.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from onlyfans_downloader.src.domain.download import DownloadLabel
from onlyfans_downloader.src.domain.media import QualityTier

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from bs4 import Tag

    from onlyfans_downloader.src.infrastructure.correlation_store.store import (
        CorrelationStore,
    )
    from onlyfans_downloader.src.infrastructure.document.markup import DocumentMarkup

DATA_URL_ATTRIBUTES: tuple[str, ...] = ('data-src', 'data-video', 'data-url', 'data-source')
DATA_ATTRIBUTE_ANCESTOR_LEVELS = 3
POST_ID_ATTRIBUTE = 'data-id'


@dataclass(frozen=True)
class ResolvedUrl:
    url: str
    label: DownloadLabel

    @property
    def is_video(self) -> bool:
        return self.label.is_video


@dataclass(frozen=True, eq=False)
class ResolutionContext:
    """Everything a strategy may look at"""

    container: Tag
    store: CorrelationStore
    markup: DocumentMarkup
    preferred_quality: QualityTier = QualityTier.full

    @property
    def media_element(self) -> Tag | None:
        """The video (preferred) or image which represents the container."""
        if self.container.name in ('video', 'img'):
            return self.container
        return (
            self.container.select_one(self.markup.video_tech)
            or self.container.select_one('video')
            or self.container.select_one('img')
        )

    @property
    def post_id(self) -> str | None:
        """`data-id` of the container or of the closest item around it"""
        for element in (self.container, *self.container.parents):
            post_id = element.get(POST_ID_ATTRIBUTE)
            if post_id:
                return str(post_id)
        return None


def _src(element: Tag | None) -> str | None:
    if element is None:
        return None
    src = element.get('src')
    if isinstance(src, str) and src.strip():
        return src.strip()
    return None


def _label_for(element: Tag | None) -> DownloadLabel:
    if element is not None and element.name == 'img':
        return DownloadLabel.download
    return DownloadLabel.download_video


# ------------------------------------------------------------------------------
# Strategies (in cascade order)


def original_source(context: ResolutionContext) -> ResolvedUrl | None:
    """`<source label="original">` embedded in the container"""
    url = _src(context.container.select_one(context.markup.original_source))
    return ResolvedUrl(url, DownloadLabel.download_video) if url else None


def any_source(context: ResolutionContext) -> ResolvedUrl | None:
    for source in context.container.select('source'):
        url = _src(source)
        if url:
            return ResolvedUrl(url, DownloadLabel.download_video)
    return None


def direct_source(context: ResolutionContext) -> ResolvedUrl | None:
    """`src` attribute of the media element itself"""
    media = context.media_element
    url = _src(media)
    return ResolvedUrl(url, _label_for(media)) if url else None


def stored_by_post(context: ResolutionContext) -> ResolvedUrl | None:
    """
    Correlation store lookup.

    First by the declared post id (first video of the post), then by the
    fingerprint of a poster / nested preview image.
    """
    post_id = context.post_id
    if post_id:
        url = context.store.resolve_post_video(post_id, context.preferred_quality)
        if url:
            return ResolvedUrl(url, DownloadLabel.download_video)

    media = context.media_element
    previews: list[str] = []
    if media is not None:
        poster = media.get('poster')
        if isinstance(poster, str) and poster:
            previews.append(poster)
    previews.extend(
        url for url in (_src(img) for img in context.container.select('img')) if url
    )

    for preview in previews:
        asset = context.store.lookup(preview)
        if asset is None:
            continue
        url = asset.url_for(context.preferred_quality)
        if url:
            label = (
                DownloadLabel.download_video if asset.is_video else DownloadLabel.download
            )
            return ResolvedUrl(url, label)
    return None


def _data_url(element: Tag) -> str | None:
    for attribute in DATA_URL_ATTRIBUTES:
        value = element.get(attribute)
        if isinstance(value, str) and 'http' in value:
            return value
    return None


def data_attributes(context: ResolutionContext) -> ResolvedUrl | None:
    """Declared data attributes on the media element or up to 3 ancestors"""
    element: Tag | None = context.media_element or context.container
    for _ in range(DATA_ATTRIBUTE_ANCESTOR_LEVELS + 1):
        if element is None or element.name == '[document]':
            break
        url = _data_url(element)
        if url:
            return ResolvedUrl(url, DownloadLabel.download_video)
        element = element.parent
    return None


def nested_scan(context: ResolutionContext) -> ResolvedUrl | None:
    """Last resort: any nested video / source / data attribute with a url"""
    for element in context.container.select('video, source'):
        url = _src(element)
        if url:
            return ResolvedUrl(url, DownloadLabel.download_video)

    for element in context.container.select(
        ', '.join(f'[{attribute}]' for attribute in DATA_URL_ATTRIBUTES)
    ):
        url = _data_url(element)
        if url:
            return ResolvedUrl(url, DownloadLabel.download_video)
    return None


DEFAULT_STRATEGIES = (
    original_source,
    any_source,
    direct_source,
    stored_by_post,
    data_attributes,
    nested_scan,
)


def first_success(
    strategies: Iterable[Callable[[ResolutionContext], ResolvedUrl | None]],
) -> Callable[[ResolutionContext], ResolvedUrl | None]:
    """Compose strategies: the first non-None result wins."""
    ordered = tuple(strategies)

    def resolve(context: ResolutionContext) -> ResolvedUrl | None:
        for strategy in ordered:
            result = strategy(context)
            if result is not None:
                return result
        return None

    return resolve
