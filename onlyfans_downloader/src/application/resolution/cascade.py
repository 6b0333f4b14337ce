"""Resolution cascade: container -> best available url"""

from __future__ import annotations

from typing import TYPE_CHECKING

from onlyfans_downloader.src.application.resolution.strategies import (
    DEFAULT_STRATEGIES,
    ResolutionContext,
    ResolvedUrl,
    first_success,
)
from onlyfans_downloader.src.domain.media import QualityTier
from onlyfans_downloader.src.infrastructure.document.markup import DocumentMarkup
from onlyfans_downloader.src.infrastructure.loggers.logger_instances import (
    content_logger,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from bs4 import Tag

    from onlyfans_downloader.src.infrastructure.correlation_store.store import (
        CorrelationStore,
    )
    from onlyfans_downloader.src.infrastructure.loggers.base import RichLogger


class ResolutionCascade:
    """
    Tries the extraction strategies in order, first success wins.

    A `None` result is not an error: the player shell is often rendered
    before its source, callers retry later.
    """

    def __init__(
        self,
        store: CorrelationStore,
        markup: DocumentMarkup | None = None,
        strategies: Iterable[Callable[[ResolutionContext], ResolvedUrl | None]] = DEFAULT_STRATEGIES,
        logger: RichLogger = content_logger,
    ) -> None:
        self.store = store
        self.markup = markup or DocumentMarkup()
        self.logger = logger
        self._resolve = first_success(strategies)

    def resolve(
        self,
        container: Tag,
        preferred_quality: QualityTier = QualityTier.full,
    ) -> ResolvedUrl | None:
        context = ResolutionContext(
            container=container,
            store=self.store,
            markup=self.markup,
            preferred_quality=preferred_quality,
        )
        result = self._resolve(context)
        if result is None:
            self.logger.debug(f'No url found for <{container.name}> yet')
        return result
