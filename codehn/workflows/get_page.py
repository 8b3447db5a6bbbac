from __future__ import annotations

import logging
import threading

from codehn.config.settings import Settings, get_settings
from codehn.core.errors import FeedUnavailable, UpstreamListUnavailable
from codehn.models.schemas import Story
from codehn.services.aggregator import BoundedAggregator
from codehn.services.hn_client import HNClient, normalize_feed_type
from codehn.services.result_cache import ResultCache
from codehn.tools.lock import KeyedLocks

logger = logging.getLogger(__name__)


class StoryEngine:
    """
    Builds and caches pages of code-hosting stories per feed type.

    Concurrent misses for the same feed type wait on a per-key lock and then
    re-read the cache, so a page is only computed once per expiry.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        client: HNClient | None = None,
        cache: ResultCache | None = None,
    ) -> None:
        s = settings if settings is not None else get_settings()
        self.settings = s
        self.client = client if client is not None else HNClient(s)
        self.cache = cache if cache is not None else ResultCache(
            ttl=s.cache_ttl_seconds,
            sweep_interval=s.cache_sweep_seconds,
        )
        self.aggregator = BoundedAggregator(
            fetch=self.client.fetch_story,
            max_concurrency=s.max_concurrency,
            target_count=s.target_count,
            admission_delay=s.admission_delay,
            allowed_hosts=s.allowed_hosts,
            preserve_rank_order=s.preserve_rank_order,
        )
        self._inflight = KeyedLocks()

    def get_page(self, feed_type: str) -> list[Story]:
        page = normalize_feed_type(feed_type)

        stories, found = self.cache.get(page)
        if found:
            return stories

        with self._inflight.hold(page):
            # another request may have filled it while we waited
            stories, found = self.cache.get(page)
            if found:
                return stories

            stories = self._build_page(page)
            self.cache.set(page, stories)
            logger.debug("Cache stats after %s build: %s", page, self.cache.stats())
            return stories

    def _build_page(self, page: str) -> list[Story]:
        try:
            ids = self.client.fetch_story_ids(page)
        except UpstreamListUnavailable as e:
            logger.warning("Page %s unavailable: %s", page, e)
            raise FeedUnavailable(page, e) from e

        logger.info("Building %s page from %d ids", page, len(ids))
        return self.aggregator.aggregate(ids)

    def start(self) -> None:
        self.cache.start_sweeper()

    def close(self) -> None:
        self.cache.stop_sweeper()
        self.client.close()


_engine: StoryEngine | None = None
_engine_lock = threading.Lock()


def get_engine() -> StoryEngine:
    global _engine
    with _engine_lock:
        if _engine is None:
            _engine = StoryEngine(get_settings())
            _engine.start()
        return _engine


def reset_engine() -> None:
    global _engine
    with _engine_lock:
        if _engine is not None:
            _engine.close()
        _engine = None
