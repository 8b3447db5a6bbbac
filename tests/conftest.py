from __future__ import annotations

import threading
import time

import pytest

from codehn.config.settings import Settings, reset_settings
from codehn.core.errors import ItemFetchDropped, UpstreamListUnavailable
from codehn.models.schemas import Story


def make_story(story_id: int, url: str = "", **kw) -> Story:
    data = {
        "id": story_id,
        "by": kw.pop("by", "pg"),
        "score": kw.pop("score", 10),
        "time": kw.pop("time", int(time.time()) - 600),
        "title": kw.pop("title", f"story {story_id}"),
        "type": kw.pop("type", "story"),
        "url": url,
    }
    data.update(kw)
    return Story(**data)


class FakeFetcher:
    """
    Stand-in for HNClient.fetch_story. Records calls and the peak number of
    concurrent calls; ``delay`` may be a float or a callable of the id.
    """

    def __init__(self, stories: dict[int, Story] | None = None, delay=0.0, failing=()):
        self.stories = stories or {}
        self.delay = delay
        self.failing = set(failing)
        self.calls: list[int] = []
        self.active = 0
        self.peak = 0
        self._lock = threading.Lock()

    def __call__(self, story_id: int) -> Story:
        with self._lock:
            self.calls.append(story_id)
            self.active += 1
            self.peak = max(self.peak, self.active)
        try:
            d = self.delay(story_id) if callable(self.delay) else self.delay
            if d:
                time.sleep(d)
            if story_id in self.failing:
                raise ItemFetchDropped(story_id, "boom")
            if story_id not in self.stories:
                raise ItemFetchDropped(story_id, "missing")
            return self.stories[story_id]
        finally:
            with self._lock:
                self.active -= 1


class FakeClient:
    def __init__(self, ids_by_feed: dict[str, list[int]] | None = None, fetcher: FakeFetcher | None = None):
        self.ids_by_feed = ids_by_feed or {}
        self.fetcher = fetcher or FakeFetcher()
        self.list_calls: list[str] = []
        self.list_error: Exception | None = None
        self.closed = False

    def fetch_story_ids(self, feed_type: str) -> list[int]:
        self.list_calls.append(feed_type)
        if self.list_error is not None:
            raise self.list_error
        return list(self.ids_by_feed.get(feed_type, []))

    def fetch_story(self, story_id: int) -> Story:
        return self.fetcher(story_id)

    def close(self) -> None:
        self.closed = True


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def settings() -> Settings:
    return Settings(admission_delay_ms=0, cache_sweep_seconds=0)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture(autouse=True)
def _reset_settings():
    yield
    reset_settings()


def list_failure(feed: str = "new") -> UpstreamListUnavailable:
    return UpstreamListUnavailable(feed, "connection refused")
