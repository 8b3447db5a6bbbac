from __future__ import annotations

import logging

import requests
from pydantic import ValidationError
from requests.adapters import HTTPAdapter

from codehn.config.settings import Settings, get_settings
from codehn.core.errors import ItemFetchDropped, UpstreamListUnavailable
from codehn.models.schemas import Story

logger = logging.getLogger(__name__)

DEFAULT_FEED = "top"

FEED_FILES = {
    "top": "topstories.json",
    "new": "newstories.json",
    "show": "showstories.json",
    "best": "beststories.json",
}

HN_ITEM = "item/{id}.json"


def normalize_feed_type(feed_type: str | None) -> str:
    name = (feed_type or "").strip().lower()
    return name if name in FEED_FILES else DEFAULT_FEED


def feed_url(feed_type: str | None, base_url: str) -> str:
    """Upstream list endpoint for a feed type; unknown types get the top list."""
    return _join(base_url, FEED_FILES[normalize_feed_type(feed_type)])


def item_url(story_id: int, base_url: str) -> str:
    return _join(base_url, HN_ITEM.format(id=story_id))


def _join(base_url: str, path: str) -> str:
    return f"{base_url.rstrip('/')}/{path}"


class HNClient:
    """
    Blocking client for the Hacker News firebase API.

    One instance is shared by all fetch threads of an aggregation run, so the
    underlying session pool is sized to the concurrency cap.
    """

    def __init__(self, settings: Settings | None = None, session: requests.Session | None = None) -> None:
        s = settings or get_settings()
        self.base_url = s.hn_base_url
        self.timeout = s.http_timeout
        if session is None:
            session = requests.Session()
            adapter = HTTPAdapter(pool_connections=4, pool_maxsize=s.max_concurrency)
            session.mount("https://", adapter)
            session.mount("http://", adapter)
        self.session = session

    def fetch_story_ids(self, feed_type: str) -> list[int]:
        url = feed_url(feed_type, self.base_url)
        try:
            r = self.session.get(url, timeout=self.timeout)
            r.raise_for_status()
            data = r.json()
        except requests.RequestException as e:
            logger.warning("List fetch failed for %s (%s): %s", feed_type, url, e)
            raise UpstreamListUnavailable(feed_type, str(e)) from e
        except ValueError as e:
            logger.warning("List body for %s is not JSON: %s", feed_type, e)
            raise UpstreamListUnavailable(feed_type, "undecodable body") from e

        if not isinstance(data, list) or not all(
            isinstance(x, int) and not isinstance(x, bool) for x in data
        ):
            raise UpstreamListUnavailable(feed_type, "expected a JSON array of integers")

        return data

    def fetch_story(self, story_id: int) -> Story:
        try:
            r = self.session.get(item_url(story_id, self.base_url), timeout=self.timeout)
            r.raise_for_status()
            data = r.json()
        except requests.RequestException as e:
            raise ItemFetchDropped(story_id, str(e)) from e
        except ValueError as e:
            raise ItemFetchDropped(story_id, "undecodable body") from e

        # deleted items come back as a literal null
        if not data:
            raise ItemFetchDropped(story_id, "empty item")

        try:
            return Story.model_validate(data)
        except ValidationError as e:
            raise ItemFetchDropped(story_id, f"invalid item: {e.error_count()} error(s)") from e

    def close(self) -> None:
        self.session.close()
