from __future__ import annotations

import time
from typing import Iterable
from urllib.parse import urlsplit

from codehn.models.schemas import Story

DEFAULT_ALLOWED_HOSTS = ("github", "gitlab")

_MINUTE = 60
_HOUR = 60 * _MINUTE
_DAY = 24 * _HOUR
_WEEK = 7 * _DAY
_MONTH = 30 * _DAY
_YEAR = 12 * _MONTH
_LONG_TIME = 37 * _YEAR

# (upper bound in seconds, label, divisor); divisor 0 means label is literal
_MAGNITUDES = [
    (1, "now", 0),
    (2, "1 second", 0),
    (_MINUTE, "{n} seconds", 1),
    (2 * _MINUTE, "1 minute", 0),
    (_HOUR, "{n} minutes", _MINUTE),
    (2 * _HOUR, "1 hour", 0),
    (_DAY, "{n} hours", _HOUR),
    (2 * _DAY, "1 day", 0),
    (_WEEK, "{n} days", _DAY),
    (2 * _WEEK, "1 week", 0),
    (_MONTH, "{n} weeks", _WEEK),
    (2 * _MONTH, "1 month", 0),
    (_YEAR, "{n} months", _MONTH),
    (18 * _MONTH, "1 year", 0),
    (2 * _YEAR, "2 years", 0),
    (_LONG_TIME, "{n} years", _YEAR),
]


def _contains_any(text: str, terms: Iterable[str]) -> bool:
    return any(term in text for term in terms)


def is_eligible(story: Story, allowed_hosts: Iterable[str] = DEFAULT_ALLOWED_HOSTS) -> bool:
    """
    Case-sensitive substring match on the link, not a host comparison, so
    "https://notgithub.example" passes too.
    """
    if not story.url:
        return False
    return _contains_any(story.url, allowed_hosts)


def domain_name(url: str) -> str:
    try:
        return urlsplit(url).hostname or ""
    except ValueError:
        return ""


def human_time(then: float, now: float | None = None) -> str:
    """Relative age such as "33 minutes ago" or "2 days from now"."""
    if now is None:
        now = time.time()
    delta = now - then
    suffix = "ago"
    if delta < 0:
        delta = -delta
        suffix = "from now"

    for bound, label, divisor in _MAGNITUDES:
        if delta < bound:
            if label == "now":
                return label
            text = label.format(n=int(delta // divisor)) if divisor else label
            return f"{text} {suffix}"

    return f"a long while {suffix}"


def enrich(story: Story, now: float | None = None) -> Story:
    return story.model_copy(
        update={
            "domain_name": domain_name(story.url),
            "human_time": human_time(story.time, now),
        }
    )


def evaluate(
    story: Story,
    allowed_hosts: Iterable[str] = DEFAULT_ALLOWED_HOSTS,
    now: float | None = None,
) -> Story | None:
    """Enriched copy of an eligible story, or None."""
    if not is_eligible(story, allowed_hosts):
        return None
    return enrich(story, now)
