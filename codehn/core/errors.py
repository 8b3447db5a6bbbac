"""
Error types for the story engine.

List-level failures escalate to the caller; item-level failures are absorbed
by the aggregator and only ever show up in debug logs.
"""
from __future__ import annotations


class CodeHNError(Exception):
    """Base class for every error raised by codehn."""


class UpstreamListUnavailable(CodeHNError):
    """The identifier list for a feed type could not be fetched or decoded."""

    def __init__(self, feed_type: str, reason: str = "") -> None:
        self.feed_type = feed_type
        self.reason = reason
        msg = f"could not get {feed_type} hacker news posts list"
        if reason:
            msg = f"{msg}: {reason}"
        super().__init__(msg)


class ItemFetchDropped(CodeHNError):
    """A single item could not be fetched or decoded. Never reaches callers."""

    def __init__(self, story_id: int, reason: str = "") -> None:
        self.story_id = story_id
        self.reason = reason
        super().__init__(f"item {story_id} dropped: {reason}" if reason else f"item {story_id} dropped")


class FeedUnavailable(CodeHNError):
    """What the engine raises when a page cannot be built."""

    def __init__(self, feed_type: str, cause: Exception | None = None) -> None:
        self.feed_type = feed_type
        self.cause = cause
        super().__init__(f"could not get {feed_type} hacker news posts list")
