"""
Bounded-concurrency story aggregation.

The orchestrating thread walks the identifier list in order and admits one
fetch task at a time through a counting gate of ``max_concurrency`` slots,
pausing ``admission_delay`` seconds before each admission so the upstream API
is not hit in bursts. Every task fetches one item, filters it and, if it is
eligible, claims a place in the result.

Result accounting and the admission check share one lock: a task only appends
while fewer than ``target_count`` stories are accepted, and the orchestrator
stops admitting as soon as that count is reached. A run therefore never
returns more than ``target_count`` stories, and returns fewer only when the
identifier list ran out.
"""
from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from typing import Callable, Iterable, Sequence

from codehn.core.errors import ItemFetchDropped
from codehn.models.schemas import Story
from codehn.services.eligibility import DEFAULT_ALLOWED_HOSTS, evaluate

logger = logging.getLogger(__name__)

FetchFn = Callable[[int], Story]


@dataclass
class AggregationStats:
    considered: int = 0
    admitted: int = 0
    accepted: int = 0
    ineligible: int = 0
    dropped: int = 0
    overflow: int = 0  # eligible, but the page was already full
    peak_in_flight: int = 0
    elapsed: float = 0.0


@dataclass
class _RunState:
    target_count: int
    lock: threading.Lock = field(default_factory=threading.Lock)
    results: list[tuple[int, Story]] = field(default_factory=list)
    in_flight: int = 0
    stats: AggregationStats = field(default_factory=AggregationStats)

    def full(self) -> bool:
        with self.lock:
            return len(self.results) >= self.target_count

    def admit(self) -> None:
        with self.lock:
            self.stats.admitted += 1

    def enter(self) -> None:
        with self.lock:
            self.in_flight += 1
            if self.in_flight > self.stats.peak_in_flight:
                self.stats.peak_in_flight = self.in_flight

    def leave(self) -> None:
        with self.lock:
            self.in_flight -= 1

    def offer(self, position: int, story: Story) -> bool:
        with self.lock:
            if len(self.results) >= self.target_count:
                self.stats.overflow += 1
                return False
            self.results.append((position, story))
            self.stats.accepted += 1
            return True

    def count(self, name: str) -> None:
        with self.lock:
            setattr(self.stats, name, getattr(self.stats, name) + 1)


class BoundedAggregator:
    def __init__(
        self,
        fetch: FetchFn,
        max_concurrency: int = 10,
        target_count: int = 30,
        admission_delay: float = 0.01,
        allowed_hosts: Iterable[str] = DEFAULT_ALLOWED_HOSTS,
        preserve_rank_order: bool = False,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be >= 1")
        if target_count < 1:
            raise ValueError("target_count must be >= 1")

        self.fetch = fetch
        self.max_concurrency = max_concurrency
        self.target_count = target_count
        self.admission_delay = admission_delay
        self.allowed_hosts = tuple(allowed_hosts)
        self.preserve_rank_order = preserve_rank_order
        self._sleep = sleep
        self.last_stats: AggregationStats | None = None

    def aggregate(self, story_ids: Sequence[int]) -> list[Story]:
        """
        Fetch and filter stories until ``target_count`` are accepted or the
        ids run out. Output is in completion order unless
        ``preserve_rank_order`` is set.
        """
        start = time.monotonic()
        state = _RunState(target_count=self.target_count)
        gate = threading.BoundedSemaphore(self.max_concurrency)
        futures = []

        with ThreadPoolExecutor(
            max_workers=self.max_concurrency,
            thread_name_prefix="hn-fetch",
        ) as pool:
            for position, story_id in enumerate(story_ids):
                if state.full():
                    break

                if self.admission_delay > 0:
                    self._sleep(self.admission_delay)

                gate.acquire()
                # the page may have filled up while we waited for a slot
                if state.full():
                    gate.release()
                    break

                state.admit()
                futures.append(
                    pool.submit(self._fetch_one, state, gate, position, story_id)
                )

            wait(futures)

        results = state.results
        if self.preserve_rank_order:
            results = sorted(results, key=lambda pair: pair[0])

        state.stats.considered = len(story_ids)
        state.stats.elapsed = time.monotonic() - start
        self.last_stats = state.stats

        logger.info(
            "Aggregated %d/%d stories (admitted=%d ineligible=%d dropped=%d peak=%d) in %.2fs",
            state.stats.accepted,
            self.target_count,
            state.stats.admitted,
            state.stats.ineligible,
            state.stats.dropped,
            state.stats.peak_in_flight,
            state.stats.elapsed,
        )
        return [story for _, story in results]

    def _fetch_one(
        self,
        state: _RunState,
        gate: threading.BoundedSemaphore,
        position: int,
        story_id: int,
    ) -> None:
        state.enter()
        try:
            story = self.fetch(story_id)
            enriched = evaluate(story, self.allowed_hosts)
            if enriched is None:
                state.count("ineligible")
                return
            state.offer(position, enriched)
        except ItemFetchDropped as e:
            logger.debug("Dropped story %s: %s", story_id, e)
            state.count("dropped")
        except Exception as e:
            # one bad item must not sink the page
            logger.warning("Dropped story %s after unexpected error: %r", story_id, e)
            state.count("dropped")
        finally:
            state.leave()
            gate.release()
