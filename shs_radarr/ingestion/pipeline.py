from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
import logging
from threading import BoundedSemaphore, Lock
import time
from typing import Callable, Protocol, Sequence

import requests

from shs_radarr.ingestion.movie_resolver import MovieNotFoundError
from shs_radarr.integrations.tmdb.client import TmdbClientError
from shs_radarr.models.movies import ResolvedMovie

logger = logging.getLogger(__name__)

DEFAULT_CONCURRENCY = 5
DEFAULT_RATE_LIMIT_SECONDS = 0.25


class TitleResolver(Protocol):
    def resolve(self, title: str) -> ResolvedMovie: ...


@dataclass(frozen=True)
class ResolveFailure:
    title: str
    message: str


@dataclass(frozen=True)
class ResolutionSummary:
    movies: list[ResolvedMovie] = field(default_factory=list)
    successful: int = 0
    failed: int = 0
    failures: list[ResolveFailure] = field(default_factory=list)

    @property
    def attempted(self) -> int:
        return self.successful + self.failed


class ResolutionPipeline:
    """
    Resolve many titles concurrently.

    At most `concurrency` titles hold an admission slot at once. Each task keeps its slot
    for `rate_limit_seconds` after finishing, which caps the sustained request rate to
    TMDb independently of the concurrency width. Per-title failures are counted and
    logged; they never abort the run.
    """

    def __init__(
        self,
        resolver: TitleResolver,
        *,
        concurrency: int = DEFAULT_CONCURRENCY,
        rate_limit_seconds: float = DEFAULT_RATE_LIMIT_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.resolver = resolver
        self.concurrency = max(1, int(concurrency or 1))
        self.rate_limit_seconds = max(0.0, float(rate_limit_seconds))
        self._sleep = sleep

    def resolve_all(self, titles: Sequence[str]) -> ResolutionSummary:
        titles = list(titles)
        total = len(titles)

        gate = BoundedSemaphore(self.concurrency)
        lock = Lock()
        movies: list[ResolvedMovie] = []
        failures: list[ResolveFailure] = []
        counts = {"successful": 0, "failed": 0}

        def record_failure(title: str, message: str) -> None:
            with lock:
                counts["failed"] += 1
                failures.append(ResolveFailure(title=title, message=message))

        def run_one(index: int, title: str) -> None:
            with gate:
                try:
                    logger.info("Processing %d/%d: %s", index + 1, total, title)
                    try:
                        movie = self.resolver.resolve(title)
                    except (MovieNotFoundError, TmdbClientError, requests.RequestException) as exc:
                        record_failure(title, str(exc))
                        logger.warning("  ✗ Not found: %s (%s)", title, exc)
                        return

                    if not movie.imdb_id:
                        record_failure(title, "missing IMDb id")
                        logger.warning("  ✗ Missing IMDB ID: %s", title)
                        return

                    with lock:
                        movies.append(movie)
                        counts["successful"] += 1

                    if movie.poster_url:
                        logger.info("  ✓ Found: %s (IMDB: %s)", movie.title, movie.imdb_id)
                    else:
                        logger.info("  ✓ Found: %s (IMDB: %s) - No poster", movie.title, movie.imdb_id)
                finally:
                    if self.rate_limit_seconds:
                        self._sleep(self.rate_limit_seconds)

        with ThreadPoolExecutor(max_workers=self.concurrency) as pool:
            futures = [pool.submit(run_one, index, title) for index, title in enumerate(titles)]
            for fut in futures:
                fut.result()

        return ResolutionSummary(
            movies=movies,
            successful=counts["successful"],
            failed=counts["failed"],
            failures=failures,
        )
