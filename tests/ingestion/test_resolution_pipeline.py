from __future__ import annotations

from threading import Lock
import time
from typing import Any

from shs_radarr.ingestion.movie_resolver import MovieNotFoundError, MovieResolver
from shs_radarr.ingestion.pipeline import ResolutionPipeline
from shs_radarr.integrations.tmdb.client import TmdbUpstreamError
from shs_radarr.models.movies import ResolvedMovie


class _InstrumentedResolver:
    """Counts titles between resolve() and the post-task pause, i.e. while a slot is held."""

    def __init__(self, *, work_seconds: float = 0.01) -> None:
        self.work_seconds = work_seconds
        self._lock = Lock()
        self.in_flight = 0
        self.max_in_flight = 0
        self.calls: list[str] = []

    def resolve(self, title: str) -> ResolvedMovie:
        with self._lock:
            self.in_flight += 1
            self.max_in_flight = max(self.max_in_flight, self.in_flight)
            self.calls.append(title)
        time.sleep(self.work_seconds)
        return ResolvedMovie(title=title, imdb_id=f"tt{len(title):07d}{title[-1]}", tmdb_id=len(title))

    def release(self, _seconds: float) -> None:
        with self._lock:
            self.in_flight -= 1


def test_resolve_all_never_exceeds_concurrency_bound() -> None:
    resolver = _InstrumentedResolver()
    titles = [f"Movie {chr(ord('A') + i)}" for i in range(12)]

    summary = ResolutionPipeline(resolver, concurrency=5, rate_limit_seconds=0.25, sleep=resolver.release).resolve_all(
        titles
    )

    assert 1 <= resolver.max_in_flight <= 5
    assert resolver.in_flight == 0
    assert sorted(resolver.calls) == sorted(titles)
    assert summary.successful == 12
    assert summary.failed == 0
    assert {m.title for m in summary.movies} == set(titles)


def test_each_task_pauses_before_releasing_its_slot() -> None:
    pauses: list[float] = []
    resolver = _InstrumentedResolver(work_seconds=0)

    def fake_sleep(seconds: float) -> None:
        pauses.append(seconds)
        resolver.release(seconds)

    ResolutionPipeline(resolver, rate_limit_seconds=0.25, sleep=fake_sleep).resolve_all(["Alpha", "Beta", "Gamma"])

    assert pauses == [0.25, 0.25, 0.25]


class _ScriptedResolver:
    def __init__(self, outcomes: dict[str, Any]) -> None:
        self.outcomes = outcomes

    def resolve(self, title: str) -> ResolvedMovie:
        outcome = self.outcomes[title]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


def test_failures_are_counted_and_do_not_abort_the_run() -> None:
    pauses: list[float] = []
    resolver = _ScriptedResolver(
        {
            "Ghost": ResolvedMovie(title="Ghost", imdb_id="tt0099653", tmdb_id=251),
            "Nope": MovieNotFoundError("Nope", "no results found for 'Nope'"),
            "Broken": TmdbUpstreamError("TMDb API returned status 500.", operation="search 'Broken'", status_code=500),
            "No Imdb": ResolvedMovie(title="No Imdb", imdb_id="", tmdb_id=9),
        }
    )

    summary = ResolutionPipeline(resolver, sleep=pauses.append).resolve_all(["Ghost", "Nope", "Broken", "No Imdb"])

    assert summary.successful == 1
    assert summary.failed == 3
    assert summary.attempted == 4
    assert [m.imdb_id for m in summary.movies] == ["tt0099653"]
    assert {f.title for f in summary.failures} == {"Nope", "Broken", "No Imdb"}
    assert len(pauses) == 4


def test_empty_external_id_produces_no_entry() -> None:
    class _Client:
        def search_movies(self, title: str) -> list[dict[str, Any]]:
            return [{"id": 1, "title": title}]

        def fetch_movie_imdb_id(self, tmdb_id: int) -> str:
            return ""

    summary = ResolutionPipeline(MovieResolver(_Client()), rate_limit_seconds=0).resolve_all(["Sister Act"])

    assert summary.movies == []
    assert summary.successful == 0
    assert summary.failed == 1


def test_resolve_all_with_no_titles() -> None:
    summary = ResolutionPipeline(_ScriptedResolver({}), rate_limit_seconds=0).resolve_all([])

    assert summary.movies == []
    assert summary.attempted == 0
