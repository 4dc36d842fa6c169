from __future__ import annotations

from dataclasses import dataclass, field
import json
from pathlib import Path
from typing import Any

import pytest
import requests

from shs_radarr.integrations.tmdb import client as tmdb_client
from shs_radarr.integrations.tmdb.client import (
    TmdbClient,
    TmdbDecodeError,
    TmdbTransportError,
    TmdbUpstreamError,
)


@dataclass
class _FakeResponse:
    status_code: int
    payload: Any = None
    text: str = ""
    headers: dict[str, str] = field(default_factory=dict)

    def json(self) -> Any:
        if self.payload is None:
            raise ValueError("not json")
        return self.payload


class _FakeSession:
    def __init__(self, responses: list[_FakeResponse | Exception]) -> None:
        self._responses = list(responses)
        self.calls: list[tuple[str, dict[str, Any]]] = []

    def get(self, url: str, *, params=None, headers=None, timeout=None) -> _FakeResponse:  # noqa: ANN001
        self.calls.append((url, dict(params or {})))
        item = self._responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


def _search_payload() -> dict[str, Any]:
    repo_root = Path(__file__).resolve().parents[3]
    return json.loads((repo_root / "tests" / "fixtures" / "tmdb" / "search_movie_sample.json").read_text(encoding="utf-8"))


def test_search_movies_sends_exact_query_params() -> None:
    session = _FakeSession([_FakeResponse(200, _search_payload())])
    client = TmdbClient("key-123", session=session)

    results = client.search_movies("Space Jam")

    assert [r["id"] for r in results] == [2300, 379170]
    url, params = session.calls[0]
    assert url == "https://api.themoviedb.org/3/search/movie"
    assert params == {
        "api_key": "key-123",
        "query": "Space Jam",
        "language": "en-US",
        "page": "1",
        "include_adult": "false",
    }


def test_search_movies_without_results_key_returns_empty_list() -> None:
    client = TmdbClient("k", session=_FakeSession([_FakeResponse(200, {"page": 1})]))

    assert client.search_movies("Nothing") == []


def test_fetch_movie_imdb_id_reads_external_ids() -> None:
    session = _FakeSession([_FakeResponse(200, {"id": 2300, "imdb_id": "tt0117705"})])
    client = TmdbClient("k", session=session)

    assert client.fetch_movie_imdb_id(2300) == "tt0117705"
    assert session.calls[0][0] == "https://api.themoviedb.org/3/movie/2300/external_ids"


def test_fetch_movie_imdb_id_null_becomes_empty_string() -> None:
    client = TmdbClient("k", session=_FakeSession([_FakeResponse(200, {"id": 1, "imdb_id": None})]))

    assert client.fetch_movie_imdb_id(1) == ""


def test_non_200_raises_upstream_error_with_status() -> None:
    client = TmdbClient("k", session=_FakeSession([_FakeResponse(401, {"status_code": 7}, text="Invalid API key")]))

    with pytest.raises(TmdbUpstreamError) as excinfo:
        client.search_movies("Ghost")

    assert excinfo.value.status_code == 401
    assert excinfo.value.operation == "search 'Ghost'"
    assert excinfo.value.body_snippet == "Invalid API key"


def test_connection_failure_raises_transport_error() -> None:
    client = TmdbClient("k", session=_FakeSession([requests.ConnectionError("boom")]))

    with pytest.raises(TmdbTransportError):
        client.fetch_movie_external_ids(5)


def test_malformed_payload_raises_decode_error() -> None:
    client = TmdbClient("k", session=_FakeSession([_FakeResponse(200, None, text="<html>")]))

    with pytest.raises(TmdbDecodeError):
        client.search_movies("Ghost")


def test_non_object_payload_raises_decode_error() -> None:
    client = TmdbClient("k", session=_FakeSession([_FakeResponse(200, [1, 2])]))

    with pytest.raises(TmdbDecodeError):
        client.search_movies("Ghost")


def test_single_attempt_by_default() -> None:
    session = _FakeSession([_FakeResponse(503, text="busy"), _FakeResponse(200, {"results": []})])
    client = TmdbClient("k", session=session)

    with pytest.raises(TmdbUpstreamError):
        client.search_movies("Ghost")
    assert len(session.calls) == 1


def test_retries_when_more_attempts_are_configured(monkeypatch: pytest.MonkeyPatch) -> None:
    sleeps: list[float] = []
    monkeypatch.setattr(tmdb_client.time, "sleep", sleeps.append)
    session = _FakeSession([_FakeResponse(503, text="busy", headers={"Retry-After": "2"}), _FakeResponse(200, {"results": []})])
    client = TmdbClient("k", session=session, max_attempts=2)

    assert client.search_movies("Ghost") == []
    assert len(session.calls) == 2
    assert len(sleeps) == 1 and sleeps[0] >= 2.0


def test_missing_api_key_is_rejected(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("TMDB_API_KEY", raising=False)

    with pytest.raises(RuntimeError, match="TMDB_API_KEY"):
        TmdbClient(session=_FakeSession([]))
    assert tmdb_client.resolve_api_key() is None


def test_api_key_falls_back_to_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TMDB_API_KEY", "  env-key  ")

    assert TmdbClient(session=_FakeSession([])).api_key == "env-key"
