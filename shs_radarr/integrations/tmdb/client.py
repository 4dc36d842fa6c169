from __future__ import annotations

import os
import random
import time
from typing import Any, Mapping

import requests

TMDB_API_BASE_URL = "https://api.themoviedb.org/3"
TMDB_API_KEY_URL = "https://www.themoviedb.org/settings/api"
DEFAULT_TIMEOUT_SECONDS = 30.0


class TmdbClientError(RuntimeError):
    def __init__(self, message: str, *, status_code: int | None = None, body_snippet: str | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body_snippet = body_snippet


class TmdbTransportError(TmdbClientError):
    """The request never produced an HTTP response (DNS, connect, timeout)."""


class TmdbUpstreamError(TmdbClientError):
    """TMDb answered with a non-200 status."""

    def __init__(
        self,
        message: str,
        *,
        operation: str,
        status_code: int | None = None,
        body_snippet: str | None = None,
    ) -> None:
        super().__init__(message, status_code=status_code, body_snippet=body_snippet)
        self.operation = operation


class TmdbDecodeError(TmdbClientError):
    """TMDb answered 200 but the payload is not the JSON object we expect."""


def _require_api_key(api_key: str | None) -> str:
    resolved = (api_key or os.getenv("TMDB_API_KEY") or "").strip()
    if not resolved:
        raise RuntimeError(f"TMDB_API_KEY is not set. Get an API key from {TMDB_API_KEY_URL}")
    return resolved


def resolve_api_key(api_key: str | None = None) -> str | None:
    """
    Best-effort API key resolution for callers that want to check the key themselves.
    """

    resolved = (api_key or os.getenv("TMDB_API_KEY") or "").strip()
    return resolved or None


def _request_json(
    session: requests.Session,
    url: str,
    *,
    operation: str,
    params: Mapping[str, Any] | None = None,
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    max_attempts: int = 1,
) -> dict[str, Any]:
    headers = {
        "accept": "application/json",
        "user-agent": "Mozilla/5.0",
    }
    max_attempts = max(1, int(max_attempts))

    last_response: requests.Response | None = None
    for attempt in range(max_attempts):
        try:
            resp = session.get(url, params=params, headers=headers, timeout=timeout_seconds)
        except requests.RequestException as exc:
            if attempt < max_attempts - 1:
                delay = 1.0 * (2**attempt)
                jitter = random.uniform(0.0, delay * 0.25)
                time.sleep(delay + jitter)
                continue
            raise TmdbTransportError(f"TMDb {operation} request failed: {exc}") from exc

        last_response = resp
        if resp.status_code == 200:
            break

        retryable = resp.status_code == 429 or 500 <= resp.status_code < 600
        if retryable and attempt < max_attempts - 1:
            delay = 1.0 * (2**attempt)
            retry_after = (resp.headers.get("Retry-After") or "").strip()
            if retry_after.isdigit():
                delay = max(delay, float(retry_after))
            jitter = random.uniform(0.0, delay * 0.25)
            time.sleep(delay + jitter)
            continue

        raise TmdbUpstreamError(
            f"TMDb API returned status {resp.status_code} for {operation}.",
            operation=operation,
            status_code=resp.status_code,
            body_snippet=(resp.text or "")[:400],
        )

    if last_response is None:
        raise TmdbTransportError(f"TMDb {operation} request failed (no response).")
    resp = last_response

    try:
        payload = resp.json()
    except ValueError as exc:
        raise TmdbDecodeError(
            f"Failed to decode TMDb {operation} response.",
            status_code=resp.status_code,
            body_snippet=(resp.text or "")[:400],
        ) from exc

    if not isinstance(payload, dict):
        raise TmdbDecodeError(f"TMDb returned unexpected JSON shape for {operation} (not an object).")
    return payload


class TmdbClient:
    """
    Minimal TMDb v3 client for movie search and external id lookup.

    The client is safe to share across threads as long as the underlying session is;
    callers running many workers may pass one `requests.Session` per client.
    """

    def __init__(
        self,
        api_key: str | None = None,
        *,
        session: requests.Session | None = None,
        base_url: str = TMDB_API_BASE_URL,
        language: str = "en-US",
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        max_attempts: int = 1,
    ) -> None:
        self.api_key = _require_api_key(api_key)
        self.session = session or requests.Session()
        self.base_url = base_url.rstrip("/")
        self.language = language
        self.timeout_seconds = timeout_seconds
        self.max_attempts = max_attempts

    def _get(self, path: str, *, operation: str, params: Mapping[str, Any] | None = None) -> dict[str, Any]:
        query: dict[str, Any] = {"api_key": self.api_key}
        if params:
            query.update(params)
        return _request_json(
            self.session,
            f"{self.base_url}{path}",
            operation=operation,
            params=query,
            timeout_seconds=self.timeout_seconds,
            max_attempts=self.max_attempts,
        )

    def search_movies(self, title: str, *, page: int = 1, include_adult: bool = False) -> list[dict[str, Any]]:
        """
        Search `/search/movie` for `title` and return the raw result dicts of one page.
        """

        payload = self._get(
            "/search/movie",
            operation=f"search '{title}'",
            params={
                "query": title,
                "language": self.language,
                "page": str(int(page)),
                "include_adult": "true" if include_adult else "false",
            },
        )
        results = payload.get("results")
        if results is None:
            return []
        if not isinstance(results, list):
            raise TmdbDecodeError("TMDb search response has non-list `results`.")
        return [r for r in results if isinstance(r, dict)]

    def fetch_movie_external_ids(self, tmdb_id: int) -> dict[str, Any]:
        return self._get(f"/movie/{int(tmdb_id)}/external_ids", operation="external IDs")

    def fetch_movie_imdb_id(self, tmdb_id: int) -> str:
        """
        Return the IMDb id for a TMDb movie, or "" when TMDb has none on record.
        """

        payload = self.fetch_movie_external_ids(tmdb_id)
        imdb_id = payload.get("imdb_id")
        if isinstance(imdb_id, str):
            return imdb_id.strip()
        return ""
