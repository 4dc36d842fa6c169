from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping


def _as_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        raw = value.strip()
        if raw.isdigit():
            return int(raw)
    return None


def _as_str(value: Any) -> str | None:
    if isinstance(value, str):
        s = value.strip()
        return s or None
    return None


@dataclass(frozen=True)
class WikiMovieEntry:
    """A movie title scraped from the wiki, with the episode air date when the row has one."""

    title: str
    air_date: str = ""


@dataclass(frozen=True)
class TmdbMovie:
    """
    One item of a TMDb `/search/movie` response.

    Only the fields the list generator uses are kept.
    """

    id: int
    title: str
    poster_path: str | None = None
    release_date: str | None = None
    genre_ids: tuple[int, ...] = ()

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> TmdbMovie | None:
        tmdb_id = _as_int(payload.get("id"))
        if tmdb_id is None:
            return None
        raw_genres = payload.get("genre_ids")
        genre_ids: tuple[int, ...] = ()
        if isinstance(raw_genres, list):
            genre_ids = tuple(g for g in (_as_int(v) for v in raw_genres) if g is not None)
        return cls(
            id=tmdb_id,
            title=_as_str(payload.get("title")) or "",
            poster_path=_as_str(payload.get("poster_path")),
            release_date=_as_str(payload.get("release_date")),
            genre_ids=genre_ids,
        )


@dataclass(frozen=True)
class ResolvedMovie:
    """
    A wiki title resolved against TMDb.

    `imdb_id` is what Radarr keys on; an entry without it never reaches the output list.
    `poster_url` is "" when TMDb has no poster.
    """

    title: str
    imdb_id: str
    tmdb_id: int
    poster_url: str = ""
    query_title: str = ""
    release_date: str | None = None
    genres: tuple[str, ...] = field(default_factory=tuple)
