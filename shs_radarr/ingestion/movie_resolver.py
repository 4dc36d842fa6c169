from __future__ import annotations

import logging
from typing import Any, Iterable, Protocol

from shs_radarr.integrations.tmdb.client import TmdbClientError
from shs_radarr.models.movies import ResolvedMovie, TmdbMovie

logger = logging.getLogger(__name__)

POSTER_URL_TEMPLATE = "https://www.themoviedb.org/t/p/w300_and_h450_bestv2{poster_path}"

# TMDb movie genre ids.
GENRE_NAMES: dict[int, str] = {
    28: "action",
    12: "adventure",
    16: "animation",
    35: "comedy",
    80: "crime",
    99: "documentary",
    18: "drama",
    10751: "family",
    14: "fantasy",
    36: "history",
    27: "horror",
    10402: "music",
    9648: "mystery",
    10749: "romance",
    878: "science_fiction",
    10770: "tv_movie",
    53: "thriller",
    10752: "war",
    37: "western",
}


class MovieSearchClient(Protocol):
    def search_movies(self, title: str) -> list[dict[str, Any]]: ...

    def fetch_movie_imdb_id(self, tmdb_id: int) -> str: ...


class MovieNotFoundError(LookupError):
    def __init__(self, title: str, reason: str) -> None:
        super().__init__(reason)
        self.title = title
        self.reason = reason


def build_poster_url(poster_path: str | None) -> str:
    if not poster_path:
        return ""
    return POSTER_URL_TEMPLATE.format(poster_path=poster_path)


def genre_names(genre_ids: Iterable[int]) -> tuple[str, ...]:
    return tuple(GENRE_NAMES[g] for g in genre_ids if g in GENRE_NAMES)


class MovieResolver:
    """
    Resolve wiki titles to TMDb movies with IMDb ids.

    Titles like "Face/Off" are searched as-is first; compound entries such as
    "Dune / Dune: Part Two" fall back to their first "/" segment.
    """

    def __init__(self, client: MovieSearchClient) -> None:
        self.client = client

    def resolve(self, title: str) -> ResolvedMovie:
        if "/" not in title:
            return self.search_exact(title, query_title=title)

        try:
            return self.search_exact(title, query_title=title)
        except (MovieNotFoundError, TmdbClientError) as exc:
            logger.debug("Full-title search failed for %r: %s", title, exc)

        first_part = title.split("/", 1)[0].strip()
        if first_part:
            try:
                return self.search_exact(first_part, query_title=title)
            except (MovieNotFoundError, TmdbClientError) as exc:
                logger.debug("First-part search failed for %r: %s", first_part, exc)

        raise MovieNotFoundError(title, f"no results found for '{title}' (tried full title and first part)")

    def search_exact(self, title: str, *, query_title: str | None = None) -> ResolvedMovie:
        """
        Take the first `/search/movie` hit for `title` and look up its IMDb id.

        Errors from the external-id lookup propagate: an entry without it is unusable.
        """

        results = self.client.search_movies(title)
        movie = TmdbMovie.from_payload(results[0]) if results else None
        if movie is None:
            raise MovieNotFoundError(title, f"no results found for '{title}'")

        imdb_id = self.client.fetch_movie_imdb_id(movie.id)

        return ResolvedMovie(
            title=movie.title,
            imdb_id=imdb_id,
            tmdb_id=movie.id,
            poster_url=build_poster_url(movie.poster_path),
            query_title=query_title or title,
            release_date=movie.release_date,
            genres=genre_names(movie.genre_ids),
        )
