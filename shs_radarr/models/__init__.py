"""
Domain models shared across scripts and the ingestion pipeline.
"""

from shs_radarr.models.movies import ResolvedMovie, TmdbMovie, WikiMovieEntry

__all__ = [
    "ResolvedMovie",
    "TmdbMovie",
    "WikiMovieEntry",
]
