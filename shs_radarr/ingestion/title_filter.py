from __future__ import annotations

import re
from typing import Iterator

from bs4 import BeautifulSoup
from bs4.element import Tag

from shs_radarr.models.movies import WikiMovieEntry

# Italic text on the wiki that is not a movie: the show itself, other shows, award
# segments, and a few navigation labels. Matched as lowercase substrings.
SKIP_KEYWORDS: tuple[str, ...] = (
    "cobra kai",
    "season",
    "episodes",
    "pilot",
    "watchalong",
    "awards",
    "the scott hasn't seenies",
    "march of the penguins",
    "september 5",
    "twin peaks",
    "martin",
    "sprague hasn't seen",
    "did",
    "next",
    "the scott hasn't seenies awards",
    "scott hasn't seen",
)

_EPISODE_RE = re.compile(r"episode|season|part \d+", re.IGNORECASE)

MIN_TITLE_LENGTH = 3
MIN_SINGLE_WORD_LENGTH = 4


def is_movie_title(title: str) -> bool:
    """
    Apply the content rules to one already-trimmed candidate.

    Duplicate detection is not part of this check; see `extract_movie_titles`.
    """

    if len(title) < MIN_TITLE_LENGTH:
        return False

    lowered = title.lower()
    if any(keyword in lowered for keyword in SKIP_KEYWORDS):
        return False

    if _EPISODE_RE.search(title):
        return False

    if len(title.split()) <= 1 and len(title) < MIN_SINGLE_WORD_LENGTH:
        return False

    return True


def _air_date_for(node: Tag) -> str:
    cell = node.find_parent(["td", "th"])
    if cell is None:
        return ""
    next_cell = cell.find_next_sibling(["td", "th"])
    if next_cell is None:
        return ""
    return next_cell.get_text(" ", strip=True)


def _iter_candidates(html: str) -> Iterator[tuple[str, Tag]]:
    soup = BeautifulSoup(html or "", "html.parser")
    seen: set[str] = set()
    for node in soup.find_all("i"):
        title = node.get_text().strip()
        # First occurrence wins, even when that occurrence is rejected below.
        if title in seen:
            continue
        seen.add(title)
        if not is_movie_title(title):
            continue
        yield title, node


def extract_movie_titles(html: str) -> list[str]:
    """
    Extract movie titles from the italicized text of a wiki page.

    Titles are returned in order of first appearance. Deduplication is exact-match and
    scoped to this call.
    """

    return [title for title, _ in _iter_candidates(html)]


def extract_movie_entries(html: str) -> list[WikiMovieEntry]:
    """
    Like `extract_movie_titles`, but also capture the air date from the table cell that
    follows the title cell (empty when the title is not in a table row).
    """

    return [WikiMovieEntry(title=title, air_date=_air_date_for(node)) for title, node in _iter_candidates(html)]
