from __future__ import annotations

from datetime import datetime
import json
import logging
from pathlib import Path
from typing import Any, Iterable, Mapping
from xml.etree import ElementTree as ET

from shs_radarr.models.movies import ResolvedMovie

logger = logging.getLogger(__name__)

LIST_BASENAME = "scott_hasnt_seen"
IMDB_TITLE_URL = "https://www.imdb.com/title/{imdb_id}/"
RSS_TITLE = "Scott Hasn't Seen"
RSS_LINK = "https://comedybangbang.fandom.com/wiki/Scott_Hasn%27t_Seen"
RSS_DESCRIPTION = "Movies watched on the Scott Hasn't Seen podcast."


def build_radarr_list(movies: Iterable[ResolvedMovie]) -> list[ResolvedMovie]:
    """
    Sort resolved movies by title (plain code point order) and drop repeated IMDb ids.

    Ties on title are broken by IMDb id so the result does not depend on the order in
    which concurrent workers appended entries.
    """

    ordered = sorted(movies, key=lambda m: (m.title, m.imdb_id, m.query_title))
    seen: set[str] = set()
    result: list[ResolvedMovie] = []
    for movie in ordered:
        if movie.imdb_id in seen:
            continue
        seen.add(movie.imdb_id)
        result.append(movie)
    return result


def _radarr_item(movie: ResolvedMovie) -> dict[str, Any]:
    return {
        "title": movie.title,
        "imdb_id": movie.imdb_id,
        "poster_url": movie.poster_url,
    }


def render_radarr_json(movies: Iterable[ResolvedMovie]) -> str:
    """StevenLu Custom list format: a compact JSON array plus a trailing newline."""

    items = [_radarr_item(m) for m in movies]
    return json.dumps(items, ensure_ascii=False, separators=(",", ":")) + "\n"


def parse_radarr_json(text: str) -> list[dict[str, str]]:
    payload = json.loads(text)
    if not isinstance(payload, list):
        raise ValueError("Radarr list JSON must be an array.")
    items: list[dict[str, str]] = []
    for raw in payload:
        if not isinstance(raw, dict):
            raise ValueError(f"Radarr list item is not an object: {raw!r}")
        items.append(
            {
                "title": str(raw.get("title") or ""),
                "imdb_id": str(raw.get("imdb_id") or ""),
                "poster_url": str(raw.get("poster_url") or ""),
            }
        )
    return items


def render_radarr_rss(
    movies: Iterable[ResolvedMovie],
    *,
    air_dates: Mapping[str, str] | None = None,
) -> str:
    """
    Render an RSS 2.0 feed for Radarr's "RSS List".

    Radarr reads the IMDb id from each item's link. `air_dates` maps wiki titles to the
    episode air date shown on the wiki.
    """

    air_dates = air_dates or {}
    rss = ET.Element("rss", {"version": "2.0"})
    channel = ET.SubElement(rss, "channel")
    ET.SubElement(channel, "title").text = RSS_TITLE
    ET.SubElement(channel, "link").text = RSS_LINK
    ET.SubElement(channel, "description").text = RSS_DESCRIPTION

    for movie in movies:
        item = ET.SubElement(channel, "item")
        ET.SubElement(item, "title").text = movie.title
        ET.SubElement(item, "link").text = IMDB_TITLE_URL.format(imdb_id=movie.imdb_id)
        ET.SubElement(item, "guid", {"isPermaLink": "false"}).text = movie.imdb_id
        air_date = air_dates.get(movie.query_title)
        if air_date:
            ET.SubElement(item, "description").text = f"Episode aired {air_date}"
        for genre in movie.genres:
            ET.SubElement(item, "category").text = genre

    ET.indent(rss)
    body = ET.tostring(rss, encoding="unicode")
    return f'<?xml version="1.0" encoding="UTF-8"?>\n{body}\n'


def _write_text(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def write_radarr_list(
    movies: list[ResolvedMovie],
    output_dir: str | Path,
    *,
    timestamp: datetime | None = None,
    include_rss: bool = True,
    air_dates: Mapping[str, str] | None = None,
) -> list[Path]:
    """
    Write `scott_hasnt_seen.json` (and `.xml`) into `output_dir`.

    When `timestamp` is given, a `scott_hasnt_seen_<YYYYmmdd_HHMMSS>.json` snapshot is
    written too. Returns the written paths.
    """

    out = Path(output_dir)
    json_text = render_radarr_json(movies)
    written: list[Path] = []

    if timestamp is not None:
        stamp = timestamp.strftime("%Y%m%d_%H%M%S")
        written.append(_write_text(out / f"{LIST_BASENAME}_{stamp}.json", json_text))

    written.append(_write_text(out / f"{LIST_BASENAME}.json", json_text))

    if include_rss:
        written.append(_write_text(out / f"{LIST_BASENAME}.xml", render_radarr_rss(movies, air_dates=air_dates)))

    for path in written:
        logger.debug("Saved %d movies to %s", len(movies), path)
    return written
