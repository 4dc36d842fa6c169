#!/usr/bin/env python3
from __future__ import annotations

import argparse
from datetime import datetime
import logging
from pathlib import Path
import sys

from shs_radarr.ingestion.movie_resolver import MovieResolver
from shs_radarr.ingestion.pipeline import DEFAULT_CONCURRENCY, DEFAULT_RATE_LIMIT_SECONDS, ResolutionPipeline
from shs_radarr.ingestion.radarr_list import build_radarr_list, write_radarr_list
from shs_radarr.ingestion.title_filter import extract_movie_entries
from shs_radarr.integrations.fandom import WIKI_URL, FandomFetchError, fetch_wiki_page
from shs_radarr.integrations.tmdb.client import TMDB_API_KEY_URL, TmdbClient, resolve_api_key
from shs_radarr.utils.env import load_env


def _parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="generate_radarr_list",
        description="Build a Radarr list from the movies on the Scott Hasn't Seen wiki page.",
    )
    parser.add_argument("--output-dir", type=Path, default=Path.cwd(), help="Directory for the list files.")
    parser.add_argument("--wiki-url", default=WIKI_URL, help="Wiki page to scrape.")
    parser.add_argument(
        "--concurrency",
        type=int,
        default=DEFAULT_CONCURRENCY,
        help="Maximum number of titles resolved at once.",
    )
    parser.add_argument(
        "--delay-ms",
        type=int,
        default=int(DEFAULT_RATE_LIMIT_SECONDS * 1000),
        help="Pause after each title before its slot is released.",
    )
    parser.add_argument(
        "--timestamped",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="Also write a timestamped JSON snapshot.",
    )
    parser.add_argument(
        "--rss",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="Also write the RSS list (scott_hasnt_seen.xml).",
    )
    parser.add_argument("--dry-run", action="store_true", help="Resolve and print the summary without writing files.")
    parser.add_argument("--verbose", action="store_true", help="Enable verbose logging.")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(sys.argv[1:] if argv is None else argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    load_env()
    api_key = resolve_api_key()
    if not api_key:
        print(
            f"ERROR: TMDB_API_KEY environment variable not set. Get your API key from {TMDB_API_KEY_URL}",
            file=sys.stderr,
        )
        return 1

    client = TmdbClient(api_key)

    print("Scraping Scott Hasn't Seen wiki page...")
    try:
        html = fetch_wiki_page(args.wiki_url)
    except FandomFetchError as exc:
        print(f"ERROR: failed to scrape wiki page {exc.url}: {exc}", file=sys.stderr)
        return 1

    print("Extracting movie titles...")
    entries = extract_movie_entries(html)
    print(f"Found {len(entries)} unique movies")

    pipeline = ResolutionPipeline(
        MovieResolver(client),
        concurrency=args.concurrency,
        rate_limit_seconds=max(0, args.delay_ms) / 1000.0,
    )
    summary = pipeline.resolve_all([entry.title for entry in entries])
    movies = build_radarr_list(summary.movies)

    print(
        "generate_radarr_list: "
        f"successful={summary.successful} failed={summary.failed} total={len(movies)}"
    )
    if args.verbose:
        for failure in summary.failures:
            print(f"UNRESOLVED title={failure.title!r} reason={failure.message}")

    if not movies:
        print("No movies found to save")
        return 0
    if args.dry_run:
        return 0

    air_dates = {entry.title: entry.air_date for entry in entries if entry.air_date}
    try:
        paths = write_radarr_list(
            movies,
            args.output_dir,
            timestamp=datetime.now() if args.timestamped else None,
            include_rss=args.rss,
            air_dates=air_dates,
        )
    except OSError as exc:
        print(f"ERROR: failed to write Radarr list: {exc}", file=sys.stderr)
        return 1

    for path in paths:
        print(f"Saved {len(movies)} movies to {path}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
