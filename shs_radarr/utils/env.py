from __future__ import annotations

from pathlib import Path
from typing import Iterable

from dotenv import load_dotenv

ENV_FILENAME = ".env"


def env_file_candidates() -> list[Path]:
    """Working directory first (where the scheduled job runs), then the repo checkout."""

    repo_root = Path(__file__).resolve().parents[2]
    return [Path.cwd() / ENV_FILENAME, repo_root / ENV_FILENAME]


def load_env(*, override: bool = False, search_paths: Iterable[Path] | None = None) -> Path | None:
    """
    Load TMDB_API_KEY and friends from the first `.env` file found.

    Variables already present in the process environment win unless `override` is set.
    Returns the file that was loaded, or None when there is none (CI passes secrets as
    plain environment variables).
    """

    for path in search_paths if search_paths is not None else env_file_candidates():
        if Path(path).is_file():
            load_dotenv(dotenv_path=path, override=override)
            return Path(path)
    return None
