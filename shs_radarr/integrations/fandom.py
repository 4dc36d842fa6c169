from __future__ import annotations

from dataclasses import dataclass
import re
import time
from typing import Mapping

import requests

WIKI_URL = "https://comedybangbang.fandom.com/wiki/Scott_Hasn%27t_Seen"

_DEFAULT_HEADERS = {
    "accept": "text/html,application/xhtml+xml",
    "accept-language": "en-US,en;q=0.9",
    "user-agent": "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36",
}


class FandomFetchError(RuntimeError):
    def __init__(self, message: str, *, url: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.url = url
        self.status_code = status_code


@dataclass(frozen=True)
class FandomPageFetchResult:
    url: str
    status_code: int | None
    html: str | None
    error: str | None


def _merge_headers(headers: Mapping[str, str] | None) -> dict[str, str]:
    return {**_DEFAULT_HEADERS, **(headers or {})}


def _parse_charset(content_type: str | None) -> str | None:
    if not content_type:
        return None
    match = re.search(r"charset=([^\s;]+)", content_type, re.IGNORECASE)
    if not match:
        return None
    return match.group(1).strip("\"'")


def _decode_bytes(data: bytes, content_type: str | None) -> str:
    charset = _parse_charset(content_type) or "utf-8"
    try:
        return data.decode(charset)
    except (LookupError, UnicodeDecodeError):
        return data.decode("utf-8", errors="replace")


def fetch_html(
    url: str,
    *,
    timeout: float = 30.0,
    headers: Mapping[str, str] | None = None,
    session: requests.Session | None = None,
) -> tuple[int | None, str | None, str | None]:
    getter = session or requests
    try:
        resp = getter.get(url, headers=_merge_headers(headers), timeout=timeout)
    except requests.RequestException as exc:
        return None, None, str(exc)
    data = resp.content or b""
    text = _decode_bytes(data, resp.headers.get("content-type"))
    return resp.status_code, text, None


def fetch_fandom_page(
    url: str,
    *,
    extra_headers: Mapping[str, str] | None = None,
    session: requests.Session | None = None,
    timeout_seconds: float = 30.0,
    max_retries: int = 2,
    backoff_seconds: float = 1.0,
) -> FandomPageFetchResult:
    last_error: str | None = None
    for attempt in range(max_retries + 1):
        status, html, error = fetch_html(url, timeout=timeout_seconds, headers=extra_headers, session=session)
        if status in {429, 503} and attempt < max_retries:
            time.sleep(backoff_seconds * (2**attempt))
            continue
        if status is None and error and attempt < max_retries:
            last_error = error
            time.sleep(backoff_seconds * (2**attempt))
            continue
        if error:
            last_error = error
        return FandomPageFetchResult(url=url, status_code=status, html=html, error=error)

    return FandomPageFetchResult(url=url, status_code=None, html=None, error=last_error)


def require_wiki_html(result: FandomPageFetchResult) -> str:
    """
    Return the page HTML or raise `FandomFetchError`; the list cannot be built without it.
    """

    if result.error and result.status_code is None:
        raise FandomFetchError(f"failed to fetch wiki page: {result.error}", url=result.url)
    if result.status_code != 200:
        raise FandomFetchError(
            f"wiki page returned status: {result.status_code}",
            url=result.url,
            status_code=result.status_code,
        )
    if not (result.html or "").strip():
        raise FandomFetchError("wiki page is empty", url=result.url, status_code=result.status_code)
    return result.html


def fetch_wiki_page(
    url: str = WIKI_URL,
    *,
    session: requests.Session | None = None,
    timeout_seconds: float = 30.0,
) -> str:
    return require_wiki_html(fetch_fandom_page(url, session=session, timeout_seconds=timeout_seconds))
