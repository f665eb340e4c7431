"""
HTTP page fetching.
"""
from __future__ import annotations

from typing import Optional, Protocol

import requests

from vidcrawler.errors import FetchError

DEFAULT_TIMEOUT_S = 15.0
DEFAULT_USER_AGENT = "VidCrawler/1.0"


class PageFetcher(Protocol):
    def fetch(self, url: str) -> str:
        """Return the page text, or raise FetchError."""
        ...


class HttpPageFetcher:
    """Fetch pages over HTTP with a shared ``requests.Session``."""

    def __init__(
        self,
        timeout_s: float = DEFAULT_TIMEOUT_S,
        user_agent: str = DEFAULT_USER_AGENT,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.timeout_s = timeout_s
        self.session = session or requests.Session()
        self.session.headers["User-Agent"] = user_agent

    def fetch(self, url: str) -> str:
        """Return the text of ``url``, raising FetchError on any failure."""
        try:
            resp = self.session.get(url, timeout=self.timeout_s, allow_redirects=True)
        except requests.RequestException as e:
            raise FetchError(url, str(e)) from e

        if resp.status_code >= 400:
            raise FetchError(url, f"HTTP {resp.status_code}", status_code=resp.status_code)
        return resp.text

    def close(self) -> None:
        """Close the underlying session."""
        self.session.close()
