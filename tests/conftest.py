from __future__ import annotations

from typing import Dict, Iterable, List, Optional

from vidcrawler.errors import FetchError

SEED_ID = "SEEDSEEDSEE"
SEED_URL = f"https://www.youtube.com/watch?v={SEED_ID}"


def watch_url(video_id: str) -> str:
    return f"https://www.youtube.com/watch?v={video_id}"


def make_page(
    title: str = "A Video",
    description: str = "Some description",
    tags: Iterable[str] = (),
    view_count: Optional[int] = 1000,
    hd: bool = True,
    links: Iterable[str] = (),
) -> str:
    """Build page text in the markup dialect the default patterns expect."""
    lines = [
        "<html><head>",
        f'<meta property="og:title" content="{title}">',
        f'<meta property="og:description" content="{description}">',
    ]
    lines += [f'<meta property="og:video:tag" content="{tag}">' for tag in tags]
    if view_count is not None:
        lines.append(f'<meta itemprop="interactionCount" content="{view_count}">')
    if hd:
        lines.append('<meta property="og:video:height" content="720">')
    lines.append("</head><body>")
    lines += [f'<a href="/watch?v={video_id}">related</a>' for video_id in links]
    lines.append("</body></html>")
    return "\n".join(lines)


class FakeFetcher:
    """Serve canned pages; unknown URLs fail with HTTP 404."""

    def __init__(self, pages: Dict[str, str]) -> None:
        self.pages = pages
        self.calls: List[str] = []

    def fetch(self, url: str) -> str:
        self.calls.append(url)
        if url not in self.pages:
            raise FetchError(url, "HTTP 404", status_code=404)
        return self.pages[url]
