"""
Albumizr album scraper.

Fetches a public Albumizr album page and pulls the image URLs (and
captions) out of its thumbnail markup. Used to migrate existing albums
into the gallery widget; it never touches the object store.

The page is plain HTML, so a single regular expression over the thumbnail
containers is enough:

    <div class="th" data-url="..." data-caption="...">
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Any

import httpx

logger = logging.getLogger(__name__)


THUMBNAIL_PATTERN = re.compile(
    r'<div\s+class="th"\s+data-url="([^"]+)"(?:\s+data-caption="([^"]*)")?',
    re.IGNORECASE,
)

BROWSER_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    ),
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
    "Accept-Language": "zh-TW,zh;q=0.9,en-US;q=0.8,en;q=0.7",
}


class AlbumScrapeError(Exception):
    """Raised when an album page cannot be fetched."""
    pass


@dataclass(frozen=True)
class AlbumImage:
    url: str
    caption: str = ""

    def to_dict(self) -> dict[str, str]:
        return {"url": self.url, "caption": self.caption}


@dataclass
class AlbumScrapeResult:
    album_key: str
    images: list[AlbumImage] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.images)

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": True,
            "images": [image.to_dict() for image in self.images],
            "albumKey": self.album_key,
            "count": self.count,
        }


def extract_album_images(html: str) -> list[AlbumImage]:
    """Extract every thumbnail image, in page order."""
    images = []
    for match in THUMBNAIL_PATTERN.finditer(html):
        url = match.group(1)
        if url:
            images.append(AlbumImage(url=url, caption=match.group(2) or ""))
    return images


class AlbumizrScraper:
    """Fetch-and-extract client for Albumizr album pages."""

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        base_url: str = "https://albumizr.com",
    ) -> None:
        """
        Initialize with an HTTP client.

        Args:
            http_client: httpx AsyncClient owned by the caller
            base_url: Albumizr site root, album keys are appended to it
        """
        self._client = http_client
        self._base_url = base_url.rstrip("/")

    def album_url(self, album_key: str) -> str:
        return f"{self._base_url}/{album_key}"

    async def fetch_album(self, album_key: str) -> AlbumScrapeResult:
        """
        Fetch an album page and extract its images.

        Raises:
            AlbumScrapeError: On a non-2xx response from Albumizr
            httpx.HTTPError: On network failures
        """
        url = self.album_url(album_key)
        logger.info("Fetching Albumizr album", extra={"url": url})

        response = await self._client.get(url, headers=BROWSER_HEADERS)
        if not response.is_success:
            raise AlbumScrapeError(
                f"Failed to fetch Albumizr page: {response.status_code} {response.reason_phrase}"
            )

        html = response.text
        images = extract_album_images(html)

        logger.info(
            "Extracted album images",
            extra={
                "url": url,
                "html_length": len(html),
                "count": len(images),
            }
        )

        return AlbumScrapeResult(album_key=album_key, images=images)
