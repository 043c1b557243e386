"""
Albumizr integration for migrating existing albums.
"""

from .client import (
    AlbumImage,
    AlbumScrapeError,
    AlbumScrapeResult,
    AlbumizrScraper,
    extract_album_images,
)

__all__ = [
    "AlbumImage",
    "AlbumScrapeError",
    "AlbumScrapeResult",
    "AlbumizrScraper",
    "extract_album_images",
]
