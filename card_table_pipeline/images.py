# card_table_pipeline/images.py

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Union
from urllib.parse import urljoin, urlparse

import requests
from requests import Response

from .models import CardImage, ExtractionReport
from .session import DEFAULT_USER_AGENT

logger = logging.getLogger(__name__)


@dataclass
class DownloadedImage:
    """
    Result of downloading one card image.
    """

    url: str                  # Absolute URL we requested
    path: Optional[Path]      # Where the bytes were written, or None on failure
    status_code: int          # HTTP status code, 0 for network errors
    error: Optional[str]      # Error message if something went wrong


class ImageDownloadError(Exception):
    """Raised when an image download fails in a non-recoverable way"""
    pass


def resolve_image_url(src: str, page_url: str) -> str:
    """
    Turn an <img> src into an absolute http(s) URL.

    e.g. "//cdn.example.com/a.png" -> "https://cdn.example.com/a.png"
         "/images/a.png"           -> "<page origin>/images/a.png"
    """
    src = src.strip()
    if src.startswith("//"):
        scheme = urlparse(page_url).scheme or "https"
        return f"{scheme}:{src}"
    return urljoin(page_url, src)


class ImageDownloader:
    """
    Card-art downloader using the `requests` library.

    Responsibilities:
    - Resolve protocol-relative and relative image URLs against the page URL
    - Retry transient errors with exponential backoff
    - Save each image under the filename chosen during row extraction
    """

    def __init__(
        self,
        user_agent: str = DEFAULT_USER_AGENT,
        timeout_seconds: int = 10,
        max_retries: int = 2,
        backoff_factor: float = 0.5,
    ) -> None:
        """
        param user_agent: String to send in the User-Agent header
        param timeout_seconds: Per-request timeout to avoid hanging forever
        param max_retries: How many times to retry on transient errors
        param backoff_factor: Sleep time grows like backoff_factor * (2 ** attempt)
        """
        self.timeout_seconds = timeout_seconds
        self.max_retries = max_retries
        self.backoff_factor = backoff_factor

        self.session = requests.Session()
        self.session.headers.update({"User-Agent": user_agent})

    def _should_retry(self, status_code: int) -> bool:
        return status_code >= 500 or status_code == 429

    def _sleep_before_retry(self, url: str, attempt: int) -> None:
        sleep_seconds = self.backoff_factor * (2 ** attempt)
        logger.info("Retrying %s after %s seconds", url, sleep_seconds)
        time.sleep(sleep_seconds)

    def download(self, image: CardImage, page_url: str, output_dir: Union[str, Path]) -> DownloadedImage:
        """
        Download one image into output_dir/image.filename.

        HTTP and network failures come back as DownloadedImage.error; only
        unexpected errors raise ImageDownloadError.
        """
        url = resolve_image_url(image.src, page_url)
        target = Path(output_dir) / image.filename

        for attempt in range(self.max_retries + 1):
            try:
                resp: Response = self.session.get(url, timeout=self.timeout_seconds)
            except (requests.exceptions.Timeout, requests.exceptions.ConnectionError) as e:
                logger.warning("Network error for %s: %s", url, e)
                if attempt < self.max_retries:
                    self._sleep_before_retry(url, attempt)
                    continue
                return DownloadedImage(url=url, path=None, status_code=0, error=str(e))
            except requests.RequestException as e:
                logger.error("Unexpected error fetching %s: %s", url, e, exc_info=True)
                raise ImageDownloadError(f"Unexpected error fetching {url}: {e}") from e

            if 200 <= resp.status_code < 300:
                target.parent.mkdir(parents=True, exist_ok=True)
                target.write_bytes(resp.content)
                logger.info("Saved %s -> %s", url, target)
                return DownloadedImage(url=url, path=target, status_code=resp.status_code, error=None)

            logger.warning("Non-success status %d for image %s", resp.status_code, url)
            if self._should_retry(resp.status_code) and attempt < self.max_retries:
                self._sleep_before_retry(url, attempt)
                continue

            return DownloadedImage(url=url, path=None, status_code=resp.status_code, error=f"HTTP {resp.status_code}")

        raise ImageDownloadError(f"Failed to download {url} after {self.max_retries} retries")

    def download_report_images(self, report: ExtractionReport, output_dir: Union[str, Path]) -> List[DownloadedImage]:
        results: List[DownloadedImage] = []
        for card in report.credit_cards:
            image = card.candidate.image
            if image is None:
                continue
            results.append(self.download(image, report.url, output_dir))
        return results
