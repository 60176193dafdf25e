"""
ISBNdb Catalog Client

Single "search by text" call against the ISBNdb v2 API.
No retries here; fallback and failure tolerance belong to the orchestrator.
"""

import os
import urllib.parse
from typing import Any, Optional

import httpx
from loguru import logger

from coverscout.models import CatalogCandidate


class CatalogConfigurationError(Exception):
    """The catalog cannot be queried because it is not configured."""


class CatalogRequestError(Exception):
    """A catalog request failed or returned a non-success status."""

    def __init__(self, message: str, status_code: Optional[int] = None, reason: Optional[str] = None):
        self.status_code = status_code
        self.reason = reason
        super().__init__(message)


class ISBNdbClient:
    """
    Client for the ISBNdb API.

    Requires an API key, passed explicitly or through ``ISBNDB_API_KEY``.
    The key is only checked when a search is issued.
    """

    BASE_URL = "https://api2.isbndb.com"

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key or os.getenv("ISBNDB_API_KEY", "")
        self.base_url = (base_url or os.getenv("ISBNDB_BASE_URL") or self.BASE_URL).rstrip("/")
        self.timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

        if not self.api_key:
            logger.warning("No ISBNdb API key provided. Catalog searches will fail.")

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout, transport=self._transport)
        return self._client

    async def search(self, query: str, page: int = 1, page_size: int = 20) -> list[CatalogCandidate]:
        """
        Search books by free text.

        Args:
            query: Search text
            page: 1-based page number
            page_size: Results per page

        Returns:
            List of CatalogCandidate (empty when nothing matches)

        Raises:
            CatalogConfigurationError: No API key configured
            CatalogRequestError: Transport failure, non-success status
                or an unreadable body
        """
        if not self.api_key:
            raise CatalogConfigurationError(
                "ISBNdb API key not configured. Please set ISBNDB_API_KEY."
            )

        client = await self._get_client()
        url = f"{self.base_url}/books/{urllib.parse.quote(query, safe='')}"
        params = {"page": page, "pageSize": page_size}
        headers = {
            "Authorization": self.api_key,
            "Content-Type": "application/json",
        }

        try:
            response = await client.get(url, params=params, headers=headers)
        except httpx.HTTPError as e:
            raise CatalogRequestError(f"ISBNdb request failed: {e}", reason=str(e)) from e

        if not response.is_success:
            raise CatalogRequestError(
                f"ISBNdb API error: {response.status_code} {response.reason_phrase}",
                status_code=response.status_code,
                reason=response.reason_phrase,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise CatalogRequestError(
                f"ISBNdb returned invalid JSON: {e}",
                status_code=response.status_code,
            ) from e

        books = data.get("books") if isinstance(data, dict) else None
        if not books:
            return []
        if not isinstance(books, list):
            raise CatalogRequestError(
                f"ISBNdb returned unexpected books payload: {type(books).__name__}",
                status_code=response.status_code,
            )

        results = []
        for book in books:
            try:
                candidate = self._parse_book(book)
            except (TypeError, ValueError, AttributeError) as e:
                raise CatalogRequestError(
                    f"ISBNdb returned an unreadable record: {e}",
                    status_code=response.status_code,
                ) from e
            if candidate:
                results.append(candidate)

        return results

    def _parse_book(self, book: dict[str, Any]) -> Optional[CatalogCandidate]:
        """Parse a raw ISBNdb book record. Malformed records are skipped."""
        if not isinstance(book, dict):
            logger.warning(f"Skipping malformed ISBNdb record: {book!r}")
            return None

        image = book.get("image")
        if image is not None and not isinstance(image, str):
            logger.warning(f"Skipping ISBNdb record with malformed image: {book.get('title')!r}")
            return None

        authors = book.get("authors") or []
        if isinstance(authors, str):
            authors = [authors]
        if not isinstance(authors, list):
            logger.warning(f"Skipping ISBNdb record with malformed authors: {book.get('title')!r}")
            return None

        title = _text(book.get("title")) or _text(book.get("title_long")) or "Unknown Title"

        return CatalogCandidate(
            title=title,
            cover_url=(image or "").strip(),
            authors=[str(author) for author in authors if author],
            isbn_13=_text(book.get("isbn13")),
            isbn=_text(book.get("isbn")) or _text(book.get("isbn10")),
            publisher=_text(book.get("publisher")),
            publish_date=_text(book.get("date_published")),
        )

    async def close(self):
        """Close HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None


def _text(value: Any) -> Optional[str]:
    """Stripped string for str/int fields, None for anything else or empty."""
    if isinstance(value, bool) or not isinstance(value, (str, int)):
        return None
    return str(value).strip() or None
