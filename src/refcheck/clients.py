"""API clients for Crossref and Google Books.

Clients return converted records and let ``TransportError`` propagate, so
resolvers can tell "not found" apart from "lookup failed".
"""

from __future__ import annotations

import logging
import re
from typing import Any
from urllib.parse import quote

from refcheck.models import BookRecord, WorkRecord
from refcheck.utils import CROSSREF_API, GOOGLE_BOOKS_API, HttpClient, TransportError

logger = logging.getLogger(__name__)


# ------------- API Response Converters -------------


def crossref_item_to_record(item: dict[str, Any]) -> WorkRecord:
    """Convert a Crossref works item to a WorkRecord."""
    titles = item.get("title") or []
    title = titles[0] if titles else ""
    title = re.sub(r"<[^>]*>", "", title or "")  # strip HTML tags

    authors = []
    for a in item.get("author") or []:
        name = f"{a.get('given') or ''} {a.get('family') or ''}".strip()
        if not name and a.get("name"):
            name = a["name"]
        authors.append(name)

    return WorkRecord(doi=item.get("DOI"), title=title, authors=authors)


def google_volume_to_record(item: dict[str, Any]) -> BookRecord:
    """Convert a Google Books volume to a BookRecord."""
    vol = item.get("volumeInfo") or {}
    identifiers = {i.get("type"): i.get("identifier") for i in vol.get("industryIdentifiers") or []}
    return BookRecord(
        title=vol.get("title") or "",
        authors=list(vol.get("authors") or []),
        isbn_10=identifiers.get("ISBN_10"),
        isbn_13=identifiers.get("ISBN_13"),
        url=vol.get("infoLink"),
    )


# ------------- API Clients -------------


class CrossrefClient:
    """Crossref API client for DOI lookups and title searches."""

    def __init__(self, http: HttpClient, rows: int = 5, mailto: str | None = None):
        self.http = http
        self.rows = rows
        self.mailto = mailto

    def _params(self, params: dict[str, Any] | None = None) -> dict[str, Any]:
        params = dict(params or {})
        if self.mailto:
            params["mailto"] = self.mailto
        return params

    def get_work(self, doi: str) -> WorkRecord | None:
        """Look up a work by DOI. Returns None if Crossref does not know it."""
        url = f"{CROSSREF_API}/{quote(doi, safe='')}"
        data = self.http.get_json(url, params=self._params() or None, service="crossref", allow_not_found=True)
        if data is None:
            return None
        if not isinstance(data, dict) or not isinstance(data.get("message"), dict):
            raise TransportError(f"Unexpected Crossref payload for DOI {doi}")
        return crossref_item_to_record(data["message"])

    def search_title(self, title: str) -> list[WorkRecord]:
        """Search Crossref by title, returning ranked candidates."""
        params = self._params({"query.title": title, "rows": self.rows})
        data = self.http.get_json(CROSSREF_API, params=params, service="crossref")
        try:
            items = data["message"].get("items") or []
        except (KeyError, TypeError, AttributeError) as e:
            raise TransportError(f"Unexpected Crossref search payload: {e}") from e
        return [crossref_item_to_record(item) for item in items]


class GoogleBooksClient:
    """Google Books API client for ISBN and title searches."""

    def __init__(self, http: HttpClient, api_key: str | None = None):
        self.http = http
        self.api_key = api_key

    def _search(self, query: str) -> dict[str, Any]:
        params: dict[str, Any] = {"q": query}
        if self.api_key:
            params["key"] = self.api_key
        data = self.http.get_json(GOOGLE_BOOKS_API, params=params, service="google_books")
        if not isinstance(data, dict):
            raise TransportError("Unexpected Google Books payload")
        return data

    def search_isbn(self, isbn: str) -> list[BookRecord]:
        """Search Google Books by ISBN."""
        data = self._search(f"isbn:{isbn}")
        if not data.get("totalItems"):
            return []
        return [google_volume_to_record(item) for item in data.get("items") or []]

    def search_title(self, title: str) -> list[BookRecord]:
        """Search Google Books by title."""
        data = self._search(f"intitle:{title}")
        return [google_volume_to_record(item) for item in data.get("items") or []]
