"""Shared fixtures for refcheck tests."""

from __future__ import annotations

import json
import logging
from typing import Any, Callable
from unittest.mock import MagicMock

import httpx
import pytest

from refcheck import (
    BookRecord,
    HttpClient,
    RateLimiterRegistry,
    ReferenceVerifier,
    TitleResolverChain,
    WorkRecord,
)


@pytest.fixture
def logger():
    """Create a test logger."""
    return logging.getLogger("test")


@pytest.fixture
def json_response():
    """Factory for JSON httpx.Response objects."""

    def _json_response(data: Any, status_code: int = 200) -> httpx.Response:
        return httpx.Response(
            status_code,
            content=json.dumps(data).encode("utf-8"),
            headers={"Content-Type": "application/json"},
        )

    return _json_response


@pytest.fixture
def make_http():
    """Factory fixture for an HttpClient backed by an httpx.MockTransport.

    The handler receives the httpx.Request and returns an httpx.Response.
    """
    clients: list[HttpClient] = []

    def _make_http(handler: Callable[[httpx.Request], httpx.Response], **kwargs: Any) -> HttpClient:
        http = HttpClient(
            timeout=5.0,
            rate_limiter=RateLimiterRegistry({"crossref": 1000, "google_books": 1000, "default": 1000}),
            transport=httpx.MockTransport(handler),
            **kwargs,
        )
        clients.append(http)
        return http

    yield _make_http
    for http in clients:
        http.close()


@pytest.fixture
def sample_work():
    """A Crossref work matching 'Smith, A Great Title'."""
    return WorkRecord(doi="10.1000/xyz123", title="A Great Title", authors=["John Smith", "Jane Doe"])


@pytest.fixture
def sample_book():
    """A Google Books volume matching 'Homer, The Odyssey'."""
    return BookRecord(
        title="The Odyssey",
        authors=["Homer", "E. V. Rieu"],
        isbn_10="0140449132",
        isbn_13="9780140449136",
    )


@pytest.fixture
def crossref_work_item():
    """A raw Crossref works item."""
    return {
        "DOI": "10.1000/xyz123",
        "title": ["A Great Title: Extended Edition"],
        "author": [
            {"given": "John", "family": "Smith"},
            {"given": "Jane", "family": "Doe"},
        ],
    }


@pytest.fixture
def google_volume_item():
    """A raw Google Books volume item."""
    return {
        "volumeInfo": {
            "title": "The Odyssey",
            "authors": ["Homer", "E. V. Rieu"],
            "industryIdentifiers": [
                {"type": "ISBN_10", "identifier": "0140449132"},
                {"type": "ISBN_13", "identifier": "9780140449136"},
            ],
            "infoLink": "https://books.google.com/books?id=abc",
        }
    }


@pytest.fixture
def stub_verifier():
    """Factory for a ReferenceVerifier whose resolvers are MagicMocks.

    Each argument is the return value of the corresponding resolver's
    ``resolve`` method, or its side effect when it is an exception.
    """

    def _create(doi: Any = None, isbn: Any = None, title: Any = None) -> ReferenceVerifier:
        doi_resolver = MagicMock()
        isbn_resolver = MagicMock()
        chain = MagicMock(spec=TitleResolverChain)
        for mock, value in ((doi_resolver, doi), (isbn_resolver, isbn), (chain, title)):
            if isinstance(value, Exception):
                mock.resolve.side_effect = value
            else:
                mock.resolve.return_value = value
        return ReferenceVerifier(doi_resolver, isbn_resolver, chain)

    return _create
