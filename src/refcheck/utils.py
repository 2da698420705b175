"""Shared utilities for reference checking.

Includes text normalization, author surname handling, DOI/ISBN helpers,
and the HTTP infrastructure (rate limiting, request timeouts, optional
retries) used by the API clients.
"""

from __future__ import annotations

import logging
import re
import threading
import time
from collections import deque
from typing import Any, Callable

import httpx

logger = logging.getLogger(__name__)

# ------------- Constants & Regex -------------

# API endpoints
CROSSREF_API = "https://api.crossref.org/works"
GOOGLE_BOOKS_API = "https://www.googleapis.com/books/v1/volumes"

DEFAULT_USER_AGENT = "refcheck/1.0 (https://github.com/refcheck/refcheck)"

QUOTE_WS_CHARS = " \t\r\n\f\v'\""

DOI_PREFIX_RE = re.compile(r"^(?:https?://(?:dx\.)?doi\.org/|doi:\s*)", re.IGNORECASE)
ISBN_RE = re.compile(r"^(?:\d{10}|\d{13})$")


# ------------- Text Normalization -------------


def safe_lower(x: str | None) -> str:
    """Null-safe lowercase and strip."""
    return (x or "").lower().strip()


def strip_quotes(text: str | None) -> str:
    """Strip surrounding quote and whitespace characters from both ends."""
    return (text or "").strip(QUOTE_WS_CHARS)


# ------------- Author Handling -------------


def author_surname(author: str | None) -> str:
    """Get the lowercased surname from a free-text author string.

    The surname is the last whitespace-delimited token of the part of the
    string before its first comma, so both 'Smith, J.' and 'John Smith'
    yield 'smith'.
    """
    head = (author or "").split(",", 1)[0]
    toks = head.split()
    return toks[-1].lower() if toks else ""


def authors_contain_surname(api_authors: list[str], author: str) -> bool:
    """Check whether any API author name contains the user author's surname."""
    if not api_authors:
        return False
    surname = author_surname(author)
    return any(surname in name.lower() for name in api_authors)


def title_contains(candidate_title: str | None, title: str) -> bool:
    """Case-insensitive containment of the user's title in a candidate title."""
    return safe_lower(title) in (candidate_title or "").lower()


# ------------- DOI & ISBN Utilities -------------


def doi_normalize(doi: str | None) -> str | None:
    """Normalize a DOI by removing a URL or 'doi:' prefix."""
    if not doi:
        return None
    d = DOI_PREFIX_RE.sub("", doi.strip())
    return d or None


def is_doi(identifier: str | None) -> bool:
    """Return True if the identifier looks like a DOI (starts with '10.')."""
    d = doi_normalize(identifier)
    return bool(d) and d.startswith("10.")


def normalize_isbn(isbn: str | None) -> str:
    """Remove hyphens and spaces from an ISBN."""
    return re.sub(r"[\s-]", "", isbn or "")


def is_isbn(identifier: str | None) -> bool:
    """Return True if the identifier is 10 or 13 digits once hyphens are removed."""
    return bool(ISBN_RE.match(normalize_isbn(identifier)))


# ------------- Rate Limiting -------------


class RateLimiter:
    """Sliding one-minute window shared by all requests to one service.

    Calls to :meth:`wait` are serialized, so concurrent callers queue up
    behind the slot that frees first.
    """

    WINDOW = 60.0

    def __init__(
        self,
        req_per_min: int,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.req_per_min = max(req_per_min, 1)
        self.clock = clock
        self.sleep = sleep
        self.lock = threading.Lock()
        self.sent: deque[float] = deque()

    def _expire(self, now: float) -> None:
        while self.sent and now - self.sent[0] >= self.WINDOW:
            self.sent.popleft()

    def wait(self) -> None:
        """Block until another request fits in the current window."""
        with self.lock:
            self._expire(self.clock())
            if len(self.sent) >= self.req_per_min:
                pause = self.WINDOW - (self.clock() - self.sent[0]) + 0.01
                if pause > 0:
                    logger.debug("Rate limit reached, sleeping %.2fs", pause)
                    self.sleep(pause)
                self._expire(self.clock())
            self.sent.append(self.clock())


class RateLimiterRegistry:
    """Manages per-service rate limiters.

    Each external service gets its own limiter so a slow service does not
    throttle the others.
    """

    DEFAULT_LIMITS = {
        "crossref": 50,  # Crossref: 50/min polite pool
        "google_books": 60,
    }

    def __init__(self, limits: dict[str, int] | None = None) -> None:
        """Initialize the registry with optional custom limits.

        Args:
            limits: Optional dict of service name to requests per minute.
                   Overrides DEFAULT_LIMITS for specified services.
        """
        self._limits = {**self.DEFAULT_LIMITS, **(limits or {})}
        self._limiters: dict[str, RateLimiter] = {}
        self._lock = threading.Lock()

    def get(self, service: str) -> RateLimiter:
        """Get or create rate limiter for service."""
        with self._lock:
            if service not in self._limiters:
                limit = self._limits.get(service, 30)  # Default 30/min
                self._limiters[service] = RateLimiter(limit)
            return self._limiters[service]

    def wait(self, service: str) -> None:
        """Wait for rate limit on specified service."""
        self.get(service).wait()


# ------------- HTTP Client -------------


class TransportError(RuntimeError):
    """A lookup failed: network error, unexpected HTTP status, or malformed JSON."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class HttpClient:
    """HTTP client with rate limiting, request timeouts and optional retries.

    Retries are off by default: a failed lookup is reported, not repeated.
    """

    RETRYABLE_STATUS = {429, 500, 502, 503, 504}

    def __init__(
        self,
        timeout: float = 20.0,
        user_agent: str = DEFAULT_USER_AGENT,
        rate_limiter: RateLimiterRegistry | None = None,
        retries: int = 0,
        transport: httpx.BaseTransport | None = None,
    ):
        """Initialize HTTP client.

        Args:
            timeout: Request timeout in seconds
            user_agent: User-Agent header value
            rate_limiter: Per-service rate limiter registry
            retries: Extra attempts after a retryable failure (default: none)
            transport: Optional httpx transport, e.g. httpx.MockTransport in tests
        """
        self.client = httpx.Client(
            timeout=httpx.Timeout(timeout),
            headers={"User-Agent": user_agent},
            follow_redirects=True,
            transport=transport,
        )
        self.rate_limiter = rate_limiter or RateLimiterRegistry()
        self.retries = max(retries, 0)

    def _request(
        self,
        method: str,
        url: str,
        params: dict[str, Any] | None = None,
        accept: str | None = "application/json",
        service: str | None = None,
    ) -> httpx.Response:
        """Make an HTTP request, retrying transient failures if configured.

        Raises:
            TransportError: If no response could be obtained
        """
        backoff = 1.0
        last_error: Exception | None = None
        for attempt in range(self.retries + 1):
            self.rate_limiter.wait(service or "default")
            try:
                headers = {"Accept": accept} if accept else {}
                resp = self.client.request(method, url, params=params, headers=headers)
                if resp.status_code in self.RETRYABLE_STATUS and attempt < self.retries:
                    raise httpx.HTTPStatusError("Retryable status", request=resp.request, response=resp)
                return resp
            except httpx.HTTPError as e:
                last_error = e
                logger.debug("Request to %s failed (attempt %d): %s", url, attempt + 1, e)
                if attempt < self.retries:
                    time.sleep(backoff)
                    backoff = min(backoff * 2, 16.0)
        raise TransportError(f"Network failure for {url}: {last_error}")

    def get_json(
        self,
        url: str,
        params: dict[str, Any] | None = None,
        service: str | None = None,
        allow_not_found: bool = False,
    ) -> Any | None:
        """GET a JSON document.

        Args:
            url: Request URL
            params: Query parameters
            service: Service name for per-service rate limiting
            allow_not_found: Return None on HTTP 404 instead of raising

        Raises:
            TransportError: On network failure, non-2xx status, or malformed JSON
        """
        resp = self._request("GET", url, params=params, service=service)
        if resp.status_code == 404 and allow_not_found:
            return None
        if not resp.is_success:
            raise TransportError(f"HTTP error! status: {resp.status_code}", status_code=resp.status_code)
        try:
            return resp.json()
        except ValueError as e:
            raise TransportError(f"Malformed JSON from {url}: {e}", status_code=resp.status_code) from e

    def close(self) -> None:
        """Close the underlying httpx client."""
        self.client.close()

    def __enter__(self) -> HttpClient:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()
