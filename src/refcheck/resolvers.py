"""Identifier and title resolvers.

Identifier resolvers look a reference up by exact DOI or ISBN and turn any
lookup failure into an ``error`` verdict. Title resolvers search by free-text
title and cross-check the author's surname; they leave transport failures to
``TitleResolverChain``, which decides how to fall back.

Every ``resolve`` method returns a ``Verdict`` or ``None`` when the service
has no matching record.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any

from refcheck.clients import CrossrefClient, GoogleBooksClient
from refcheck.models import BookRecord, Verdict, VerdictStatus, WorkRecord
from refcheck.utils import TransportError, authors_contain_surname, normalize_isbn, title_contains

logger = logging.getLogger(__name__)


def _join_authors(authors: list[str]) -> str:
    return ", ".join(a for a in authors if a)


# ------------- Identifier Resolvers -------------


class DoiResolver:
    """Resolves a DOI against Crossref."""

    def __init__(self, crossref: CrossrefClient):
        self.crossref = crossref

    def resolve(self, doi: str) -> Verdict | None:
        try:
            record = self.crossref.get_work(doi)
        except TransportError as e:
            logger.warning("DOI lookup failed for %s: %s", doi, e)
            return Verdict(
                status=VerdictStatus.ERROR,
                message=f"Error checking DOI: {e}",
                source="crossref",
                identifier=doi,
            )
        if record is None:
            logger.debug("DOI %s not found on Crossref", doi)
            return None
        title = record.title or "No Title Found"
        return Verdict(
            status=VerdictStatus.VERIFIED,
            message=f"Verified by DOI on CrossRef: '{title}'",
            source="crossref",
            matched_title=title,
            matched_authors=record.authors,
            identifier=record.doi or doi,
        )


class IsbnResolver:
    """Resolves an ISBN against Google Books."""

    def __init__(self, books: GoogleBooksClient):
        self.books = books

    def resolve(self, isbn: str) -> Verdict | None:
        digits = normalize_isbn(isbn)
        try:
            records = self.books.search_isbn(digits)
        except TransportError as e:
            logger.warning("ISBN lookup failed for %s: %s", isbn, e)
            return Verdict(
                status=VerdictStatus.ERROR,
                message=f"Error checking ISBN: {e}",
                source="google_books",
                identifier=digits,
            )
        if not records:
            logger.debug("ISBN %s not found on Google Books", digits)
            return None
        book = records[0]
        return Verdict(
            status=VerdictStatus.VERIFIED,
            message=f"Verified by ISBN on Google Books: '{book.title}' by {_join_authors(book.authors) or 'unknown'}",
            source="google_books",
            matched_title=book.title,
            matched_authors=book.authors,
            identifier=book.preferred_isbn or digits,
        )


# ------------- Title Resolvers -------------


class TitleResolver(ABC):
    """Searches a service by title and checks the author on each candidate."""

    source: str = ""
    label: str = ""

    @abstractmethod
    def search(self, title: str) -> list[Any]:
        """Return ranked candidate records for a title."""

    @abstractmethod
    def candidate_title(self, candidate: Any) -> str:
        pass

    @abstractmethod
    def candidate_authors(self, candidate: Any) -> list[str]:
        pass

    @abstractmethod
    def verified(self, candidate: Any) -> Verdict:
        """Build the verdict for a candidate whose title and author match."""

    def potential(self, candidate: Any, author: str) -> Verdict:
        """Build the verdict for a candidate whose title matches but author does not."""
        authors = self.candidate_authors(candidate)
        return Verdict(
            status=VerdictStatus.POTENTIAL,
            message=(
                f"Potential Match on {self.label}: Title found, but author '{author}' "
                f"did not match the result's authors: '{_join_authors(authors)}'."
            ),
            source=self.source,
            matched_title=self.candidate_title(candidate),
            matched_authors=authors,
        )

    def resolve(self, author: str, title: str) -> Verdict | None:
        """Scan candidates in ranked order.

        Returns the first candidate matching both title and author as
        ``verified``. Otherwise returns the first title-only match as
        ``potential``, or None when no candidate title matches.

        Raises:
            TransportError: If the search request fails
        """
        potential: Verdict | None = None
        for candidate in self.search(title):
            if not title_contains(self.candidate_title(candidate), title):
                continue
            if authors_contain_surname(self.candidate_authors(candidate), author):
                return self.verified(candidate)
            if potential is None:
                potential = self.potential(candidate, author)
        return potential


class CrossrefTitleResolver(TitleResolver):
    """Title search on the Crossref scholarly index."""

    source = "crossref"
    label = "CrossRef"

    def __init__(self, crossref: CrossrefClient):
        self.crossref = crossref

    def search(self, title: str) -> list[WorkRecord]:
        return self.crossref.search_title(title)

    def candidate_title(self, candidate: WorkRecord) -> str:
        return candidate.title

    def candidate_authors(self, candidate: WorkRecord) -> list[str]:
        return candidate.authors

    def verified(self, candidate: WorkRecord) -> Verdict:
        doi = candidate.doi or "N/A"
        return Verdict(
            status=VerdictStatus.VERIFIED,
            message=f"Verified on CrossRef: '{candidate.title}' | DOI: {doi}",
            source=self.source,
            matched_title=candidate.title,
            matched_authors=candidate.authors,
            identifier=candidate.doi,
        )


class GoogleBooksTitleResolver(TitleResolver):
    """Title search on the Google Books catalog."""

    source = "google_books"
    label = "Google Books"

    def __init__(self, books: GoogleBooksClient):
        self.books = books

    def search(self, title: str) -> list[BookRecord]:
        return self.books.search_title(title)

    def candidate_title(self, candidate: BookRecord) -> str:
        return candidate.title

    def candidate_authors(self, candidate: BookRecord) -> list[str]:
        return candidate.authors

    def verified(self, candidate: BookRecord) -> Verdict:
        message = f"Verified on Google Books: '{candidate.title}' by {_join_authors(candidate.authors)}"
        isbn = candidate.preferred_isbn
        if isbn:
            message += f" | ISBN: {isbn}"
        return Verdict(
            status=VerdictStatus.VERIFIED,
            message=message,
            source=self.source,
            matched_title=candidate.title,
            matched_authors=candidate.authors,
            identifier=isbn,
        )


class TitleResolverChain:
    """Runs title resolvers in priority order.

    The first ``verified`` verdict wins. Otherwise the first ``potential``
    verdict, in resolver order, is returned. A resolver whose search fails
    is logged and skipped. If any of them failed and none matched, the
    chain reports an ``error`` verdict, since the reference was never fully
    searched.
    """

    def __init__(self, resolvers: list[TitleResolver]):
        self.resolvers = resolvers

    def resolve(self, author: str, title: str) -> Verdict | None:
        potential: Verdict | None = None
        errors: list[str] = []
        for resolver in self.resolvers:
            try:
                verdict = resolver.resolve(author, title)
            except TransportError as e:
                logger.warning("%s title search failed: %s", resolver.label, e)
                errors.append(f"{resolver.label}: {e}")
                continue
            if verdict is None:
                continue
            if verdict.status == VerdictStatus.VERIFIED:
                return verdict
            if potential is None:
                potential = verdict
        if potential is not None:
            return potential
        if errors:
            return Verdict(
                status=VerdictStatus.ERROR,
                message=f"Error searching by title: {'; '.join(errors)}",
            )
        return None
