"""Resolution orchestrator: picks a strategy per reference and builds its verdict."""

from __future__ import annotations

import logging

from refcheck.clients import CrossrefClient, GoogleBooksClient
from refcheck.models import IdentifierKind, ParsedReference, Verdict, VerdictStatus
from refcheck.parser import classify_identifier, parse_reference
from refcheck.resolvers import (
    CrossrefTitleResolver,
    DoiResolver,
    GoogleBooksTitleResolver,
    IsbnResolver,
    TitleResolverChain,
)
from refcheck.utils import doi_normalize

logger = logging.getLogger(__name__)

INVALID_FORMAT_MESSAGE = "Invalid Format: requires at least 'Author, Title'."
UNVERIFIED_MESSAGE = "Unverified / Potentially Fake"


class ReferenceVerifier:
    """Verifies parsed references, identifier first and title second.

    An identifier branch that produces a verdict (verified or error) is
    final. Title search only runs when there is no classifiable identifier
    or the identifier was not found.
    """

    def __init__(self, doi_resolver: DoiResolver, isbn_resolver: IsbnResolver, title_chain: TitleResolverChain):
        self.doi_resolver = doi_resolver
        self.isbn_resolver = isbn_resolver
        self.title_chain = title_chain

    @classmethod
    def from_clients(cls, crossref: CrossrefClient, books: GoogleBooksClient) -> ReferenceVerifier:
        """Wire the default resolvers: Crossref before Google Books."""
        return cls(
            DoiResolver(crossref),
            IsbnResolver(books),
            TitleResolverChain([CrossrefTitleResolver(crossref), GoogleBooksTitleResolver(books)]),
        )

    def _resolve_identifier(self, identifier: str | None) -> Verdict | None:
        kind = classify_identifier(identifier)
        if kind == IdentifierKind.DOI:
            return self.doi_resolver.resolve(doi_normalize(identifier) or identifier)
        if kind == IdentifierKind.ISBN:
            return self.isbn_resolver.resolve(identifier)
        return None

    def _resolve(self, parsed: ParsedReference) -> Verdict:
        verdict = self._resolve_identifier(parsed.identifier)
        if verdict is not None:
            return verdict

        if not parsed.author or not parsed.title:
            return Verdict(status=VerdictStatus.ERROR, message=INVALID_FORMAT_MESSAGE)

        verdict = self.title_chain.resolve(parsed.author, parsed.title)
        if verdict is not None:
            return verdict
        return Verdict(status=VerdictStatus.UNVERIFIED, message=UNVERIFIED_MESSAGE)

    def verify(self, parsed: ParsedReference) -> Verdict:
        """Produce exactly one verdict for a parsed reference. Never raises."""
        try:
            return self._resolve(parsed)
        except Exception as e:
            logger.error("Unexpected error verifying '%s': %s", parsed.title or parsed.author, e)
            return Verdict(status=VerdictStatus.ERROR, message=f"Error: {e}")

    def check(self, raw: str) -> Verdict:
        """Parse a raw reference line and verify it."""
        return self.verify(parse_reference(raw))
