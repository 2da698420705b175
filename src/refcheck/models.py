"""Data classes and enums shared across the resolution pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class VerdictStatus(Enum):
    """Final classification of a reference."""

    VERIFIED = "verified"  # Found with a matching author
    POTENTIAL = "potential"  # Title found, author not confirmed
    ERROR = "error"  # Lookup failed or input malformed
    UNVERIFIED = "unverified"  # Not found anywhere, potentially fake


class IdentifierKind(Enum):
    """Kind of identifier found in a reference."""

    DOI = "doi"
    ISBN = "isbn"
    NONE = "none"


@dataclass
class ParsedReference:
    """A reference line split into its fields."""

    author: str
    title: str
    identifier: str | None = None


@dataclass
class Verdict:
    """Outcome of verifying one reference.

    Attributes:
        status: Final classification
        message: Human-readable description, may embed the matched record
        source: Service that produced the verdict ("crossref", "google_books")
        matched_title: Title of the matched record, if any
        matched_authors: Authors of the matched record, if any
        identifier: DOI or ISBN of the matched record, if any
    """

    status: VerdictStatus
    message: str
    source: str | None = None
    matched_title: str | None = None
    matched_authors: list[str] = field(default_factory=list)
    identifier: str | None = None

    def to_dict(self) -> dict[str, object]:
        return {
            "status": self.status.value,
            "message": self.message,
            "source": self.source,
            "matched_title": self.matched_title,
            "matched_authors": list(self.matched_authors),
            "identifier": self.identifier,
        }


@dataclass
class WorkRecord:
    """A scholarly work returned by Crossref."""

    doi: str | None
    title: str
    authors: list[str] = field(default_factory=list)


@dataclass
class BookRecord:
    """A book record from Google Books."""

    title: str
    authors: list[str] = field(default_factory=list)
    isbn_10: str | None = None
    isbn_13: str | None = None
    url: str | None = None

    @property
    def preferred_isbn(self) -> str | None:
        """ISBN-13 when listed, otherwise ISBN-10."""
        return self.isbn_13 or self.isbn_10


@dataclass
class CheckResult:
    """An input line paired with its verdict."""

    reference: str
    verdict: Verdict
