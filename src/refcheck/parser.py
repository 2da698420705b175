"""Parsing of free-text reference lines.

A reference line has the loose form ``Author, Title[, ..., Identifier]``.
Each comma-separated field is trimmed of surrounding quotes and whitespace
independently. Field 0 is the author and field 1 the title. When there are
three or more fields the last one is taken as the identifier; any fields in
between are ignored.
"""

from __future__ import annotations

from collections.abc import Iterable

from refcheck.models import IdentifierKind, ParsedReference
from refcheck.utils import is_doi, is_isbn, strip_quotes


def clean_reference(line: str) -> str:
    """Strip surrounding quote and whitespace characters from a reference line."""
    return strip_quotes(line)


def is_reference_line(line: str) -> bool:
    """Return True unless the line is blank or a '#' comment."""
    stripped = line.strip()
    return bool(stripped) and not stripped.startswith("#")


def prepare_references(source: str | Iterable[str]) -> list[str]:
    """Drop blank and comment lines, keeping the remaining lines in order.

    Args:
        source: Either raw text (split on newlines) or an iterable of lines

    Returns:
        The original reference lines, without trailing newlines
    """
    lines = source.splitlines() if isinstance(source, str) else source
    return [line.rstrip("\r\n") for line in lines if is_reference_line(line)]


def parse_reference(raw: str) -> ParsedReference:
    """Split a reference line into author, title and identifier."""
    parts = [strip_quotes(p) for p in clean_reference(raw).split(",")]
    author = parts[0] if parts else ""
    title = parts[1] if len(parts) > 1 else ""
    identifier = parts[-1] if len(parts) > 2 else None
    return ParsedReference(author=author, title=title, identifier=identifier or None)


def classify_identifier(identifier: str | None) -> IdentifierKind:
    """Classify an identifier as DOI, ISBN, or neither."""
    if not identifier:
        return IdentifierKind.NONE
    if is_doi(identifier):
        return IdentifierKind.DOI
    if is_isbn(identifier):
        return IdentifierKind.ISBN
    return IdentifierKind.NONE
