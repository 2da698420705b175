"""Tests for reference line parsing."""

from __future__ import annotations

import pytest

from refcheck import IdentifierKind, ParsedReference, classify_identifier, clean_reference, parse_reference
from refcheck.parser import is_reference_line, prepare_references


class TestCleanReference:
    """Tests for clean_reference."""

    def test_strips_whitespace(self):
        assert clean_reference("   Smith, Title  \n") == "Smith, Title"

    def test_strips_quotes(self):
        assert clean_reference("\"'Smith, Title'\"") == "Smith, Title"

    def test_keeps_interior_quotes(self):
        assert clean_reference('"Smith, The "Best" Title"') == 'Smith, The "Best" Title'


class TestPrepareReferences:
    """Tests for filtering blank and comment lines."""

    def test_drops_blank_and_comment_lines(self):
        text = "Smith, Title One\n\n   \n# a comment\n  # indented comment\nDoe, Title Two\n"
        assert prepare_references(text) == ["Smith, Title One", "Doe, Title Two"]

    def test_accepts_iterable_of_lines(self):
        lines = ["Smith, Title One\n", "\n", "#skip\n", "Doe, Title Two\n"]
        assert prepare_references(lines) == ["Smith, Title One", "Doe, Title Two"]

    def test_preserves_order_and_original_text(self):
        lines = ['  "Smith, B"  ', "Doe, A"]
        assert prepare_references(lines) == ['  "Smith, B"  ', "Doe, A"]

    def test_empty_input(self):
        assert prepare_references("") == []

    @pytest.mark.parametrize("line", ["", "   ", "#", "# Smith, Title", "\t# x"])
    def test_is_not_reference_line(self, line):
        assert is_reference_line(line) is False


class TestParseReference:
    """Tests for parse_reference field splitting."""

    def test_author_and_title(self):
        assert parse_reference("Smith, A Great Title") == ParsedReference("Smith", "A Great Title", None)

    def test_three_fields(self):
        parsed = parse_reference("Smith, A Great Title, 10.1000/xyz123")
        assert parsed.author == "Smith"
        assert parsed.title == "A Great Title"
        assert parsed.identifier == "10.1000/xyz123"

    def test_fields_trimmed_of_quotes_independently(self):
        parsed = parse_reference("\"Smith\", 'A Great Title' , \" 10.1000/xyz123 \"")
        assert parsed == ParsedReference("Smith", "A Great Title", "10.1000/xyz123")

    def test_last_field_is_identifier_when_more_than_three(self):
        parsed = parse_reference("Smith, J., A Great Title, 10.1000/xyz123")
        assert parsed.author == "Smith"
        assert parsed.title == "J."
        assert parsed.identifier == "10.1000/xyz123"

    def test_title_only_line(self):
        parsed = parse_reference("Just a title without commas")
        assert parsed.author == "Just a title without commas"
        assert parsed.title == ""
        assert parsed.identifier is None

    def test_empty_title_field(self):
        parsed = parse_reference("Smith, , 10.1000/xyz123")
        assert parsed.title == ""
        assert parsed.identifier == "10.1000/xyz123"

    def test_empty_identifier_is_none(self):
        assert parse_reference("Smith, Title, ").identifier is None


class TestClassifyIdentifier:
    """Tests for identifier classification."""

    def test_doi_from_reference(self):
        parsed = parse_reference("Smith, J., A Great Title, 10.1000/xyz123")
        assert classify_identifier(parsed.identifier) == IdentifierKind.DOI

    def test_isbn13_from_reference(self):
        parsed = parse_reference("Smith, J., A Great Title, 9780140449136")
        assert classify_identifier(parsed.identifier) == IdentifierKind.ISBN

    def test_hyphenated_isbn_from_reference(self):
        parsed = parse_reference("Smith, J., A Great Title, 978-0-14-044913-6")
        assert classify_identifier(parsed.identifier) == IdentifierKind.ISBN

    def test_isbn10(self):
        assert classify_identifier("0-14-044913-2") == IdentifierKind.ISBN

    def test_doi_url(self):
        assert classify_identifier("https://doi.org/10.1000/xyz123") == IdentifierKind.DOI

    @pytest.mark.parametrize("identifier", [None, "", "12345", "97801404491360", "014044913X", "ISSN 1234-5678"])
    def test_unclassified(self, identifier):
        assert classify_identifier(identifier) == IdentifierKind.NONE
