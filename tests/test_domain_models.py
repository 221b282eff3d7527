"""
Tests for domain models (data structures).
"""

import pytest
import sys
import os

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '../src'))

from domain.models import (
    BodySections,
    ClassifiedMail,
    ContentType,
    ParsedHeaders,
    ProcessingResult,
    Recipient,
    canonical_field_name,
)


class TestCanonicalFieldName:
    """Test field name canonicalization."""

    @pytest.mark.parametrize("name,expected", [
        ("SUBJECT", "Subject"),
        ("content-type", "Content-type"),
        ("X-Loop", "X-loop"),
        ("", ""),
    ])
    def test_canonical(self, name, expected):
        """Test first character upper-cased, rest lower-cased."""
        assert canonical_field_name(name) == expected


class TestParsedHeaders:
    """Test ParsedHeaders accessors."""

    def test_empty_headers_falsy(self):
        """Test headers with nothing parsed are falsy."""
        assert not ParsedHeaders()

    def test_boundary_from_content_type(self):
        """Test boundary is read from Content-Type params."""
        headers = ParsedHeaders(content_type=ContentType(type='multipart/report', params={'boundary': 'AAA'}))

        assert headers.boundary == 'AAA'
        assert headers

    def test_empty_boundary_is_none(self):
        """Test an empty boundary param counts as absent."""
        content_type = ContentType(type='multipart/report', params={'boundary': ''})

        assert content_type.boundary is None

    def test_contains_non_string(self):
        """Test membership with a non-string key is False."""
        assert 1 not in ParsedHeaders(fields={'Subject': 'x'})


class TestBodySections:
    """Test BodySections dataclass."""

    def test_default_is_empty(self):
        """Test default sections are empty."""
        assert BodySections().is_empty

    def test_machine_only_not_empty(self):
        """Test any populated section makes it non-empty."""
        assert not BodySections(machine="Feedback-Type: abuse").is_empty


class TestClassifiedMail:
    """Test ClassifiedMail dataclass."""

    def test_to_dict(self):
        """Test JSON-ready dict omits the raw header and body."""
        mail = ClassifiedMail(
            token="inbound/abc.eml",
            subject="Spring sale",
            header="Subject: FW: Spring sale",
            body="--AAA",
            recipients=[Recipient(email="bob@example.org")]
        )

        assert mail.to_dict() == {
            'token': 'inbound/abc.eml',
            'subject': 'Spring sale',
            'recipients': [{'email': 'bob@example.org'}],
        }
        assert mail.recipient_emails == ['bob@example.org']

    def test_unresolved_recipient_kept(self):
        """Test an unresolved recipient is represented by an empty email."""
        mail = ClassifiedMail(token=1, subject="", header="", body="", recipients=[Recipient()])

        assert mail.recipient_emails == ['']


class TestProcessingResult:
    """Test ProcessingResult dataclass."""

    def test_processing_result_fbl(self):
        """Test successful result carrying a classified report."""
        mail = ClassifiedMail(token="k", subject="s", header="h", body="b", recipients=[])
        result = ProcessingResult(success=True, message_id="msg-123", token="k", mail=mail)

        assert result.is_fbl is True
        assert result.error_message is None
        assert "fbl=True" in repr(result)

    def test_processing_result_not_fbl(self):
        """Test successful result for a message that is not a report."""
        result = ProcessingResult(success=True, message_id="msg-123", token="k")

        assert result.is_fbl is False

    def test_processing_result_repr_failure(self):
        """Test __repr__ for failed result."""
        result = ProcessingResult(
            success=False,
            message_id="msg-456",
            error_message="Test error"
        )

        repr_str = repr(result)
        assert "success=False" in repr_str
        assert "msg-456" in repr_str
        assert "Test error" in repr_str


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
