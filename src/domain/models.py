"""
Data models for FBL report classification.

These type-safe data structures define clear contracts between components.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

HMXMR_ORIGINAL_RECIPIENT = 'X-HmXmrOriginalRecipient'


def canonical_field_name(name: str) -> str:
    """Upper-case the first character of a field name, lower-case the rest."""
    return name[:1].upper() + name[1:].lower()


@dataclass
class ContentType:
    """
    Structured Content-Type header.

    Attributes:
        type: Lower-cased media type (e.g., "multipart/report")
        params: Parameters keyed by lower-cased name (e.g., "boundary")
    """
    type: str
    params: Dict[str, str] = field(default_factory=dict)

    @property
    def boundary(self) -> Optional[str]:
        return self.params.get('boundary') or None

    @property
    def report_type(self) -> Optional[str]:
        return self.params.get('report-type')


@dataclass
class ParsedHeaders:
    """
    Header block parsed into canonical fields.

    Plain fields live in ``fields``. The two structured fields are kept
    apart so their shape is explicit: ``received`` holds every distinct
    Received line in order, ``content_type`` the parsed Content-Type.

    Attributes:
        fields: Plain field values keyed by canonical name, in header order
        received: Received values, in header order
        content_type: Parsed Content-Type (None if the header is absent)
    """
    fields: Dict[str, str] = field(default_factory=dict)
    received: List[str] = field(default_factory=list)
    content_type: Optional[ContentType] = None

    def get(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """Look up a plain field by exact or canonical name."""
        if name in self.fields:
            return self.fields[name]
        return self.fields.get(canonical_field_name(name), default)

    def __contains__(self, name: object) -> bool:
        if not isinstance(name, str):
            return False
        return name in self.fields or canonical_field_name(name) in self.fields

    def __bool__(self) -> bool:
        return bool(self.fields or self.received or self.content_type)

    @property
    def boundary(self) -> Optional[str]:
        if self.content_type is None:
            return None
        return self.content_type.boundary


@dataclass
class BodySections:
    """
    Raw sections of a multipart report body, by position.

    Attributes:
        first: Human-readable part (boundary segment 1)
        first_headers: Headers parsed from the first part
        machine: Machine-readable feedback report (segment 2)
        returned: Headers of the original message (segment 3)
    """
    first: Optional[str] = None
    first_headers: Optional[ParsedHeaders] = None
    machine: Optional[str] = None
    returned: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return self.first is None and self.machine is None and self.returned is None


@dataclass
class Recipient:
    """Original recipient of the reported message (empty if unresolved)."""
    email: str = ''

    def to_dict(self) -> Dict[str, Any]:
        return {'email': self.email}


@dataclass
class FeedbackReport:
    """
    Fields resolved from the machine-readable and returned sections.

    Attributes:
        original_mail_from: Sender of the reported message
        original_rcpt_to: Recipient who complained
        received_date: When the provider received the reported message
    """
    original_mail_from: str = ''
    original_rcpt_to: str = ''
    received_date: str = ''


@dataclass
class ClassifiedMail:
    """
    A message classified as a feedback-loop report.

    Attributes:
        token: Opaque identifier supplied by the message source
        subject: Report subject without its forward prefix
        header: Raw header block
        body: Raw body
        recipients: Zero or one resolved recipient
    """
    token: Any
    subject: str
    header: str
    body: str
    recipients: List[Recipient] = field(default_factory=list)

    @property
    def recipient_emails(self) -> List[str]:
        return [r.email for r in self.recipients]

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert to a JSON-serializable dict for downstream consumers.

        The raw header and body are left out; consumers only need the
        classification outcome.
        """
        return {
            'token': self.token,
            'subject': self.subject,
            'recipients': [r.to_dict() for r in self.recipients],
        }


@dataclass
class ProcessingResult:
    """
    Result of processing one SQS record.

    A record whose message is not a feedback report is still a success;
    ``mail`` is None in that case.

    Attributes:
        success: Whether processing completed without error
        message_id: SQS message identifier
        token: S3 object key of the raw message (if it was resolved)
        mail: Classified report (None if not FBL or on failure)
        error_message: Error description (if processing failed)
    """
    success: bool
    message_id: str
    token: Optional[str] = None
    mail: Optional[ClassifiedMail] = None
    error_message: Optional[str] = None

    @property
    def is_fbl(self) -> bool:
        return self.mail is not None

    def __repr__(self) -> str:
        """Human-readable representation for logging."""
        if self.success:
            return f"ProcessingResult(success=True, message_id={self.message_id}, fbl={self.is_fbl})"
        else:
            return f"ProcessingResult(success=False, message_id={self.message_id}, error={self.error_message})"
