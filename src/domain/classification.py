"""
Feedback-loop detection and recipient resolution.

Only feedback-loop reports (ARF ``report-type=feedback-report``, or the
``X-Loop: scomp`` marker of AOL-style complaint feeds) are classified;
ordinary delivery status notifications are not.
"""

import logging
import re
from typing import Optional

from .models import FeedbackReport, ParsedHeaders, Recipient
from services.email import extract_email_address

logger = logging.getLogger(__name__)

FEEDBACK_REPORT = 'feedback-report'
SCOMP_LOOP = 'scomp'

# Sender placeholders of providers that anonymize reports
ANONYMIZED_SENDER = re.compile(r'undisclosed|redacted', re.IGNORECASE)


def is_fbl(headers: ParsedHeaders) -> bool:
    """
    Check whether top-level headers describe a feedback-loop report.

    Args:
        headers: Parsed top-level headers

    Returns:
        True if report-type contains feedback-report or X-Loop contains scomp
    """
    report_type = headers.content_type.report_type if headers.content_type else None
    if report_type and FEEDBACK_REPORT in report_type.lower():
        return True

    x_loop = headers.get('X-loop')
    if x_loop and SCOMP_LOOP in x_loop.lower():
        return True

    return False


def _first_present(*values: Optional[str]) -> str:
    for value in values:
        if value:
            return value
    return ''


def resolve_feedback_report(machine: ParsedHeaders, returned: ParsedHeaders) -> FeedbackReport:
    """
    Resolve sender, recipient and date from a report's sections.

    Each field falls back to the next source only when the previous one is
    absent or empty:

    - mail from: Original-Mail-From, then the returned From
    - rcpt to: Original-Rcpt-To, then Removal-Recipient, then the returned To
    - received date: Received-Date, then Arrival-Date

    When the sender is anonymized ("undisclosed", "redacted") an explicit
    Removal-Recipient replaces whatever rcpt to resolved to.

    Args:
        machine: Fields of the machine-readable section
        returned: Fields of the returned original headers

    Returns:
        FeedbackReport with bare addresses
    """
    mail_from = _first_present(machine.get('Original-mail-from'), returned.get('From'))
    removal_recipient = machine.get('Removal-recipient')
    rcpt_to = _first_present(
        machine.get('Original-rcpt-to'),
        removal_recipient,
        returned.get('To'),
    )

    if removal_recipient and ANONYMIZED_SENDER.search(mail_from):
        logger.debug(f"Anonymized sender {mail_from!r}, using Removal-Recipient")
        rcpt_to = removal_recipient

    received_date = _first_present(machine.get('Received-date'), machine.get('Arrival-date'))

    return FeedbackReport(
        original_mail_from=extract_email_address(mail_from),
        original_rcpt_to=extract_email_address(rcpt_to),
        received_date=received_date,
    )


def extract_recipient(machine: ParsedHeaders, returned: ParsedHeaders) -> Recipient:
    """
    Resolve the recipient who filed the complaint.

    The recipient is returned even when no address could be resolved; its
    email is then the empty string.
    """
    report = resolve_feedback_report(machine, returned)
    return Recipient(email=report.original_rcpt_to)
