"""
Feedback-loop classification pipeline - core business logic.

``classify_message`` turns one raw message into a ClassifiedMail, or None
when the message is empty, malformed or not a feedback-loop report. It is a
pure function: no I/O and no state shared between messages.

``FblProcessor`` wires the pipeline to SES notifications delivered via SQS:
1. Parse SES notification from SQS record
2. Fetch raw email from S3
3. Classify the message
4. Upload the classification (if a results bucket is configured)
5. Return result (success or failure)

All errors are caught and returned as ProcessingResult with success=False.
No exceptions propagate out of the public methods.
"""

import json
import logging
import os
import re
from typing import Any, Dict, Optional, Tuple, Union

from .classification import extract_recipient, is_fbl
from .models import ClassifiedMail, ParsedHeaders, ProcessingResult
from services import email as email_service
from services import s3 as s3_service

logger = logging.getLogger(__name__)

HEADER_BODY_SEPARATOR = '\r\n\r\n'
FORWARD_PREFIX = re.compile(r'^fw:', re.IGNORECASE)

ENVIRONMENT = os.environ.get('ENVIRONMENT', 'dev')
RESULTS_BUCKET = os.environ.get('RESULTS_S3_BUCKET', '')
RESULTS_KEY_PREFIX = os.environ.get('RESULTS_KEY_PREFIX', 'fbl-results/')


def _strip_forward_prefix(subject: str) -> str:
    return FORWARD_PREFIX.sub('', subject).strip()


def classify_message(token: Any, raw_content: Union[bytes, str]) -> Optional[ClassifiedMail]:
    """
    Classify one raw message as a feedback-loop report.

    Args:
        token: Opaque identifier from the message source, passed through
        raw_content: Raw message bytes or text

    Returns:
        ClassifiedMail for a feedback-loop report, None otherwise
    """
    content = email_service.normalize_content(email_service.decode_email_content(raw_content))
    if not content:
        logger.debug(f"[{token}] Empty message")
        return None

    if HEADER_BODY_SEPARATOR not in content:
        logger.debug(f"[{token}] No header/body separator, skipping malformed message")
        return None
    header_block, body = content.split(HEADER_BODY_SEPARATOR, 1)

    headers = email_service.parse_headers(header_block)
    sections = email_service.split_body_sections(headers, body)

    if not is_fbl(headers):
        logger.debug(f"[{token}] Not a feedback-loop report")
        return None

    machine = email_service.parse_headers(sections.machine) if sections.machine else ParsedHeaders()
    returned = email_service.parse_headers(sections.returned) if sections.returned else ParsedHeaders()
    recipient = extract_recipient(machine, returned)

    return ClassifiedMail(
        token=token,
        subject=_strip_forward_prefix(headers.get('Subject') or ''),
        header=header_block,
        body=body,
        recipients=[recipient],
    )


class FblProcessor:
    """
    Handles feedback-loop processing of SES email notifications.

    Fetches each notified message from S3 and classifies it. Returns
    ProcessingResult for explicit success/failure handling.
    """

    def process_ses_record(self, record: Dict[str, Any]) -> ProcessingResult:
        """
        Process a single SQS record containing SES notification.

        Args:
            record: SQS record dict containing SES notification

        Returns:
            ProcessingResult with success=True or success=False (errors logged)
        """
        message_id = record.get('messageId', 'UNKNOWN')
        logger.info(f"Processing SQS message: {message_id}")

        token = None
        try:
            bucket_name, token = self._parse_ses_notification(record)

            raw_email = s3_service.fetch_email_from_s3(bucket_name, token)
            logger.info(f"Fetched {len(raw_email):,} bytes from s3://{bucket_name}/{token}")

            mail = classify_message(token, raw_email)
            if mail is None:
                logger.info(f"Not a feedback-loop report: {token}")
            else:
                logger.info(
                    f"FBL report: subject={mail.subject}, "
                    f"recipients={mail.recipient_emails}"
                )
                self._store_classification(mail)

            return ProcessingResult(
                success=True,
                message_id=message_id,
                token=token,
                mail=mail
            )

        except Exception as e:
            logger.error(f"Failed to process {message_id}: {e}", exc_info=True)

            return ProcessingResult(
                success=False,
                message_id=message_id,
                token=token,
                error_message=str(e)
            )

    def _parse_ses_notification(self, record: Dict[str, Any]) -> Tuple[str, str]:
        """
        Parse SQS record and extract the S3 location of the raw email.

        Handles both direct SES->SQS and SNS-wrapped notifications.

        Args:
            record: SQS record dict

        Returns:
            Tuple of (bucket_name, object_key)

        Raises:
            ValueError: If notification structure is invalid
            json.JSONDecodeError: If JSON parsing fails
        """
        sqs_body = json.loads(record['body'])

        # Check if wrapped in SNS (optional setup: SES -> SNS -> SQS)
        if sqs_body.get('Type') == 'Notification' and 'Message' in sqs_body:
            logger.info("Unwrapping SNS message (SES -> SNS -> SQS)")
            ses_notification = json.loads(sqs_body['Message'])
        else:
            ses_notification = sqs_body

        if 'mail' not in ses_notification or 'receipt' not in ses_notification:
            raise ValueError("SES notification missing 'mail' or 'receipt' fields")

        action = ses_notification['receipt'].get('action', {})
        bucket_name = action.get('bucketName')
        object_key = action.get('objectKey')

        if not bucket_name or not object_key:
            raise ValueError("Missing S3 location in SES notification")

        return bucket_name, object_key

    def _store_classification(self, mail: ClassifiedMail) -> None:
        """
        Upload the classification as JSON to the results bucket.

        Skipped when no results bucket is configured.
        """
        if not RESULTS_BUCKET:
            return

        key = f"{RESULTS_KEY_PREFIX}{ENVIRONMENT}/{mail.token}.json"
        s3_service.upload_classification_result(
            bucket=RESULTS_BUCKET,
            key=key,
            content=json.dumps(mail.to_dict())
        )
