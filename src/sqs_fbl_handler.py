"""
AWS Lambda handler for classifying feedback-loop reports from SQS.

Thin orchestration layer that delegates to FblProcessor.
Policy: Processed messages are always deleted (no retries). Messages beyond
MAX_MESSAGES are reported as batch item failures so SQS redelivers them.

Deferral requires ``ReportBatchItemFailures`` in the SQS event source
mapping's ``FunctionResponseTypes``. Without it Lambda ignores the returned
failures and deletes the whole batch, deferred records included.
"""

import logging
import os
from typing import Dict, Any

from domain.fbl_processor import FblProcessor

LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO').upper()
MAX_MESSAGES = int(os.environ.get('MAX_MESSAGES', '0'))

# Configure logging
logger = logging.getLogger()
logger.setLevel(LOG_LEVEL)

# Add console handler for local testing (AWS Lambda provides handlers automatically)
if not logger.handlers:
    console_handler = logging.StreamHandler()
    console_handler.setLevel(LOG_LEVEL)
    formatter = logging.Formatter('%(levelname)s - %(message)s')
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

# Initialize processor once at module level (reused across invocations)
fbl_processor = FblProcessor()


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Classify SES-received messages from SQS as feedback-loop reports.

    Args:
        event: Lambda event with SQS records
        context: Lambda context

    Returns:
        Dict with batchItemFailures (only records over MAX_MESSAGES)
    """
    logger.info("=" * 70)
    logger.info("FBL Report Classifier - Started")
    logger.info("=" * 70)

    records = event.get('Records', [])
    logger.info(f"Processing batch of {len(records)} message(s)")

    if MAX_MESSAGES > 0 and len(records) > MAX_MESSAGES:
        deferred = records[MAX_MESSAGES:]
        records = records[:MAX_MESSAGES]
        logger.info(f"Deferring {len(deferred)} message(s) over MAX_MESSAGES={MAX_MESSAGES}")
    else:
        deferred = []

    results = []
    for record in records:
        result = fbl_processor.process_ses_record(record)
        results.append(result)

        if not result.success:
            logger.warning(
                f"⚠ Processed message {result.message_id} with ERRORS: "
                f"{result.error_message}"
            )
        elif result.is_fbl:
            logger.info(f"✓ FBL report {result.token}: {result.mail.recipient_emails}")
        else:
            logger.info(f"- Skipped non-FBL message {result.token}")

    logger.info("=" * 70)
    logger.info(f"Batch processing complete: {len(results)} message(s)")
    fbl_count = sum(1 for r in results if r.is_fbl)
    error_count = sum(1 for r in results if not r.success)
    logger.info(f"  FBL: {fbl_count}")
    logger.info(f"  Skipped: {len(results) - fbl_count - error_count}")
    logger.info(f"  Errors: {error_count}")
    logger.info(f"  Deferred: {len(deferred)}")
    logger.info("=" * 70)

    return {
        "batchItemFailures": [
            {"itemIdentifier": record.get('messageId', 'UNKNOWN')} for record in deferred
        ]
    }
