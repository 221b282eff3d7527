"""
S3 operations for the FBL handler.

SES stores inbound messages in S3; this module fetches them and stores
classification results for downstream bounce handling.
"""

import logging

import boto3
from botocore.config import Config
from botocore.exceptions import ClientError

logger = logging.getLogger(__name__)

s3_config = Config(
    retries={'max_attempts': 1, 'mode': 'standard'},
    connect_timeout=10,
    read_timeout=60
)

s3_client = boto3.client('s3', config=s3_config)

# Missing-resource codes reported as ValueError, keyed to their message
MISSING_RESOURCE_ERRORS = {
    'NoSuchKey': "Email file not found in S3: {key}",
    'NoSuchBucket': "S3 bucket not found: {bucket}",
}


def fetch_email_from_s3(bucket: str, key: str) -> bytes:
    """
    Fetch the raw message SES stored at ``s3://bucket/key``.

    Raises:
        ValueError: If the bucket or object does not exist
        ClientError: For any other S3 failure
    """
    try:
        return s3_client.get_object(Bucket=bucket, Key=key)['Body'].read()
    except ClientError as e:
        error_code = e.response.get('Error', {}).get('Code', '')
        logger.error(f"Failed to fetch s3://{bucket}/{key}: {error_code or e}")
        if error_code in MISSING_RESOURCE_ERRORS:
            raise ValueError(MISSING_RESOURCE_ERRORS[error_code].format(bucket=bucket, key=key))
        raise


def upload_classification_result(bucket: str, key: str, content: str) -> None:
    """
    Upload a JSON classification result to S3.

    Args:
        bucket: S3 bucket name
        key: S3 object key
        content: JSON document

    Raises:
        ValueError: If parameters are invalid
        ClientError: If S3 operation fails
    """
    if not bucket:
        raise ValueError("S3 bucket name cannot be empty")
    if not key:
        raise ValueError("S3 object key cannot be empty")
    if content is None:
        raise ValueError("Content cannot be None")

    try:
        logger.info(
            f"Uploading classification to S3: bucket={bucket}, key={key}, "
            f"size={len(content)} bytes"
        )

        s3_client.put_object(
            Bucket=bucket,
            Key=key,
            Body=content.encode('utf-8'),
            ContentType='application/json'
        )

    except ClientError as e:
        error_code = e.response.get('Error', {}).get('Code', 'Unknown')
        error_message = e.response.get('Error', {}).get('Message', str(e))

        logger.error(
            f"Failed to upload classification to S3: "
            f"bucket={bucket}, key={key}, "
            f"error_code={error_code}, error_message={error_message}"
        )

        raise
