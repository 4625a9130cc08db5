from __future__ import annotations

import time

import boto3
from botocore.client import BaseClient
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError, NoCredentialsError, PartialCredentialsError


class AwsBoto3Error(RuntimeError):
    pass


_CREDENTIALS_GUIDANCE = (
    "AWS credentials not configured.\n"
    "  Run: aws configure\n"
    "  Or set AWS_ACCESS_KEY_ID and AWS_SECRET_ACCESS_KEY environment variables."
)


# Reused clients keyed by timeout (connection pooling across fetches)
_s3_clients: dict[float, BaseClient] = {}


def _get_s3_client(timeout_seconds: float = 10.0) -> BaseClient:
    """Get or create a reusable S3 client with connection pooling and timeouts."""
    client = _s3_clients.get(timeout_seconds)
    if client is None:
        config = Config(
            max_pool_connections=50,
            connect_timeout=timeout_seconds,
            read_timeout=timeout_seconds,
            # s3_read_head owns the retry loop, so botocore makes a single attempt
            retries={
                'total_max_attempts': 1,
                'mode': 'standard'
            }
        )
        client = boto3.client('s3', config=config)
        _s3_clients[timeout_seconds] = client
    return client


def _parse_boto3_error(error: ClientError) -> str:
    """Parse boto3 ClientError and return actionable guidance."""
    error_code = error.response.get('Error', {}).get('Code', '')
    error_message = error.response.get('Error', {}).get('Message', str(error))
    error_message_lower = error_message.lower()

    if error_code == 'NoCredentialsError' or 'credentials' in error_message_lower:
        return _CREDENTIALS_GUIDANCE
    if error_code == 'AccessDenied' or 'access denied' in error_message_lower or 'forbidden' in error_message_lower:
        return (
            "Access denied. Check your AWS IAM permissions:\n"
            "  - s3:GetObject for reading images\n"
            "  Verify with: aws sts get-caller-identity"
        )
    if error_code == 'NoSuchBucket':
        return (
            "S3 bucket does not exist or is not accessible.\n"
            "  Verify the bucket name (PHOTOEXIF_S3_BUCKET) and your access permissions."
        )
    if error_code in ('NoSuchKey', '404'):
        return (
            "Object not found.\n"
            "  Check the key and the prefix root (PHOTOEXIF_S3_PREFIX_ROOT)."
        )
    if error_code == 'InvalidRange':
        return "Object is empty, so no bytes could be read."

    return f"Error code: {error_code}"


def _is_permanent(error: ClientError) -> bool:
    code = error.response.get('Error', {}).get('Code', '')
    return code in ('AccessDenied', 'NoSuchBucket', 'NoSuchKey', '404', 'InvalidRange')


def s3_read_head(
    *,
    bucket: str,
    key: str,
    max_bytes: int,
    timeout_seconds: float = 10.0,
    retries: int = 3,
) -> bytes:
    """Read the first `max_bytes` of an S3 object with a ranged GET.

    Args:
        bucket: S3 bucket name
        key: S3 object key (path)
        max_bytes: Number of leading bytes to fetch (fewer if the object is smaller)
        timeout_seconds: Connect/read timeout for the request
        retries: Number of attempts for transient failures

    Returns:
        The leading bytes of the object

    Raises:
        AwsBoto3Error: If the read fails
    """
    if max_bytes <= 0:
        raise ValueError(f"max_bytes must be positive, got {max_bytes}")

    client = _get_s3_client(timeout_seconds)
    for attempt in range(1, retries + 1):
        try:
            response = client.get_object(Bucket=bucket, Key=key, Range=f"bytes=0-{max_bytes - 1}")
            body = response['Body']
            try:
                return body.read(max_bytes)
            finally:
                body.close()
        except ClientError as e:
            if attempt < retries and not _is_permanent(e):
                # Exponential backoff
                time.sleep(1.5 * attempt)
                continue
            guidance = _parse_boto3_error(e)
            error_msg = f"Failed to read s3://{bucket}/{key}"
            if guidance:
                error_msg += f"\n\n{guidance}\n"
            error_msg += f"\nError: {e}"
            raise AwsBoto3Error(error_msg) from e
        except (NoCredentialsError, PartialCredentialsError) as e:
            # Retrying cannot help until credentials are set up
            raise AwsBoto3Error(
                f"Failed to read s3://{bucket}/{key}\n\n{_CREDENTIALS_GUIDANCE}\n\nError: {e}"
            ) from e
        except BotoCoreError as e:
            if attempt < retries:
                time.sleep(1.5 * attempt)
                continue
            raise AwsBoto3Error(
                f"Network error reading s3://{bucket}/{key} after {retries} attempts: {e}\n"
                "  Check your internet connection and AWS service status."
            ) from e

    raise AwsBoto3Error(f"Failed to read s3://{bucket}/{key}: no attempts made (retries={retries})")
