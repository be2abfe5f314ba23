"""S3-compatible object storage (Cloudflare R2) for backup exports"""

import logging

import boto3
from botocore.config import Config

from ..config import R2_ACCESS_KEY_ID, R2_ACCOUNT_ID, R2_BUCKET_NAME, R2_SECRET_ACCESS_KEY

logger = logging.getLogger(__name__)


def get_r2_client():
    """Create and return an R2 client."""
    if not R2_ACCOUNT_ID or not R2_ACCESS_KEY_ID or not R2_SECRET_ACCESS_KEY:
        raise RuntimeError("Missing R2_ACCOUNT_ID, R2_ACCESS_KEY_ID or R2_SECRET_ACCESS_KEY")
    return boto3.client(
        "s3",
        endpoint_url=f"https://{R2_ACCOUNT_ID}.r2.cloudflarestorage.com",
        aws_access_key_id=R2_ACCESS_KEY_ID,
        aws_secret_access_key=R2_SECRET_ACCESS_KEY,
        config=Config(signature_version="s3v4"),
    )


def upload_json(file_key: str, payload: str, client=None) -> str:
    """Upload a JSON document and return its object URL"""
    r2 = client or get_r2_client()
    r2.put_object(
        Bucket=R2_BUCKET_NAME,
        Key=file_key,
        Body=payload.encode("utf-8"),
        ContentType="application/json",
    )
    logger.info(f"✅ Uploaded {file_key} to bucket {R2_BUCKET_NAME}")
    return f"r2://{R2_BUCKET_NAME}/{file_key}"
