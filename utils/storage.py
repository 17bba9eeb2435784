import logging
import os
import uuid
from typing import Dict, Optional

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from config import AWS_REGION, AWS_UPLOAD_BUCKET, AWS_UPLOAD_URL_EXPIRY_SECONDS

logger = logging.getLogger(__name__)

_s3_client = None


class StorageError(Exception):
    pass


def _client():
    global _s3_client
    if _s3_client is None:
        _s3_client = boto3.client(
            "s3",
            region_name=AWS_REGION,
            aws_access_key_id=os.getenv("AWS_ACCESS_KEY_ID"),
            aws_secret_access_key=os.getenv("AWS_SECRET_ACCESS_KEY"),
            config=Config(signature_version="s3v4"),
        )
    return _s3_client


def _extension(filename: Optional[str]) -> str:
    if filename and "." in filename:
        return "." + filename.rsplit(".", 1)[1].lower()[:8]
    return ""


def presign_image_upload(*, content_type: str, filename: Optional[str] = None, folder: str = "images") -> Dict[str, str]:
    """
    Create a presigned PUT URL for an admin image upload.

    Returns the upload URL plus the public object URL the client should store.
    """
    if not AWS_UPLOAD_BUCKET:
        raise StorageError("Upload storage is not configured")

    key = f"{folder}/{uuid.uuid4().hex}{_extension(filename)}"
    try:
        upload_url = _client().generate_presigned_url(
            "put_object",
            Params={"Bucket": AWS_UPLOAD_BUCKET, "Key": key, "ContentType": content_type},
            ExpiresIn=AWS_UPLOAD_URL_EXPIRY_SECONDS,
        )
    except (BotoCoreError, ClientError) as e:
        logger.error(f"Failed to presign upload for key={key}: {e}")
        raise StorageError("Failed to create upload URL") from e

    return {
        "uploadURL": upload_url,
        "objectKey": key,
        "publicURL": f"https://{AWS_UPLOAD_BUCKET}.s3.{AWS_REGION}.amazonaws.com/{key}",
    }
