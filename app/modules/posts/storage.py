import boto3
from botocore.exceptions import BotoCoreError, ClientError
from app.config import settings
from app.core.errors import DependencyError
from typing import Optional
import logging

logger = logging.getLogger(__name__)


class MediaStorage:
    """Post media on an S3-compatible bucket (Cloudflare R2) with a public URL base."""

    def __init__(self):
        if not all([
            settings.r2_access_key_id, settings.r2_secret_access_key,
            settings.r2_bucket_name, settings.r2_public_url,
        ]):
            raise ValueError("R2 credentials, bucket name and public URL must be configured")

        self.s3_client = boto3.client(
            's3',
            endpoint_url=settings.r2_endpoint_url,
            aws_access_key_id=settings.r2_access_key_id,
            aws_secret_access_key=settings.r2_secret_access_key,
            region_name=settings.r2_region
        )
        self.bucket_name = settings.r2_bucket_name
        self.public_url = settings.r2_public_url.rstrip("/")

    def upload_file(self, file_content: bytes, key: str, content_type: str) -> str:
        """Upload media and return its public URL"""
        try:
            self.s3_client.put_object(
                Bucket=self.bucket_name,
                Key=key,
                Body=file_content,
                ContentType=content_type
            )
            return f"{self.public_url}/{key}"
        except (BotoCoreError, ClientError) as e:
            logger.error(f"Failed to upload media to R2: {str(e)}")
            raise DependencyError("Media upload failed")


def get_media_storage() -> MediaStorage:
    try:
        return MediaStorage()
    except ValueError as e:
        logger.error(f"Media storage unavailable: {str(e)}")
        raise DependencyError("Media storage is not configured")


def get_optional_media_storage() -> Optional[MediaStorage]:
    """Storage for endpoints where an upload is optional; None when R2 is not configured"""
    try:
        return MediaStorage()
    except ValueError as e:
        logger.warning("Media storage unavailable: %s", e)
        return None
