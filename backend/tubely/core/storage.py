"""
Tubely S3 Storage Client

This module wraps the boto3 S3 client used to store uploaded videos. It
supports AWS S3 by default and any S3-compatible endpoint (MinIO, for local
development) through a configurable endpoint URL.

Key Features:
- Single-object PutObject uploads tagged with the validated content type
- Public object URL construction for the configured bucket and region
- Classification of boto3/botocore failures as StorageUnavailableError
- Singleton pattern for resource efficiency

All methods are synchronous, as boto3 is. Callers on the event loop run them
through ``asyncio.to_thread``.
"""

import logging

from typing import BinaryIO

import boto3

from botocore.client import Config
from botocore.exceptions import BotoCoreError, ClientError

from tubely.config import Settings
from tubely.core.errors import StorageUnavailableError


# Configure module-level logger
logger = logging.getLogger(__name__)

# Singleton container for storage client instance
# Using a dict container allows modification without global statement
_singleton_container: dict[str, "StorageClient"] = {}


class StorageClient:
    """
    S3 storage client for video objects.

    Attributes:
        settings: Application settings containing S3 configuration
        s3_client: Initialized boto3 S3 client
        bucket_name: Target bucket for all operations
        region: Region used in public object URLs

    Example usage:
        ```python
        from tubely.core.storage import get_storage_client

        storage = get_storage_client(settings)
        with open("/tmp/upload.mp4", "rb") as body:
            storage.put_object("3f2a...c1.mp4", body, "video/mp4")
        url = storage.object_url("3f2a...c1.mp4")
        ```
    """

    def __init__(self, settings: Settings) -> None:
        """
        Initialize the S3 storage client with configuration from settings.

        When ``s3_access_key_id`` is unset, boto3 resolves credentials through
        its default chain (environment, shared config, instance role).

        Args:
            settings: The application Settings.
        """
        self.settings = settings
        self.bucket_name = settings.s3_bucket_name
        self.region = settings.s3_region

        client_config = Config(
            signature_version="s3v4",
            retries={"max_attempts": 3, "mode": "standard"},
        )

        self.s3_client = boto3.client(
            "s3",
            endpoint_url=settings.s3_endpoint_url,
            aws_access_key_id=settings.s3_access_key_id,
            aws_secret_access_key=settings.s3_secret_access_key,
            region_name=settings.s3_region,
            config=client_config,
        )

        logger.info(
            "S3 storage client initialized",
            extra={
                "bucket": self.bucket_name,
                "region": self.region,
                "endpoint": settings.s3_endpoint_url or "AWS S3 (default)",
            },
        )

    def put_object(self, key: str, body: BinaryIO, content_type: str) -> None:
        """
        Upload a complete object in a single PutObject request.

        Args:
            key: The S3 object key.
            body: Readable binary file positioned at the start of the payload.
            content_type: MIME type stored on the object.

        Raises:
            StorageUnavailableError: If S3 rejects the request or cannot be reached.
        """
        try:
            self.s3_client.put_object(
                Bucket=self.bucket_name,
                Key=key,
                Body=body,
                ContentType=content_type,
            )
        except (BotoCoreError, ClientError) as e:
            logger.exception(
                "Failed to put object to S3",
                extra={"bucket": self.bucket_name, "key": key},
            )
            raise StorageUnavailableError("Couldn't upload video to storage") from e

        logger.info(
            "Uploaded object to S3",
            extra={"bucket": self.bucket_name, "key": key, "content_type": content_type},
        )

    def object_url(self, key: str) -> str:
        """Public virtual-hosted-style URL of an object in the bucket."""
        return f"https://{self.bucket_name}.s3.{self.region}.amazonaws.com/{key}"


def get_storage_client(settings: Settings) -> StorageClient:
    """
    Get the singleton StorageClient instance.

    Returns a shared StorageClient, creating it on first use. The boto3 client
    is thread-safe, so one instance serves every request.

    Args:
        settings: The application Settings, used on first construction.

    Returns:
        StorageClient: The shared storage client instance.
    """
    if "instance" not in _singleton_container:
        _singleton_container["instance"] = StorageClient(settings)
        logger.info("Created new StorageClient singleton instance")

    return _singleton_container["instance"]
