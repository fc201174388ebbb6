"""
Storage Client Test Suite for Tubely

Exercises the real boto3-backed StorageClient. Requests never leave the
process: botocore's Stubber intercepts every call made by the S3 client.
"""

from io import BytesIO

import pytest

from botocore.stub import ANY, Stubber

from tests.conftest import MP4_BYTES, TEST_BUCKET, TEST_REGION
from tubely.config import Settings
from tubely.core import storage as storage_module
from tubely.core.errors import StorageUnavailableError
from tubely.core.storage import StorageClient, get_storage_client


@pytest.fixture
def storage_settings(test_settings: Settings) -> Settings:
    """Test settings with static credentials so boto3 never searches for any."""
    return test_settings.model_copy(
        update={"s3_access_key_id": "testing", "s3_secret_access_key": "testing"}
    )


@pytest.fixture
def storage_client(storage_settings: Settings) -> StorageClient:
    """A real StorageClient built from the test settings."""
    return StorageClient(storage_settings)


class TestStorageClient:
    """Tests for the S3 storage client."""

    def test_client_uses_configured_bucket_and_region(
        self, storage_client: StorageClient
    ) -> None:
        """The bucket and region come straight from settings."""
        assert storage_client.bucket_name == TEST_BUCKET
        assert storage_client.region == TEST_REGION
        assert storage_client.s3_client.meta.region_name == TEST_REGION

    def test_object_url(self, storage_client: StorageClient) -> None:
        """Object URLs use the virtual-hosted style."""
        assert storage_client.object_url("abc.mp4") == (
            f"https://{TEST_BUCKET}.s3.{TEST_REGION}.amazonaws.com/abc.mp4"
        )

    def test_put_object(self, storage_client: StorageClient) -> None:
        """A single PutObject carries the bucket, key and content type."""
        with Stubber(storage_client.s3_client) as stubber:
            stubber.add_response(
                "put_object",
                {"ETag": '"d41d8cd98f00b204e9800998ecf8427e"'},
                {
                    "Bucket": TEST_BUCKET,
                    "Key": "abc.mp4",
                    "Body": ANY,
                    "ContentType": "video/mp4",
                },
            )

            storage_client.put_object("abc.mp4", BytesIO(MP4_BYTES), "video/mp4")

            stubber.assert_no_pending_responses()

    def test_put_object_client_error(self, storage_client: StorageClient) -> None:
        """An S3 error response becomes StorageUnavailableError."""
        with Stubber(storage_client.s3_client) as stubber:
            stubber.add_client_error(
                "put_object",
                service_error_code="AccessDenied",
                service_message="Access Denied",
                http_status_code=403,
            )

            with pytest.raises(StorageUnavailableError) as exc_info:
                storage_client.put_object("abc.mp4", BytesIO(MP4_BYTES), "video/mp4")

        assert exc_info.value.status_code == 500
        assert exc_info.value.message == "Couldn't upload video to storage"

    def test_get_storage_client_is_shared(
        self, storage_settings: Settings, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """The accessor builds one client and hands it out on every call."""
        monkeypatch.setattr(storage_module, "_singleton_container", {})

        first = get_storage_client(storage_settings)
        second = get_storage_client(storage_settings)

        assert first is second
