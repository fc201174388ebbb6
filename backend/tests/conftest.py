"""
Pytest Configuration and Test Fixtures for the Tubely Backend

This module provides the shared fixtures for the test suite:
- Settings pointing the assets root and staging directory at tmp_path
- Access tokens for the video owner and for another user
- A mocked MongoDB videos collection behind the real VideoService
- A mocked S3 StorageClient
- A FastAPI TestClient wired to those collaborators

The TestClient is used without its context manager so the application
lifespan (which connects to MongoDB) never runs.
"""

from collections.abc import Callable
from datetime import UTC, datetime
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock, Mock
from uuid import UUID

import pytest

from fastapi.testclient import TestClient

from tubely.api.videos import get_object_storage, get_video_service
from tubely.config import Settings
from tubely.core.auth import create_access_token
from tubely.core.storage import StorageClient
from tubely.main import create_app
from tubely.services.video_service import VideoService


VIDEO_ID = UUID("550e8400-e29b-41d4-a716-446655440000")
OWNER_ID = UUID("9b2f1c1e-7a55-4d38-9a3c-7f0b1f5e2d11")
OTHER_USER_ID = UUID("0d6a3b5c-2f41-4c8e-8e6f-5a7d9c1b3e22")

TEST_BUCKET = "tubely-test"
TEST_REGION = "us-east-1"
TEST_JWT_SECRET = "test-secret-key-for-jwt-signing-minimum-32-chars"

# Small caps so over-limit payloads stay cheap to build
THUMBNAIL_CAP_BYTES = 64 * 1024
VIDEO_CAP_BYTES = 256 * 1024

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 256
JPEG_BYTES = b"\xff\xd8\xff\xe0" + b"\x00" * 256
MP4_BYTES = b"\x00\x00\x00\x18ftypmp42" + b"\x00" * 1024


# ==============================================================================
# Settings Fixtures
# ==============================================================================


@pytest.fixture
def assets_root(tmp_path: Path) -> Path:
    """Directory thumbnails are written to. Not created up front."""
    return tmp_path / "assets"


@pytest.fixture
def staging_root(tmp_path: Path) -> Path:
    """Parent directory for staged video uploads."""
    path = tmp_path / "staging"
    path.mkdir()
    return path


@pytest.fixture
def test_settings(assets_root: Path, staging_root: Path) -> Settings:
    """
    Create a Settings instance with test-specific configuration values.

    Returns:
        Settings: Frozen settings with local paths and small upload caps
    """
    return Settings(
        app_env="testing",
        jwt_secret=TEST_JWT_SECRET,
        s3_bucket_name=TEST_BUCKET,
        s3_region=TEST_REGION,
        assets_root=str(assets_root),
        upload_temp_dir=str(staging_root),
        max_thumbnail_upload_bytes=THUMBNAIL_CAP_BYTES,
        max_video_upload_bytes=VIDEO_CAP_BYTES,
        upload_chunk_size_bytes=4096,
    )


# ==============================================================================
# Authentication Fixtures
# ==============================================================================


@pytest.fixture
def make_token(test_settings: Settings) -> Callable[[UUID], str]:
    """Factory issuing valid access tokens for any user id."""

    def _make_token(user_id: UUID) -> str:
        return create_access_token(user_id, test_settings)

    return _make_token


@pytest.fixture
def owner_headers(make_token: Callable[[UUID], str]) -> dict[str, str]:
    """Authorization headers for the owner of the test video."""
    return {"Authorization": f"Bearer {make_token(OWNER_ID)}"}


@pytest.fixture
def other_user_headers(make_token: Callable[[UUID], str]) -> dict[str, str]:
    """Authorization headers for a user who does not own the test video."""
    return {"Authorization": f"Bearer {make_token(OTHER_USER_ID)}"}


# ==============================================================================
# MongoDB Fixtures
# ==============================================================================


@pytest.fixture
def video_document() -> dict[str, Any]:
    """
    Stored document for the test video, as Motor would return it.

    Returns:
        dict: Video document owned by OWNER_ID with no assets linked yet
    """
    created = datetime(2024, 1, 15, 10, 30, tzinfo=UTC)
    return {
        "_id": str(VIDEO_ID),
        "user_id": str(OWNER_ID),
        "title": "Boots on the ground",
        "description": "A short clip",
        "thumbnail_url": None,
        "video_url": None,
        "created_at": created,
        "updated_at": created,
    }


@pytest.fixture
def mock_videos_collection(video_document: dict[str, Any]) -> MagicMock:
    """
    Create a mocked Motor videos collection.

    ``find_one`` returns the test video and ``update_one`` reports one
    matched document.
    """
    collection = MagicMock()
    collection.find_one = AsyncMock(return_value=video_document)
    collection.update_one = AsyncMock(return_value=MagicMock(matched_count=1, modified_count=1))
    return collection


@pytest.fixture
def video_service(mock_videos_collection: MagicMock) -> VideoService:
    """Real VideoService over the mocked collection."""
    return VideoService(mock_videos_collection)


# ==============================================================================
# S3/Storage Fixtures
# ==============================================================================


@pytest.fixture
def mock_storage() -> Mock:
    """
    Create a mocked StorageClient for testing without S3.

    Uses spec=StorageClient so the mock has the real client's interface.
    Object URLs follow the virtual-hosted format of the real client.
    """
    mock = Mock(spec=StorageClient)
    mock.put_object = Mock(return_value=None)
    mock.object_url = Mock(
        side_effect=lambda key: f"https://{TEST_BUCKET}.s3.{TEST_REGION}.amazonaws.com/{key}"
    )
    return mock


# ==============================================================================
# Application Fixtures
# ==============================================================================


@pytest.fixture
def test_client(
    test_settings: Settings,
    video_service: VideoService,
    mock_storage: Mock,
) -> TestClient:
    """
    Create a TestClient for an application built from the test settings.

    The video service and storage dependencies are overridden with the
    mocked collaborators.
    """
    app = create_app(test_settings)
    app.dependency_overrides[get_video_service] = lambda: video_service
    app.dependency_overrides[get_object_storage] = lambda: mock_storage
    return TestClient(app)
