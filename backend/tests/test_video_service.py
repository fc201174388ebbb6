"""
Video Service Test Suite for Tubely

Covers video lookups, the ownership gate and record updates against a
mocked Motor collection.
"""

from typing import Any
from unittest.mock import MagicMock

import pytest

from pymongo.errors import PyMongoError

from tests.conftest import OTHER_USER_ID, OWNER_ID, VIDEO_ID
from tubely.core.errors import ForbiddenError, NotFoundError, PersistenceError
from tubely.services.video_service import VideoService


class TestGetVideo:
    """Tests for loading a video by id."""

    @pytest.mark.asyncio
    async def test_returns_parsed_video(
        self,
        video_service: VideoService,
        mock_videos_collection: MagicMock,
    ) -> None:
        """The stored document is looked up by string id and parsed."""
        video = await video_service.get_video(VIDEO_ID)

        assert video.id == VIDEO_ID
        assert video.user_id == OWNER_ID
        assert video.thumbnail_url is None
        mock_videos_collection.find_one.assert_awaited_once_with({"_id": str(VIDEO_ID)})

    @pytest.mark.asyncio
    async def test_missing_video(
        self,
        video_service: VideoService,
        mock_videos_collection: MagicMock,
    ) -> None:
        """An unknown id raises NotFoundError."""
        mock_videos_collection.find_one.return_value = None

        with pytest.raises(NotFoundError):
            await video_service.get_video(VIDEO_ID)

    @pytest.mark.asyncio
    async def test_database_failure(
        self,
        video_service: VideoService,
        mock_videos_collection: MagicMock,
    ) -> None:
        """Driver errors surface as PersistenceError."""
        mock_videos_collection.find_one.side_effect = PyMongoError("connection reset")

        with pytest.raises(PersistenceError):
            await video_service.get_video(VIDEO_ID)

    @pytest.mark.asyncio
    async def test_corrupt_document(
        self,
        video_service: VideoService,
        mock_videos_collection: MagicMock,
        video_document: dict[str, Any],
    ) -> None:
        """A stored document without a valid owner is a persistence fault."""
        mock_videos_collection.find_one.return_value = {**video_document, "user_id": "nobody"}

        with pytest.raises(PersistenceError):
            await video_service.get_video(VIDEO_ID)


class TestOwnershipGate:
    """Tests for get_owned_video."""

    @pytest.mark.asyncio
    async def test_owner_passes(self, video_service: VideoService) -> None:
        """The owner gets the video back."""
        video = await video_service.get_owned_video(VIDEO_ID, OWNER_ID)
        assert video.id == VIDEO_ID

    @pytest.mark.asyncio
    async def test_non_owner_forbidden(
        self,
        video_service: VideoService,
        mock_videos_collection: MagicMock,
    ) -> None:
        """Anyone else is forbidden, and nothing is written."""
        with pytest.raises(ForbiddenError) as exc_info:
            await video_service.get_owned_video(VIDEO_ID, OTHER_USER_ID)

        assert exc_info.value.status_code == 403
        mock_videos_collection.update_one.assert_not_called()


class TestUpdateVideo:
    """Tests for persisting video changes."""

    @pytest.mark.asyncio
    async def test_sets_mutable_fields(
        self,
        video_service: VideoService,
        mock_videos_collection: MagicMock,
    ) -> None:
        """The update targets the video id and sets the asset URLs."""
        video = await video_service.get_video(VIDEO_ID)
        video.set_thumbnail_url("http://localhost:8091/assets/x.png")

        await video_service.update_video(video)

        filter_doc, update_doc = mock_videos_collection.update_one.call_args.args
        assert filter_doc == {"_id": str(VIDEO_ID)}
        assert update_doc["$set"]["thumbnail_url"] == "http://localhost:8091/assets/x.png"
        assert update_doc["$set"]["video_url"] is None
        assert update_doc["$set"]["updated_at"] == video.updated_at
        assert "user_id" not in update_doc["$set"]

    @pytest.mark.asyncio
    async def test_no_matching_document(
        self,
        video_service: VideoService,
        mock_videos_collection: MagicMock,
    ) -> None:
        """An update that matches nothing is a persistence failure."""
        video = await video_service.get_video(VIDEO_ID)
        mock_videos_collection.update_one.return_value = MagicMock(matched_count=0)

        with pytest.raises(PersistenceError):
            await video_service.update_video(video)

    @pytest.mark.asyncio
    async def test_driver_error(
        self,
        video_service: VideoService,
        mock_videos_collection: MagicMock,
    ) -> None:
        """Driver errors during the update surface as PersistenceError."""
        video = await video_service.get_video(VIDEO_ID)
        mock_videos_collection.update_one.side_effect = PyMongoError("write concern error")

        with pytest.raises(PersistenceError):
            await video_service.update_video(video)
