"""
Tubely Video Service Module

Reads and updates video records in the MongoDB ``videos`` collection. This is
where the ownership gate lives: an upload only proceeds once the caller has
been confirmed as the owner of the target video.

Reads are single ``find_one`` lookups by id. Updates are unconditional
``$set`` writes of the mutable fields: there is no version token, so of two
concurrent commits to the same video the last one wins.
"""

import logging

from uuid import UUID

from motor.motor_asyncio import AsyncIOMotorCollection
from pydantic import ValidationError
from pymongo.errors import PyMongoError

from tubely.core.errors import ForbiddenError, NotFoundError, PersistenceError
from tubely.models.video import Video


# Configure module logger
logger = logging.getLogger(__name__)


class VideoService:
    """
    Video record access for the upload workflow.

    Attributes:
        collection: Motor collection holding video documents
    """

    def __init__(self, collection: AsyncIOMotorCollection) -> None:
        self.collection = collection

    async def get_video(self, video_id: UUID) -> Video:
        """
        Load a video record by id.

        Args:
            video_id: The video UUID.

        Returns:
            Video: The stored record.

        Raises:
            NotFoundError: If no video has this id.
            PersistenceError: If the database lookup fails or the stored
                document cannot be parsed.
        """
        try:
            document = await self.collection.find_one({"_id": str(video_id)})
        except PyMongoError as e:
            logger.exception("Failed to load video %s", video_id)
            raise PersistenceError("Couldn't find video") from e

        if document is None:
            raise NotFoundError("Couldn't find video")

        try:
            return Video.from_document(document)
        except ValidationError as e:
            logger.exception("Stored video %s failed validation", video_id)
            raise PersistenceError("Couldn't find video") from e

    async def get_owned_video(self, video_id: UUID, user_id: UUID) -> Video:
        """
        Load a video record and confirm the caller owns it.

        Args:
            video_id: The video UUID.
            user_id: Caller identity from the access token.

        Returns:
            Video: The stored record, owned by ``user_id``.

        Raises:
            NotFoundError: If no video has this id.
            ForbiddenError: If the video belongs to someone else.
            PersistenceError: If the database lookup fails.
        """
        video = await self.get_video(video_id)
        if not video.is_owned_by(user_id):
            logger.warning(
                "User %s attempted to upload to video %s owned by %s",
                user_id,
                video_id,
                video.user_id,
            )
            raise ForbiddenError("You don't own this video")
        return video

    async def update_video(self, video: Video) -> Video:
        """
        Persist the mutable fields of a video record.

        Args:
            video: The record carrying the new field values.

        Returns:
            Video: The same record, now persisted.

        Raises:
            PersistenceError: If the update fails or matches no document.
        """
        try:
            result = await self.collection.update_one(
                {"_id": str(video.id)},
                {"$set": video.to_update_document()},
            )
        except PyMongoError as e:
            logger.exception("Failed to update video %s", video.id)
            raise PersistenceError("Couldn't update video") from e

        if result.matched_count == 0:
            logger.error("Video %s disappeared before its update was committed", video.id)
            raise PersistenceError("Couldn't update video")

        logger.info("Updated video %s", video.id)
        return video
