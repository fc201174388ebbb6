"""
Tubely Upload Service Module

Orchestrates the last two stages of an upload once the caller has been
authenticated, the video ownership confirmed and the media type accepted:

1. Transfer the bytes to their destination
   - thumbnails: ``{assets_root}/{video_id}.{ext}`` on local disk
   - videos: a private staging file, then a single S3 PutObject under a
     random ``{32 hex}.mp4`` key
2. Commit: link the public URL of the stored asset from the video record

A record is only ever updated after its asset has been completely written.
If the commit itself fails the stored asset is left orphaned; nothing
reconciles it.
"""

import asyncio
import logging

from pathlib import Path
from uuid import UUID, uuid4

from starlette.datastructures import UploadFile

from tubely.config import Settings
from tubely.core.errors import AssetIOError
from tubely.core.storage import StorageClient
from tubely.models.video import Video
from tubely.services.transfer import staged_upload, write_local_asset
from tubely.services.video_service import VideoService
from tubely.utils.logger import add_log_context


# Configure module logger
logger = logging.getLogger(__name__)


def thumbnail_url(settings: Settings, video_id: UUID, extension: str) -> str:
    """
    Public URL of a stored thumbnail.

    Example:
        ``http://localhost:8091/assets/550e8400-e29b-41d4-a716-446655440000.png``
    """
    return f"{settings.public_base_url}/assets/{video_id}.{extension}"


def new_video_key() -> str:
    """Random S3 key for a video object: 32 lowercase hex characters plus ``.mp4``."""
    return f"{uuid4().hex}.mp4"


class UploadService:
    """
    Transfer-and-commit workflow for thumbnail and video uploads.

    Attributes:
        settings: Application settings (caps, assets root, public URL parts)
        videos: Video record service used for the commit
        storage: S3 client receiving video objects
    """

    def __init__(
        self,
        settings: Settings,
        videos: VideoService,
        storage: StorageClient,
    ) -> None:
        self.settings = settings
        self.videos = videos
        self.storage = storage

    async def upload_thumbnail(self, video: Video, upload: UploadFile, extension: str) -> Video:
        """
        Store a thumbnail on local disk and link it from the video.

        The file is named after the video, so uploading again with the same
        extension replaces the previous image in place.

        Args:
            video: The caller's video, already ownership-checked.
            upload: The ``thumbnail`` form part.
            extension: ``jpeg`` or ``png``, from the validated media type.

        Returns:
            Video: The updated and persisted record.

        Raises:
            CapacityError: If the image exceeds the thumbnail cap.
            AssetIOError: If the file cannot be written.
            PersistenceError: If the record update fails.
        """
        upload_logger = add_log_context(logger, video_id=str(video.id), user_id=str(video.user_id))

        filename = f"{video.id}.{extension}"
        await write_local_asset(
            upload,
            self.settings.assets_root,
            filename,
            max_bytes=self.settings.max_thumbnail_upload_bytes,
            chunk_size=self.settings.upload_chunk_size_bytes,
        )

        video.set_thumbnail_url(thumbnail_url(self.settings, video.id, extension))
        updated = await self.videos.update_video(video)

        upload_logger.info("Thumbnail stored", extra={"thumbnail_url": updated.thumbnail_url})
        return updated

    async def upload_video(self, video: Video, upload: UploadFile, media_type: str) -> Video:
        """
        Stage a video locally, put it in S3 and link it from the video.

        The staging file is removed before the record is touched, whatever
        the outcome of the put. A failed put leaves the record unchanged.

        Args:
            video: The caller's video, already ownership-checked.
            upload: The ``video`` form part.
            media_type: The validated media type, stored on the S3 object.

        Returns:
            Video: The updated and persisted record.

        Raises:
            CapacityError: If the video exceeds the video cap.
            AssetIOError: If the staging file cannot be written or read back.
            StorageUnavailableError: If the S3 put fails.
            PersistenceError: If the record update fails.
        """
        upload_logger = add_log_context(logger, video_id=str(video.id), user_id=str(video.user_id))

        key = new_video_key()
        async with staged_upload(
            upload,
            max_bytes=self.settings.max_video_upload_bytes,
            chunk_size=self.settings.upload_chunk_size_bytes,
            temp_dir=self.settings.upload_temp_dir,
        ) as staged_path:
            # boto3 blocks; keep it off the event loop
            await asyncio.to_thread(self._put_staged_file, key, staged_path, media_type)

        video.set_video_url(self.storage.object_url(key))
        updated = await self.videos.update_video(video)

        upload_logger.info("Video stored", extra={"key": key, "video_url": updated.video_url})
        return updated

    def _put_staged_file(self, key: str, staged_path: Path, media_type: str) -> None:
        """Read the staging file from its start and hand it to S3."""
        try:
            body = staged_path.open("rb")
        except OSError as e:
            raise AssetIOError("Couldn't read file") from e

        with body:
            self.storage.put_object(key, body, media_type)
