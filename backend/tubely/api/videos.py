"""
FastAPI router for video asset uploads.

Endpoints:
- POST /videos/{video_id}/thumbnail - Store a JPEG or PNG thumbnail locally
- POST /videos/{video_id}/video - Store an MP4 video in S3

Both routes run the same pipeline, each stage failing fast with a classified
error that the application's exception handler turns into ``{"error": ...}``:

1. Path id: ``video_id`` must be a UUID (``parse_video_id``)
2. Identity: bearer JWT resolved by ``get_current_user_id``
3. Body cap: Content-Length and streamed byte count checked against the route cap
4. Ownership: the video must exist and belong to the caller
5. Payload: multipart form parsed, file part present, media type allowed
6. Transfer and commit: handled by ``UploadService``

Stages 1 and 2 are dependencies. FastAPI resolves them in declaration order,
so ``video_id`` is declared ahead of ``user_id`` on both routes.

The multipart body is parsed by hand rather than through ``File()``
parameters so that it is only read after ownership has been confirmed, and
only through the capped receive channel.
"""

import logging

from uuid import UUID

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse

from tubely.api.responses import respond_with_json
from tubely.config import Settings, get_app_settings
from tubely.core.auth import get_current_user_id
from tubely.core.database import get_db_client
from tubely.core.errors import BadRequestError
from tubely.core.storage import StorageClient, get_storage_client
from tubely.models.video import VideoResponse
from tubely.services.transfer import limit_request_body, read_upload_form, require_form_file
from tubely.services.upload_service import UploadService
from tubely.services.video_service import VideoService
from tubely.utils.media_types import ensure_video_media_type, resolve_thumbnail_extension


# Configure module logger
logger = logging.getLogger(__name__)

router = APIRouter()

THUMBNAIL_FIELD = "thumbnail"
VIDEO_FIELD = "video"


# ============================================================================
# Dependency Functions
# ============================================================================


def get_video_service() -> VideoService:
    """Video record service over the shared MongoDB connection."""
    return VideoService(get_db_client().get_videos_collection())


def get_object_storage(settings: Settings = Depends(get_app_settings)) -> StorageClient:
    """Process-wide S3 client."""
    return get_storage_client(settings)


def get_upload_service(
    settings: Settings = Depends(get_app_settings),
    videos: VideoService = Depends(get_video_service),
    storage: StorageClient = Depends(get_object_storage),
) -> UploadService:
    """Upload workflow wired to the request's collaborators."""
    return UploadService(settings=settings, videos=videos, storage=storage)


def parse_video_id(video_id: str) -> UUID:
    """
    Parse the ``video_id`` path segment.

    Used as a dependency so a malformed id is rejected before the caller is
    authenticated or any body byte is read.

    Raises:
        BadRequestError: If the segment is not a UUID.
    """
    try:
        return UUID(video_id)
    except ValueError:
        raise BadRequestError("Invalid ID") from None


# ============================================================================
# Endpoints
# ============================================================================


@router.post(
    "/videos/{video_id}/thumbnail",
    status_code=status.HTTP_200_OK,
    summary="Upload a video thumbnail",
    description=(
        "Store a JPEG or PNG image (multipart field `thumbnail`, at most 10 MiB) "
        "as the thumbnail of a video owned by the caller."
    ),
)
async def upload_thumbnail(
    request: Request,
    video_id: UUID = Depends(parse_video_id),
    user_id: UUID = Depends(get_current_user_id),
    settings: Settings = Depends(get_app_settings),
    videos: VideoService = Depends(get_video_service),
    uploads: UploadService = Depends(get_upload_service),
) -> JSONResponse:
    """
    Upload a thumbnail for a video.

    Returns:
        JSONResponse: ``200 {}`` once the thumbnail is stored and linked.
    """
    request = limit_request_body(request, settings.max_thumbnail_upload_bytes)

    logger.info("Uploading thumbnail for video %s by user %s", video_id, user_id)
    video = await videos.get_owned_video(video_id, user_id)

    async with read_upload_form(request) as form:
        upload = require_form_file(form, THUMBNAIL_FIELD)
        extension = resolve_thumbnail_extension(upload.content_type)
        await uploads.upload_thumbnail(video, upload, extension)

    return respond_with_json(status.HTTP_200_OK, {})


@router.post(
    "/videos/{video_id}/video",
    status_code=status.HTTP_200_OK,
    response_model=VideoResponse,
    summary="Upload a video file",
    description=(
        "Store an MP4 file (multipart field `video`, at most 1 GiB) in object "
        "storage and link it from a video owned by the caller."
    ),
)
async def upload_video(
    request: Request,
    video_id: UUID = Depends(parse_video_id),
    user_id: UUID = Depends(get_current_user_id),
    settings: Settings = Depends(get_app_settings),
    videos: VideoService = Depends(get_video_service),
    uploads: UploadService = Depends(get_upload_service),
) -> JSONResponse:
    """
    Upload the video file for a video.

    Returns:
        JSONResponse: ``200`` with the updated video record.
    """
    request = limit_request_body(request, settings.max_video_upload_bytes)

    logger.info("Uploading video file for video %s by user %s", video_id, user_id)
    video = await videos.get_owned_video(video_id, user_id)

    async with read_upload_form(request) as form:
        upload = require_form_file(form, VIDEO_FIELD)
        media_type = ensure_video_media_type(upload.content_type)
        updated = await uploads.upload_video(video, upload, media_type)

    return respond_with_json(
        status.HTTP_200_OK, VideoResponse.from_video(updated).model_dump(mode="json")
    )
