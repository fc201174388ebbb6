"""
Video Pydantic models for Tubely.

This module defines the Video record that both upload routes read and update,
and the response schema returned by the video upload route. Video records are
created elsewhere; the upload workflow only links finished assets to them.
"""

from datetime import UTC, datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


# =============================================================================
# MODELS
# =============================================================================


class Video(BaseModel):
    """
    Pydantic model for a video record stored in MongoDB.

    Attributes:
        id: Video UUID (aliased from _id, stored as a string)
        user_id: UUID of the owning user
        title: Video title
        description: Video description
        thumbnail_url: Public URL of the thumbnail, once one has been uploaded
        video_url: Public URL of the video object, once one has been uploaded
        created_at: Record creation timestamp (UTC)
        updated_at: Last modification timestamp (UTC)

    Example:
        ```python
        video = Video.from_document(await videos.find_one({"_id": str(video_id)}))
        if video.is_owned_by(user_id):
            video.set_thumbnail_url("http://localhost:8091/assets/<id>.png")
        ```
    """

    id: UUID = Field(..., alias="_id", description="Video UUID")

    user_id: UUID = Field(..., description="Owning user's UUID")

    title: str = Field(default="", max_length=500, description="Video title")

    description: str = Field(default="", description="Video description")

    thumbnail_url: str | None = Field(
        default=None, max_length=2048, description="Public URL of the thumbnail image"
    )

    video_url: str | None = Field(
        default=None, max_length=2048, description="Public URL of the video object"
    )

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC), description="Record creation timestamp (UTC)"
    )

    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC), description="Last modification timestamp (UTC)"
    )

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "_id": "550e8400-e29b-41d4-a716-446655440000",
                "user_id": "9b2f1c1e-7a55-4d38-9a3c-7f0b1f5e2d11",
                "title": "Boots on the ground",
                "description": "A short clip",
                "thumbnail_url": "http://localhost:8091/assets/550e8400-e29b-41d4-a716-446655440000.png",
                "video_url": None,
                "created_at": "2024-01-15T10:30:00Z",
                "updated_at": "2024-01-15T10:30:00Z",
            }
        },
    )

    @classmethod
    def from_document(cls, document: dict[str, Any]) -> "Video":
        """
        Build a Video from a raw MongoDB document.

        Args:
            document: Document as returned by Motor's ``find_one``

        Returns:
            Validated Video instance
        """
        return cls.model_validate(document)

    # =========================================================================
    # HELPER METHODS
    # =========================================================================

    def is_owned_by(self, user_id: UUID) -> bool:
        """
        Check whether the given caller owns this video.

        Args:
            user_id: Caller identity from the access token

        Returns:
            True if the caller is the recorded owner
        """
        return self.user_id == user_id

    def set_thumbnail_url(self, url: str) -> None:
        """
        Link a stored thumbnail and set updated_at timestamp.

        Args:
            url: Public URL of the stored thumbnail
        """
        self.thumbnail_url = url
        self.updated_at = datetime.now(UTC)

    def set_video_url(self, url: str) -> None:
        """
        Link a stored video object and set updated_at timestamp.

        Args:
            url: Public URL of the stored video object
        """
        self.video_url = url
        self.updated_at = datetime.now(UTC)

    def to_update_document(self) -> dict[str, Any]:
        """Mutable fields in the shape stored in MongoDB, for a ``$set`` update."""
        return {
            "title": self.title,
            "description": self.description,
            "thumbnail_url": self.thumbnail_url,
            "video_url": self.video_url,
            "updated_at": self.updated_at,
        }


class VideoResponse(BaseModel):
    """
    Schema for video API responses.

    Serializes ids as strings and timestamps in ISO format.
    """

    id: UUID = Field(..., description="Video ID")
    user_id: UUID = Field(..., description="Owner user ID")
    title: str = Field(..., description="Video title")
    description: str = Field(..., description="Video description")
    thumbnail_url: str | None = Field(None, description="Thumbnail URL")
    video_url: str | None = Field(None, description="Video URL")
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: datetime = Field(..., description="Last update timestamp")

    @classmethod
    def from_video(cls, video: Video) -> "VideoResponse":
        """
        Create response from Video model.

        Args:
            video: Video model instance

        Returns:
            VideoResponse for API
        """
        return cls(
            id=video.id,
            user_id=video.user_id,
            title=video.title,
            description=video.description,
            thumbnail_url=video.thumbnail_url,
            video_url=video.video_url,
            created_at=video.created_at,
            updated_at=video.updated_at,
        )
