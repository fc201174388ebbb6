"""
Models Package for Tubely.

Pydantic models for the video records touched by the upload workflow.

Models Overview:
    - Video: Video record with owner and linked asset URLs
    - VideoResponse: API representation of a Video

Example Usage:
    ```python
    from tubely.models import Video, VideoResponse

    video = Video.from_document(document)
    payload = VideoResponse.from_video(video).model_dump(mode="json")
    ```
"""

from tubely.models.video import Video, VideoResponse


__all__ = [
    "Video",
    "VideoResponse",
]
