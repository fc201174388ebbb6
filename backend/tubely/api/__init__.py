"""
Tubely API Package.

Router aggregation for the HTTP surface of the upload service.

Package Structure:
    - responses.py: JSON and error response helpers, classified error handler
    - videos.py: Thumbnail and video upload endpoints
"""

from fastapi import APIRouter

from tubely.api.videos import router as videos_router


api_router = APIRouter()
api_router.include_router(videos_router, tags=["videos"])

__all__ = ["api_router"]
