"""
Tubely Backend Application Package

This package contains the Tubely FastAPI application for video hosting media
uploads. It accepts thumbnails, which are stored on local disk and served from
/assets, and MP4 videos, which are stored in an S3 bucket. Each upload links
the stored asset from the owning video record.

Package Structure:
- api/: HTTP routes and the JSON response formatter
- core/: Core infrastructure (auth, database, object storage, errors)
- models/: Pydantic data models
- services/: Ownership checks, transfers and the upload-and-commit workflow
- utils/: Media type validation and logging helpers
"""

__version__ = "1.0.0"
__app_name__ = "tubely"
