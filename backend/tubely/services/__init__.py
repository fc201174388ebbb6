"""
Business services for the Tubely upload workflow.

- video_service: Video record reads, ownership checks and updates
- transfer: Size-capped movement of upload bytes to disk
- upload_service: Thumbnail and video upload orchestration
"""
