"""
Core infrastructure for the Tubely backend application.

This package contains the foundational infrastructure components:
- auth: Bearer token extraction and JWT validation
- database: MongoDB async client with Motor driver and connection pooling
- errors: Classified errors raised by the upload workflow
- storage: S3 client used for video objects

Clients in this package follow the singleton pattern for efficient resource
management and are initialized from the application Settings.
"""
