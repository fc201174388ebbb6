"""
Utility helpers for the Tubely backend.

- logger: Logging setup and context-bound loggers
- media_types: Allow-lists and parsing for upload Content-Type headers
"""
