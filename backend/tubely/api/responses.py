"""
Response formatting for the Tubely API.

Every error leaves the service as ``{"error": "<message>"}`` with the status
code of its class. The internal cause of a failure is logged here and never
sent to the client.
"""

import logging

from typing import Any

from fastapi import Request, status
from fastapi.responses import JSONResponse

from tubely.core.errors import TubelyError


logger = logging.getLogger(__name__)


def respond_with_json(status_code: int, payload: Any) -> JSONResponse:
    """Serialize ``payload`` as the JSON response body."""
    return JSONResponse(status_code=status_code, content=payload)


def respond_with_error(
    status_code: int,
    message: str,
    err: BaseException | None = None,
) -> JSONResponse:
    """
    Build an error response and log its cause.

    Client errors (4xx) log at WARNING without a traceback. Server errors
    (5xx) log at ERROR with the traceback of ``err`` and its chained cause.

    Args:
        status_code: HTTP status to return.
        message: Client-safe message placed under ``error``.
        err: The exception behind the response, if any.

    Returns:
        JSONResponse: ``{"error": message}``.
    """
    if status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
        logger.error(
            "Responding with %d error: %s",
            status_code,
            message,
            exc_info=(type(err), err, err.__traceback__) if err is not None else None,
        )
    else:
        logger.warning("Responding with %d error: %s", status_code, message)

    return respond_with_json(status_code, {"error": message})


async def tubely_error_handler(request: Request, exc: TubelyError) -> JSONResponse:
    """Exception handler mapping a classified error to its response."""
    return respond_with_error(exc.status_code, exc.message, exc)
