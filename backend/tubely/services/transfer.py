"""
Tubely Transfer Engine

Moves upload bytes from the request to their destination while enforcing the
per-route size cap:

- ``limit_request_body`` caps the raw request body at the transport level
- ``read_upload_form`` parses the multipart form under that cap
- ``write_local_asset`` writes a thumbnail into the assets root and renames
  it into place once complete
- ``staged_upload`` captures a video in a private temporary file that is
  removed on every exit path

Disk I/O goes through aiofiles so the event loop is never blocked on a write.
A destination path is only ever exposed once its bytes are fully written.
"""

import logging
import tempfile

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager, suppress
from pathlib import Path
from typing import Any
from uuid import uuid4

import aiofiles
import aiofiles.os

from starlette.datastructures import FormData, UploadFile
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.formparsers import MultiPartException
from starlette.requests import ClientDisconnect, Request
from starlette.types import Message

from tubely.core.errors import AssetIOError, BadRequestError, CapacityError


# Configure module logger
logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 1 << 20


# =============================================================================
# Request Body Limits
# =============================================================================


def limit_request_body(request: Request, max_bytes: int) -> Request:
    """
    Wrap a request so its body can never exceed ``max_bytes``.

    A declared ``Content-Length`` over the cap is rejected before any byte is
    read. Otherwise the returned request counts body bytes as they arrive and
    fails as soon as the running total crosses the cap, which also covers
    chunked bodies with no declared length.

    Args:
        request: The incoming request. Its body must not have been read yet.
        max_bytes: Largest accepted body size.

    Returns:
        Request: A request over the same scope reading through the counter.

    Raises:
        BadRequestError: If Content-Length is not a non-negative integer.
        CapacityError: If the declared length exceeds the cap.
    """
    declared = request.headers.get("content-length")
    if declared is not None:
        try:
            declared_length = int(declared)
        except ValueError:
            raise BadRequestError("Invalid Content-Length") from None
        if declared_length < 0:
            raise BadRequestError("Invalid Content-Length")
        if declared_length > max_bytes:
            logger.warning(
                "Rejected request body of %d bytes (limit %d)", declared_length, max_bytes
            )
            raise CapacityError("Upload is too large")

    receive = request.receive
    received = 0

    async def limited_receive() -> Message:
        nonlocal received
        message = await receive()
        if message["type"] == "http.request":
            received += len(message.get("body", b""))
            if received > max_bytes:
                logger.warning("Request body crossed the %d byte limit", max_bytes)
                raise CapacityError("Upload is too large")
        return message

    return Request(request.scope, limited_receive)


# =============================================================================
# Multipart Form Handling
# =============================================================================


@asynccontextmanager
async def read_upload_form(request: Request) -> AsyncIterator[FormData]:
    """
    Parse the multipart body of an upload request.

    Uploaded parts are spooled by Starlette and closed when the context exits.

    Raises:
        BadRequestError: If the body is not a well-formed multipart form.
        AssetIOError: If the client disconnects mid-body.
        CapacityError: If the body crosses the limit set by ``limit_request_body``.
    """
    try:
        form = await request.form()
    except MultiPartException as e:
        raise BadRequestError("Unable to parse form file") from e
    except StarletteHTTPException as e:
        # Starlette reports multipart parse errors this way inside an app
        raise BadRequestError("Unable to parse form file") from e
    except (KeyError, ValueError) as e:
        # python-multipart parse errors are ValueErrors; a missing boundary is a KeyError
        raise BadRequestError("Unable to parse form file") from e
    except ClientDisconnect as e:
        logger.warning("Client disconnected while sending the upload body")
        raise AssetIOError("Couldn't read file") from e

    try:
        yield form
    finally:
        await form.close()


def require_form_file(form: FormData, field: str) -> UploadFile:
    """
    Return the file part named ``field``.

    Raises:
        BadRequestError: If the field is missing or holds a plain value.
    """
    upload = form.get(field)
    if not isinstance(upload, UploadFile):
        raise BadRequestError("Unable to parse form file")
    return upload


# =============================================================================
# Stream Copy
# =============================================================================


async def copy_stream(
    source: UploadFile,
    destination: Any,
    max_bytes: int,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> int:
    """
    Copy an uploaded part into an open aiofiles handle in fixed-size chunks.

    Args:
        source: The uploaded form part.
        destination: A writable aiofiles binary file handle.
        max_bytes: Largest number of bytes accepted from the source.
        chunk_size: Bytes read per iteration.

    Returns:
        int: The number of bytes copied.

    Raises:
        CapacityError: If the source holds more than ``max_bytes``.
        AssetIOError: If reading the source or writing the destination fails.
    """
    copied = 0
    while True:
        try:
            chunk = await source.read(chunk_size)
        except OSError as e:
            raise AssetIOError("Couldn't read file") from e

        if not chunk:
            return copied

        copied += len(chunk)
        if copied > max_bytes:
            raise CapacityError("Upload is too large")

        try:
            await destination.write(chunk)
        except OSError as e:
            raise AssetIOError("Couldn't write file") from e


# =============================================================================
# Destinations
# =============================================================================


async def write_local_asset(
    source: UploadFile,
    assets_root: str | Path,
    filename: str,
    max_bytes: int,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> Path:
    """
    Store an uploaded part as ``{assets_root}/{filename}``.

    The assets root is created if missing. Bytes go to a sibling ``.part``
    file which is renamed onto the final name once complete, so an existing
    asset is replaced atomically and a failed write never leaves a truncated
    file under the final name.

    Args:
        source: The uploaded form part.
        assets_root: Directory served under ``/assets``.
        filename: Final file name, without any directory component.
        max_bytes: Largest accepted file size.
        chunk_size: Bytes copied per iteration.

    Returns:
        Path: Where the asset now lives.

    Raises:
        CapacityError: If the part exceeds ``max_bytes``.
        AssetIOError: If the directory, the write or the rename fails.
    """
    root = Path(assets_root)
    destination = root / filename
    partial = root / f".{filename}.part-{uuid4().hex}"

    try:
        await aiofiles.os.makedirs(root, exist_ok=True)
    except OSError as e:
        logger.exception("Couldn't create assets directory %s", root)
        raise AssetIOError("Couldn't create assets directory") from e

    try:
        try:
            async with aiofiles.open(partial, "wb") as out:
                size = await copy_stream(source, out, max_bytes, chunk_size)
        except OSError as e:
            raise AssetIOError("Couldn't create file on server") from e

        try:
            await aiofiles.os.replace(partial, destination)
        except OSError as e:
            raise AssetIOError("Couldn't write file") from e
    except (AssetIOError, CapacityError):
        with suppress(FileNotFoundError):
            await aiofiles.os.remove(partial)
        raise

    logger.info("Wrote local asset %s (%d bytes)", destination, size)
    return destination


@asynccontextmanager
async def staged_upload(
    source: UploadFile,
    max_bytes: int,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    temp_dir: str | None = None,
) -> AsyncIterator[Path]:
    """
    Capture an uploaded part in a private temporary file.

    The file lives in a fresh directory created with ``tempfile.mkdtemp``
    (mode 0700). Both are removed when the context exits, whether the body
    succeeded or raised.

    Args:
        source: The uploaded form part.
        max_bytes: Largest accepted file size.
        chunk_size: Bytes copied per iteration.
        temp_dir: Parent for the staging directory (system default if None).

    Yields:
        Path: The fully written staging file.

    Raises:
        CapacityError: If the part exceeds ``max_bytes``.
        AssetIOError: If the staging file cannot be created or written.
    """
    try:
        staging_dir = Path(tempfile.mkdtemp(prefix="tubely-upload-", dir=temp_dir))
    except OSError as e:
        logger.exception("Couldn't create staging directory")
        raise AssetIOError("Couldn't create file on server") from e

    staged_path = staging_dir / "upload.mp4"
    try:
        try:
            async with aiofiles.open(staged_path, "wb") as out:
                size = await copy_stream(source, out, max_bytes, chunk_size)
        except OSError as e:
            raise AssetIOError("Couldn't write file") from e

        logger.debug("Staged %d bytes at %s", size, staged_path)
        yield staged_path
    finally:
        try:
            with suppress(FileNotFoundError):
                await aiofiles.os.remove(staged_path)
            await aiofiles.os.rmdir(staging_dir)
            logger.debug("Cleaned up staging directory: %s", staging_dir)
        except OSError as cleanup_error:
            logger.warning(
                "Failed to clean up staging directory %s: %s",
                staging_dir,
                str(cleanup_error),
            )
