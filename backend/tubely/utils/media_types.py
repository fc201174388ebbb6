"""
Media type validation for uploaded form parts.

The declared ``Content-Type`` of a form part is the only content check made
on uploads: bytes are never sniffed. Each route has an allow-list and
anything outside it is rejected before a single byte is written.
"""

from tubely.core.errors import BadRequestError, UnsupportedMediaTypeError


# Thumbnail media types mapped to the file extension used on disk
THUMBNAIL_MEDIA_TYPES: dict[str, str] = {
    "image/jpeg": "jpeg",
    "image/png": "png",
}

VIDEO_MEDIA_TYPE = "video/mp4"


def parse_media_type(content_type: str | None) -> str:
    """
    Reduce a Content-Type header value to its bare media type.

    Parameters such as ``; charset=binary`` are dropped and the result is
    lowercased, so ``Image/PNG; foo=bar`` becomes ``image/png``.

    Args:
        content_type: The raw header value, possibly missing.

    Returns:
        str: The ``type/subtype`` media type.

    Raises:
        BadRequestError: If the value is empty or not of the form type/subtype.
    """
    if not content_type:
        raise BadRequestError("Invalid Content-Type")

    media_type = content_type.split(";", 1)[0].strip().lower()
    main_type, sep, subtype = media_type.partition("/")
    if not sep or not main_type or not subtype or "/" in subtype:
        raise BadRequestError("Invalid Content-Type")

    return media_type


def resolve_thumbnail_extension(content_type: str | None) -> str:
    """
    Map a thumbnail part's declared type to the extension it is stored under.

    Raises:
        BadRequestError: If the header cannot be parsed.
        UnsupportedMediaTypeError: If the type is not JPEG or PNG.
    """
    media_type = parse_media_type(content_type)
    try:
        return THUMBNAIL_MEDIA_TYPES[media_type]
    except KeyError:
        raise UnsupportedMediaTypeError("Invalid file type") from None


def ensure_video_media_type(content_type: str | None) -> str:
    """
    Accept only MP4 video parts.

    Returns:
        str: ``video/mp4``.

    Raises:
        BadRequestError: If the header cannot be parsed.
        UnsupportedMediaTypeError: If the type is anything other than video/mp4.
    """
    media_type = parse_media_type(content_type)
    if media_type != VIDEO_MEDIA_TYPE:
        raise UnsupportedMediaTypeError("Invalid file type")
    return media_type
