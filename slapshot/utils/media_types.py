"""
Content detection for uploads.

The declared content type and the client's file name are never trusted: the
type and the stored extension both come from the bytes. Images are opened and
verified with Pillow; videos are recognized by their container signature.
"""

import logging
import struct
from io import BytesIO
from typing import NamedTuple, Optional

from PIL import Image

logger = logging.getLogger(__name__)

# Pillow's decompression bomb guard
Image.MAX_IMAGE_PIXELS = 50_000_000

IMAGE_FORMATS = {
    "JPEG": ("image/jpeg", "jpg"),
    "PNG": ("image/png", "png"),
    "GIF": ("image/gif", "gif"),
    "WEBP": ("image/webp", "webp"),
}

# ISO base media brands that hold still images, not video
IMAGE_BRANDS = {b"heic", b"heix", b"hevc", b"mif1", b"msf1", b"avif", b"avis"}


class DetectedType(NamedTuple):
    kind: str
    mime_type: str
    extension: str


def detect_image(data: bytes) -> Optional[DetectedType]:
    """Return the image type if Pillow can open and verify the bytes."""
    try:
        with Image.open(BytesIO(data)) as img:
            image_format = img.format
            img.verify()
    except (OSError, SyntaxError, ValueError, struct.error, Image.DecompressionBombError) as e:
        logger.debug(f"Upload is not a readable image: {str(e)}")
        return None

    known = IMAGE_FORMATS.get(image_format or "")
    if known is None:
        return None
    return DetectedType("image", *known)


def detect_video(data: bytes) -> Optional[DetectedType]:
    """Recognize MP4/MOV/3GP, Matroska/WebM and AVI containers."""
    if data[4:8] == b"ftyp":
        brand = data[8:12]
        if brand in IMAGE_BRANDS:
            return None
        if brand == b"qt  ":
            return DetectedType("video", "video/quicktime", "mov")
        if brand.startswith(b"3g"):
            return DetectedType("video", "video/3gpp", "3gp")
        return DetectedType("video", "video/mp4", "mp4")

    if data[:4] == b"\x1a\x45\xdf\xa3":
        if b"webm" in data[:64]:
            return DetectedType("video", "video/webm", "webm")
        return DetectedType("video", "video/x-matroska", "mkv")

    if data[:4] == b"RIFF" and data[8:12] == b"AVI ":
        return DetectedType("video", "video/x-msvideo", "avi")
    return None


def detect_media(data: bytes) -> Optional[DetectedType]:
    return detect_image(data) or detect_video(data)


# Every extension detection can produce; nothing else is served from uploads
SERVED_EXTENSIONS = {ext for _, ext in IMAGE_FORMATS.values()} | {"mp4", "mov", "3gp", "webm", "mkv", "avi"}
