"""Validation and encoding helpers for uploaded images."""

from __future__ import annotations

import base64
import binascii
import io
from typing import Optional

from fastapi import HTTPException, UploadFile
from PIL import Image, UnidentifiedImageError

ALLOWED_IMAGE_TYPES = {
    "image/jpeg",
    "image/jpg",
    "image/png",
    "image/webp",
}

MAX_IMAGE_BYTES = 10 * 1024 * 1024

_PILLOW_FORMATS = {
    "JPEG": "image/jpeg",
    "PNG": "image/png",
    "WEBP": "image/webp",
}


class UploadValidationError(ValueError):
    """Raised when an upload is rejected before any remote call."""


def detect_image_type(raw: bytes) -> Optional[str]:
    """Return the MIME type Pillow recognises in `raw`, or None."""
    try:
        with Image.open(io.BytesIO(raw)) as img:
            image_format = img.format
    except (UnidentifiedImageError, OSError):
        return None
    return _PILLOW_FORMATS.get(image_format or "")


def validate_image_upload(raw: bytes, content_type: Optional[str] = None) -> str:
    """Check type and size of an image upload and return its MIME type.

    The declared content type is trusted when present; otherwise the bytes are
    sniffed with Pillow.

    Raises:
        UploadValidationError: If the file is empty, of an unsupported type, or
            larger than 10 MiB.
    """
    if not raw:
        raise UploadValidationError("Uploaded image is empty.")
    if content_type:
        mime_type = content_type.lower().split(";", 1)[0].strip()
    else:
        mime_type = detect_image_type(raw) or ""
    if mime_type not in ALLOWED_IMAGE_TYPES:
        raise UploadValidationError("Please upload a valid image file (JPEG, PNG, WebP)")
    if len(raw) > MAX_IMAGE_BYTES:
        raise UploadValidationError("Image size must be less than 10MB")
    return mime_type


def encode_image_payload(raw: bytes) -> str:
    """Return the base64 text carried by the upload contract call."""
    return base64.b64encode(raw).decode("ascii")


def decode_image_payload(payload: str | bytes) -> bytes:
    """Decode a base64 upload payload back to the original bytes."""
    try:
        return base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise UploadValidationError("Invalid base64 image payload.") from exc


async def read_image_bytes(image_file: UploadFile) -> bytes:
    """Read an uploaded image, ensuring the upload is not empty."""
    image_bytes = await image_file.read()
    if not image_bytes:
        raise HTTPException(status_code=400, detail="Uploaded image is empty.")
    return image_bytes
