from __future__ import annotations

from typing import BinaryIO

from PIL import Image, UnidentifiedImageError
from pyzbar.pyzbar import decode as pyzbar_decode

from ..core.exceptions import ValidationError


def decode_reg_no(stream: BinaryIO) -> str:
    """Read the first barcode/QR symbol in an ID-card photo and return its text."""
    try:
        img = Image.open(stream).convert("RGB")
    except (UnidentifiedImageError, OSError):
        raise ValidationError("Uploaded file is not a readable image")

    decoded = pyzbar_decode(img)
    if not decoded:
        raise ValidationError("No barcode found in image")

    try:
        text = decoded[0].data.decode("utf-8").strip()
    except UnicodeDecodeError:
        raise ValidationError("Barcode does not contain a text registration number")
    if not text:
        raise ValidationError("Barcode is empty")
    return text
