from __future__ import annotations

import io
from typing import BinaryIO

import qrcode
from PIL import Image
from pyzbar.pyzbar import decode as pyzbar_decode

from ..core.enums import CheckInErrorCode
from ..core.exceptions import CheckInError


def render_png(payload: str) -> bytes:
    """Render an encoded token as a PNG QR code."""
    qr = qrcode.QRCode(
        version=None,
        error_correction=qrcode.constants.ERROR_CORRECT_M,
        box_size=10,
        border=4,
    )
    qr.add_data(payload)
    qr.make(fit=True)

    img = qr.make_image(fill_color="black", back_color="white")

    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


def decode_image(stream: BinaryIO) -> str:
    """Return the text of the first QR code found in an uploaded image."""
    try:
        img = Image.open(stream).convert("RGB")
    except OSError:
        raise CheckInError(CheckInErrorCode.MALFORMED_TOKEN, "Uploaded file is not an image")

    decoded = pyzbar_decode(img)
    if not decoded:
        raise CheckInError(CheckInErrorCode.MALFORMED_TOKEN, "No QR code found in image")
    return decoded[0].data.decode("utf-8", errors="replace").strip()
