"""QR badge rendering and decoding of uploaded badge photos."""
from __future__ import annotations

import io
from typing import IO, Optional

import qrcode
from PIL import Image, UnidentifiedImageError

from ..core.constants import QR_BORDER, QR_BOX_SIZE
from ..core.exceptions import ValidationError


def render_qr_png(value: str) -> bytes:
    qr = qrcode.QRCode(
        version=1,
        error_correction=qrcode.constants.ERROR_CORRECT_L,
        box_size=QR_BOX_SIZE,
        border=QR_BORDER,
    )
    qr.add_data(value)
    qr.make(fit=True)

    img = qr.make_image(fill_color="black", back_color="white")
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


def decode_qr_image(stream: IO[bytes]) -> Optional[str]:
    """Return the text of the first QR code found in an image, or None."""
    try:
        img = Image.open(stream).convert("RGB")
    except UnidentifiedImageError:
        raise ValidationError("image is not a readable picture", reason="invalid_image", fields=["image"])

    # pyzbar needs the native zbar library; load it only when a photo is decoded.
    from pyzbar.pyzbar import decode as pyzbar_decode

    for symbol in pyzbar_decode(img):
        try:
            text = symbol.data.decode("utf-8").strip()
        except UnicodeDecodeError:
            continue
        if text:
            return text
    return None
