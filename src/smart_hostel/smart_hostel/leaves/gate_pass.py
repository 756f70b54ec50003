from __future__ import annotations

import io
import secrets
import string
from datetime import datetime

import qrcode

_ALPHABET = string.ascii_uppercase + string.digits


def new_gate_pass_id(now: datetime) -> str:
    """GP-<epoch millis>-<9 random uppercase alphanumerics>."""

    millis = int(now.timestamp() * 1000)
    suffix = "".join(secrets.choice(_ALPHABET) for _ in range(9))
    return f"GP-{millis}-{suffix}"


def render_qr_png(data: str) -> bytes:
    qr = qrcode.QRCode(
        version=1,
        error_correction=qrcode.constants.ERROR_CORRECT_L,
        box_size=10,
        border=2,
    )
    qr.add_data(data)
    qr.make(fit=True)

    img = qr.make_image(fill_color="black", back_color="white")
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()
