"""Ticket codes and the QR images printed on tickets."""
import base64
import hashlib
import io
import re
import secrets
import time

import qrcode
from PIL import Image
from qrcode.constants import ERROR_CORRECT_M
from qrcode.exceptions import DataOverflowError

from occasio.exceptions import EncodingError

TICKET_CODE_PREFIX = "TKT"
TICKET_CODE_PATTERN = re.compile(r"^TKT-\d+-[A-Z0-9]{8}$")
QR_IMAGE_WIDTH = 300
QR_BORDER = 2


def generate_ticket_code(event_id: int, user_id: int) -> str:
    """
    Generate a ticket code of the form ``TKT-{event_id}-{digest}``.

    The digest is the first 8 hex characters (upper-cased) of a SHA-256 over
    the event id, user id, a nanosecond timestamp and a random salt. Codes are
    unique with overwhelming probability; the ``ticket_code`` unique
    constraint catches the rest.
    """
    timestamp = time.time_ns()
    salt = secrets.token_hex(4)
    digest = (
        hashlib.sha256(f"{event_id}-{user_id}-{timestamp}-{salt}".encode("utf-8"))
        .hexdigest()[:8]
        .upper()
    )
    return f"{TICKET_CODE_PREFIX}-{event_id}-{digest}"


def is_valid_ticket_code(ticket_code: str) -> bool:
    return bool(ticket_code) and TICKET_CODE_PATTERN.match(ticket_code) is not None


def generate_qr_code(ticket_code: str, width: int = QR_IMAGE_WIDTH) -> str:
    """
    Render a ticket code as a PNG QR code and return it as a data URI.

    Only the ticket code is encoded; it already identifies the event.

    Raises:
        EncodingError: if the code is empty or does not fit in a QR symbol.
    """
    if not ticket_code:
        raise EncodingError("Cannot encode an empty ticket code")

    qr = qrcode.QRCode(
        version=None,
        error_correction=ERROR_CORRECT_M,
        box_size=10,
        border=QR_BORDER,
    )
    try:
        qr.add_data(ticket_code)
        qr.make(fit=True)
    except (DataOverflowError, ValueError) as e:
        # qrcode 8 reports an oversized payload as ValueError("Invalid version ...")
        raise EncodingError(f"Ticket code too long to encode: {e}") from e

    image = qr.make_image(fill_color="black", back_color="white").get_image()
    image = image.convert("L").resize((width, width), Image.NEAREST)

    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    encoded = base64.b64encode(buffer.getvalue()).decode("ascii")
    return f"data:image/png;base64,{encoded}"


def issue_ticket(event_id: int, user_id: int):
    """Return a fresh ``(ticket_code, qr_code)`` pair."""
    ticket_code = generate_ticket_code(event_id, user_id)
    return ticket_code, generate_qr_code(ticket_code)
