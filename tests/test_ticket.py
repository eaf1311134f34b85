import base64
import io

import pytest
from PIL import Image

from occasio.exceptions import EncodingError
from occasio.utils.ticket import (
    generate_qr_code,
    generate_ticket_code,
    is_valid_ticket_code,
    issue_ticket,
)


def test_ticket_code_format():
    code = generate_ticket_code(42, 7)

    assert code.startswith("TKT-42-")
    assert is_valid_ticket_code(code)
    assert len(code.split("-")[2]) == 8


def test_ticket_codes_differ_for_same_pair():
    codes = {generate_ticket_code(1, 1) for _ in range(50)}
    assert len(codes) == 50


@pytest.mark.parametrize(
    "code",
    ["", None, "TKT-1-abcdef12", "TKT-x-ABCDEF12", "TKT-1-ABCDEF1", "XYZ-1-ABCDEF12", "TKT-1-ABCDEF123"],
)
def test_invalid_ticket_codes_rejected(code):
    assert not is_valid_ticket_code(code)


def test_qr_code_is_png_data_uri_of_requested_width():
    uri = generate_qr_code("TKT-3-0A1B2C3D")

    assert uri.startswith("data:image/png;base64,")
    image = Image.open(io.BytesIO(base64.b64decode(uri.split(",", 1)[1])))
    assert image.format == "PNG"
    assert image.size == (300, 300)


def test_qr_code_custom_width():
    uri = generate_qr_code("TKT-3-0A1B2C3D", width=120)
    image = Image.open(io.BytesIO(base64.b64decode(uri.split(",", 1)[1])))
    assert image.size == (120, 120)


def test_qr_code_rejects_empty_code():
    with pytest.raises(EncodingError):
        generate_qr_code("")


def test_qr_code_rejects_oversized_payload():
    with pytest.raises(EncodingError):
        generate_qr_code("X" * 5000)


def test_issue_ticket_returns_code_and_image():
    code, qr = issue_ticket(5, 9)
    assert code.startswith("TKT-5-")
    assert qr.startswith("data:image/png;base64,")
