import base64
import binascii
import os
import re
import uuid
from typing import Optional

from flask import current_app, has_request_context, url_for

DATA_URL_PATTERN = re.compile(r"^data:([^;]+);base64,(.+)$", re.DOTALL)

MIME_EXTENSIONS = {
    "image/jpeg": "jpg",
    "image/jpg": "jpg",
    "image/png": "png",
    "image/gif": "gif",
    "image/webp": "webp",
    "image/svg+xml": "svg",
}


def _upload_root() -> str:
    return current_app.config["UPLOAD_FOLDER"]


def save_base64_image(data_url: str, subdir: str = "events") -> Optional[str]:
    """
    Store a ``data:image/...;base64,...`` payload on disk.

    Returns the path relative to the upload folder (e.g. ``events/<name>.png``).
    Values that are not data URLs (already hosted images) are returned as-is.
    Returns None if the payload cannot be decoded or has an unsupported type.
    """
    if not data_url or not data_url.startswith("data:"):
        return data_url

    match = DATA_URL_PATTERN.match(data_url)
    if not match:
        current_app.logger.warning("Invalid base64 data URL format for uploaded image")
        return None

    mime_type, payload = match.group(1).lower(), match.group(2)
    extension = MIME_EXTENSIONS.get(mime_type)
    if not extension:
        current_app.logger.warning(f"Unsupported image MIME type: {mime_type}")
        return None

    try:
        content = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        current_app.logger.warning(f"Could not decode uploaded image: {e}")
        return None

    target_dir = os.path.join(_upload_root(), subdir)
    os.makedirs(target_dir, exist_ok=True)
    filename = f"{uuid.uuid4().hex}.{extension}"
    try:
        with open(os.path.join(target_dir, filename), "wb") as fh:
            fh.write(content)
    except OSError as e:
        current_app.logger.error(f"Error saving uploaded image: {e}", exc_info=True)
        return None

    current_app.logger.info(f"Saved uploaded image {subdir}/{filename} ({len(content)} bytes)")
    return f"{subdir}/{filename}"


def store_image(image: Optional[str], subdir: str = "events") -> Optional[str]:
    """Persist an image field: data URLs are stored, anything else kept."""
    if not image:
        return None
    return save_base64_image(image, subdir=subdir) or image


def delete_file(relative_path: str) -> None:
    if not relative_path or relative_path.startswith(("http", "data:")):
        return
    full_path = os.path.join(_upload_root(), relative_path)
    try:
        if os.path.exists(full_path):
            os.remove(full_path)
    except OSError as e:
        current_app.logger.error(f"Error deleting file {full_path}: {e}")


def image_url(image: Optional[str]) -> Optional[str]:
    """Turn a stored upload path into a URL; hosted URLs pass through."""
    if not image or image.startswith(("http://", "https://", "data:")):
        return image
    if has_request_context():
        return url_for("serve_upload", filename=image, _external=True)
    return f"/uploads/{image}"
