import os

from flask import current_app
from werkzeug.utils import secure_filename

from utils.errors import ValidationError

HEADER_BASENAME = "header"
HEADER_EXTENSIONS = (".jpg", ".jpeg", ".png", ".gif", ".webp")
_MIME_EXTENSIONS = {
    "image/jpeg": ".jpg",
    "image/jpg": ".jpg",
    "image/png": ".png",
    "image/gif": ".gif",
    "image/webp": ".webp",
}


def _upload_dir() -> str:
    folder = current_app.config["UPLOAD_FOLDER"]
    os.makedirs(folder, exist_ok=True)
    return folder


def _remove_existing_headers(folder: str):
    for ext in HEADER_EXTENSIONS:
        path = os.path.join(folder, HEADER_BASENAME + ext)
        if os.path.exists(path):
            try:
                os.remove(path)
            except OSError:
                current_app.logger.exception("Could not delete old header image %s", path)


def save_header_image(file_storage) -> dict:
    """
    Stores an uploaded header image as header<ext>, replacing earlier ones.
    Returns {"url", "filename", "size"}.
    """
    allowed = current_app.config.get("ALLOWED_HEADER_MIME_TYPES", list(_MIME_EXTENSIONS))
    if file_storage.mimetype not in allowed:
        raise ValidationError("Invalid file type. Only images are allowed.")

    data = file_storage.read()
    if not data:
        raise ValidationError("Uploaded file is empty")
    max_bytes = current_app.config.get("MAX_HEADER_IMAGE_BYTES", 10 * 1024 * 1024)
    if len(data) > max_bytes:
        raise ValidationError(f"File size too large. Maximum {max_bytes // (1024 * 1024)}MB allowed.")

    ext = os.path.splitext(secure_filename(file_storage.filename or ""))[1].lower()
    if ext not in HEADER_EXTENSIONS:
        ext = _MIME_EXTENSIONS[file_storage.mimetype]

    folder = _upload_dir()
    _remove_existing_headers(folder)

    filename = HEADER_BASENAME + ext
    with open(os.path.join(folder, filename), "wb") as fh:
        fh.write(data)

    prefix = current_app.config.get("UPLOAD_URL_PREFIX", "/uploads/headers").rstrip("/")
    return {"url": f"{prefix}/{filename}", "filename": filename, "size": len(data)}


def delete_header_image(filename: str) -> bool:
    """Deletes a stored header image; returns False if it did not exist."""
    safe = secure_filename(filename or "")
    if not safe or safe != filename:
        raise ValidationError("Invalid filename")

    path = os.path.join(_upload_dir(), safe)
    if not os.path.exists(path):
        return False
    os.remove(path)
    return True
