import logging
import os
import uuid
from pathlib import Path

from fastapi import UploadFile

logger = logging.getLogger(__name__)

PDF_CONTENT_TYPES = ("application/pdf", "application/x-pdf")


def upload_dir() -> Path:
    return Path(os.getenv("UPLOAD_DIR", "/app/data/uploads"))


def ensure_upload_dir() -> Path:
    path = upload_dir()
    path.mkdir(parents=True, exist_ok=True)
    return path


def is_pdf_upload(upload: UploadFile) -> bool:
    name = (upload.filename or "").lower()
    return name.endswith(".pdf") and (upload.content_type or "") in PDF_CONTENT_TYPES


def save_uploaded_file(upload: UploadFile, subdir: str = "") -> tuple[str, str, int]:
    """
    Save an uploaded file under the upload directory.
    Returns (relative_path, original_filename, size_in_bytes).
    relative_path is what gets stored in the DB (e.g. insurance/abc123.pdf).
    """
    target_dir = ensure_upload_dir() / subdir if subdir else ensure_upload_dir()
    target_dir.mkdir(parents=True, exist_ok=True)
    ext = Path(upload.filename or "bin").suffix
    unique_name = f"{uuid.uuid4().hex}{ext}"
    path = target_dir / unique_name
    content = upload.file.read()
    with open(path, "wb") as f:
        f.write(content)
    relative_path = f"{subdir}/{unique_name}" if subdir else unique_name
    logger.info("Stored upload %s as %s (%d bytes)", upload.filename, relative_path, len(content))
    return relative_path, upload.filename or unique_name, len(content)


def delete_stored_file(relative_path: str | None) -> None:
    if not relative_path:
        return
    path = upload_dir() / relative_path
    try:
        path.unlink()
    except FileNotFoundError:
        logger.warning("Stored file already missing: %s", path)
