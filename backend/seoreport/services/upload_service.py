"""
Upload Service - validation and storage of uploaded images

Only .jpg/.jpeg/.png images pass: extension, declared MIME type, size and
the file's magic bytes must all agree. Stored files live under
{root}/uploads/{category}/ and are referenced by the relative URL
/uploads/{category}/{filename}.
"""
import logging
import re
import time
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from fastapi import Request

from seoreport.config import MAX_UPLOAD_SIZE

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = (".jpg", ".jpeg", ".png")
ALLOWED_MIME_TYPES = ("image/jpeg", "image/png")

# File signatures
MAGIC_BYTES = {
    "image/jpeg": bytes([0xFF, 0xD8, 0xFF]),
    "image/png": bytes([0x89, 0x50, 0x4E, 0x47, 0x0D, 0x0A, 0x1A, 0x0A]),
}


@dataclass(frozen=True)
class ValidatedFile:
    data: bytes
    filename: str
    mime_type: str
    size: int


@dataclass(frozen=True)
class UploadValidation:
    """Either validated_file or error is set"""
    validated_file: Optional[ValidatedFile] = None
    error: Optional[str] = None

    @property
    def is_valid(self) -> bool:
        return self.validated_file is not None


def _extension(filename: str) -> str:
    dot = filename.rfind(".")
    return filename[dot:].lower() if dot != -1 else ""


def validate_extension(filename: str) -> Optional[str]:
    ext = _extension(filename)
    if ext not in ALLOWED_EXTENSIONS:
        return f"ไฟล์ประเภท {ext or '(ไม่มีนามสกุล)'} ไม่ได้รับอนุญาต อนุญาตเฉพาะ {', '.join(ALLOWED_EXTENSIONS)}"
    return None


def validate_mime_type(mime_type: Optional[str]) -> Optional[str]:
    if mime_type not in ALLOWED_MIME_TYPES:
        return f"MIME type {mime_type} ไม่ได้รับอนุญาต อนุญาตเฉพาะ {', '.join(ALLOWED_MIME_TYPES)}"
    return None


def validate_file_size(size: int, max_size: int = MAX_UPLOAD_SIZE) -> Optional[str]:
    if size > max_size:
        return f"ไฟล์มีขนาดใหญ่เกินไป (ไม่เกิน {max_size // (1024 * 1024)}MB)"
    return None


def validate_magic_bytes(data: bytes, mime_type: str) -> Optional[str]:
    """Reject files whose content does not match the declared type (e.g. a renamed .php)"""
    signature = MAGIC_BYTES.get(mime_type)
    if signature is None:
        return "ไม่สามารถตรวจสอบประเภทไฟล์ได้"
    if not data.startswith(signature):
        return "ไฟล์ไม่ตรงกับประเภทที่ระบุ (อาจมีการปลอมแปลงนามสกุลไฟล์)"
    return None


def sanitize_filename(filename: str) -> str:
    """Strip path traversal and odd characters, then make the name unique"""
    sanitized = Path(filename.replace("\\", "/")).name.replace("..", "")
    sanitized = re.sub(r"[^a-zA-Z0-9._-]", "_", sanitized)
    ext = _extension(sanitized)
    name = sanitized[: len(sanitized) - len(ext)] if ext else sanitized
    name = name.strip(".") or "file"
    timestamp = int(time.time() * 1000)
    return f"{name}_{timestamp}_{uuid.uuid4().hex[:8]}{ext}"


def validate_upload(
    filename: Optional[str],
    content_type: Optional[str],
    data: Optional[bytes],
    max_size: int = MAX_UPLOAD_SIZE,
) -> UploadValidation:
    """Run every check in order and stop at the first failure"""
    if not filename or data is None:
        return UploadValidation(error="ไม่พบไฟล์")

    for error in (
        validate_extension(filename),
        validate_mime_type(content_type),
        validate_file_size(len(data), max_size),
        validate_magic_bytes(data, content_type),
    ):
        if error:
            return UploadValidation(error=error)

    return UploadValidation(
        validated_file=ValidatedFile(
            data=data,
            filename=sanitize_filename(filename),
            mime_type=content_type,
            size=len(data),
        )
    )


class FileStore:
    """Writes validated files below the public upload root"""

    def __init__(self, root: Path):
        self.root = Path(root)

    @property
    def uploads_dir(self) -> Path:
        return self.root / "uploads"

    def save(self, category: str, validated_file: ValidatedFile) -> str:
        directory = self.uploads_dir / category
        directory.mkdir(parents=True, exist_ok=True)
        (directory / validated_file.filename).write_bytes(validated_file.data)
        return f"/uploads/{category}/{validated_file.filename}"

    def path_for(self, url: str) -> Optional[Path]:
        """Filesystem path for a stored URL, None when it points outside the upload dir"""
        path = (self.root / url.lstrip("/")).resolve()
        uploads = self.uploads_dir.resolve()
        if uploads != path and uploads not in path.parents:
            return None
        return path

    def remove(self, url: str) -> bool:
        """Best-effort delete; failures are logged and swallowed"""
        path = self.path_for(url)
        if path is None:
            logger.warning("Refusing to delete file outside upload dir: %s", url)
            return False
        if not path.exists():
            return False
        try:
            path.unlink()
            return True
        except OSError as e:
            logger.warning("Failed to delete file %s: %s", path, e)
            return False


def get_file_store(request: Request) -> FileStore:
    """Dependency returning the app's FileStore"""
    return request.app.state.file_store
