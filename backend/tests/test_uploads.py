import re

import pytest

from conftest import JPEG_BYTES, PNG_BYTES
from seoreport.services.upload_service import (
    FileStore,
    sanitize_filename,
    validate_upload,
)


def test_png_passes():
    result = validate_upload("shot.png", "image/png", PNG_BYTES)
    assert result.is_valid
    assert result.validated_file.mime_type == "image/png"
    assert result.validated_file.size == len(PNG_BYTES)


def test_jpeg_passes_with_either_extension():
    assert validate_upload("a.jpg", "image/jpeg", JPEG_BYTES).is_valid
    assert validate_upload("a.JPEG", "image/jpeg", JPEG_BYTES).is_valid


@pytest.mark.parametrize("filename,content_type,data", [
    ("shell.php", "image/png", PNG_BYTES),
    ("noext", "image/png", PNG_BYTES),
    ("shot.png", "image/gif", PNG_BYTES),
    ("shot.png", "image/png", b"<?php echo 'hi'; ?>"),
    ("shot.jpg", "image/jpeg", PNG_BYTES),
])
def test_rejected_uploads(filename, content_type, data):
    result = validate_upload(filename, content_type, data)
    assert not result.is_valid
    assert result.error


def test_oversized_file_rejected():
    result = validate_upload("big.png", "image/png", PNG_BYTES + b"\x00" * 100, max_size=64)
    assert not result.is_valid
    assert "ขนาดใหญ่เกินไป" in result.error


def test_missing_file_rejected():
    assert not validate_upload(None, "image/png", None).is_valid


def test_sanitize_filename_strips_paths_and_is_unique():
    first = sanitize_filename("../../etc/pass wd.png")
    second = sanitize_filename("../../etc/pass wd.png")
    assert "/" not in first
    assert ".." not in first
    assert re.match(r"^pass_wd_\d+_[0-9a-f]{8}\.png$", first)
    assert first != second


def test_file_store_save_and_remove(tmp_path):
    store = FileStore(tmp_path)
    validated = validate_upload("slip.png", "image/png", PNG_BYTES).validated_file

    url = store.save("payments", validated)
    assert url.startswith("/uploads/payments/slip_")
    path = store.path_for(url)
    assert path.read_bytes() == PNG_BYTES

    assert store.remove(url) is True
    assert not path.exists()
    assert store.remove(url) is False


def test_file_store_refuses_paths_outside_uploads(tmp_path):
    (tmp_path / "secret.txt").write_text("keep me")
    store = FileStore(tmp_path / "public")

    assert store.path_for("/uploads/../../secret.txt") is None
    assert store.remove("/uploads/../../secret.txt") is False
    assert (tmp_path / "secret.txt").exists()
