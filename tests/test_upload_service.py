"""Tests for image ingestion and public URL construction."""
import io
import os

import pytest

from app.services.errors import InvalidInputError, PayloadTooLargeError, StorageFailureError
from app.services.upload_service import (
    ImageUploadService,
    build_public_url,
    resolve_request_origin,
)

ALLOWED = ["image/jpeg", "image/png", "image/gif", "image/webp"]
MIB = 1024 * 1024


@pytest.fixture
def service(tmp_path):
    return ImageUploadService(
        upload_dir=str(tmp_path),
        max_size=5 * MIB,
        allowed_types=ALLOWED,
    )


def test_base_url_trailing_slash_is_trimmed():
    assert (
        build_public_url("x.png", base_url="https://api.example.com/")
        == "https://api.example.com/uploads/x.png"
    )


def test_url_from_request_scheme_and_host():
    origin = resolve_request_origin("https", {"host": "app.example.com"}, trust_proxy=False)

    assert build_public_url("y.jpg", origin=origin) == "https://app.example.com/uploads/y.jpg"


def test_forwarded_headers_use_first_hop():
    headers = {
        "host": "10.0.0.5:8000",
        "x-forwarded-proto": "https, http",
        "x-forwarded-host": "shop.example.com, internal.local",
    }

    assert resolve_request_origin("http", headers, trust_proxy=True) == "https://shop.example.com"
    assert resolve_request_origin("http", headers, trust_proxy=False) == "http://10.0.0.5:8000"


def test_ingest_rejects_text_plain(service, tmp_path):
    with pytest.raises(InvalidInputError):
        service.ingest(io.BytesIO(b"hello"), "text/plain", 5)

    assert os.listdir(tmp_path) == []


def test_ingest_rejects_declared_size_over_ceiling(service, tmp_path):
    with pytest.raises(PayloadTooLargeError):
        service.ingest(io.BytesIO(b""), "image/png", 6 * MIB)

    assert os.listdir(tmp_path) == []


def test_ingest_enforces_ceiling_while_streaming(tmp_path):
    """Test a stream larger than its declared size is still rejected."""
    service = ImageUploadService(str(tmp_path), max_size=100, allowed_types=ALLOWED)

    with pytest.raises(PayloadTooLargeError):
        service.ingest(io.BytesIO(b"\x00" * 101), "image/png", 10)

    assert os.listdir(tmp_path) == []


def test_ingest_accepts_file_at_ceiling(tmp_path):
    service = ImageUploadService(str(tmp_path), max_size=100, allowed_types=ALLOWED)

    url = service.ingest(io.BytesIO(b"\x00" * 100), "image/gif", 100, headers={"host": "localhost"})

    assert url.startswith("http://localhost/uploads/")
    assert len(os.listdir(tmp_path)) == 1


def test_ingest_with_base_url(tmp_path):
    service = ImageUploadService(
        str(tmp_path),
        max_size=MIB,
        allowed_types=ALLOWED,
        base_url="https://api.example.com/",
    )

    url = service.ingest(io.BytesIO(b"data"), "image/webp", 4, headers={"host": "ignored"})

    name = os.listdir(tmp_path)[0]
    assert url == f"https://api.example.com/uploads/{name}"
    assert name.endswith(".webp")


def test_storage_keys_are_unique(service):
    keys = {service.generate_storage_key("image/png") for _ in range(100)}

    assert len(keys) == 100
    assert all(key.endswith(".png") and "/" not in key for key in keys)


def test_ingest_write_failure(tmp_path):
    """Test a missing upload directory is reported as a storage failure."""
    service = ImageUploadService(
        str(tmp_path / "missing"),
        max_size=MIB,
        allowed_types=ALLOWED,
    )

    with pytest.raises(StorageFailureError):
        service.ingest(io.BytesIO(b"data"), "image/png", 4)
