"""Tests for the image upload endpoint."""
import os

from fastapi.testclient import TestClient

from conftest import UPLOAD_DIR, auth
from app.main import app

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


def upload(client, content=PNG_BYTES, content_type="image/png", filename="x.png", headers=None):
    return client.post(
        "/api/products/upload",
        files={"image": (filename, content, content_type)},
        headers={**auth("user_alice"), **(headers or {})},
    )


def stored_name(image_url):
    return image_url.rsplit("/", 1)[-1]


def test_upload_image(client):
    """Test uploading an image stores it and returns a public URL."""
    response = upload(client)

    assert response.status_code == 201
    image_url = response.json()["imageUrl"]
    assert image_url.startswith("http://testserver/uploads/")
    assert image_url.endswith(".png")

    # The client file name is never used for storage
    name = stored_name(image_url)
    assert name != "x.png"
    with open(os.path.join(UPLOAD_DIR, name), "rb") as f:
        assert f.read() == PNG_BYTES


def test_uploaded_image_is_served(client):
    """Test the returned URL resolves to the stored bytes."""
    image_url = upload(client).json()["imageUrl"]

    response = client.get(f"/uploads/{stored_name(image_url)}")

    assert response.status_code == 200
    assert response.content == PNG_BYTES


def test_upload_requires_auth(client):
    response = client.post(
        "/api/products/upload",
        files={"image": ("x.png", PNG_BYTES, "image/png")},
    )

    assert response.status_code == 401


def test_upload_without_file(client):
    """Test a request without the image field returns 400."""
    response = client.post("/api/products/upload", headers=auth("user_alice"))

    assert response.status_code == 400
    assert response.json()["fields"] == ["image"]


def test_upload_rejects_non_image(client):
    """Test a text/plain upload is rejected."""
    response = upload(client, content=b"hello", content_type="text/plain", filename="notes.txt")

    assert response.status_code == 400
    assert response.json()["code"] == "INVALID_INPUT"


def test_upload_rejects_large_file(client):
    """Test a 6 MiB upload is rejected by the default 5 MiB ceiling."""
    before = set(os.listdir(UPLOAD_DIR))

    response = upload(client, content=b"\x00" * (6 * 1024 * 1024))

    assert response.status_code == 413
    assert response.json()["code"] == "PAYLOAD_TOO_LARGE"
    assert set(os.listdir(UPLOAD_DIR)) == before


def test_upload_respects_configured_ceiling(client, override_settings):
    override_settings(MAX_UPLOAD_SIZE=16)

    response = upload(client, content=b"\x00" * 32)

    assert response.status_code == 413


def test_upload_uses_base_url(client, override_settings):
    """Test a configured base URL wins over the request host."""
    override_settings(BASE_URL="https://api.example.com/")

    response = upload(client, headers={"X-Forwarded-Host": "evil.example.com"})

    image_url = response.json()["imageUrl"]
    assert image_url == f"https://api.example.com/uploads/{stored_name(image_url)}"


def test_upload_uses_request_scheme_and_host(client):
    """Test the URL follows the request when no base URL is configured."""
    with TestClient(app, base_url="https://app.example.com") as https_client:
        response = upload(https_client, content_type="image/jpeg", filename="y.jpg")

    image_url = response.json()["imageUrl"]
    assert image_url.startswith("https://app.example.com/uploads/")
    assert image_url.endswith(".jpg")


def test_upload_honours_forwarded_headers(client, override_settings):
    """Test forwarding headers are used when the proxy is trusted."""
    override_settings(TRUST_PROXY=True)

    response = upload(
        client,
        headers={"X-Forwarded-Proto": "https", "X-Forwarded-Host": "shop.example.com"},
    )

    assert response.json()["imageUrl"].startswith("https://shop.example.com/uploads/")


def test_upload_ignores_forwarded_headers_without_trust(client, override_settings):
    override_settings(TRUST_PROXY=False)

    response = upload(
        client,
        headers={"X-Forwarded-Proto": "https", "X-Forwarded-Host": "shop.example.com"},
    )

    assert response.json()["imageUrl"].startswith("http://testserver/uploads/")
