"""
End-to-end tests for the upload endpoint.
"""

import io

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from api.endpoints.upload import get_upload_manager
from main import app
from models.upload import UploadOptions
from services.multipart import MultipartDecoder
from services.upload_manager import UploadManager

TIMESTAMP = 1700000000


def image_bytes(width: int, height: int, format: str = 'JPEG') -> bytes:
    buffer = io.BytesIO()
    Image.new('RGB', (width, height), color='orange').save(buffer, format=format)
    return buffer.getvalue()


@pytest.fixture
def use_manager(tmp_path):
    """Install an upload manager for the app, writing below tmp_path."""
    managers = []

    def install(max_upload_size: int = 10 * 1024 * 1024, **option_values):
        option_values.setdefault("base_path", str(tmp_path / "app"))
        manager = UploadManager(
            UploadOptions(**option_values),
            decoder=MultipartDecoder(max_upload_size=max_upload_size, max_files=20),
            max_workers=2,
            clock=lambda: TIMESTAMP
        )
        managers.append(manager)
        app.dependency_overrides[get_upload_manager] = lambda: manager
        return manager

    yield install

    app.dependency_overrides.clear()
    for manager in managers:
        manager.shutdown()


@pytest.fixture
def client():
    return TestClient(app)


def test_resized_derivatives(client, use_manager, tmp_path):
    use_manager(file_compression=True, file_resize_ratio=[[100, 100], [200, 200]], image_quality=70)

    response = client.post(
        "/api/v1/upload",
        files=[("avatar", ("avatar.jpg", image_bytes(500, 500), "image/jpeg"))]
    )

    assert response.status_code == 200
    body = response.json()
    assert body["code"] == 200
    assert [item["file_name"] for item in body["data"]] == [
        f"avatar_100x100_{TIMESTAMP}.jpeg",
        f"avatar_200x200_{TIMESTAMP}.jpeg",
    ]
    first = body["data"][0]
    assert first["field_name"] == "avatar"
    assert first["original_name"] == "avatar.jpg"
    assert first["mime_type"] == "image/jpeg"
    assert first["destination_path"] == str(tmp_path / "public" / first["file_name"])
    with Image.open(first["destination_path"]) as img:
        assert img.size == (100, 100)
    assert "X-Request-ID" in response.headers


def test_passthrough_png(client, use_manager, tmp_path):
    use_manager()
    source = image_bytes(30, 30, 'PNG')

    response = client.post("/api/v1/upload", files={"doc": ("doc.png", source, "image/png")})

    assert response.status_code == 200
    data = response.json()["data"]
    assert len(data) == 1
    assert data[0]["file_name"] == f"doc_{TIMESTAMP}.jpeg"
    assert (tmp_path / "public" / data[0]["file_name"]).read_bytes() == source


def test_rejected_extension_is_400(client, use_manager, tmp_path):
    use_manager(file_compression=True)

    response = client.post(
        "/api/v1/upload",
        files=[
            ("avatar", ("avatar.jpg", image_bytes(20, 20), "image/jpeg")),
            ("notes", ("notes.txt", b"hello", "text/plain")),
        ]
    )

    assert response.status_code == 400
    body = response.json()
    assert body["code"] == 400
    assert body["data"] == {}
    assert body["error"]["type"] == "INVALID_FILE_TYPE"
    assert not (tmp_path / "public").exists()


def test_no_files_is_empty_success(client, use_manager):
    use_manager()

    response = client.post("/api/v1/upload")

    assert response.status_code == 200
    assert response.json() == {"code": 200, "data": []}


def test_plain_form_fields_are_ignored(client, use_manager):
    use_manager()

    response = client.post(
        "/api/v1/upload",
        data={"caption": "holiday"},
        files={"photo": ("photo.jpg", image_bytes(10, 10), "image/jpeg")}
    )

    assert response.status_code == 200
    assert [item["field_name"] for item in response.json()["data"]] == ["photo"]


def test_missing_boundary_is_decoder_error(client, use_manager):
    use_manager()

    response = client.post(
        "/api/v1/upload",
        content=b"garbage",
        headers={"Content-Type": "multipart/form-data"}
    )

    assert response.status_code == 500
    assert response.json()["error"]["type"] == "DECODER_ERROR"


def test_body_too_large_is_decoder_error(client, use_manager):
    use_manager(max_upload_size=100)

    response = client.post(
        "/api/v1/upload",
        files={"avatar": ("avatar.jpg", image_bytes(200, 200), "image/jpeg")}
    )

    assert response.status_code == 500
    assert response.json()["error"]["type"] == "DECODER_ERROR"


def test_health_endpoints(client, use_manager):
    manager = use_manager()

    assert client.get("/health").json()["status"] == "healthy"
    status = client.get("/api/v1/health/status").json()
    assert status["output_dir"] == manager.options.output_dir
    assert client.get("/api/v1/health/ready").json()["ready"] is False
