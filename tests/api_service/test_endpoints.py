import pytest
from fastapi.testclient import TestClient
from unittest.mock import MagicMock, patch

from api_service.src.main import app
from domain.models import RetirementReport
from shared_utils.constants import APIEndpoints
from shared_utils.di_container import get_di_container
from shared_utils.error_handler import CatalogError, StorageError

from conftest import APK_CONTENT_TYPE

client = TestClient(app)


@pytest.fixture(autouse=True)
def fresh_container():
    """Each test starts with empty in-memory stores."""
    container = get_di_container()
    container.reset()
    yield container
    container.reset()


def _upload(name="Demo App", with_image=True, artifact_field="apkFile", image_field="imageFile"):
    files = {artifact_field: ("demo.apk", b"A" * 1024, APK_CONTENT_TYPE)}
    if with_image:
        files[image_field] = ("icon.png", b"P" * 500, "image/png")
    data = {"name": name, "description": "x", "category": "tools"} if name is not None else {}
    return client.post(APIEndpoints.UPLOAD_ARTIFACT, data=data, files=files)


def test_health_check():
    response = client.get(APIEndpoints.HEALTH)
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert response.json()["catalog_backend"] == "memory"


# ---------------------------------------------------------------------------
# Admin gate
# ---------------------------------------------------------------------------

def test_admin_auth_accepts_configured_code():
    response = client.post(APIEndpoints.ADMIN_AUTH, json={"code": "test-admin-code"})
    assert response.status_code == 200
    assert response.json() == {"success": True}


def test_admin_auth_rejects_wrong_code():
    response = client.post(APIEndpoints.ADMIN_AUTH, json={"code": "nope"})
    assert response.status_code == 401
    assert response.json() == {"success": False}


def test_admin_auth_rejects_missing_code():
    response = client.post(APIEndpoints.ADMIN_AUTH, json={})
    assert response.status_code == 401


# ---------------------------------------------------------------------------
# Upload
# ---------------------------------------------------------------------------

def test_upload_success():
    response = _upload()

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    apk = body["apk"]
    assert apk["slug"].startswith("demo-app-")
    assert apk["name"] == "Demo App"
    assert apk["artifactUrl"].endswith("-demo.apk")
    assert apk["previewUrl"].endswith("-icon.png")
    assert apk["artifactSizeBytes"] == 1024


def test_upload_accepts_short_field_aliases():
    response = _upload(artifact_field="apk", image_field="image")
    assert response.status_code == 200
    assert response.json()["apk"]["previewUrl"] is not None


def test_upload_without_preview():
    response = _upload(with_image=False)
    assert response.status_code == 200
    assert response.json()["apk"]["previewUrl"] is None


def test_upload_missing_artifact():
    response = client.post(APIEndpoints.UPLOAD_ARTIFACT, data={"name": "Demo App"})
    assert response.status_code == 400
    assert response.json()["error"]["message"] == "Artifact file missing"
    assert client.get(APIEndpoints.LIST_ARTIFACTS).json() == []


def test_upload_missing_name():
    response = _upload(name=None)
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "INVALID_INPUT"


def test_upload_name_without_letters(fresh_container):
    response = _upload(name="!!!")
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "INVALID_NAME"
    assert fresh_container.get_blob_store().list_blobs() == []


def test_upload_empty_artifact():
    files = {"apkFile": ("demo.apk", b"", APK_CONTENT_TYPE)}
    response = client.post(APIEndpoints.UPLOAD_ARTIFACT, data={"name": "Demo App"}, files=files)
    assert response.status_code == 400


@patch("api_service.src.main.get_di_container")
def test_upload_storage_failure(mock_container):
    mock_container.return_value.get_ingestion_service.return_value.ingest.side_effect = StorageError(
        "Failed to store artifact for demo-app-1"
    )
    response = _upload()
    assert response.status_code == 500
    assert response.json()["error"]["code"] == "STORAGE_ERROR"


@patch("api_service.src.main.get_di_container")
def test_upload_unexpected_error_uses_envelope(mock_container):
    mock_container.return_value.get_ingestion_service.return_value.ingest.side_effect = RuntimeError("boom")
    response = _upload()
    assert response.status_code == 500
    assert "boom" in response.json()["error"]["message"]


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------

def test_list_newest_first():
    first = _upload(name="First App").json()["apk"]["slug"]
    second = _upload(name="Second App").json()["apk"]["slug"]

    listed = client.get(APIEndpoints.LIST_ARTIFACTS).json()

    assert [item["slug"] for item in listed] == [second, first]


def test_get_by_slug():
    slug = _upload().json()["apk"]["slug"]
    response = client.get(f"/api/apk/{slug}")
    assert response.status_code == 200
    assert response.json()["slug"] == slug


def test_get_unknown_slug():
    response = client.get("/api/apk/does-not-exist")
    assert response.status_code == 404
    assert response.json()["error"]["message"] == "Not found"


@patch("api_service.src.main.get_di_container")
def test_list_catalog_failure(mock_container):
    mock_container.return_value.get_catalog_service.return_value.list_artifacts.side_effect = CatalogError(
        "Failed to list artifacts"
    )
    response = client.get(APIEndpoints.LIST_ARTIFACTS)
    assert response.status_code == 500
    assert response.json()["error"]["code"] == "CATALOG_ERROR"


def test_served_file_matches_upload():
    apk = _upload().json()["apk"]
    path = apk["artifactUrl"].split("/files/", 1)[1]

    response = client.get(f"/files/{path}")

    assert response.status_code == 200
    assert response.content == b"A" * 1024


def test_serve_missing_file():
    response = client.get("/files/apks/missing.apk")
    assert response.status_code == 404


def test_sitemap():
    slug = _upload().json()["apk"]["slug"]
    response = client.get(APIEndpoints.SITEMAP)
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("application/xml")
    assert f"/apk/{slug}</loc>" in response.text


# ---------------------------------------------------------------------------
# Retirement
# ---------------------------------------------------------------------------

def test_delete_then_404():
    apk = _upload().json()["apk"]

    response = client.delete(f"/api/delete-apk/{apk['slug']}")

    assert response.status_code == 200
    assert response.json() == {"success": True}
    assert client.get(f"/api/apk/{apk['slug']}").status_code == 404
    assert client.get(APIEndpoints.LIST_ARTIFACTS).json() == []
    path = apk["artifactUrl"].split("/files/", 1)[1]
    assert client.get(f"/files/{path}").status_code == 404


def test_delete_by_id():
    apk = _upload().json()["apk"]
    assert client.delete(f"/api/delete-apk/{apk['id']}").status_code == 200
    assert client.get(f"/api/apk/{apk['slug']}").status_code == 404


def test_delete_twice_is_success():
    slug = _upload().json()["apk"]["slug"]
    assert client.delete(f"/api/delete-apk/{slug}").status_code == 200
    second = client.delete(f"/api/delete-apk/{slug}")
    assert second.status_code == 200
    assert second.json()["success"] is True


@patch("api_service.src.main.get_di_container")
def test_delete_partial_reports_warnings(mock_container):
    mock_container.return_value.get_retirement_service.return_value.retire.return_value = RetirementReport(
        key="demo-app-1",
        slug="demo-app-1",
        deleted_locations=["images/p.png"],
        failed_locations=["apks/a.apk"],
    )
    response = client.delete("/api/delete-apk/demo-app-1")
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["warnings"] == [{"code": "PARTIAL_RETIREMENT", "location": "apks/a.apk"}]


@patch("api_service.src.main.get_di_container")
def test_delete_catalog_failure(mock_container):
    mock_container.return_value.get_retirement_service.return_value.retire.side_effect = CatalogError(
        "Failed to delete catalog record demo-app-1"
    )
    response = client.delete("/api/delete-apk/demo-app-1")
    assert response.status_code == 500
    assert response.json()["error"]["code"] == "CATALOG_ERROR"
