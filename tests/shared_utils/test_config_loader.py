"""
Tests for shared_utils.config_loader.

Covers the field validators, ingestion defaults, get_settings() caching
and admin-code lookup, and get_secret_from_aws().
"""

import os
from unittest.mock import MagicMock, patch

import pytest
from botocore.exceptions import ClientError, NoCredentialsError

from shared_utils.config_loader import Settings, get_secret_from_aws, get_settings
from shared_utils.constants import Defaults


def _settings(**overrides) -> Settings:
    kw = {"environment": "development", "blob_backend": "local", "catalog_backend": "memory"}
    kw.update(overrides)
    return Settings(**kw)


# ---------------------------------------------------------------------------
# Validators
# ---------------------------------------------------------------------------


class TestValidateEnvironment:
    @pytest.mark.parametrize("value", ["development", "staging", "production"])
    def test_valid(self, value) -> None:
        assert _settings(environment=value).environment == value

    def test_case_insensitive(self) -> None:
        assert _settings(environment="PRODUCTION").environment == "production"

    def test_invalid_raises(self) -> None:
        with pytest.raises(ValueError, match="environment"):
            _settings(environment="moon")


class TestValidateBackends:
    @pytest.mark.parametrize("value", ["local", "s3", "memory", "S3"])
    def test_blob_backend_valid(self, value) -> None:
        assert _settings(blob_backend=value).blob_backend == value.lower()

    def test_blob_backend_invalid(self) -> None:
        with pytest.raises(ValueError, match="blob_backend"):
            _settings(blob_backend="ftp")

    @pytest.mark.parametrize("value", ["dynamodb", "memory"])
    def test_catalog_backend_valid(self, value) -> None:
        assert _settings(catalog_backend=value).catalog_backend == value

    def test_catalog_backend_invalid(self) -> None:
        with pytest.raises(ValueError, match="catalog_backend"):
            _settings(catalog_backend="postgres")


class TestValidateLimits:
    @pytest.mark.parametrize("value", [0, -1])
    def test_max_upload_bytes_must_be_positive(self, value) -> None:
        with pytest.raises(ValueError, match="max_upload_bytes"):
            _settings(max_upload_bytes=value)

    def test_urls_lose_trailing_slash(self) -> None:
        s = _settings(public_base_url="http://api.test/", site_base_url="https://site.test//")
        assert s.public_base_url == "http://api.test"
        assert s.site_base_url == "https://site.test"


class TestDefaults:
    def test_ingestion_defaults(self, monkeypatch) -> None:
        for var in ("MAX_UPLOAD_BYTES", "REQUIRE_PREVIEW", "ALLOWED_ARTIFACT_TYPES"):
            monkeypatch.delenv(var, raising=False)
        s = _settings()
        assert s.max_upload_bytes == 200 * 1024 * 1024
        assert s.allowed_artifact_types == []
        assert "image/png" in s.allowed_preview_types
        assert s.require_preview is False
        assert s.artifact_prefix == Defaults.ARTIFACT_PREFIX
        assert s.preview_prefix == Defaults.PREVIEW_PREFIX

    def test_env_overrides(self) -> None:
        with patch.dict(os.environ, {"MAX_UPLOAD_BYTES": "1024", "REQUIRE_PREVIEW": "true"}):
            s = _settings()
        assert s.max_upload_bytes == 1024
        assert s.require_preview is True


# ---------------------------------------------------------------------------
# get_secret_from_aws
# ---------------------------------------------------------------------------


class TestGetSecretFromAWS:
    @patch("shared_utils.config_loader.boto3.client")
    def test_success(self, mock_client_ctor) -> None:
        mock_client = MagicMock()
        mock_client.get_secret_value.return_value = {"SecretString": '{"admin_code": "s3cret"}'}
        mock_client_ctor.return_value = mock_client

        assert get_secret_from_aws("my-secret", "eu-west-2") == "s3cret"
        mock_client_ctor.assert_called_once_with("secretsmanager", region_name="eu-west-2")

    @patch("shared_utils.config_loader.boto3.client")
    def test_custom_field(self, mock_client_ctor) -> None:
        mock_client_ctor.return_value.get_secret_value.return_value = {
            "SecretString": '{"other": "val"}'
        }
        assert get_secret_from_aws("my-secret", field="other") == "val"

    @patch("shared_utils.config_loader.boto3.client")
    def test_no_secret_string_returns_empty(self, mock_client_ctor) -> None:
        mock_client_ctor.return_value.get_secret_value.return_value = {"SecretBinary": b"binary"}
        assert get_secret_from_aws("my-secret") == ""

    @patch("shared_utils.config_loader.boto3.client")
    def test_invalid_json_returns_empty(self, mock_client_ctor) -> None:
        mock_client_ctor.return_value.get_secret_value.return_value = {"SecretString": "not json"}
        assert get_secret_from_aws("my-secret") == ""

    @patch("shared_utils.config_loader.boto3.client")
    def test_client_error_returns_empty(self, mock_client_ctor) -> None:
        mock_client_ctor.return_value.get_secret_value.side_effect = ClientError(
            {"Error": {"Code": "ResourceNotFoundException", "Message": "nope"}}, "GetSecretValue"
        )
        assert get_secret_from_aws("my-secret") == ""

    @patch("shared_utils.config_loader.boto3.client")
    def test_no_credentials_returns_empty(self, mock_client_ctor) -> None:
        mock_client_ctor.side_effect = NoCredentialsError()
        assert get_secret_from_aws("my-secret") == ""


# ---------------------------------------------------------------------------
# get_settings
# ---------------------------------------------------------------------------


class TestGetSettings:
    def setup_method(self) -> None:
        get_settings.cache_clear()

    def teardown_method(self) -> None:
        get_settings.cache_clear()

    def test_cached(self) -> None:
        assert get_settings() is get_settings()

    @patch("shared_utils.config_loader.get_secret_from_aws", return_value="from-aws")
    def test_admin_code_from_secret(self, mock_secret) -> None:
        with patch.dict(os.environ, {"ADMIN_SECRET_NAME": "catalog/admin", "ADMIN_CODE": ""}):
            settings = get_settings()
        assert settings.admin_code == "from-aws"
        mock_secret.assert_called_once()

    @patch("shared_utils.config_loader.get_secret_from_aws")
    def test_direct_admin_code_wins(self, mock_secret) -> None:
        with patch.dict(os.environ, {"ADMIN_SECRET_NAME": "catalog/admin", "ADMIN_CODE": "direct"}):
            settings = get_settings()
        assert settings.admin_code == "direct"
        mock_secret.assert_not_called()
