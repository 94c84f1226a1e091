import pytest
from fastapi.testclient import TestClient

from app.exceptions import ConfigurationError
from app.main import app
from app.settings import get_settings, load_settings


def test_defaults():
    settings = load_settings(_env_file=None)
    assert settings.s3_bucket == "image-gallery-bucket"
    assert settings.likes_table == "LikesTable"
    assert settings.presign_expire_seconds == 36000
    assert settings.signing_mode == "shared_key"


def test_missing_bucket_is_configuration_error(monkeypatch):
    monkeypatch.delenv("S3_BUCKET", raising=False)
    with pytest.raises(ConfigurationError) as exc_info:
        load_settings(_env_file=None)
    assert "s3_bucket" in str(exc_info.value)


def test_delegation_must_outlive_signed_urls():
    with pytest.raises(ConfigurationError):
        load_settings(
            _env_file=None,
            signing_mode="delegated",
            presign_expire_seconds=36000,
            delegation_duration_seconds=3600,
        )


def test_invalid_signing_mode():
    with pytest.raises(ConfigurationError):
        load_settings(_env_file=None, signing_mode="anonymous")


def test_app_refuses_to_start_without_bucket(monkeypatch):
    monkeypatch.delenv("S3_BUCKET", raising=False)
    get_settings.cache_clear()
    try:
        with pytest.raises(ConfigurationError):
            with TestClient(app):
                pass
    finally:
        get_settings.cache_clear()
