"""
Unit tests for application settings
"""
from app.core import config
from app.core.config import Settings


def test_module_documents_environment_loading():
    assert "environment" in config.__doc__
    assert config.__doc__.isascii()


def test_environment_overrides_defaults(monkeypatch):
    monkeypatch.setenv("PAYMENT_CURRENCY", "KWD")
    monkeypatch.setenv("MAX_UPLOAD_BYTES", "1024")

    settings = Settings(_env_file=None)

    assert settings.PAYMENT_CURRENCY == "KWD"
    assert settings.MAX_UPLOAD_BYTES == 1024


def test_defaults(monkeypatch):
    monkeypatch.delenv("PAYMENT_CURRENCY", raising=False)

    settings = Settings(_env_file=None)

    assert settings.PAYMENT_CURRENCY == "SAR"
    assert settings.STORAGE_BACKEND in ("memory", "postgres")


def test_allowed_origins_accepts_json_or_comma_list():
    assert Settings(_env_file=None, ALLOWED_ORIGINS='["https://glorda.com"]').get_allowed_origins() == [
        "https://glorda.com"
    ]
    assert Settings(_env_file=None, ALLOWED_ORIGINS="https://a.com, https://b.com").get_allowed_origins() == [
        "https://a.com",
        "https://b.com",
    ]
