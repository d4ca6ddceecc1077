import pytest

from tracker.app import storage
from tracker.app.config import Settings, default_secrets, env_flag


@pytest.mark.parametrize("raw", ["True", "true", "1", "yes", " ON "])
def test_env_flag_truthy(monkeypatch, raw):
    monkeypatch.setenv("SEED_DEMO_DATA", raw)
    assert env_flag("SEED_DEMO_DATA", False) is True


@pytest.mark.parametrize("raw", ["False", "0", "no", ""])
def test_env_flag_falsy(monkeypatch, raw):
    monkeypatch.setenv("SEED_DEMO_DATA", raw)
    assert env_flag("SEED_DEMO_DATA", True) is False


def test_env_flag_default(monkeypatch):
    monkeypatch.delenv("SEED_DEMO_DATA", raising=False)
    assert env_flag("SEED_DEMO_DATA", True) is True


def test_default_secrets_reported():
    conf = Settings()
    conf.AUTH_SECRET = "change-me"
    conf.ASSET_SIGNING_SECRET = "change-me-too"
    assert default_secrets(conf) == ["AUTH_SECRET", "ASSET_SIGNING_SECRET"]
    conf.AUTH_SECRET = "s3cret"
    conf.ASSET_SIGNING_SECRET = "other"
    assert default_secrets(conf) == []


def test_blob_store_signs_with_asset_secret(monkeypatch, tmp_path):
    monkeypatch.setattr(storage, "_store", None)
    monkeypatch.setattr(storage.settings, "ASSET_STORAGE_DIR", str(tmp_path))
    monkeypatch.setattr(storage.settings, "AUTH_SECRET", "identity-secret")
    monkeypatch.setattr(storage.settings, "ASSET_SIGNING_SECRET", "asset-secret")

    store = storage.get_blob_store()
    assert store.secret == "asset-secret"
