import pytest

from services.asset_service import AssetCache
from services.storage_service import StorageService
from utils.app_config import AppConfig


def test_defaults_when_config_file_missing(tmp_path):
    config = AppConfig.load(StorageService(str(tmp_path)), environ={})
    assert config.api_base_url == "http://localhost:5000/api"
    assert config.request_timeout == 15.0
    assert config.data_dir == str(tmp_path)


def test_file_values_then_environment_overrides(tmp_path):
    storage = StorageService(str(tmp_path))
    storage.save_json("config.json", {"api_base_url": "https://sign.example.com/api",
                                      "request_timeout": "30", "unknown": 1})
    config = AppConfig.load(storage, environ={"SIGNING_API_TOKEN": "t0ken", "SIGNING_LOG_LEVEL": "debug"})
    assert config.api_base_url == "https://sign.example.com/api"
    assert config.request_timeout == 30.0
    assert config.auth_token == "t0ken"
    assert config.log_level == "debug"


def test_broken_config_file_falls_back_to_defaults(tmp_path):
    (tmp_path / "config.json").write_text("{broken", encoding="utf-8")
    config = AppConfig.load(StorageService(str(tmp_path)), environ={"SIGNING_REQUEST_TIMEOUT": "5"})
    assert config.api_base_url == "http://localhost:5000/api"
    assert config.request_timeout == 5.0


def test_asset_cache_handles():
    cache = AssetCache()
    first = cache.acquire(b"a")
    second = cache.acquire(b"b")
    assert first != second and first.startswith("asset://")
    assert cache.get(first) == b"a"
    cache.release(first)
    cache.release(first)
    assert first not in cache and len(cache) == 1
    cache.release_all()
    assert len(cache) == 0


@pytest.mark.parametrize("value", ["abc", "-3", "0"])
def test_invalid_timeout_from_environment_keeps_default(tmp_path, value):
    config = AppConfig.load(StorageService(str(tmp_path)), environ={"SIGNING_REQUEST_TIMEOUT": value})
    assert config.request_timeout == 15.0


def test_invalid_timeout_in_config_file_keeps_default(tmp_path):
    storage = StorageService(str(tmp_path))
    storage.save_json("config.json", {"request_timeout": "slow"})
    config = AppConfig.load(storage, environ={})
    assert config.request_timeout == 15.0
