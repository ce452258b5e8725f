# utils/app_config.py
import os
from dataclasses import dataclass, fields, replace
from typing import Any, Dict, Mapping, Optional

from loguru import logger

from services.storage_service import StorageService

CONFIG_FILE_NAME = "config.json"

# 環境変数名 -> 設定項目名
ENV_OVERRIDES: Dict[str, str] = {
    "SIGNING_API_BASE_URL": "api_base_url",
    "SIGNING_API_TOKEN": "auth_token",
    "SIGNING_REQUEST_TIMEOUT": "request_timeout",
    "SIGNING_LOG_LEVEL": "log_level",
    "SIGNING_LOG_FILE": "log_file",
}


def _parse_timeout(value: Any, default: float, source: str) -> float:
    """タイムアウト値を数値に変換する。変換できなければ警告して既定値を使う。"""
    try:
        timeout = float(value)
    except (TypeError, ValueError):
        logger.warning("{} の値 {!r} は数値ではないため {} 秒を使用します。", source, value, default)
        return default
    if timeout <= 0:
        logger.warning("{} の値 {!r} は正の数ではないため {} 秒を使用します。", source, value, default)
        return default
    return timeout


@dataclass
class AppConfig:
    """
    アプリケーションの実行時設定をカプセル化するデータクラス。

    config.json の値を読み込んだ後、環境変数で上書きされます。
    """
    api_base_url: str = "http://localhost:5000/api"
    request_timeout: float = 15.0
    auth_token: str = ""
    log_level: str = "INFO"
    log_file: Optional[str] = None
    data_dir: str = "data"

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> 'AppConfig':
        """辞書から設定を生成する。未知のキーは無視する。"""
        known = {f.name for f in fields(cls)}
        values = {k: v for k, v in data.items() if k in known}
        config = cls(**values)
        config.request_timeout = _parse_timeout(config.request_timeout, cls.request_timeout, "request_timeout")
        return config

    def with_env(self, environ: Optional[Mapping[str, str]] = None) -> 'AppConfig':
        """環境変数による上書きを適用した新しい設定を返す。"""
        environ = os.environ if environ is None else environ
        updates: Dict[str, Any] = {}
        for env_name, attr in ENV_OVERRIDES.items():
            value = environ.get(env_name)
            if not value:
                continue
            if attr == "request_timeout":
                updates[attr] = _parse_timeout(value, self.request_timeout, env_name)
            else:
                updates[attr] = value
        return replace(self, **updates) if updates else self

    @classmethod
    def load(cls, storage: StorageService, file_name: str = CONFIG_FILE_NAME,
             environ: Optional[Mapping[str, str]] = None) -> 'AppConfig':
        """
        設定ファイルと環境変数から設定を読み込む。設定ファイルが無ければ既定値を使用する。
        """
        data = storage.load_json(file_name)
        if isinstance(data, dict):
            config = cls.from_mapping({"data_dir": storage.base_path, **data})
        else:
            if data is not None:
                logger.warning("{} の形式が不正なため既定値を使用します。", file_name)
            config = cls(data_dir=storage.base_path)
        return config.with_env(environ)
