# utils/api_utils.py
import requests
from typing import Any, Dict, Optional, Tuple
from loguru import logger

from models.errors import NetworkError

# (ファイル名, データ, MIMEタイプ)
UploadFile = Tuple[str, bytes, str]


class ApiClient:
    """署名APIとのHTTP通信を行う共通クライアント。

    requests.Sessionをラップし、ベースURL・タイムアウト・認証ヘッダーを一元管理します。
    通信やHTTPエラーはすべてNetworkErrorに変換して送出します。
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 15,
        auth_token: str = "",
        session: Optional[requests.Session] = None
    ) -> None:
        """ApiClientのコンストラクタ。

        Args:
            base_url (str): APIのベースURL（例: "http://localhost:5000/api"）。
            timeout (float): リクエストのタイムアウト秒数。
            auth_token (str): Bearerトークン。空の場合は認証ヘッダーを付与しない。
            session (Optional[requests.Session]): 使用するセッション。テスト時に差し替える。
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        if auth_token:
            self.session.headers["Authorization"] = f"Bearer {auth_token}"

    def build_url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    def _send(
        self,
        method: str,
        path: str,
        json_data: Optional[Dict[str, Any]] = None,
        files: Optional[Dict[str, UploadFile]] = None
    ) -> requests.Response:
        """リクエストを送信し、2xx以外のレスポンスや通信エラーをNetworkErrorに変換する。"""
        url = self.build_url(path)
        try:
            response = self.session.request(method, url, json=json_data, files=files, timeout=self.timeout)
            response.raise_for_status()  # 2xx以外のステータスコードで例外を発生させる
            return response
        except requests.exceptions.HTTPError as e:
            status = e.response.status_code if e.response is not None else None
            message = self.extract_error_message(e.response) or str(e)
            logger.warning("API request {} {} failed ({}): {}", method, url, status, message)
            raise NetworkError(message, status_code=status) from e
        except requests.exceptions.RequestException as e:
            logger.warning("API request {} {} failed: {}", method, url, e)
            raise NetworkError(f"サーバーに接続できませんでした: {e}") from e

    @staticmethod
    def extract_error_message(response: Optional[requests.Response]) -> Optional[str]:
        """エラーレスポンスのJSONから {"error": "..."} のメッセージを取り出す。"""
        if response is None:
            return None
        try:
            body = response.json()
        except ValueError:
            return None
        if isinstance(body, dict) and body.get("error"):
            return str(body["error"])
        return None

    def get_json(self, path: str) -> Dict[str, Any]:
        """GETリクエストを送信し、JSONレスポンスを返す。本文が空の場合は空の辞書を返す。

        Raises:
            NetworkError: 通信エラー、2xx以外のステータス、またはJSONとして解釈できない場合。
        """
        response = self._send("GET", path)
        return self._parse_json(response)

    def post_json(self, path: str, data: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """JSONボディでPOSTリクエストを送信し、JSONレスポンスを返す。"""
        response = self._send("POST", path, json_data=data or {})
        return self._parse_json(response)

    def get_bytes(self, path: str) -> bytes:
        """GETリクエストを送信し、バイナリのレスポンス本文を返す。"""
        return self._send("GET", path).content

    def post_file(self, path: str, field_name: str, upload: UploadFile) -> Dict[str, Any]:
        """multipart/form-dataでファイルを1つ送信し、JSONレスポンスを返す。"""
        response = self._send("POST", path, files={field_name: upload})
        return self._parse_json(response)

    @staticmethod
    def _parse_json(response: requests.Response) -> Dict[str, Any]:
        if not response.content:
            return {}
        try:
            body = response.json()
        except ValueError as e:
            raise NetworkError("サーバーから不正な応答を受信しました。", status_code=response.status_code) from e
        return body if isinstance(body, dict) else {"data": body}
