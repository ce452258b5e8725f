# services/api_service.py
import ntpath
from typing import Dict, Any, Optional

from loguru import logger

from models.document_models import DocumentInfo
from models.errors import NetworkError
from utils.api_utils import ApiClient


def signature_file_name(path: str) -> str:
    """署名画像のパスからファイル名部分を取り出す。区切り文字は / と \\ の両方に対応する。"""
    return ntpath.basename(path) or path


class SigningAPIService:
    """署名APIとの連携を管理するサービスクラス。

    文書のメタデータ・PDFの取得、下書きの読み書き、署名画像のアップロード・取得、
    送信、および確認・差し戻しの各エンドポイントを扱います。
    """

    def __init__(self, client: ApiClient) -> None:
        """SigningAPIServiceのコンストラクタ。

        Args:
            client (ApiClient): HTTP通信に使用するクライアント。
        """
        self.client = client

    # --- 文書 ---
    def fetch_document(self, document_id: int) -> DocumentInfo:
        """文書のメタデータを取得する。

        Args:
            document_id (int): 文書ID。

        Returns:
            DocumentInfo: 文書のメタデータ。

        Raises:
            NetworkError: 通信に失敗した場合、またはレスポンスに文書が含まれない場合。
        """
        body = self.client.get_json(f"/documents/{document_id}")
        data = body.get("document")
        if not isinstance(data, dict):
            raise NetworkError(f"文書 {document_id} の情報を取得できませんでした。")
        return DocumentInfo.from_payload(data)

    def download_document(self, document_id: int) -> bytes:
        """文書のPDFデータを取得する。"""
        data = self.client.get_bytes(f"/documents/{document_id}/download")
        logger.info("PDF response received: {} bytes (document {})", len(data), document_id)
        return data

    def confirm_document(self, document_id: int) -> Dict[str, Any]:
        """署名済み文書を確認済みにする。"""
        return self.client.post_json(f"/documents/{document_id}/confirm")

    def send_back(self, document_id: int, note: str) -> Dict[str, Any]:
        """署名済み文書をメモ付きで署名者に差し戻す。"""
        return self.client.post_json(f"/documents/{document_id}/send-back", {"note": note})

    # --- 下書き・送信 ---
    def fetch_draft(self, document_id: int) -> Optional[Dict[str, Any]]:
        """保存されている下書きを取得する。

        Returns:
            Optional[Dict[str, Any]]: 下書きのデータ。下書きが存在しない場合はNone。

        Raises:
            NetworkError: 404以外の通信エラーの場合。
        """
        try:
            body = self.client.get_json(f"/signing/{document_id}/draft")
        except NetworkError as e:
            if e.is_not_found:
                return None
            raise
        return body or None

    def save_draft(self, document_id: int, payload: Dict[str, Any]) -> Dict[str, Any]:
        """下書きを上書き保存する。"""
        return self.client.post_json(f"/signing/{document_id}/draft", payload)

    def submit(self, document_id: int, payload: Dict[str, Any]) -> Dict[str, Any]:
        """注釈を確定して送信する。成功すると文書は署名済みになる。"""
        return self.client.post_json(f"/signing/{document_id}/submit", payload)

    # --- 署名画像 ---
    def upload_signature(self, data: bytes, file_name: str = "signature.png",
                         mime_type: str = "image/png") -> str:
        """署名画像をアップロードし、サーバー上のパスを返す。

        Raises:
            NetworkError: 通信に失敗した場合、またはレスポンスにパスが含まれない場合。
        """
        body = self.client.post_file("/signing/signature/upload", "signature", (file_name, data, mime_type))
        path = body.get("signature_path")
        if not path:
            raise NetworkError("署名画像のアップロード結果にパスが含まれていません。")
        logger.info("Signature uploaded: {} ({} bytes)", path, len(data))
        return str(path)

    def fetch_signature_image(self, path: str) -> bytes:
        """署名画像のバイナリを取得する。"""
        return self.client.get_bytes(f"/signing/signatures/{signature_file_name(path)}")
