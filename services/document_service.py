# services/document_service.py
from dataclasses import dataclass
from typing import Optional

from loguru import logger

from models.document_models import DocumentInfo, DocumentStatus, can_transition
from models.errors import EmptyOrInvalidDocument, InvalidTransitionError, MissingNoteError
from services.api_service import SigningAPIService
from services.session_service import SigningSession
from services.storage_service import StorageService


@dataclass
class LoadedDocument:
    """読み込んだ文書のメタデータとPDFデータ。"""
    info: DocumentInfo
    pdf_data: bytes


class DocumentService:
    """文書の読み込みと、ライフサイクル上の操作（確認・差し戻し・ダウンロード）を扱うサービスクラス。"""

    def __init__(self, api_service: SigningAPIService, session: SigningSession,
                 storage_service: Optional[StorageService] = None) -> None:
        self.api_service = api_service
        self.session = session
        self.storage_service = storage_service

    @property
    def document(self) -> Optional[DocumentInfo]:
        return self.session.document

    def load(self, document_id: int, read_only: Optional[bool] = None) -> LoadedDocument:
        """文書のメタデータとPDFを取得し、編集セッションを開始する。

        Args:
            document_id (int): 文書ID。
            read_only (Optional[bool]): 読み取り専用を明示する場合に指定する。

        Returns:
            LoadedDocument: メタデータとPDFデータ。

        Raises:
            NetworkError: 通信に失敗した場合。
            EmptyOrInvalidDocument: PDFデータが空の場合。
        """
        info = self.api_service.fetch_document(document_id)
        pdf_data = self.api_service.download_document(document_id)
        if not pdf_data:
            raise EmptyOrInvalidDocument(f"文書 {document_id} のPDFが空です。")
        self.session.start(info, read_only)
        return LoadedDocument(info=info, pdf_data=pdf_data)

    def _require(self, target: DocumentStatus) -> DocumentInfo:
        document = self.document
        if document is None:
            raise InvalidTransitionError("文書が読み込まれていません。")
        if not can_transition(document.status, target):
            raise InvalidTransitionError(
                f"文書 {document.id} の状態 {document.status.value} からは {target.value} にできません。"
            )
        return document

    @property
    def can_review(self) -> bool:
        """確認・差し戻しが可能な状態（確認待ち）かどうか。"""
        document = self.document
        return document is not None and document.status == DocumentStatus.WAITING_CONFIRMATION

    def confirm(self) -> DocumentInfo:
        """署名済み文書を確認済みにする。

        Raises:
            InvalidTransitionError: 確認待ちでない場合。通信は行わない。
            NetworkError: 通信に失敗した場合。
        """
        document = self._require(DocumentStatus.CONFIRMED)
        self.api_service.confirm_document(document.id)
        document.transition_to(DocumentStatus.CONFIRMED)
        logger.info("Document {} confirmed", document.id)
        return document

    def send_back(self, note: str) -> DocumentInfo:
        """署名済み文書をメモ付きで署名者に差し戻す。

        Args:
            note (str): 差し戻し理由。必須。

        Raises:
            MissingNoteError: メモが空の場合。通信は行わない。
            InvalidTransitionError: 確認待ちでない場合。
            NetworkError: 通信に失敗した場合。
        """
        note = (note or "").strip()
        if not note:
            raise MissingNoteError("差し戻しの理由を入力してください。")
        document = self._require(DocumentStatus.SENT_BACK_FOR_SIGNING)
        self.api_service.send_back(document.id, note)
        document.transition_to(DocumentStatus.SENT_BACK_FOR_SIGNING)
        document.revision_note = note
        logger.info("Document {} sent back for signing", document.id)
        return document

    def download(self, target_path: str) -> str:
        """文書のPDFを取得して指定パスに保存する。読み取り専用でも利用できる。

        Returns:
            str: 保存先のパス。

        Raises:
            NetworkError: 通信に失敗した場合。
            EmptyOrInvalidDocument: PDFデータが空の場合。
            OSError: ファイルに書き込めない場合。
        """
        document = self.document
        if document is None:
            raise EmptyOrInvalidDocument("文書が読み込まれていません。")
        data = self.api_service.download_document(document.id)
        if not data:
            raise EmptyOrInvalidDocument(f"文書 {document.id} のPDFが空です。")
        storage = self.storage_service or StorageService(base_path=".")
        storage.save_bytes(target_path, data)
        return target_path
