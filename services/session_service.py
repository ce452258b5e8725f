# services/session_service.py
from typing import Optional

from loguru import logger

from models.document_models import DocumentInfo, DocumentStatus
from models.errors import DocumentReadOnlyError


class SigningSession:
    """一つの文書に対する編集セッションの状態を保持するクラス。

    読み取り専用かどうかは読み込み時に一度だけ評価され、セッション中に変わるのは
    送信に成功して lock() された場合のみです。

    Attributes:
        document (Optional[DocumentInfo]): 編集中の文書。読み込み前はNone。
    """

    def __init__(self, document: Optional[DocumentInfo] = None, read_only: Optional[bool] = None) -> None:
        """SigningSessionのコンストラクタ。

        Args:
            document (Optional[DocumentInfo]): 対象文書のメタデータ。
            read_only (Optional[bool]): 呼び出し側から読み取り専用を指定する場合に渡す。
                Noneの場合は文書の状態から判定する。
        """
        self.document = document
        self._read_only = False
        self._submitted = False
        self.start(document, read_only)

    def start(self, document: Optional[DocumentInfo], read_only: Optional[bool] = None) -> None:
        """文書を読み込んだ時点でセッションを開始（再開）し、読み取り専用かどうかを判定する。"""
        self.document = document
        self._submitted = False
        if read_only is not None:
            self._read_only = read_only
        else:
            self._read_only = document is not None and not document.is_editable
        if document is not None:
            logger.info("Signing session started for document {} (status={}, read_only={})",
                        document.id, document.status.value, self._read_only)

    @property
    def is_read_only(self) -> bool:
        return self._read_only or self._submitted

    @property
    def document_id(self) -> Optional[int]:
        return self.document.id if self.document else None

    @property
    def revision_note(self) -> Optional[str]:
        """差し戻しメモ。表示のみ行い、保存はしない。"""
        return self.document.revision_note if self.document else None

    def ensure_editable(self, action: str = "変更") -> None:
        """編集可能でなければDocumentReadOnlyErrorを送出する。

        Raises:
            DocumentReadOnlyError: 読み取り専用、または送信済みの場合。
        """
        if self.is_read_only:
            logger.info("Rejected '{}' on read-only document {}", action, self.document_id)
            raise DocumentReadOnlyError(f"この文書は読み取り専用のため{action}できません。")

    def lock(self) -> None:
        """送信成功後に呼び出し、以降の変更をすべて拒否する。ライフサイクルは signed に進む。"""
        self._submitted = True
        document = self.document
        if document is None:
            return
        if document.status in (DocumentStatus.DRAFT, DocumentStatus.SENT_BACK_FOR_SIGNING):
            document.transition_to(DocumentStatus.PENDING)
        if document.status == DocumentStatus.PENDING:
            document.transition_to(DocumentStatus.SIGNED)
        logger.info("Document {} submitted; status is now {}", document.id, document.status.value)
