# models/document_models.py
"""署名対象文書のメタデータと、文書ライフサイクルの状態遷移を定義します。

文書そのものは外部サービスが所有しており、このクライアントが起こす遷移は
「送信（submit）」による signed への遷移のみです。その他の遷移は
確認・差し戻しなど外部の操作によって発生し、ここでは検証と観測のみを行います。
"""
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, FrozenSet, Optional

from models.errors import InvalidTransitionError


class DocumentStatus(str, Enum):
    """文書ライフサイクルの状態。"""
    DRAFT = "draft"
    PENDING = "pending"
    SIGNED = "signed"
    WAITING_CONFIRMATION = "waiting_confirmation"
    CONFIRMED = "confirmed"
    SENT_BACK_FOR_SIGNING = "sent_back_for_signing"


ALLOWED_TRANSITIONS: Dict[DocumentStatus, FrozenSet[DocumentStatus]] = {
    DocumentStatus.DRAFT: frozenset({DocumentStatus.PENDING}),
    DocumentStatus.PENDING: frozenset({DocumentStatus.SIGNED}),
    DocumentStatus.SIGNED: frozenset({DocumentStatus.WAITING_CONFIRMATION}),
    DocumentStatus.WAITING_CONFIRMATION: frozenset({
        DocumentStatus.CONFIRMED,
        DocumentStatus.SENT_BACK_FOR_SIGNING,
    }),
    DocumentStatus.CONFIRMED: frozenset(),
    DocumentStatus.SENT_BACK_FOR_SIGNING: frozenset({DocumentStatus.PENDING}),
}

# 署名者が注釈を編集できる状態
EDITABLE_STATUSES: FrozenSet[DocumentStatus] = frozenset({
    DocumentStatus.DRAFT,
    DocumentStatus.PENDING,
    DocumentStatus.SENT_BACK_FOR_SIGNING,
})


def parse_status(value: Optional[str]) -> Optional[DocumentStatus]:
    """APIの状態文字列をDocumentStatusに変換する。未知の値や空値はNoneを返す。"""
    if not value:
        return None
    try:
        return DocumentStatus(value)
    except ValueError:
        return None


def can_transition(current: DocumentStatus, target: DocumentStatus) -> bool:
    return target in ALLOWED_TRANSITIONS.get(current, frozenset())


@dataclass
class DocumentInfo:
    """外部APIから取得する文書のメタデータ。

    Attributes:
        id (int): 文書ID。
        title (str): 文書タイトル。
        status (DocumentStatus): 文書全体のライフサイクル状態。
        recipient_status (Optional[str]): 現在の署名者にとっての状態（例: 'signed'）。
        revision_note (Optional[str]): 差し戻し時に付与されたメモ。
        original_file_path (Optional[str]): 元のPDFファイルのパス。
        signed_file_path (Optional[str]): 署名済みPDFのパス。
        original_filename (Optional[str]): ダウンロード時の既定ファイル名。
    """
    id: int
    title: str
    status: DocumentStatus
    recipient_status: Optional[str] = None
    revision_note: Optional[str] = None
    original_file_path: Optional[str] = None
    signed_file_path: Optional[str] = None
    original_filename: Optional[str] = None

    @classmethod
    def from_payload(cls, data: Dict[str, Any]) -> 'DocumentInfo':
        """GET /documents/{id} のレスポンス（document部分）から生成する。"""
        status = parse_status(data.get('status')) or DocumentStatus.DRAFT
        return cls(
            id=int(data['id']),
            title=data.get('title') or "",
            status=status,
            recipient_status=data.get('recipient_status'),
            revision_note=data.get('revision_note'),
            original_file_path=data.get('original_file_path'),
            signed_file_path=data.get('signed_file_path'),
            original_filename=data.get('original_filename'),
        )

    @property
    def is_signed_by_recipient(self) -> bool:
        return self.recipient_status == DocumentStatus.SIGNED.value

    @property
    def is_editable(self) -> bool:
        """現在の署名者が注釈を編集できるかどうか。読み込み時に一度だけ評価される想定。"""
        if self.status == DocumentStatus.SIGNED or self.is_signed_by_recipient:
            return False
        return self.status in EDITABLE_STATUSES

    @property
    def download_file_name(self) -> str:
        return self.original_filename or f"{self.title or self.id}.pdf"

    def transition_to(self, target: DocumentStatus) -> None:
        """状態を遷移させる。許可されていない遷移はInvalidTransitionErrorを送出する。

        Raises:
            InvalidTransitionError: 現在の状態からtargetへの遷移が許可されていない場合。
        """
        if not can_transition(self.status, target):
            raise InvalidTransitionError(
                f"文書 {self.id} の状態を {self.status.value} から {target.value} に変更できません。"
            )
        self.status = target
        if target == DocumentStatus.SIGNED:
            self.recipient_status = DocumentStatus.SIGNED.value
        elif target == DocumentStatus.PENDING:
            self.recipient_status = DocumentStatus.PENDING.value
