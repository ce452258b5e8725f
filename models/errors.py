# models/errors.py
"""署名クライアント全体で使用する例外クラスを定義します。

サービス層はこれらの例外を送出し、UI層（ハンドラ）が捕捉して
インライン表示やメッセージボックスでユーザーに通知します。
"""
from typing import Optional


class SigningError(Exception):
    """署名クライアントのすべての例外の基底クラス。"""


class ValidationError(SigningError):
    """入力値の検証エラー。操作は中断され、状態は変更されない。"""


class InvalidImageType(ValidationError):
    """アップロードされた署名画像の形式がPNG/JPEG以外、または画像として読み込めない。"""


class FileTooLarge(ValidationError):
    """アップロードされた署名画像のファイルサイズが上限を超えている。"""


class ImageTooLarge(ValidationError):
    """アップロードされた署名画像のピクセル寸法が上限を超えている。"""


class NoSignatureArtifact(ValidationError):
    """署名を配置しようとしたが、描画もアップロードもされていない。"""


class MissingNoteError(ValidationError):
    """差し戻し時に必須のメモが入力されていない。"""


class NetworkError(SigningError):
    """API通信の失敗。

    Attributes:
        status_code (Optional[int]): HTTPステータスコード。接続エラーの場合はNone。
    """

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code

    @property
    def is_not_found(self) -> bool:
        return self.status_code == 404


class AssetResolutionError(SigningError):
    """署名画像（プレビュー）の取得に失敗した。"""


class EmptyOrInvalidDocument(SigningError):
    """ダウンロードしたPDFが空、または不正な形式である。編集セッションは継続できない。"""


class DocumentReadOnlyError(SigningError):
    """読み取り専用の文書に対して変更操作が行われた。"""


class SubmitInProgressError(SigningError):
    """送信処理が既に進行中である。"""


class InvalidTransitionError(SigningError):
    """ライフサイクル上許可されていない状態遷移。"""


class AnnotationNotFoundError(SigningError):
    """指定されたIDの注釈が存在しない。"""
