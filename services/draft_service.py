# services/draft_service.py
from typing import Callable, List, Optional

from loguru import logger

from models.annotation_models import Annotation
from models.draft_models import Draft
from models.errors import AssetResolutionError, NetworkError, SubmitInProgressError
from services.api_service import SigningAPIService
from services.asset_service import AssetCache
from services.base_service import BaseService
from services.session_service import SigningSession


class DraftService(BaseService[Draft]):
    """注釈の下書き保存・読み込みと、最終送信を管理するサービスクラス。

    下書きは常に注釈モデル全体のスナップショットとして保存され、サーバー側では
    文書ごとに上書きされます（後勝ち）。送信は確認を経て一度だけ行われ、
    成功すると編集セッションはロックされます。
    """

    def __init__(self, api_service: SigningAPIService, session: SigningSession,
                 assets: Optional[AssetCache] = None) -> None:
        """DraftServiceのコンストラクタ。

        Args:
            api_service (SigningAPIService): 署名APIサービス。
            session (SigningSession): 編集セッション。
            assets (Optional[AssetCache]): 下書き内の署名画像を保持するキャッシュ。
        """
        super().__init__(api_service=api_service, session=session)
        self.assets = assets
        self._submitting = False

    @property
    def is_submitting(self) -> bool:
        return self._submitting

    # --- BaseServiceの実装 ---
    def load_data(self, identifier: int) -> Optional[Draft]:
        return self.load_draft(identifier)

    def save_data(self, data: Draft) -> None:
        self.ensure_editable("下書きを保存")
        self.api_service.save_draft(data.document_id, data.to_payload())

    # --- 下書き ---
    def load_draft(self, document_id: int) -> Draft:
        """保存されている下書きを読み込む。

        下書きが存在しない場合は空のDraftを返す。署名画像は一件ずつ取得し、
        取得に失敗したものはログに記録してプレビューなしのまま返す。

        Args:
            document_id (int): 文書ID。

        Returns:
            Draft: 読み込んだ下書き。

        Raises:
            NetworkError: 404以外の通信エラーの場合。
        """
        payload = self.api_service.fetch_draft(document_id)
        if not payload:
            logger.info("No draft stored for document {}", document_id)
            return Draft(document_id=document_id)

        draft = Draft.from_payload(document_id, payload)
        for signature in draft.signatures:
            signature.image_url = self._resolve_image(signature.signature_image_path)
        logger.info("Draft loaded for document {}: {} text field(s), {} signature(s)",
                    document_id, len(draft.text_fields), len(draft.signatures))
        return draft

    def _resolve_image(self, path: str) -> Optional[str]:
        if not path or self.assets is None:
            return None
        try:
            data = self.api_service.fetch_signature_image(path)
        except NetworkError as e:
            logger.warning("{}", AssetResolutionError(f"署名画像 {path} を取得できませんでした: {e}"))
            return None
        return self.assets.acquire(data)

    def build_draft(self, document_id: int, annotations: List[Annotation]) -> Draft:
        return Draft.from_annotations(document_id, annotations)

    def save_draft(self, document_id: int, annotations: List[Annotation]) -> Draft:
        """現在の注釈を下書きとして保存する。

        Args:
            document_id (int): 文書ID。
            annotations (List[Annotation]): 保存する注釈（全件）。

        Returns:
            Draft: 送信したスナップショット。

        Raises:
            DocumentReadOnlyError: 読み取り専用の場合。通信は行わない。
            NetworkError: 保存に失敗した場合。
        """
        draft = self.build_draft(document_id, annotations)
        self.save_data(draft)
        logger.info("Draft saved for document {} ({} annotation(s))", document_id, len(annotations))
        return draft

    # --- 送信 ---
    def submit(self, document_id: int, annotations: List[Annotation], confirm: Callable[[], bool]) -> bool:
        """注釈を確定して送信する。

        Args:
            document_id (int): 文書ID。
            annotations (List[Annotation]): 送信する注釈（全件）。
            confirm (Callable[[], bool]): 送信前の確認。Falseを返すと送信しない。

        Returns:
            bool: 送信した場合はTrue、確認で取り消された場合はFalse。

        Raises:
            DocumentReadOnlyError: 読み取り専用（送信済みを含む）の場合。
            SubmitInProgressError: 既に送信処理中の場合。
            NetworkError: 送信に失敗した場合。状態は変更されず、自動での再試行もしない。
        """
        self.ensure_editable("送信")
        if self._submitting:
            raise SubmitInProgressError("送信処理中です。しばらくお待ちください。")
        if not confirm():
            logger.info("Submit of document {} cancelled by user", document_id)
            return False

        self._submitting = True
        try:
            draft = self.build_draft(document_id, annotations)
            self.api_service.submit(document_id, draft.to_payload())
            if self.session is not None:
                self.session.lock()
        except NetworkError as e:
            logger.error("Submit of document {} failed: {}", document_id, e)
            raise
        finally:
            self._submitting = False
        return True
