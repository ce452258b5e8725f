from __future__ import annotations
from typing import TYPE_CHECKING, Optional

from loguru import logger

from models.annotation_models import (
    Annotation, PlacementMode, Signature, TextField, new_annotation_id,
    DEFAULT_TEXT_FONT_SIZE, DEFAULT_TEXT_HEIGHT, DEFAULT_TEXT_WIDTH,
)
from models.errors import NoSignatureArtifact
from models.signature_models import SignatureArtifact

if TYPE_CHECKING:
    from ..main_window import SigningWindow


class PlacementHandler:
    """
    配置モード（なし・テキスト・署名）を管理し、ページ上のクリックから注釈を作成するハンドラクラス。

    注釈を一つ作成するとモードは必ず「なし」に戻ります。
    読み取り専用、PDF未読み込み、ドラッグ/リサイズ中のクリックは無視されます。
    """
    def __init__(self, main_window: SigningWindow) -> None:
        """
        PlacementHandlerのコンストラクタ。

        Args:
            main_window (SigningWindow): 親となるメインウィンドウインスタンス。
        """
        self.main: SigningWindow = main_window
        self.mode: PlacementMode = PlacementMode.NONE
        self._signature_pending: bool = False

    def toggle_mode(self, mode: PlacementMode) -> None:
        """配置モードを切り替える。既に有効なモードを選ぶと「なし」に戻る。選択は解除される。"""
        if self.main.session.is_read_only:
            return
        self._set_mode(PlacementMode.NONE if self.mode == mode else mode)
        self.main.annotation_service.clear_selection()

    def reset_mode(self) -> None:
        self._set_mode(PlacementMode.NONE)

    def _set_mode(self, mode: PlacementMode) -> None:
        self.mode = mode
        self.main.update_mode_actions(mode)

    def accepts_clicks(self) -> bool:
        """ページクリックを注釈の作成として受け付ける状態かどうか。"""
        return (
            self.mode != PlacementMode.NONE
            and not self.main.session.is_read_only
            and self.main.pdf_handler.page_count is not None
            and not self.main.interaction_handler.is_gesture_active
            and not self._signature_pending
        )

    def handle_page_click(self, page_number: int, x: float, y: float) -> Optional[Annotation]:
        """
        ページ上のクリック（文書空間の座標）を処理する。

        テキストモードではその場でテキスト欄を作成して返す。署名モードでは署名画像の
        準備をバックグラウンドで開始し、準備完了後に place_signature() で配置する。

        Returns:
            Optional[Annotation]: 作成したテキスト欄。署名モードやクリックが無視された場合はNone。

        Raises:
            NoSignatureArtifact: 署名モードで、描画もアップロードもされていない場合。モードは維持される。
        """
        if not self.accepts_clicks():
            return None
        page_count = self.main.pdf_handler.page_count
        if not (1 <= page_number <= page_count):
            return None

        if self.mode == PlacementMode.TEXT:
            return self.place_text(page_number, x, y)

        if not self.main.signature_service.has_signature:
            raise NoSignatureArtifact("先に署名を描くか、署名画像をアップロードしてください。")
        self._signature_pending = True
        self.main.signing_handler.prepare_signature(page_number, x, y)
        return None

    def place_text(self, page_number: int, x: float, y: float) -> TextField:
        """既定サイズのテキスト欄を作成する。内容は氏名欄の入力値になる。"""
        field = TextField(
            id=new_annotation_id("text"),
            page_number=page_number,
            x=x, y=y,
            width=DEFAULT_TEXT_WIDTH,
            height=DEFAULT_TEXT_HEIGHT,
            font_size=DEFAULT_TEXT_FONT_SIZE,
            text_content=self.main.signing_panel.full_name(),
        )
        self.main.annotation_service.add(field)
        self.reset_mode()
        return field

    def place_signature(self, page_number: int, x: float, y: float, artifact: SignatureArtifact) -> Signature:
        """準備済みの署名画像から署名注釈を作成し、キャンバスと取得元をクリアする。"""
        self._signature_pending = False
        signature = Signature(
            id=new_annotation_id("sig"),
            page_number=page_number,
            x=x, y=y,
            width=artifact.width,
            height=artifact.height,
            signature_image_path=artifact.path,
            image_url=artifact.image_url,
        )
        self.main.annotation_service.add(signature)
        self.main.signature_service.consume_after_placement(artifact.source)
        self.reset_mode()
        logger.info("Signature placed on page {} at ({:.1f}, {:.1f})", page_number, x, y)
        return signature

    def cancel_signature(self) -> None:
        """署名画像の準備に失敗した場合に呼び出す。モードは維持される。"""
        self._signature_pending = False
