from __future__ import annotations
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional, Tuple

from loguru import logger

from models.annotation_models import Delete, EditText, Move, Resize
from models.errors import AnnotationNotFoundError, DocumentReadOnlyError
from utils.coordinates import length_to_document, to_document, to_viewport

if TYPE_CHECKING:
    from ..main_window import SigningWindow

# ドラッグと判定するまでのマウス移動量（マンハッタン距離、ピクセル）
DRAG_THRESHOLD = 5


@dataclass
class GestureSession:
    """進行中のドラッグまたはリサイズ操作。"""
    annotation_id: str
    mode: str  # "drag" or "resize"
    pointer_start: Tuple[float, float]
    viewport_start: Tuple[float, float]
    active: bool = False


class InteractionHandler:
    """
    注釈ウィジェットのドラッグ（移動）とリサイズを扱うハンドラクラス。

    ポインタの位置はビューポート座標で受け取り、現在のズーム率で文書空間に変換してから
    インテントとして注釈ストアに送ります。マウスが動くたびに位置は同期的に書き込まれます。
    """
    def __init__(self, main_window: SigningWindow) -> None:
        """
        InteractionHandlerのコンストラクタ。

        Args:
            main_window (SigningWindow): 親となるメインウィンドウインスタンス。
        """
        self.main: SigningWindow = main_window
        self.gesture: Optional[GestureSession] = None

    @property
    def scale(self) -> float:
        return self.main.pdf_handler.zoom_factor

    @property
    def is_gesture_active(self) -> bool:
        return self.gesture is not None

    def _begin(self, annotation_id: str, mode: str, pointer: Tuple[float, float]) -> bool:
        if self.main.session.is_read_only:
            return False
        annotation = self.main.annotation_service.find(annotation_id)
        if annotation is None:
            return False
        self.main.annotation_service.select(annotation_id)
        if mode == "drag":
            start = to_viewport((annotation.x, annotation.y), self.scale)
        else:
            start = to_viewport((annotation.width, annotation.height), self.scale)
        self.gesture = GestureSession(annotation_id, mode, pointer, start)
        return True

    def begin_drag(self, annotation_id: str, pointer: Tuple[float, float]) -> bool:
        """ドラッグを開始する。ポインタ位置と注釈の開始位置（ビューポート座標）を記録する。"""
        return self._begin(annotation_id, "drag", pointer)

    def begin_resize(self, annotation_id: str, pointer: Tuple[float, float]) -> bool:
        """リサイズを開始する。ポインタ位置と注釈の開始サイズ（ビューポート座標）を記録する。"""
        return self._begin(annotation_id, "resize", pointer)

    def update(self, pointer: Tuple[float, float]) -> bool:
        """
        ポインタの移動を反映する。閾値を超えるまでは何もしない。

        Returns:
            bool: 注釈を更新した場合はTrue。
        """
        gesture = self.gesture
        if gesture is None:
            return False
        dx = pointer[0] - gesture.pointer_start[0]
        dy = pointer[1] - gesture.pointer_start[1]
        if not gesture.active and abs(dx) + abs(dy) > DRAG_THRESHOLD:
            gesture.active = True
        if not gesture.active:
            return False

        # 送信完了などで操作中に読み取り専用になった場合は、操作を打ち切る
        if self.main.session.is_read_only:
            self._abort("document became read-only")
            return False

        store = self.main.annotation_service
        try:
            annotation = store.get(gesture.annotation_id)
            vx, vy = gesture.viewport_start[0] + dx, gesture.viewport_start[1] + dy
            if gesture.mode == "drag":
                x, y = self._clamp_to_page(annotation.page_number, *to_document((vx, vy), self.scale),
                                           annotation.width, annotation.height)
                store.dispatch(Move(annotation.id, x - annotation.x, y - annotation.y))
            else:
                store.dispatch(Resize(annotation.id,
                                      length_to_document(vx, self.scale),
                                      length_to_document(vy, self.scale)))
        except (DocumentReadOnlyError, AnnotationNotFoundError) as e:
            self._abort(str(e))
            return False
        return True

    def _abort(self, reason: str) -> None:
        if self.gesture is not None:
            logger.info("Gesture on {} cancelled: {}", self.gesture.annotation_id, reason)
        self.gesture = None
        self.main.pdf_display_label.sync_annotations()

    def _clamp_to_page(self, page_number: int, x: float, y: float,
                       width: float, height: float) -> Tuple[float, float]:
        size = self.main.pdf_handler.page_size(page_number)
        if size is None:
            return x, y
        page_w, page_h = size
        return (max(0.0, min(x, page_w - width)), max(0.0, min(y, page_h - height)))

    def end(self) -> bool:
        """
        操作を終了する。

        Returns:
            bool: 実際にドラッグ/リサイズが行われた場合はTrue（単なるクリックならFalse）。
        """
        gesture = self.gesture
        self.gesture = None
        return gesture is not None and gesture.active

    def edit_text(self, annotation_id: str, text: str) -> None:
        """テキスト欄の内容を更新する。幅は文字数に合わせて自動で広がる。"""
        try:
            self.main.annotation_service.dispatch(EditText(annotation_id, text))
        except DocumentReadOnlyError:
            self.main.pdf_display_label.sync_annotations()

    def delete(self, annotation_id: str) -> None:
        if self.gesture is not None and self.gesture.annotation_id == annotation_id:
            self.gesture = None
        try:
            self.main.annotation_service.dispatch(Delete(annotation_id))
        except (DocumentReadOnlyError, AnnotationNotFoundError) as e:
            logger.info("Delete of {} refused: {}", annotation_id, e)
            self.main.pdf_display_label.sync_annotations()
