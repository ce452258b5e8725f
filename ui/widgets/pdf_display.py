from __future__ import annotations
from typing import TYPE_CHECKING, Dict, Optional

from PyQt6.QtCore import Qt
from PyQt6.QtGui import QMouseEvent, QPixmap
from PyQt6.QtWidgets import QLabel, QWidget

from models.annotation_models import PlacementMode, Signature
from models.errors import ValidationError
from utils.coordinates import to_document
from .annotation_widgets import AnnotationWidget, SignatureFieldWidget, TextFieldWidget

if TYPE_CHECKING:
    from ..main_window import SigningWindow


class PDFDisplayLabel(QLabel):
    """
    PDFページ画像を表示し、その上に注釈ウィジェットを重ねて表示するカスタムラベル。

    注釈ストアの変更通知を受けて sync_annotations() で現在ページのウィジェットを
    作成・更新・削除します。ページ上の空き領域のクリックは配置モードに応じて
    注釈の作成、または選択の解除になります。
    """
    def __init__(self, main_window: SigningWindow, parent: Optional[QWidget] = None) -> None:
        """
        PDFDisplayLabelのコンストラクタ。

        Args:
            main_window (SigningWindow): メインウィンドウ。
            parent (Optional[QWidget]): 親ウィジェット。
        """
        super().__init__(parent)
        self.main_window: SigningWindow = main_window
        self.setAlignment(Qt.AlignmentFlag.AlignLeft | Qt.AlignmentFlag.AlignTop)
        self.annotation_widgets: Dict[str, AnnotationWidget] = {}

    def set_page_pixmap(self, pixmap: QPixmap) -> None:
        """ページ画像を表示し、注釈ウィジェットを現在のページとズーム率に合わせる。"""
        self.setPixmap(pixmap)
        self.adjustSize()
        self.sync_annotations()

    def widget_for(self, annotation_id: str) -> Optional[AnnotationWidget]:
        return self.annotation_widgets.get(annotation_id)

    def sync_annotations(self) -> None:
        """注釈ストアの内容を現在のページのウィジェットに反映する。"""
        main = self.main_window
        store = main.annotation_service
        scale = main.pdf_handler.zoom_factor
        read_only = main.session.is_read_only
        visible = {a.id: a for a in store.for_page(main.pdf_handler.current_page_number)}

        for annotation_id in list(self.annotation_widgets):
            if annotation_id not in visible:
                widget = self.annotation_widgets.pop(annotation_id)
                widget.hide()
                widget.deleteLater()

        for annotation_id, annotation in visible.items():
            widget = self.annotation_widgets.get(annotation_id)
            if widget is None:
                widget_cls = SignatureFieldWidget if isinstance(annotation, Signature) else TextFieldWidget
                widget = widget_cls(main, annotation_id, self)
                self.annotation_widgets[annotation_id] = widget
            widget.apply_annotation(annotation, scale)
            widget.set_read_only(read_only)
            widget.set_selected(annotation_id == store.active_id)
            widget.show()

        active = self.annotation_widgets.get(store.active_id) if store.active_id else None
        if active is not None:
            active.raise_()

    def clear_annotation_widgets(self) -> None:
        for widget in self.annotation_widgets.values():
            widget.hide()
            widget.deleteLater()
        self.annotation_widgets.clear()

    def mousePressEvent(self, event: QMouseEvent) -> None:
        """
        ページ上のマウスプレス。配置モードなら注釈を作成し、そうでなければ選択を解除する。
        """
        main = self.main_window
        if event.button() != Qt.MouseButton.LeftButton or not self.pixmap() or self.pixmap().isNull():
            return super().mousePressEvent(event)

        placement = main.placement_handler
        if placement.mode == PlacementMode.NONE:
            main.annotation_service.clear_selection()
            event.accept()
            return

        position = event.position()
        x, y = to_document((position.x(), position.y()), main.pdf_handler.zoom_factor)
        try:
            placement.handle_page_click(main.pdf_handler.current_page_number, x, y)
        except ValidationError as e:
            main.signing_panel.show_error(str(e))
        event.accept()
