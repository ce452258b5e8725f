from __future__ import annotations
from typing import TYPE_CHECKING, Optional, Tuple

from PyQt6.QtCore import Qt, QEvent, QObject, QRect
from PyQt6.QtGui import QColor, QMouseEvent, QPainter, QPaintEvent, QPixmap, QResizeEvent
from PyQt6.QtWidgets import QHBoxLayout, QLineEdit, QToolButton, QWidget

from models.annotation_models import Annotation, Signature, TextField
from utils.coordinates import length_to_viewport

if TYPE_CHECKING:
    from ..main_window import SigningWindow


def _global_point(event: QMouseEvent) -> Tuple[float, float]:
    point = event.globalPosition()
    return point.x(), point.y()


class ResizeHandle(QWidget):
    """注釈ウィジェット右下のリサイズ用ハンドル。"""
    SIZE: int = 12

    def __init__(self, owner: AnnotationWidget) -> None:
        super().__init__(owner)
        self.owner = owner
        self.setFixedSize(self.SIZE, self.SIZE)
        self.setCursor(Qt.CursorShape.SizeFDiagCursor)

    def paintEvent(self, event: QPaintEvent) -> None:
        painter = QPainter(self)
        painter.setPen(Qt.PenStyle.NoPen)
        painter.setBrush(QColor("#1976d2"))
        painter.drawRect(self.rect())

    def mousePressEvent(self, event: QMouseEvent) -> None:
        if event.button() == Qt.MouseButton.LeftButton:
            self.owner.main.interaction_handler.begin_resize(self.owner.annotation_id, _global_point(event))
        event.accept()

    def mouseMoveEvent(self, event: QMouseEvent) -> None:
        if event.buttons() & Qt.MouseButton.LeftButton:
            self.owner.main.interaction_handler.update(_global_point(event))
        event.accept()

    def mouseReleaseEvent(self, event: QMouseEvent) -> None:
        if event.button() == Qt.MouseButton.LeftButton:
            self.owner.main.interaction_handler.end()
        event.accept()


class AnnotationWidget(QWidget):
    """
    PDFページ上に配置される注釈の表示用ウィジェットの基底クラス。

    位置とサイズは注釈ストアの値（文書空間）を現在のズーム率で変換して反映するだけで、
    ウィジェット自身は状態を持ちません。マウス操作はすべてInteractionHandlerに渡し、
    ページ側にはイベントを伝播させません。
    """
    def __init__(self, main_window: SigningWindow, annotation_id: str, parent: Optional[QWidget] = None) -> None:
        """
        AnnotationWidgetのコンストラクタ。

        Args:
            main_window (SigningWindow): メインウィンドウ（ハンドラとストアへの参照元）。
            annotation_id (str): 表示する注釈のID。
            parent (Optional[QWidget]): 親ウィジェット（ページ表示ラベル）。
        """
        super().__init__(parent)
        self.main: SigningWindow = main_window
        self.annotation_id: str = annotation_id
        self.setAttribute(Qt.WidgetAttribute.WA_StyledBackground, True)
        self.setFocusPolicy(Qt.FocusPolicy.ClickFocus)

        self._selected: bool = False
        self._read_only: bool = False

        self.delete_button: QToolButton = QToolButton(self)
        self.delete_button.setText("×")
        self.delete_button.setToolTip("削除")
        self.delete_button.setCursor(Qt.CursorShape.PointingHandCursor)
        self.delete_button.setStyleSheet("QToolButton { background-color: #d32f2f; color: white; padding: 0px 4px; border-radius: 8px; }")
        self.delete_button.setAutoRaise(True)
        self.delete_button.hide()
        self.delete_button.clicked.connect(self._request_delete)

        self.resize_handle: ResizeHandle = ResizeHandle(self)
        self.resize_handle.hide()

    def set_selected(self, selected: bool) -> None:
        """選択状態を設定し、枠線と削除ボタン・リサイズハンドルの表示を更新する。"""
        if self._selected == selected:
            return
        self._selected = selected
        self._update_controls()
        self.update()

    def set_read_only(self, read_only: bool) -> None:
        if self._read_only == read_only:
            return
        self._read_only = read_only
        self._update_controls()

    def _update_controls(self) -> None:
        editable = self._selected and not self._read_only
        self.delete_button.setVisible(editable)
        self.resize_handle.setVisible(editable)
        self._apply_frame_style()
        self._ensure_controls_position()

    def _apply_frame_style(self) -> None:
        border = "2px solid #1976d2" if self._selected else "1px dashed #9e9e9e"
        self.setStyleSheet(f"{type(self).__name__} {{ background-color: transparent; border: {border}; }}")

    def apply_annotation(self, annotation: Annotation, scale: float) -> None:
        """注釈の位置とサイズをビューポート座標に変換して反映する。"""
        self.setGeometry(
            round(length_to_viewport(annotation.x, scale)),
            round(length_to_viewport(annotation.y, scale)),
            max(1, round(length_to_viewport(annotation.width, scale))),
            max(1, round(length_to_viewport(annotation.height, scale))),
        )

    # --- マウス操作 ---
    def _press(self, event: QMouseEvent) -> None:
        if self._read_only:
            self.main.annotation_service.select(self.annotation_id)
        else:
            self.main.interaction_handler.begin_drag(self.annotation_id, _global_point(event))

    def mousePressEvent(self, event: QMouseEvent) -> None:
        """マウスプレスイベント。選択してドラッグを開始する。"""
        if event.button() == Qt.MouseButton.LeftButton:
            self._press(event)
        event.accept()

    def mouseMoveEvent(self, event: QMouseEvent) -> None:
        if event.buttons() & Qt.MouseButton.LeftButton:
            self.main.interaction_handler.update(_global_point(event))
        event.accept()

    def mouseReleaseEvent(self, event: QMouseEvent) -> None:
        if event.button() == Qt.MouseButton.LeftButton:
            self.main.interaction_handler.end()
        event.accept()

    def resizeEvent(self, event: QResizeEvent) -> None:
        """リサイズ時に削除ボタンとハンドルの位置を調整する。"""
        super().resizeEvent(event)
        self._ensure_controls_position()

    def _ensure_controls_position(self) -> None:
        """削除ボタンを右上、リサイズハンドルを右下に配置する。"""
        size = self.delete_button.sizeHint()
        self.delete_button.resize(size)
        self.delete_button.move(self.width() - size.width(), 0)
        self.delete_button.raise_()
        self.resize_handle.move(self.width() - ResizeHandle.SIZE, self.height() - ResizeHandle.SIZE)
        self.resize_handle.raise_()

    def _request_delete(self) -> None:
        self.main.interaction_handler.delete(self.annotation_id)


class TextFieldWidget(AnnotationWidget):
    """
    テキスト欄の注釈ウィジェット。内部のQLineEditで内容を直接編集できます。

    入力欄上でのドラッグもウィジェット全体の移動として扱います（クリックだけならカーソル移動）。
    """
    def __init__(self, main_window: SigningWindow, annotation_id: str, parent: Optional[QWidget] = None) -> None:
        super().__init__(main_window, annotation_id, parent)
        layout = QHBoxLayout(self)
        layout.setContentsMargins(2, 0, 2, 0)
        self.line_edit: QLineEdit = QLineEdit(self)
        self.line_edit.setPlaceholderText("テキストを入力...")
        self.line_edit.setFrame(False)
        self.line_edit.setStyleSheet("QLineEdit { background-color: rgba(255, 255, 255, 0.6); color: black; }")
        layout.addWidget(self.line_edit)
        self.line_edit.installEventFilter(self)
        self.line_edit.textEdited.connect(self._on_text_edited)
        self._apply_frame_style()
        self._ensure_controls_position()

    def apply_annotation(self, annotation: Annotation, scale: float) -> None:
        super().apply_annotation(annotation, scale)
        if not isinstance(annotation, TextField):
            return
        if self.line_edit.text() != annotation.text_content:
            self.line_edit.setText(annotation.text_content)
        font = self.line_edit.font()
        font.setPixelSize(max(1, round(length_to_viewport(annotation.font_size, scale))))
        self.line_edit.setFont(font)

    def set_read_only(self, read_only: bool) -> None:
        super().set_read_only(read_only)
        self.line_edit.setReadOnly(read_only)

    def _on_text_edited(self, text: str) -> None:
        self.main.interaction_handler.edit_text(self.annotation_id, text)

    def eventFilter(self, obj: QObject, event: QEvent) -> bool:
        """
        内部のQLineEditのマウスイベントをフィルタリングし、ウィジェット全体のドラッグを実現する。
        """
        if obj is self.line_edit and isinstance(event, QMouseEvent):
            handler = self.main.interaction_handler
            if event.type() == QEvent.Type.MouseButtonPress and event.button() == Qt.MouseButton.LeftButton:
                self._press(event)
            elif event.type() == QEvent.Type.MouseMove and event.buttons() & Qt.MouseButton.LeftButton:
                if handler.update(_global_point(event)):
                    return True
            elif event.type() == QEvent.Type.MouseButtonRelease and event.button() == Qt.MouseButton.LeftButton:
                if handler.end():
                    return True
        return super().eventFilter(obj, event)


class SignatureFieldWidget(AnnotationWidget):
    """署名画像の注釈ウィジェット。画像はアセットキャッシュから読み込んで縦横比を保って描画します。"""

    def __init__(self, main_window: SigningWindow, annotation_id: str, parent: Optional[QWidget] = None) -> None:
        super().__init__(main_window, annotation_id, parent)
        self.setCursor(Qt.CursorShape.OpenHandCursor)
        self._image_url: Optional[str] = None
        self._pixmap: Optional[QPixmap] = None
        self._apply_frame_style()
        self._ensure_controls_position()

    def apply_annotation(self, annotation: Annotation, scale: float) -> None:
        super().apply_annotation(annotation, scale)
        if isinstance(annotation, Signature) and annotation.image_url != self._image_url:
            self._image_url = annotation.image_url
            self._pixmap = self._load_pixmap(annotation.image_url)
            self.update()

    def _load_pixmap(self, image_url: Optional[str]) -> Optional[QPixmap]:
        data = self.main.assets.get(image_url)
        if not data:
            return None
        pixmap = QPixmap()
        return pixmap if pixmap.loadFromData(data) else None

    @property
    def has_preview(self) -> bool:
        return self._pixmap is not None

    def paintEvent(self, event: QPaintEvent) -> None:
        """署名画像を描画する。画像が無い場合はプレースホルダーを表示する。"""
        super().paintEvent(event)
        painter = QPainter(self)
        painter.setRenderHint(QPainter.RenderHint.SmoothPixmapTransform)
        if self._pixmap is not None:
            painter.drawPixmap(self.rect(), self._pixmap)
        else:
            painter.setPen(QColor("#9e9e9e"))
            painter.drawText(QRect(0, 0, self.width(), self.height()), Qt.AlignmentFlag.AlignCenter, "署名")
