from typing import Optional

from PyQt6.QtCore import Qt, QBuffer, QByteArray, QIODevice, QPointF, pyqtSignal
from PyQt6.QtGui import QColor, QImage, QMouseEvent, QPainter, QPaintEvent, QPen
from PyQt6.QtWidgets import QWidget

PAD_WIDTH = 300
PAD_HEIGHT = 150


class SignaturePad(QWidget):
    """
    手書き署名を描くためのキャンバスウィジェット。

    透明な 300x150 の画像に黒・2px・丸端の線で描画します。線を描き終えるたびに
    stroke_completed シグナルを送信し、PNGとして書き出すことができます。

    Signals:
        stroke_completed (pyqtSignal): 一本の線を描き終えたときに送信されます。
    """
    stroke_completed = pyqtSignal()

    def __init__(self, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self.setFixedSize(PAD_WIDTH, PAD_HEIGHT)
        self.setCursor(Qt.CursorShape.CrossCursor)
        self.setAttribute(Qt.WidgetAttribute.WA_StyledBackground, True)
        self.setStyleSheet("SignaturePad { background-color: white; border: 1px solid #bdbdbd; }")

        self.image: QImage = QImage(PAD_WIDTH, PAD_HEIGHT, QImage.Format.Format_RGBA8888)
        self.image.fill(Qt.GlobalColor.transparent)
        self._last_point: Optional[QPointF] = None
        self._read_only: bool = False

    def set_read_only(self, read_only: bool) -> None:
        self._read_only = read_only
        self.setEnabled(not read_only)

    def _pen(self) -> QPen:
        pen = QPen(QColor("black"), 2)
        pen.setCapStyle(Qt.PenCapStyle.RoundCap)
        pen.setJoinStyle(Qt.PenJoinStyle.RoundJoin)
        return pen

    def draw_line(self, start: QPointF, end: QPointF) -> None:
        """キャンバス画像に線分を描画する。"""
        painter = QPainter(self.image)
        painter.setRenderHint(QPainter.RenderHint.Antialiasing)
        painter.setPen(self._pen())
        painter.drawLine(start, end)
        painter.end()
        self.update()

    def has_content(self) -> bool:
        """不透明度が0でないピクセルが一つでもあれば描画済みとみなす。"""
        alpha = self.image.constBits().asstring(self.image.sizeInBytes())[3::4]
        return any(alpha)

    def to_png_bytes(self) -> bytes:
        """キャンバスの内容をPNG形式のバイト列として書き出す。"""
        data = QByteArray()
        buffer = QBuffer(data)
        buffer.open(QIODevice.OpenModeFlag.WriteOnly)
        self.image.save(buffer, "PNG")
        buffer.close()
        return bytes(data)

    def clear(self) -> None:
        self.image.fill(Qt.GlobalColor.transparent)
        self._last_point = None
        self.update()

    def paintEvent(self, event: QPaintEvent) -> None:
        super().paintEvent(event)
        painter = QPainter(self)
        painter.drawImage(0, 0, self.image)

    def mousePressEvent(self, event: QMouseEvent) -> None:
        if self._read_only or event.button() != Qt.MouseButton.LeftButton:
            return super().mousePressEvent(event)
        self._last_point = event.position()
        # クリックだけでも点を残す
        self.draw_line(self._last_point, self._last_point)
        event.accept()

    def mouseMoveEvent(self, event: QMouseEvent) -> None:
        if self._last_point is None or not (event.buttons() & Qt.MouseButton.LeftButton):
            return super().mouseMoveEvent(event)
        point = event.position()
        self.draw_line(self._last_point, point)
        self._last_point = point
        event.accept()

    def mouseReleaseEvent(self, event: QMouseEvent) -> None:
        if self._last_point is None or event.button() != Qt.MouseButton.LeftButton:
            return super().mouseReleaseEvent(event)
        self._last_point = None
        event.accept()
        self.stroke_completed.emit()
