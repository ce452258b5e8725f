from __future__ import annotations
from typing import TYPE_CHECKING, Optional, Tuple

import fitz
from PyQt6.QtGui import QPixmap
from loguru import logger

from utils.coordinates import DEFAULT_SCALE, MAX_SCALE, MIN_SCALE, SCALE_STEP, clamp_scale
from utils.pdf_utils import PDFEngine

if TYPE_CHECKING:
    from ..main_window import SigningWindow


class PDFHandler:
    """
    PDF文書の読み込み、ページ表示、ページ移動、ズームなど、
    PDFレンダリングに関する処理を担うハンドラクラス。

    ページ番号は内部では0始まり（current_page）、注釈やAPIでは1始まり（page_number）で扱います。
    """
    MIN_ZOOM: float = MIN_SCALE
    MAX_ZOOM: float = MAX_SCALE

    def __init__(self, main_window: SigningWindow) -> None:
        """
        PDFHandlerのコンストラクタ。

        Args:
            main_window (SigningWindow): 親となるメインウィンドウインスタンス。
        """
        self.main: SigningWindow = main_window
        self.pdf_document: Optional[fitz.Document] = None
        self.current_page: int = 0
        self.total_pages: int = 0
        self.zoom_factor: float = DEFAULT_SCALE

    @property
    def page_count(self) -> Optional[int]:
        """ページ数。PDFが読み込まれていない間はNone（ページクリックはすべて無視される）。"""
        return self.total_pages if self.pdf_document is not None else None

    @property
    def current_page_number(self) -> int:
        return self.current_page + 1

    def load_pdf_data(self, data: bytes) -> None:
        """
        ダウンロードしたPDFデータを開き、最初のページを表示する。

        Raises:
            EmptyOrInvalidDocument: PDFが空、または開けない場合。
        """
        self.close_document()
        self.pdf_document = PDFEngine.open_document(data)
        self.total_pages = self.pdf_document.page_count
        self.current_page = 0
        self.zoom_factor = DEFAULT_SCALE
        logger.info("PDF loaded: {} page(s)", self.total_pages)
        self.show_page(self.current_page)

    def close_document(self) -> None:
        if self.pdf_document is not None:
            self.pdf_document.close()
        self.pdf_document = None
        self.total_pages = 0
        self.current_page = 0

    def page_size(self, page_number: int) -> Optional[Tuple[float, float]]:
        """指定ページ（1始まり）の文書空間でのサイズを返す。PDF未読み込み時はNone。"""
        if self.pdf_document is None or not (1 <= page_number <= self.total_pages):
            return None
        return PDFEngine.page_size(self.pdf_document, page_number)

    def show_page(self, page_index: int) -> None:
        """
        指定されたページ（0始まり）を現在のズーム率でレンダリングして表示する。
        """
        if not self.pdf_document or not (0 <= page_index < self.total_pages):
            return

        self.current_page = page_index
        page = self.pdf_document.load_page(page_index)
        dpr = self.main.windowHandle().devicePixelRatio() if self.main.windowHandle() else 1.0

        image = PDFEngine.render_page(page, self.zoom_factor, dpr)
        pixmap = QPixmap.fromImage(image)
        pixmap.setDevicePixelRatio(dpr)
        self.main.pdf_display_label.set_page_pixmap(pixmap)

        self.main.page_label.setText(f"{self.current_page + 1} / {self.total_pages}")
        self.main.page_num_input.setText(str(self.current_page + 1))
        self.main.zoom_label.setText(f"{round(self.zoom_factor * 100)}%")

    def show_prev_page(self) -> None:
        """前のページを表示する。"""
        self.show_page(self.current_page - 1)

    def show_next_page(self) -> None:
        """次のページを表示する。"""
        self.show_page(self.current_page + 1)

    def goto_page_from_input(self) -> None:
        """入力フィールドのページ番号にジャンプする。"""
        try:
            page_num = int(self.main.page_num_input.text()) - 1
            if 0 <= page_num < self.total_pages:
                self.show_page(page_num)
        except ValueError:
            pass

    def set_zoom(self, zoom: float) -> None:
        """ズーム率を設定する。範囲外の値は 0.5〜2.0 に丸められる。"""
        new_zoom = clamp_scale(zoom)
        if abs(new_zoom - self.zoom_factor) < 0.001:
            return
        self.zoom_factor = new_zoom
        if self.pdf_document:
            self.show_page(self.current_page)

    def zoom_in(self) -> None:
        self.set_zoom(self.zoom_factor + SCALE_STEP)

    def zoom_out(self) -> None:
        self.set_zoom(self.zoom_factor - SCALE_STEP)

    def fit(self) -> None:
        """ズーム率を既定値（1.0）に戻す。"""
        self.set_zoom(DEFAULT_SCALE)
