# utils/pdf_utils.py
"""PDFの読み込みとページのレンダリングなど、PDFエンジン（PyMuPDF）の操作をまとめたユーティリティ。"""

import threading
from typing import Tuple

import fitz  # PyMuPDF
from PyQt6.QtGui import QImage
from loguru import logger

from models.errors import EmptyOrInvalidDocument


class PDFEngine:
    """PyMuPDFの初期化・文書のオープン・ページ描画を担うクラス。

    初期化は ensure_ready() で一度だけ行われ、文書のオープンと描画はすべて
    このゲートを通過してから実行されます。
    """

    _ready: bool = False
    _lock = threading.Lock()

    @classmethod
    def ensure_ready(cls) -> None:
        """PDFエンジンを初期化する。何度呼び出しても初期化は一度だけ行われる。"""
        if cls._ready:
            return
        with cls._lock:
            if cls._ready:
                return
            # MuPDFのエラーは例外として扱い、標準エラーへの直接出力は抑止する
            fitz.TOOLS.mupdf_display_errors(False)
            cls._ready = True
            logger.debug("PDF engine initialized (PyMuPDF {})", fitz.VersionBind)

    @classmethod
    def is_ready(cls) -> bool:
        return cls._ready

    @classmethod
    def open_document(cls, data: bytes) -> fitz.Document:
        """PDFのバイト列から文書を開く。

        Args:
            data (bytes): ダウンロードしたPDFデータ。

        Returns:
            fitz.Document: 開いた文書。

        Raises:
            EmptyOrInvalidDocument: データが空、PDFとして開けない、またはページが無い場合。
        """
        cls.ensure_ready()
        if not data:
            raise EmptyOrInvalidDocument("PDFファイルが空です。")
        try:
            document = fitz.open(stream=data, filetype="pdf")
        except Exception as e:
            raise EmptyOrInvalidDocument(f"PDFファイルを開けませんでした: {e}") from e
        if document.page_count == 0:
            document.close()
            raise EmptyOrInvalidDocument("PDFファイルにページがありません。")
        return document

    @classmethod
    def page_size(cls, document: fitz.Document, page_number: int) -> Tuple[float, float]:
        """指定ページ（1始まり）の文書空間でのサイズ (幅, 高さ) を返す。"""
        cls.ensure_ready()
        rect = document.load_page(page_number - 1).rect
        return rect.width, rect.height

    @classmethod
    def render_page(cls, page: fitz.Page, scale: float = 1.0, dpr: float = 1.0) -> QImage:
        """PDFの指定されたページをQImageオブジェクトにレンダリングする。

        Args:
            page (fitz.Page): レンダリング対象のPyMuPDFページオブジェクト。
            scale (float): ズーム倍率。1.0で1ポイント=1ピクセルになる。
            dpr (float): デバイスピクセル比。高DPI画面で鮮明に描画するために使う。

        Returns:
            QImage: レンダリングされたページのQImageオブジェクト。
        """
        cls.ensure_ready()
        matrix = fitz.Matrix(scale * dpr, scale * dpr)
        pix = page.get_pixmap(matrix=matrix, annots=True)

        # QImageのフォーマットを決定
        if pix.alpha:
            image_format = QImage.Format.Format_RGBA8888
        else:
            image_format = QImage.Format.Format_RGB888

        qimage = QImage(pix.samples, pix.width, pix.height, pix.stride, image_format)

        # メモリリークを避けるため、データをコピーして返す
        return qimage.copy()
