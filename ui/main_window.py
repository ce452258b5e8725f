# ui/main_window.py
from typing import Callable, Optional

from PyQt6.QtCore import Qt, QTimer, pyqtSignal
from PyQt6.QtGui import QAction, QCloseEvent, QKeySequence
from PyQt6.QtWidgets import (
    QHBoxLayout, QLabel, QLineEdit, QMainWindow, QMessageBox, QScrollArea,
    QSplitter, QToolBar, QWidget
)
from loguru import logger

from models.annotation_models import PlacementMode
from models.document_models import DocumentInfo
from services.annotation_service import AnnotationService
from services.api_service import SigningAPIService
from services.asset_service import AssetCache
from services.document_service import DocumentService
from services.draft_service import DraftService
from services.session_service import SigningSession
from services.signature_service import SignatureCaptureService
from services.storage_service import StorageService
from ui.handlers.interaction_handler import InteractionHandler
from ui.handlers.pdf_handler import PDFHandler
from ui.handlers.placement_handler import PlacementHandler
from ui.handlers.signing_handler import SigningHandler
from ui.widgets import PDFDisplayLabel, SigningPanel
from utils.api_utils import ApiClient
from utils.app_config import AppConfig


class SigningWindow(QMainWindow):
    """
    一つの文書に署名するためのメインウィンドウ。

    PDFページの表示領域と署名パネルで構成され、サービス層（注釈ストア、署名の取得、
    下書き・送信、文書ライフサイクル）とUIハンドラを生成して結び付けます。

    Signals:
        draft_saved (pyqtSignal): 下書き保存に成功したときに送信されます。
        document_submitted (pyqtSignal): 送信に成功したときに送信されます。
    """
    draft_saved = pyqtSignal()
    document_submitted = pyqtSignal()

    def __init__(
        self,
        config: AppConfig,
        document_id: int,
        read_only: Optional[bool] = None,
        api_client: Optional[ApiClient] = None,
        on_save_draft: Optional[Callable[[], None]] = None,
        on_submit: Optional[Callable[[], None]] = None,
        auto_load: bool = True,
    ) -> None:
        """
        SigningWindowのコンストラクタ。

        Args:
            config (AppConfig): アプリケーション設定。
            document_id (int): 署名する文書のID。
            read_only (Optional[bool]): 読み取り専用を明示する場合に指定する。Noneなら文書の状態から判定する。
            api_client (Optional[ApiClient]): 使用するAPIクライアント。省略時は設定から生成する。
            on_save_draft (Optional[Callable[[], None]]): 下書き保存成功時のコールバック。
            on_submit (Optional[Callable[[], None]]): 送信成功時のコールバック。
            auto_load (bool): 表示後に文書を自動で読み込むかどうか。
        """
        super().__init__()
        self.setWindowTitle("PDF署名")
        self.setGeometry(80, 80, 1280, 900)
        self.config = config
        self.document_id = document_id
        self._closing_after_failure = False

        # --- サービス層 ---
        client = api_client or ApiClient(config.api_base_url, config.request_timeout, config.auth_token)
        self.api_service = SigningAPIService(client)
        self.session = SigningSession()
        self.assets = AssetCache()
        self.annotation_service = AnnotationService(self.session, self.assets)
        self.signature_service = SignatureCaptureService(self.api_service, self.assets, self.session)
        self.draft_service = DraftService(self.api_service, self.session, self.assets)
        self.document_service = DocumentService(self.api_service, self.session, StorageService(config.data_dir))

        # --- UIハンドラ ---
        self.pdf_handler = PDFHandler(self)
        self.interaction_handler = InteractionHandler(self)
        self.placement_handler = PlacementHandler(self)
        self.signing_handler = SigningHandler(self, on_save_draft, on_submit)

        self._create_ui()
        self.setup_toolbar()
        self.connect_signals()
        self.apply_session_state()

        if auto_load:
            QTimer.singleShot(0, lambda: self.signing_handler.load_document(document_id, read_only))

    # --- UI構築 ---
    def _create_ui(self) -> None:
        self.pdf_display_label = PDFDisplayLabel(self)
        self.pdf_scroll_area = QScrollArea()
        self.pdf_scroll_area.setWidget(self.pdf_display_label)
        self.pdf_scroll_area.setWidgetResizable(False)
        self.pdf_scroll_area.setAlignment(Qt.AlignmentFlag.AlignHCenter | Qt.AlignmentFlag.AlignTop)
        self.pdf_scroll_area.setStyleSheet("QScrollArea { background: #eeeeee; border: none; }")

        self.signing_panel = SigningPanel()

        splitter = QSplitter(Qt.Orientation.Horizontal)
        splitter.addWidget(self.pdf_scroll_area)
        splitter.addWidget(self.signing_panel)
        splitter.setStretchFactor(0, 1)
        splitter.setStretchFactor(1, 0)

        central = QWidget()
        layout = QHBoxLayout(central)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.addWidget(splitter)
        self.setCentralWidget(central)
        self.statusBar()

    def setup_toolbar(self) -> None:
        """ページ移動・ズーム・文書操作のツールバーを作成する。"""
        toolbar = QToolBar("メインツールバー")
        toolbar.setMovable(False)
        self.addToolBar(toolbar)

        self.title_label = QLabel("")
        self.title_label.setStyleSheet("QLabel { font-weight: bold; padding: 0 8px; }")
        toolbar.addWidget(self.title_label)
        self.status_label = QLabel("")
        self.status_label.setStyleSheet("QLabel { color: #616161; padding: 0 8px; }")
        toolbar.addWidget(self.status_label)
        toolbar.addSeparator()

        self.prev_page_action = QAction("前へ", self)
        self.prev_page_action.setShortcut(QKeySequence(Qt.Key.Key_PageUp))
        self.next_page_action = QAction("次へ", self)
        self.next_page_action.setShortcut(QKeySequence(Qt.Key.Key_PageDown))
        self.page_num_input = QLineEdit()
        self.page_num_input.setFixedWidth(40)
        self.page_label = QLabel("- / -")
        toolbar.addAction(self.prev_page_action)
        toolbar.addWidget(self.page_num_input)
        toolbar.addWidget(self.page_label)
        toolbar.addAction(self.next_page_action)
        toolbar.addSeparator()

        self.zoom_out_action = QAction("縮小", self)
        self.zoom_out_action.setShortcut(QKeySequence.StandardKey.ZoomOut)
        self.zoom_in_action = QAction("拡大", self)
        self.zoom_in_action.setShortcut(QKeySequence.StandardKey.ZoomIn)
        self.fit_action = QAction("100%", self)
        self.zoom_label = QLabel("100%")
        toolbar.addAction(self.zoom_out_action)
        toolbar.addWidget(self.zoom_label)
        toolbar.addAction(self.zoom_in_action)
        toolbar.addAction(self.fit_action)
        toolbar.addSeparator()

        self.download_action = QAction("ダウンロード", self)
        self.confirm_action = QAction("確認済みにする", self)
        self.send_back_action = QAction("差し戻す", self)
        toolbar.addAction(self.download_action)
        toolbar.addAction(self.confirm_action)
        toolbar.addAction(self.send_back_action)

    def connect_signals(self) -> None:
        """UI要素のシグナルを各ハンドラに接続する。"""
        self.prev_page_action.triggered.connect(self.pdf_handler.show_prev_page)
        self.next_page_action.triggered.connect(self.pdf_handler.show_next_page)
        self.page_num_input.returnPressed.connect(self.pdf_handler.goto_page_from_input)
        self.zoom_in_action.triggered.connect(self.pdf_handler.zoom_in)
        self.zoom_out_action.triggered.connect(self.pdf_handler.zoom_out)
        self.fit_action.triggered.connect(self.pdf_handler.fit)

        self.download_action.triggered.connect(self.signing_handler.download_document)
        self.confirm_action.triggered.connect(self.signing_handler.confirm_document)
        self.send_back_action.triggered.connect(self.signing_handler.send_back)

        panel = self.signing_panel
        panel.text_mode_button.clicked.connect(lambda: self.placement_handler.toggle_mode(PlacementMode.TEXT))
        panel.signature_mode_button.clicked.connect(lambda: self.placement_handler.toggle_mode(PlacementMode.SIGNATURE))
        panel.signature_pad.stroke_completed.connect(self.signing_handler.on_stroke_completed)
        panel.clear_signature_button.clicked.connect(self.signing_handler.clear_signature)
        panel.upload_signature_button.clicked.connect(self.signing_handler.upload_signature_file)
        panel.save_draft_button.clicked.connect(self.signing_handler.save_draft)
        panel.submit_button.clicked.connect(self.signing_handler.submit)

        self.annotation_service.subscribe(self.pdf_display_label.sync_annotations)

    # --- 状態の反映 ---
    def update_mode_actions(self, mode: PlacementMode) -> None:
        """配置モードの変更をボタンとカーソルに反映する。"""
        self.signing_panel.set_mode(mode)
        cursor = Qt.CursorShape.ArrowCursor if mode == PlacementMode.NONE else Qt.CursorShape.CrossCursor
        self.pdf_display_label.setCursor(cursor)

    def show_document_info(self, document: DocumentInfo) -> None:
        """文書のタイトル・状態・差し戻しメモを表示し、確認/差し戻しの可否を更新する。"""
        self.setWindowTitle(f"PDF署名 - {document.title}")
        self.title_label.setText(document.title)
        self.status_label.setText(document.status.value)
        self.signing_panel.set_revision_note(document.revision_note)
        can_review = self.document_service.can_review
        self.confirm_action.setEnabled(can_review)
        self.send_back_action.setEnabled(can_review)

    def apply_session_state(self) -> None:
        """読み取り専用かどうかをパネルと注釈ウィジェットに反映する。"""
        read_only = self.session.is_read_only
        self.signing_panel.set_read_only(read_only)
        if read_only:
            self.placement_handler.reset_mode()
        self.download_action.setEnabled(self.session.document is not None)
        if self.session.document is not None:
            self.show_document_info(self.session.document)
        else:
            self.confirm_action.setEnabled(False)
            self.send_back_action.setEnabled(False)
        self.pdf_display_label.sync_annotations()

    def fail_document(self, message: str) -> None:
        """文書を表示できない場合にエラーを表示し、ウィンドウを閉じる。"""
        if self._closing_after_failure:
            return
        self._closing_after_failure = True
        QMessageBox.critical(self, "文書を開けません", message)
        self.close()

    def closeEvent(self, event: QCloseEvent) -> None:
        """ウィンドウを閉じるときにワーカーの終了を待ち、画像ハンドルとPDFを解放する。未保存の変更は破棄される。"""
        self.signing_handler.shutdown()
        self.annotation_service.unsubscribe(self.pdf_display_label.sync_annotations)
        self.assets.release_all()
        self.pdf_handler.close_document()
        logger.info("Signing window for document {} closed", self.document_id)
        super().closeEvent(event)
