import os
from types import SimpleNamespace
from typing import Any, Dict, List, Optional
from unittest.mock import MagicMock

# Qtをヘッドレス環境で動かすため、PyQt6のインポートより先に設定する
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

import fitz
import pytest
from PyQt6.QtCore import QBuffer, QByteArray, QIODevice, Qt
from PyQt6.QtGui import QImage
from PyQt6.QtWidgets import QApplication

from models.document_models import DocumentInfo, DocumentStatus
from models.errors import NetworkError
from services.annotation_service import AnnotationService
from services.asset_service import AssetCache
from services.session_service import SigningSession


@pytest.fixture(scope="session", autouse=True)
def qapp():
    """テストセッション全体で共有するQApplication。"""
    app = QApplication.instance() or QApplication([])
    yield app


def make_image_bytes(width: int, height: int, fmt: str = "PNG") -> bytes:
    """指定サイズの画像データを作成する。"""
    image = QImage(width, height, QImage.Format.Format_RGBA8888)
    image.fill(Qt.GlobalColor.black)
    data = QByteArray()
    buffer = QBuffer(data)
    buffer.open(QIODevice.OpenModeFlag.WriteOnly)
    image.save(buffer, fmt)
    buffer.close()
    return bytes(data)


def make_pdf(pages: int = 2, width: float = 612, height: float = 792) -> bytes:
    """指定ページ数の白紙PDFを作成する。"""
    document = fitz.open()
    for _ in range(pages):
        document.new_page(width=width, height=height)
    data = document.tobytes()
    document.close()
    return data


def make_document(status: DocumentStatus = DocumentStatus.DRAFT, **kwargs: Any) -> DocumentInfo:
    return DocumentInfo(id=kwargs.pop("id", 7), title=kwargs.pop("title", "業務委託契約書"), status=status, **kwargs)


class FakeSigningAPI:
    """SigningAPIServiceの代わりに使うインメモリ実装。呼び出しを記録する。"""

    def __init__(self) -> None:
        self.calls: List[tuple] = []
        self.document: Optional[DocumentInfo] = make_document()
        self.pdf_data: bytes = b"%PDF-1.4 fake"
        self.draft: Optional[Dict[str, Any]] = None
        self.images: Dict[str, bytes] = {}
        self.upload_path: str = "uploads/signatures/sig-1.png"
        self.fail: Dict[str, Exception] = {}

    def _call(self, name: str, *args: Any) -> None:
        self.calls.append((name, *args))
        if name in self.fail:
            raise self.fail[name]

    def names(self) -> List[str]:
        return [c[0] for c in self.calls]

    def fetch_document(self, document_id: int) -> DocumentInfo:
        self._call("fetch_document", document_id)
        return self.document

    def download_document(self, document_id: int) -> bytes:
        self._call("download_document", document_id)
        return self.pdf_data

    def confirm_document(self, document_id: int) -> Dict[str, Any]:
        self._call("confirm_document", document_id)
        return {}

    def send_back(self, document_id: int, note: str) -> Dict[str, Any]:
        self._call("send_back", document_id, note)
        return {}

    def fetch_draft(self, document_id: int) -> Optional[Dict[str, Any]]:
        self._call("fetch_draft", document_id)
        return self.draft

    def save_draft(self, document_id: int, payload: Dict[str, Any]) -> Dict[str, Any]:
        self._call("save_draft", document_id, payload)
        return {}

    def submit(self, document_id: int, payload: Dict[str, Any]) -> Dict[str, Any]:
        self._call("submit", document_id, payload)
        return {}

    def upload_signature(self, data: bytes, file_name: str = "signature.png", mime_type: str = "image/png") -> str:
        self._call("upload_signature", file_name, mime_type)
        self.images.setdefault(self.upload_path, data)
        return self.upload_path

    def fetch_signature_image(self, path: str) -> bytes:
        self._call("fetch_signature_image", path)
        if path not in self.images:
            raise NetworkError("Signature not found", status_code=404)
        return self.images[path]


@pytest.fixture
def fake_api() -> FakeSigningAPI:
    return FakeSigningAPI()


@pytest.fixture
def session() -> SigningSession:
    return SigningSession(make_document())


@pytest.fixture
def read_only_session() -> SigningSession:
    return SigningSession(make_document(DocumentStatus.SIGNED, recipient_status="signed"))


@pytest.fixture
def assets() -> AssetCache:
    return AssetCache()


@pytest.fixture
def store(session: SigningSession, assets: AssetCache) -> AnnotationService:
    return AnnotationService(session, assets)


@pytest.fixture
def fake_main(session: SigningSession, store: AnnotationService, assets: AssetCache) -> SimpleNamespace:
    """ハンドラのテストに使う、メインウィンドウの最小限の代替。"""
    pdf_handler = SimpleNamespace(
        page_count=3,
        zoom_factor=1.0,
        current_page_number=1,
        page_size=lambda page_number: (612.0, 792.0),
    )
    signing_panel = MagicMock()
    signing_panel.full_name.return_value = "山田 太郎"
    main = SimpleNamespace(
        session=session,
        annotation_service=store,
        assets=assets,
        pdf_handler=pdf_handler,
        signing_panel=signing_panel,
        signing_handler=MagicMock(),
        signature_service=MagicMock(),
        pdf_display_label=MagicMock(),
        update_mode_actions=MagicMock(),
    )
    return main
