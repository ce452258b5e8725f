from __future__ import annotations
import os
from typing import TYPE_CHECKING, Any, Callable, List, Optional

from PyQt6.QtWidgets import QDialog, QFileDialog, QMessageBox
from loguru import logger

from models.draft_models import Draft
from models.errors import (
    DocumentReadOnlyError, EmptyOrInvalidDocument, SigningError, ValidationError,
)
from models.signature_models import SignatureArtifact, UploadedSignature
from services.document_service import LoadedDocument
from ui.dialogs.send_back_dialog import SendBackDialog
from utils.api_worker import ApiWorkerThread

if TYPE_CHECKING:
    from ..main_window import SigningWindow


class SigningHandler:
    """
    署名APIとの通信を伴う操作（文書の読み込み、下書き保存、送信、署名画像の準備、
    確認・差し戻し・ダウンロード）をワーカースレッドで実行し、結果をUIに反映するハンドラクラス。

    検証エラーはパネル内に、通信エラーはメッセージボックスで通知します。
    """
    def __init__(self, main_window: SigningWindow,
                 on_save_draft: Optional[Callable[[], None]] = None,
                 on_submit: Optional[Callable[[], None]] = None) -> None:
        """
        SigningHandlerのコンストラクタ。

        Args:
            main_window (SigningWindow): 親となるメインウィンドウインスタンス。
            on_save_draft (Optional[Callable[[], None]]): 下書き保存に成功したときのコールバック。
            on_submit (Optional[Callable[[], None]]): 送信に成功したときのコールバック。
        """
        self.main: SigningWindow = main_window
        self.on_save_draft = on_save_draft
        self.on_submit = on_submit
        self._workers: List[ApiWorkerThread] = []

    # --- ワーカー管理 ---
    def _run(self, task: Callable[[], Any], name: str,
             on_result: Callable[[Any], None],
             on_error: Optional[Callable[[Exception], None]] = None) -> ApiWorkerThread:
        """処理をワーカースレッドで実行し、結果・エラーを指定のコールバックで受け取る。"""
        worker = ApiWorkerThread(task, name, self.main)
        worker.result_ready.connect(on_result)
        worker.error_occurred.connect(on_error or (lambda e: self.show_error(e, "エラー")))
        worker.finished.connect(lambda: self._forget(worker))
        self._workers.append(worker)
        worker.start()
        return worker

    def _forget(self, worker: ApiWorkerThread) -> None:
        if worker in self._workers:
            self._workers.remove(worker)
        worker.deleteLater()

    @property
    def busy(self) -> bool:
        return any(worker.isRunning() for worker in self._workers)

    def shutdown(self) -> None:
        """ウィンドウを閉じる前に、実行中のワーカーの終了を待つ。"""
        for worker in list(self._workers):
            worker.wait(3000)

    def show_error(self, error: Exception, title: str) -> None:
        """例外の種類に応じてユーザーに通知する。"""
        if isinstance(error, ValidationError):
            self.main.signing_panel.show_error(str(error))
        elif isinstance(error, DocumentReadOnlyError):
            logger.info("{}", error)
            self.main.apply_session_state()
        else:
            if not isinstance(error, SigningError):
                logger.exception("Unexpected error: {}", error)
            QMessageBox.warning(self.main, title, str(error))

    # --- 文書の読み込み ---
    def load_document(self, document_id: int, read_only: Optional[bool] = None) -> None:
        """文書のメタデータとPDFを取得し、続けて下書きを読み込む。"""
        self.main.statusBar().showMessage("文書を読み込んでいます...")
        self._run(lambda: self.main.document_service.load(document_id, read_only),
                  "load_document", self._on_document_loaded, self._on_load_error)

    def _on_document_loaded(self, loaded: LoadedDocument) -> None:
        try:
            self.main.pdf_handler.load_pdf_data(loaded.pdf_data)
        except EmptyOrInvalidDocument as e:
            self._on_load_error(e)
            return
        self.main.show_document_info(loaded.info)
        self.main.apply_session_state()
        self._run(lambda: self.main.draft_service.load_draft(loaded.info.id),
                  "load_draft", self._on_draft_loaded,
                  lambda e: self.show_error(e, "下書きの読み込みエラー"))

    def _on_draft_loaded(self, draft: Draft) -> None:
        self.main.annotation_service.replace_all(draft.annotations)
        self.main.statusBar().showMessage("読み込みが完了しました。", 3000)

    def _on_load_error(self, error: Exception) -> None:
        logger.error("Failed to load document: {}", error)
        self.main.fail_document(str(error))

    # --- 下書き保存 ---
    def save_draft(self) -> None:
        """現在の注釈を下書きとして保存する。"""
        session = self.main.session
        if session.is_read_only:
            return
        annotations = self.main.annotation_service.snapshot()
        document_id = session.document_id
        self.main.signing_panel.save_draft_button.setEnabled(False)
        self._run(lambda: self.main.draft_service.save_draft(document_id, annotations),
                  "save_draft", self._on_draft_saved, self._on_draft_save_error)

    def _on_draft_saved(self, _draft: Draft) -> None:
        self.main.signing_panel.save_draft_button.setEnabled(not self.main.session.is_read_only)
        QMessageBox.information(self.main, "下書き保存", "下書きを保存しました。")
        if self.on_save_draft:
            self.on_save_draft()
        self.main.draft_saved.emit()

    def _on_draft_save_error(self, error: Exception) -> None:
        self.main.signing_panel.save_draft_button.setEnabled(not self.main.session.is_read_only)
        self.show_error(error, "下書き保存エラー")

    # --- 送信 ---
    def confirm_submit(self) -> bool:
        """送信前の確認ダイアログを表示する。"""
        reply = QMessageBox.question(
            self.main, "署名の送信",
            "送信してもよろしいですか？送信後、この文書は編集できなくなります。",
            QMessageBox.StandardButton.Yes | QMessageBox.StandardButton.No,
            QMessageBox.StandardButton.No,
        )
        return reply == QMessageBox.StandardButton.Yes

    def submit(self) -> None:
        """確認後、注釈を確定して送信する。送信中は送信ボタンを無効にする。"""
        draft_service = self.main.draft_service
        if self.main.session.is_read_only or draft_service.is_submitting:
            return
        if not self.confirm_submit():
            return
        annotations = self.main.annotation_service.snapshot()
        document_id = self.main.session.document_id
        self.main.signing_panel.set_submitting(True)
        self._run(lambda: draft_service.submit(document_id, annotations, confirm=lambda: True),
                  "submit", self._on_submitted, self._on_submit_error)

    def _on_submitted(self, submitted: bool) -> None:
        self.main.signing_panel.set_submitting(False)
        if not submitted:
            return
        self.main.placement_handler.reset_mode()
        self.main.annotation_service.clear_selection()
        self.main.apply_session_state()
        QMessageBox.information(self.main, "署名の送信", "署名を送信しました。")
        if self.on_submit:
            self.on_submit()
        self.main.document_submitted.emit()

    def _on_submit_error(self, error: Exception) -> None:
        self.main.signing_panel.set_submitting(False)
        self.show_error(error, "送信エラー")

    # --- 署名の取得と配置 ---
    def on_stroke_completed(self) -> None:
        """キャンバスに線が描かれたら手書き署名を有効な取得元にする。"""
        try:
            self.main.signature_service.mark_drawn(self.main.signing_panel.signature_pad)
        except DocumentReadOnlyError:
            self.main.signing_panel.signature_pad.clear()
            return
        self.main.signing_panel.set_upload_info("")
        self.main.signing_panel.clear_error()

    def clear_signature(self) -> None:
        self.main.signature_service.clear()
        self.main.signing_panel.signature_pad.clear()
        self.main.signing_panel.set_upload_info("")

    def upload_signature_file(self) -> None:
        """ファイルダイアログで署名画像を選択し、検証してアップロードする。"""
        if self.main.session.is_read_only:
            return
        file_path, _ = QFileDialog.getOpenFileName(
            self.main, "署名画像を選択", "", "画像ファイル (*.png *.jpg *.jpeg)")
        if not file_path:
            return
        self.main.signing_panel.clear_error()
        self._run(lambda: self.main.signature_service.upload_file(file_path),
                  "upload_signature", self._on_signature_uploaded,
                  lambda e: self.show_error(e, "アップロードエラー"))

    def _on_signature_uploaded(self, uploaded: UploadedSignature) -> None:
        self.main.signing_panel.set_upload_info(
            f"{uploaded.file_name}（{uploaded.width}x{uploaded.height}px）をアップロードしました。")

    def prepare_signature(self, page_number: int, x: float, y: float) -> None:
        """署名画像を準備し、完了後にクリック位置へ署名を配置する。

        キャンバスの内容はこの時点（UIスレッド）で確定させ、アップロードと画像の取得だけを
        ワーカースレッドで行う。
        """
        service = self.main.signature_service
        try:
            capture = service.capture()
        except SigningError as e:
            self.main.placement_handler.cancel_signature()
            self.show_error(e, "署名の配置")
            return

        def on_ready(artifact: SignatureArtifact) -> None:
            try:
                self.main.placement_handler.place_signature(page_number, x, y, artifact)
            except SigningError as e:
                self.main.assets.release(artifact.image_url)
                self.main.placement_handler.cancel_signature()
                self.show_error(e, "署名の配置")
                return
            self.main.signing_panel.clear_error()
            self.main.signing_panel.set_upload_info("")

        def on_error(error: Exception) -> None:
            self.main.placement_handler.cancel_signature()
            self.show_error(error, "署名の配置")

        self._run(lambda: service.prepare_artifact(capture), "prepare_signature", on_ready, on_error)

    # --- 確認・差し戻し・ダウンロード ---
    def confirm_document(self) -> None:
        """署名済み文書を確認済みにする。"""
        reply = QMessageBox.question(
            self.main, "文書の確認", "この文書を確認済みにしますか？",
            QMessageBox.StandardButton.Yes | QMessageBox.StandardButton.No,
            QMessageBox.StandardButton.No,
        )
        if reply != QMessageBox.StandardButton.Yes:
            return
        self._run(self.main.document_service.confirm, "confirm_document",
                  self._on_lifecycle_changed, lambda e: self.show_error(e, "確認エラー"))

    def send_back(self) -> None:
        """差し戻し理由を入力させ、署名者に文書を差し戻す。"""
        document = self.main.session.document
        dialog = SendBackDialog(self.main, document.title if document else "")
        if dialog.exec() != QDialog.DialogCode.Accepted:
            return
        note = dialog.note()
        self._run(lambda: self.main.document_service.send_back(note), "send_back",
                  self._on_lifecycle_changed, lambda e: self.show_error(e, "差し戻しエラー"))

    def _on_lifecycle_changed(self, document: Any) -> None:
        self.main.show_document_info(document)
        self.main.statusBar().showMessage(f"文書の状態: {document.status.value}", 5000)

    def download_document(self) -> None:
        """文書のPDFをダウンロードして保存する。読み取り専用でも利用できる。"""
        document = self.main.session.document
        if document is None:
            return
        file_path, _ = QFileDialog.getSaveFileName(
            self.main, "PDFを保存", document.download_file_name, "PDF Files (*.pdf)")
        if not file_path:
            return
        self._run(lambda: self.main.document_service.download(file_path), "download_document",
                  lambda path: self.main.statusBar().showMessage(f"{os.path.basename(path)} を保存しました。", 5000),
                  lambda e: self.show_error(e, "ダウンロードエラー"))
