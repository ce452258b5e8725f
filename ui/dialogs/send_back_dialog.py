# ui/dialogs/send_back_dialog.py
"""
署名済み文書を差し戻すためのダイアログウィンドウを提供します。

差し戻し理由のメモは必須で、空のままではOKボタンを押せません。
"""
from __future__ import annotations
from typing import Optional

from PyQt6.QtCore import Qt
from PyQt6.QtWidgets import (
    QDialog, QDialogButtonBox, QLabel, QPlainTextEdit, QVBoxLayout, QWidget
)


class SendBackDialog(QDialog):
    """
    差し戻し理由を入力するモーダルダイアログ。
    """
    def __init__(self, parent: Optional[QWidget], document_title: str = "") -> None:
        """
        SendBackDialogのコンストラクタ。

        Args:
            parent (Optional[QWidget]): 親ウィジェット。通常はSigningWindow。
            document_title (str): 差し戻す文書のタイトル。
        """
        super().__init__(parent)
        self.setWindowTitle("文書の差し戻し")
        self.setModal(True)
        self.setWindowModality(Qt.WindowModality.WindowModal)

        layout = QVBoxLayout(self)
        if document_title:
            layout.addWidget(QLabel(f"文書: {document_title}"))
        layout.addWidget(QLabel("差し戻しの理由（必須）"))

        self.note_edit: QPlainTextEdit = QPlainTextEdit(self)
        self.note_edit.setPlaceholderText("署名者に修正を依頼する理由を入力してください...")
        layout.addWidget(self.note_edit)

        hint = QLabel("このメモは署名者への通知に含まれます。")
        hint.setStyleSheet("QLabel { color: #757575; }")
        layout.addWidget(hint)

        self.button_box: QDialogButtonBox = QDialogButtonBox(
            QDialogButtonBox.StandardButton.Ok | QDialogButtonBox.StandardButton.Cancel
        )
        self.button_box.button(QDialogButtonBox.StandardButton.Ok).setText("差し戻す")
        self.button_box.accepted.connect(self.accept)
        self.button_box.rejected.connect(self.reject)
        layout.addWidget(self.button_box)

        self.note_edit.textChanged.connect(self._update_ok_button)
        self._update_ok_button()
        self.resize(420, 260)

    def note(self) -> str:
        return self.note_edit.toPlainText().strip()

    def _update_ok_button(self) -> None:
        """メモが空のときはOKボタンを無効にする。"""
        self.button_box.button(QDialogButtonBox.StandardButton.Ok).setEnabled(bool(self.note()))
