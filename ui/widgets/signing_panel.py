from typing import Optional

from PyQt6.QtCore import Qt
from PyQt6.QtWidgets import (QGroupBox, QHBoxLayout, QLabel, QLineEdit, QPushButton,
                             QVBoxLayout, QWidget)

from models.annotation_models import PlacementMode
from .signature_pad import SignaturePad


class SigningPanel(QWidget):
    """
    署名操作用のサイドパネル。

    氏名の入力欄、配置モードの切り替えボタン、手書きキャンバスと画像アップロード、
    検証エラーのインライン表示、下書き保存・送信ボタンをまとめています。
    ボタンのシグナルはメインウィンドウ側で各ハンドラに接続されます。
    """
    def __init__(self, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self.setMinimumWidth(330)
        layout = QVBoxLayout(self)

        self.revision_note_label = QLabel(self)
        self.revision_note_label.setWordWrap(True)
        self.revision_note_label.setStyleSheet("QLabel { background-color: #fff3e0; border: 1px solid #ffb74d; padding: 6px; }")
        self.revision_note_label.hide()
        layout.addWidget(self.revision_note_label)

        self.read_only_label = QLabel("この文書は署名済みのため、閲覧のみ可能です。", self)
        self.read_only_label.setWordWrap(True)
        self.read_only_label.setStyleSheet("QLabel { color: #2e7d32; font-weight: bold; }")
        self.read_only_label.hide()
        layout.addWidget(self.read_only_label)

        # --- 氏名と配置モード ---
        self.edit_group = QGroupBox("注釈の配置", self)
        edit_layout = QVBoxLayout(self.edit_group)
        edit_layout.addWidget(QLabel("氏名（テキスト欄の初期値）", self.edit_group))
        self.full_name_edit = QLineEdit(self.edit_group)
        self.full_name_edit.setPlaceholderText("氏名を入力...")
        edit_layout.addWidget(self.full_name_edit)

        mode_row = QHBoxLayout()
        self.text_mode_button = QPushButton("テキスト欄を追加", self.edit_group)
        self.text_mode_button.setCheckable(True)
        self.signature_mode_button = QPushButton("署名を追加", self.edit_group)
        self.signature_mode_button.setCheckable(True)
        mode_row.addWidget(self.text_mode_button)
        mode_row.addWidget(self.signature_mode_button)
        edit_layout.addLayout(mode_row)

        self.mode_hint_label = QLabel("", self.edit_group)
        self.mode_hint_label.setStyleSheet("QLabel { color: #1976d2; }")
        edit_layout.addWidget(self.mode_hint_label)
        layout.addWidget(self.edit_group)

        # --- 署名の取得 ---
        self.signature_group = QGroupBox("署名", self)
        signature_layout = QVBoxLayout(self.signature_group)
        self.signature_pad = SignaturePad(self.signature_group)
        signature_layout.addWidget(self.signature_pad, alignment=Qt.AlignmentFlag.AlignHCenter)
        pad_row = QHBoxLayout()
        self.clear_signature_button = QPushButton("クリア", self.signature_group)
        self.upload_signature_button = QPushButton("画像をアップロード...", self.signature_group)
        pad_row.addWidget(self.clear_signature_button)
        pad_row.addWidget(self.upload_signature_button)
        signature_layout.addLayout(pad_row)
        self.upload_info_label = QLabel("", self.signature_group)
        self.upload_info_label.setWordWrap(True)
        signature_layout.addWidget(self.upload_info_label)
        layout.addWidget(self.signature_group)

        self.error_label = QLabel("", self)
        self.error_label.setWordWrap(True)
        self.error_label.setStyleSheet("QLabel { color: #d32f2f; }")
        self.error_label.hide()
        layout.addWidget(self.error_label)

        layout.addStretch(1)

        # --- 保存・送信 ---
        button_row = QHBoxLayout()
        self.save_draft_button = QPushButton("下書き保存", self)
        self.submit_button = QPushButton("署名を送信", self)
        self.submit_button.setStyleSheet("QPushButton { font-weight: bold; }")
        button_row.addWidget(self.save_draft_button)
        button_row.addWidget(self.submit_button)
        layout.addLayout(button_row)

    def full_name(self) -> str:
        return self.full_name_edit.text()

    def show_error(self, message: str) -> None:
        """検証エラーなどをパネル内に表示する。"""
        self.error_label.setText(message)
        self.error_label.show()

    def clear_error(self) -> None:
        self.error_label.clear()
        self.error_label.hide()

    def set_upload_info(self, text: str) -> None:
        self.upload_info_label.setText(text)

    def set_mode(self, mode: PlacementMode) -> None:
        """配置モードに合わせてボタンの状態とヒントを更新する。"""
        self.text_mode_button.setChecked(mode == PlacementMode.TEXT)
        self.signature_mode_button.setChecked(mode == PlacementMode.SIGNATURE)
        hints = {
            PlacementMode.TEXT: "ページをクリックしてテキスト欄を配置します。",
            PlacementMode.SIGNATURE: "ページをクリックして署名を配置します。",
        }
        self.mode_hint_label.setText(hints.get(mode, ""))

    def set_revision_note(self, note: Optional[str]) -> None:
        """差し戻しメモを表示する。空の場合は非表示にする。"""
        if note:
            self.revision_note_label.setText(f"差し戻し理由: {note}")
            self.revision_note_label.show()
        else:
            self.revision_note_label.hide()

    def set_read_only(self, read_only: bool) -> None:
        """読み取り専用のときは編集系のコントロールをすべて無効にする。"""
        self.read_only_label.setVisible(read_only)
        self.edit_group.setEnabled(not read_only)
        self.signature_group.setEnabled(not read_only)
        self.signature_pad.set_read_only(read_only)
        self.save_draft_button.setEnabled(not read_only)
        self.submit_button.setEnabled(not read_only)
        if read_only:
            self.set_mode(PlacementMode.NONE)

    def set_submitting(self, submitting: bool) -> None:
        self.submit_button.setEnabled(not submitting)
        self.submit_button.setText("送信中..." if submitting else "署名を送信")
