# utils/api_worker.py
"""署名APIへのリクエストをバックグラウンドで実行するためのスレッド機能を提供します。"""

from typing import Any, Callable, Optional

from PyQt6.QtCore import QObject, QThread, pyqtSignal
from loguru import logger


class ApiWorkerThread(QThread):
    """API呼び出しなどの時間のかかる処理を実行するワーカースレッド。

    UIのフリーズを防ぐため、ネットワークリクエストをバックグラウンドで実行します。
    注釈のドラッグやリサイズは通信中も継続して操作できます。

    Signals:
        result_ready (pyqtSignal):
            処理が成功した際に、戻り値（object）を送信します。
        error_occurred (pyqtSignal):
            処理中に例外が発生した際に、その例外オブジェクトを送信します。
    """
    result_ready = pyqtSignal(object)
    error_occurred = pyqtSignal(object)

    def __init__(self, task: Callable[[], Any], name: str = "api", parent: Optional[QObject] = None) -> None:
        """ApiWorkerThreadのコンストラクタ。

        Args:
            task (Callable[[], Any]): バックグラウンドで実行する処理。
            name (str): ログ出力用の処理名。
            parent (Optional[QObject]): 親オブジェクト。デフォルトはNone。
        """
        super().__init__(parent)
        self.task = task
        self.task_name = name

    def run(self) -> None:
        """スレッドのメイン処理。結果または例外をシグナルで通知する。"""
        try:
            result = self.task()
        except Exception as e:
            logger.debug("Background task '{}' failed: {}", self.task_name, e)
            self.error_occurred.emit(e)
            return
        self.result_ready.emit(result)
