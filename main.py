"""
アプリケーションのエントリーポイント。

このスクリプトは、コマンドライン引数から署名する文書のIDを受け取り、
設定とログ出力を初期化した上で、PyQt6アプリケーションとメインウィンドウである
SigningWindowを生成・表示して、アプリケーションのイベントループを開始します。

使い方:
    python main.py <document_id> [--config PATH] [--read-only]
"""
import argparse
import os
import sys
from typing import List, Optional

# このファイル(main.py)があるディレクトリをPythonのパスに追加し、
# ui / services / models / utils の各モジュールを正しく見つけられるようにします。
current_dir: str = os.path.dirname(os.path.abspath(__file__))
if current_dir not in sys.path:
    sys.path.append(current_dir)

from PyQt6.QtWidgets import QApplication
from loguru import logger

from services.storage_service import StorageService
from utils.app_config import AppConfig, CONFIG_FILE_NAME
from utils.logging_config import setup_logging


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="main.py", description="PDF文書に署名するためのクライアント")
    parser.add_argument("document_id", type=int, help="署名する文書のID")
    parser.add_argument("--config", metavar="PATH", default=None,
                        help=f"設定ファイルのパス（既定: data/{CONFIG_FILE_NAME}）")
    parser.add_argument("--read-only", action="store_true", help="文書を読み取り専用で開く")
    return parser


def load_config(config_path: Optional[str]) -> AppConfig:
    """設定ファイルと環境変数から設定を読み込む。"""
    if config_path:
        storage = StorageService(os.path.dirname(os.path.abspath(config_path)))
        return AppConfig.load(storage, os.path.basename(config_path))
    return AppConfig.load(StorageService("data"))


def main(argv: Optional[List[str]] = None) -> int:
    # 1. 引数を解析します。文書IDが無い場合は使い方を表示して終了コード2で終了します。
    args = build_parser().parse_args(argv)

    # 2. 設定を読み込み、ログ出力を初期化します。
    config = load_config(args.config)
    setup_logging(config.log_level, config.log_file)
    logger.info("Starting signing client for document {} (api={})", args.document_id, config.api_base_url)

    # 3. PyQtアプリケーションとメインウィンドウを作成して表示します。
    from ui.main_window import SigningWindow

    app: QApplication = QApplication(sys.argv[:1])
    window = SigningWindow(config, args.document_id, read_only=True if args.read_only else None)
    window.show()

    # 4. イベントループを開始し、終了コードを返します。
    return app.exec()


if __name__ == "__main__":
    sys.exit(main())
