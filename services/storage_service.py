# services/storage_service.py
import json
import os
from typing import Dict, Any, Optional, Union, List
from loguru import logger


class StorageService:
    """ローカルファイルシステムへのデータ永続化を管理するサービスクラス。

    アプリケーション設定などのJSONファイルの保存・読み込み機能を提供します。
    """

    def __init__(self, base_path: str = "data") -> None:
        """StorageServiceのコンストラクタ。

        Args:
            base_path (str): データを保存する基準ディレクトリのパス。
                             存在しない場合は自動的に作成されます。
        """
        self.base_path = base_path
        os.makedirs(self.base_path, exist_ok=True)

    def get_path(self, file_name: str) -> str:
        """ベースパスとファイル名を結合して完全なファイルパスを取得する。

        Args:
            file_name (str): ファイル名。絶対パスの場合はそのまま使われる。

        Returns:
            str: 完全なファイルパス。
        """
        return os.path.join(self.base_path, file_name)

    def save_json(self, file_name: str, data: Union[Dict[str, Any], List[Dict[str, Any]]]) -> None:
        """データをJSONファイルとしてローカルに保存する。

        Args:
            file_name (str): 保存するファイル名。
            data (Union[Dict, List]): 保存するデータ（辞書または辞書のリスト）。

        Raises:
            OSError: ファイルに書き込めない場合。
        """
        file_path = self.get_path(file_name)
        with open(file_path, 'w', encoding='utf-8') as f:
            json.dump(data, f, ensure_ascii=False, indent=4)
        logger.debug("データを {} に保存しました。", file_path)

    def load_json(self, file_name: str) -> Optional[Union[Dict[str, Any], List[Dict[str, Any]]]]:
        """ローカルのJSONファイルからデータを読み込む。

        Args:
            file_name (str): 読み込むファイル名。

        Returns:
            Optional[Union[Dict, List]]: 読み込まれたデータ。ファイルが存在しないか壊れている場合はNone。
        """
        file_path = self.get_path(file_name)
        if not os.path.exists(file_path):
            return None
        try:
            with open(file_path, 'r', encoding='utf-8') as f:
                return json.load(f)
        except (IOError, json.JSONDecodeError) as e:
            logger.error("ファイル読み込み中にエラーが発生しました: {}, {}", file_path, e)
            return None

    def save_bytes(self, file_path: str, data: bytes) -> None:
        """バイナリデータを指定パスに保存する（文書のダウンロード保存に使用）。

        Raises:
            OSError: ファイルに書き込めない場合。
        """
        directory = os.path.dirname(file_path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(file_path, 'wb') as f:
            f.write(data)
        logger.info("{} バイトを {} に保存しました。", len(data), file_path)
