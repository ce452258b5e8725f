# services/asset_service.py
import itertools
from typing import Dict, Optional

from loguru import logger


class AssetCache:
    """署名画像などの一時的な画像データを保持するキャッシュ。

    取得した画像データに "asset://<番号>" 形式のハンドルを割り当てます。
    ハンドルは注釈の image_url として使われ、不要になった時点（下書きの再読み込み、
    注釈の削除、ウィンドウを閉じたとき）に release() で解放します。
    """
    SCHEME = "asset://"

    def __init__(self) -> None:
        self._items: Dict[str, bytes] = {}
        self._counter = itertools.count(1)

    def acquire(self, data: bytes) -> str:
        """画像データを登録し、新しいハンドルを返す。"""
        handle = f"{self.SCHEME}{next(self._counter)}"
        self._items[handle] = data
        return handle

    def get(self, handle: Optional[str]) -> Optional[bytes]:
        if not handle:
            return None
        return self._items.get(handle)

    def release(self, handle: Optional[str]) -> None:
        """ハンドルを解放する。未登録のハンドルやNoneは無視する。"""
        if handle and self._items.pop(handle, None) is not None:
            logger.trace("Released asset handle {}", handle)

    def release_all(self) -> None:
        count = len(self._items)
        self._items.clear()
        if count:
            logger.debug("Released {} asset handle(s)", count)

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, handle: object) -> bool:
        return handle in self._items
