# services/annotation_service.py
import dataclasses
from typing import Callable, List, Optional

from loguru import logger

from models.annotation_models import (
    Annotation, Delete, EditText, Intent, Move, Resize, Signature, TextField,
    DEFAULT_TEXT_WIDTH, MIN_TEXT_HEIGHT, MIN_TEXT_WIDTH, TEXT_CHAR_WIDTH,
)
from models.errors import AnnotationNotFoundError
from services.asset_service import AssetCache
from services.session_service import SigningSession
from utils.image_utils import resize_with_aspect


def auto_text_width(text: str) -> float:
    """テキストの文字数に応じたテキスト欄の幅を返す。既定幅より狭くはならない。"""
    return max(DEFAULT_TEXT_WIDTH, len(text) * TEXT_CHAR_WIDTH)


class AnnotationService:
    """編集中の文書に配置された注釈を一元管理するストア。

    注釈の幾何情報はすべて文書空間でここに保持され、ドラッグやリサイズなどの
    操作はインテント（Move, Resize, EditText, Delete）として dispatch() に送られます。
    変更があるたびに登録されたリスナーへ通知し、UIはそれを受けて表示を更新します。
    """

    def __init__(self, session: SigningSession, assets: Optional[AssetCache] = None) -> None:
        """AnnotationServiceのコンストラクタ。

        Args:
            session (SigningSession): 読み取り専用かどうかを判定するための編集セッション。
            assets (Optional[AssetCache]): 署名画像ハンドルの解放に使うキャッシュ。
        """
        self.session = session
        self.assets = assets
        self._annotations: List[Annotation] = []
        self.active_id: Optional[str] = None
        self._listeners: List[Callable[[], None]] = []

    # --- 変更通知 ---
    def subscribe(self, listener: Callable[[], None]) -> None:
        self._listeners.append(listener)

    def unsubscribe(self, listener: Callable[[], None]) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener()

    # --- 参照 ---
    @property
    def annotations(self) -> List[Annotation]:
        return list(self._annotations)

    @property
    def text_fields(self) -> List[TextField]:
        return [a for a in self._annotations if isinstance(a, TextField)]

    @property
    def signatures(self) -> List[Signature]:
        return [a for a in self._annotations if isinstance(a, Signature)]

    @property
    def active(self) -> Optional[Annotation]:
        return self.find(self.active_id) if self.active_id else None

    def find(self, annotation_id: str) -> Optional[Annotation]:
        for annotation in self._annotations:
            if annotation.id == annotation_id:
                return annotation
        return None

    def get(self, annotation_id: str) -> Annotation:
        """IDで注釈を取得する。

        Raises:
            AnnotationNotFoundError: 該当する注釈が存在しない場合。
        """
        annotation = self.find(annotation_id)
        if annotation is None:
            raise AnnotationNotFoundError(f"注釈 {annotation_id} が見つかりません。")
        return annotation

    def for_page(self, page_number: int) -> List[Annotation]:
        return [a for a in self._annotations if a.page_number == page_number]

    def snapshot(self) -> List[Annotation]:
        """現在の注釈のコピーを返す。バックグラウンドでの保存・送信に使う。"""
        return [dataclasses.replace(a) for a in self._annotations]

    def __len__(self) -> int:
        return len(self._annotations)

    # --- 選択 ---
    def select(self, annotation_id: Optional[str]) -> None:
        """注釈を選択状態にする。選択できる注釈は常に一つだけで、以前の選択は解除される。"""
        if annotation_id is not None:
            self.get(annotation_id)
        if self.active_id == annotation_id:
            return
        self.active_id = annotation_id
        self._notify()

    def clear_selection(self) -> None:
        self.select(None)

    # --- 変更 ---
    def add(self, annotation: Annotation, select: bool = True) -> Annotation:
        """注釈を追加する。

        Raises:
            DocumentReadOnlyError: 読み取り専用の場合。
        """
        self.session.ensure_editable("注釈を追加")
        self._annotations.append(annotation)
        if select:
            self.active_id = annotation.id
        logger.debug("Added {} annotation {} on page {}", annotation.kind, annotation.id, annotation.page_number)
        self._notify()
        return annotation

    def dispatch(self, intent: Intent) -> None:
        """インテントを適用して注釈を変更する。

        Args:
            intent (Intent): Move / Resize / EditText / Delete のいずれか。

        Raises:
            DocumentReadOnlyError: 読み取り専用の場合。何も変更されない。
            AnnotationNotFoundError: 対象の注釈が存在しない場合。
        """
        self.session.ensure_editable("注釈を変更")
        annotation = self.get(intent.annotation_id)

        if isinstance(intent, Move):
            annotation.x += intent.dx
            annotation.y += intent.dy
        elif isinstance(intent, Resize):
            self._apply_resize(annotation, intent.width, intent.height)
        elif isinstance(intent, EditText):
            if not isinstance(annotation, TextField):
                raise TypeError(f"注釈 {annotation.id} はテキスト欄ではありません。")
            annotation.text_content = intent.text
            annotation.width = auto_text_width(intent.text)
        elif isinstance(intent, Delete):
            self._remove(annotation)
        else:
            raise TypeError(f"未対応のインテントです: {intent!r}")

        self._notify()

    def _apply_resize(self, annotation: Annotation, width: float, height: float) -> None:
        if isinstance(annotation, Signature):
            annotation.width, annotation.height = resize_with_aspect(
                (annotation.width, annotation.height), (width, height))
        else:
            annotation.width = max(MIN_TEXT_WIDTH, width)
            annotation.height = max(MIN_TEXT_HEIGHT, height)

    def _remove(self, annotation: Annotation) -> None:
        self._annotations.remove(annotation)
        if self.active_id == annotation.id:
            self.active_id = None
        if isinstance(annotation, Signature) and self.assets is not None:
            self.assets.release(annotation.image_url)
        logger.debug("Deleted {} annotation {}", annotation.kind, annotation.id)

    # --- 一括置き換え ---
    def replace_all(self, annotations: List[Annotation]) -> None:
        """下書きの読み込み結果で注釈をすべて置き換える。古い画像ハンドルは解放される。"""
        self._release_images()
        self._annotations = list(annotations)
        self.active_id = None
        self._notify()

    def clear(self) -> None:
        self.replace_all([])

    def _release_images(self) -> None:
        if self.assets is None:
            return
        for signature in self.signatures:
            self.assets.release(signature.image_url)
