# models/annotation_models.py
"""PDF上に配置する注釈（テキスト欄・署名）のデータモデルと、注釈を変更する操作（インテント）を定義します。

座標とサイズはすべて文書空間（ズームに依存しない単位。倍率1.0でのPDFポイント）で保持します。
"""
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Union

# --- テキスト欄の既定値 ---
DEFAULT_TEXT_WIDTH: float = 200.0
DEFAULT_TEXT_HEIGHT: float = 30.0
DEFAULT_TEXT_FONT_SIZE: float = 14.0
TEXT_CHAR_WIDTH: float = 8.0
MIN_TEXT_WIDTH: float = 40.0
MIN_TEXT_HEIGHT: float = 16.0

# --- 署名の既定値と配置可能な範囲 ---
DEFAULT_SIGNATURE_WIDTH: float = 150.0
DEFAULT_SIGNATURE_HEIGHT: float = 60.0
MIN_SIGNATURE_WIDTH: float = 80.0
MAX_SIGNATURE_WIDTH: float = 250.0
MIN_SIGNATURE_HEIGHT: float = 30.0
MAX_SIGNATURE_HEIGHT: float = 100.0


class PlacementMode(Enum):
    """ページクリック時にどの注釈を作成するかを表す配置モード。"""
    NONE = "none"
    TEXT = "text"
    SIGNATURE = "signature"


def new_annotation_id(prefix: str) -> str:
    """クライアント側で一意な注釈IDを生成する。サーバー保存後はサーバー側のIDに置き換わる。"""
    return f"{prefix}-{uuid.uuid4().hex}"


@dataclass
class Annotation:
    """注釈の共通属性。

    Attributes:
        id (str): 注釈のID。未保存の間はクライアント生成、保存後はサーバー割り当て。
        page_number (int): 配置先のページ番号（1始まり）。作成後は変更されない。
        x (float): 左上隅のX座標（文書空間）。
        y (float): 左上隅のY座標（文書空間）。
        width (float): 幅（文書空間）。
        height (float): 高さ（文書空間）。
    """
    id: str
    page_number: int
    x: float
    y: float
    width: float
    height: float

    @property
    def kind(self) -> str:
        return "annotation"

    def _geometry_payload(self) -> Dict[str, Any]:
        return {
            'page_number': self.page_number,
            'x_coordinate': self.x,
            'y_coordinate': self.y,
            'width': self.width,
            'height': self.height,
        }

    def to_payload(self) -> Dict[str, Any]:
        """API送信用の辞書に変換する。IDやセッション限定の値は含めない。"""
        return self._geometry_payload()


@dataclass
class TextField(Annotation):
    """テキスト入力欄の注釈。

    Attributes:
        font_size (float): フォントサイズ（文書空間）。
        text_content (str): 入力された文字列。空でもよい。
    """
    font_size: float = DEFAULT_TEXT_FONT_SIZE
    text_content: str = ""

    @property
    def kind(self) -> str:
        return "text"

    def to_payload(self) -> Dict[str, Any]:
        payload = self._geometry_payload()
        payload['font_size'] = self.font_size
        payload['text_content'] = self.text_content
        return payload

    @classmethod
    def from_payload(cls, data: Dict[str, Any]) -> 'TextField':
        """APIのレスポンス辞書からTextFieldを復元する。"""
        raw_id = data.get('id')
        return cls(
            id=str(raw_id) if raw_id is not None else new_annotation_id("text"),
            page_number=int(data['page_number']),
            x=float(data['x_coordinate']),
            y=float(data['y_coordinate']),
            width=float(data.get('width', DEFAULT_TEXT_WIDTH)),
            height=float(data.get('height', DEFAULT_TEXT_HEIGHT)),
            font_size=float(data.get('font_size', DEFAULT_TEXT_FONT_SIZE)),
            text_content=data.get('text_content') or "",
        )


@dataclass
class Signature(Annotation):
    """署名画像の注釈。

    Attributes:
        signature_image_path (str): サーバーに保存された署名画像への参照。
        image_url (Optional[str]): 表示用に読み込んだ画像のハンドル。セッション限定で永続化しない。
    """
    signature_image_path: str = ""
    image_url: Optional[str] = field(default=None, compare=False)

    @property
    def kind(self) -> str:
        return "signature"

    @property
    def aspect_ratio(self) -> float:
        return self.width / self.height

    def to_payload(self) -> Dict[str, Any]:
        payload = self._geometry_payload()
        payload['signature_image_path'] = self.signature_image_path
        return payload

    @classmethod
    def from_payload(cls, data: Dict[str, Any]) -> 'Signature':
        """APIのレスポンス辞書からSignatureを復元する。image_urlは別途解決する。"""
        raw_id = data.get('id')
        return cls(
            id=str(raw_id) if raw_id is not None else new_annotation_id("sig"),
            page_number=int(data['page_number']),
            x=float(data['x_coordinate']),
            y=float(data['y_coordinate']),
            width=float(data.get('width', DEFAULT_SIGNATURE_WIDTH)),
            height=float(data.get('height', DEFAULT_SIGNATURE_HEIGHT)),
            signature_image_path=data.get('signature_image_path') or "",
        )


# --- 注釈ストアに送るインテント ---

@dataclass(frozen=True)
class Move:
    """注釈を文書空間で (dx, dy) だけ移動する。"""
    annotation_id: str
    dx: float
    dy: float


@dataclass(frozen=True)
class Resize:
    """注釈のサイズを文書空間の (width, height) に変更する。範囲の補正はストア側で行う。"""
    annotation_id: str
    width: float
    height: float


@dataclass(frozen=True)
class EditText:
    """テキスト欄の内容を置き換える。"""
    annotation_id: str
    text: str


@dataclass(frozen=True)
class Delete:
    """注釈を削除する。"""
    annotation_id: str


Intent = Union[Move, Resize, EditText, Delete]
