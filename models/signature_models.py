# models/signature_models.py
"""署名の取得元（手書き・画像アップロード）と、配置に使う署名画像を表現するデータモデル。"""
from dataclasses import dataclass, field
from typing import Optional, Protocol, Union


class DrawingSurface(Protocol):
    """手書き署名を描くキャンバスが満たすべきインターフェース。"""

    def has_content(self) -> bool: ...

    def to_png_bytes(self) -> bytes: ...

    def clear(self) -> None: ...


@dataclass
class DrawnSignature:
    """キャンバスに手書きされた署名。

    Attributes:
        surface (DrawingSurface): 描画先のキャンバス。
        uploaded_path (Optional[str]): 一度アップロードした後のサーバー上のパス。
    """
    surface: DrawingSurface
    uploaded_path: Optional[str] = None


@dataclass(frozen=True)
class UploadedSignature:
    """ファイルからアップロードされた署名画像。

    Attributes:
        path (str): サーバー上の署名画像のパス。
        file_name (str): 元のファイル名。
        byte_size (int): ファイルサイズ（バイト）。
        width (int): 画像の幅（ピクセル）。
        height (int): 画像の高さ（ピクセル）。
    """
    path: str
    file_name: str
    byte_size: int
    width: int
    height: int


# 同時に有効な取得元は常に一つだけ
SignatureSource = Union[DrawnSignature, UploadedSignature]


@dataclass(frozen=True)
class SignatureArtifact:
    """配置可能な状態になった署名画像。

    Attributes:
        path (str): サーバー上の署名画像のパス。
        image_url (Optional[str]): 表示用画像ハンドル。取得に失敗した場合はNone。
        width (float): 配置時の幅（文書空間）。
        height (float): 配置時の高さ（文書空間）。
        source (Optional[SignatureSource]): 準備に使った取得元。
    """
    path: str
    image_url: Optional[str]
    width: float
    height: float
    source: Optional[SignatureSource] = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class SignatureCapture:
    """配置のために UI スレッドで確定させた署名の取得元。

    ワーカースレッドはキャンバスに触れず、この値だけを使って署名画像を準備する。

    Attributes:
        source (SignatureSource): 確定時点で有効だった取得元。
        png_data (Optional[bytes]): 未アップロードの手書き署名をPNGに変換したデータ。
    """
    source: SignatureSource
    png_data: Optional[bytes] = None
