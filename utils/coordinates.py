# utils/coordinates.py
"""文書空間とビューポート空間の座標変換を提供します。

文書空間はズームに依存しない座標系で、注釈の保存・送信にはこちらを使います。
ビューポート空間は現在のズーム倍率で画面に表示されているピクセル座標です。
"""
from typing import Tuple

MIN_SCALE: float = 0.5
MAX_SCALE: float = 2.0
DEFAULT_SCALE: float = 1.0
SCALE_STEP: float = 0.1

Point = Tuple[float, float]


def _check_scale(scale: float) -> None:
    if scale <= 0:
        raise ValueError(f"倍率は正の値である必要があります: {scale}")


def to_viewport(point: Point, scale: float) -> Point:
    """文書空間の座標をビューポート空間に変換する。

    Args:
        point (Point): 文書空間の座標 (x, y)。
        scale (float): 現在のズーム倍率。

    Returns:
        Point: ビューポート空間の座標。
    """
    _check_scale(scale)
    return (point[0] * scale, point[1] * scale)


def to_document(point: Point, scale: float) -> Point:
    """ビューポート空間の座標を文書空間に変換する。

    Args:
        point (Point): ビューポート空間の座標 (x, y)。
        scale (float): 現在のズーム倍率。

    Returns:
        Point: 文書空間の座標。
    """
    _check_scale(scale)
    return (point[0] / scale, point[1] / scale)


def length_to_viewport(value: float, scale: float) -> float:
    _check_scale(scale)
    return value * scale


def length_to_document(value: float, scale: float) -> float:
    _check_scale(scale)
    return value / scale


def clamp_scale(scale: float) -> float:
    """ズーム倍率をUIで許可された範囲に収める。小数第2位で丸めて誤差の蓄積を防ぐ。"""
    return round(max(MIN_SCALE, min(MAX_SCALE, scale)), 2)
