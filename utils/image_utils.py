# utils/image_utils.py
"""署名画像の寸法取得と、署名の配置サイズ計算に関するユーティリティ。"""
from typing import Tuple

from PyQt6.QtGui import QImage

from models.annotation_models import (
    MAX_SIGNATURE_HEIGHT, MAX_SIGNATURE_WIDTH,
    MIN_SIGNATURE_HEIGHT, MIN_SIGNATURE_WIDTH,
)

Size = Tuple[float, float]


def image_dimensions(data: bytes) -> Tuple[int, int]:
    """画像データをデコードしてピクセル寸法を返す。

    Args:
        data (bytes): PNG/JPEGなどの画像データ。

    Returns:
        Tuple[int, int]: (幅, 高さ)。

    Raises:
        ValueError: 画像としてデコードできない場合。
    """
    image = QImage()
    if not data or not image.loadFromData(data) or image.isNull():
        raise ValueError("画像データを読み込めませんでした。")
    return image.width(), image.height()


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def fit_signature_size(width: float, height: float) -> Size:
    """署名画像の元の寸法から、配置時の既定サイズを計算する。

    最大サイズを超える場合は縦横比を保って縮小し、最小サイズを下回る場合は
    縦横比を保って拡大する。極端な縦横比で範囲内に収まらない場合のみ、
    最後に各辺を個別に範囲内へ収める。

    Args:
        width (float): 画像の幅（ピクセル）。
        height (float): 画像の高さ（ピクセル）。

    Returns:
        Size: 配置サイズ (幅, 高さ)（文書空間）。
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"画像の寸法が不正です: {width}x{height}")

    aspect = width / height
    w, h = float(width), float(height)

    if w > MAX_SIGNATURE_WIDTH:
        w = MAX_SIGNATURE_WIDTH
        h = w / aspect
    if h > MAX_SIGNATURE_HEIGHT:
        h = MAX_SIGNATURE_HEIGHT
        w = h * aspect

    if w < MIN_SIGNATURE_WIDTH:
        w = MIN_SIGNATURE_WIDTH
        h = w / aspect
    if h < MIN_SIGNATURE_HEIGHT:
        h = MIN_SIGNATURE_HEIGHT
        w = h * aspect

    return (_clamp(w, MIN_SIGNATURE_WIDTH, MAX_SIGNATURE_WIDTH),
            _clamp(h, MIN_SIGNATURE_HEIGHT, MAX_SIGNATURE_HEIGHT))


def resize_with_aspect(current: Size, requested: Size) -> Size:
    """縦横比を保ったまま署名をリサイズした結果のサイズを返す。

    現在のサイズからの変化量が大きい方の辺をユーザーの意図とみなし、
    もう一方の辺は縦横比から再計算する。結果は縦横比を崩さずに
    署名の最小・最大サイズの範囲へ収める。

    Args:
        current (Size): 現在のサイズ (幅, 高さ)。
        requested (Size): リサイズハンドルから要求されたサイズ (幅, 高さ)。

    Returns:
        Size: 新しいサイズ (幅, 高さ)。
    """
    cur_w, cur_h = current
    new_w, new_h = requested
    aspect = cur_w / cur_h

    if abs(new_w - cur_w) > abs(new_h - cur_h):
        new_h = new_w / aspect
    else:
        new_w = new_h * aspect

    # 縦横比を保ったまま取りうる幅の範囲
    w_low = max(MIN_SIGNATURE_WIDTH, MIN_SIGNATURE_HEIGHT * aspect)
    w_high = min(MAX_SIGNATURE_WIDTH, MAX_SIGNATURE_HEIGHT * aspect)
    if w_low <= w_high:
        new_w = _clamp(new_w, w_low, w_high)
        return (new_w, new_w / aspect)

    return (_clamp(new_w, MIN_SIGNATURE_WIDTH, MAX_SIGNATURE_WIDTH),
            _clamp(new_h, MIN_SIGNATURE_HEIGHT, MAX_SIGNATURE_HEIGHT))
