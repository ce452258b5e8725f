import pytest

from utils.coordinates import (
    MAX_SCALE, MIN_SCALE, clamp_scale, length_to_document, length_to_viewport,
    to_document, to_viewport,
)


@pytest.mark.parametrize("scale", [0.5, 0.7, 1.0, 1.3, 2.0])
def test_document_position_survives_zoom(scale):
    """ズーム率を変えて表示・再変換しても文書空間の座標は変わらない。"""
    point = (123.4, 567.8)
    back = to_document(to_viewport(point, scale), scale)
    assert back == pytest.approx(point)


def test_viewport_is_scaled_document():
    assert to_viewport((100, 50), 1.5) == (150, 75)
    assert to_document((150, 75), 1.5) == (100, 50)
    assert length_to_viewport(200, 0.5) == 100
    assert length_to_document(100, 0.5) == 200


@pytest.mark.parametrize("scale", [0, -1.0])
def test_non_positive_scale_is_rejected(scale):
    with pytest.raises(ValueError):
        to_viewport((1, 1), scale)
    with pytest.raises(ValueError):
        to_document((1, 1), scale)


def test_clamp_scale_bounds_and_rounding():
    assert clamp_scale(0.1) == MIN_SCALE
    assert clamp_scale(5) == MAX_SCALE
    assert clamp_scale(1.0 + 0.1 + 0.1) == 1.2
