import pytest

from conftest import make_image_bytes
from models.annotation_models import (
    MAX_SIGNATURE_HEIGHT, MAX_SIGNATURE_WIDTH, MIN_SIGNATURE_HEIGHT, MIN_SIGNATURE_WIDTH,
)
from utils.image_utils import fit_signature_size, image_dimensions, resize_with_aspect


def _in_footprint(size):
    w, h = size
    return (MIN_SIGNATURE_WIDTH <= w <= MAX_SIGNATURE_WIDTH
            and MIN_SIGNATURE_HEIGHT <= h <= MAX_SIGNATURE_HEIGHT)


def test_image_dimensions_reads_png():
    assert image_dimensions(make_image_bytes(300, 150)) == (300, 150)


def test_image_dimensions_rejects_garbage():
    with pytest.raises(ValueError):
        image_dimensions(b"not an image")


def test_fit_large_image_keeps_aspect_ratio():
    w, h = fit_signature_size(300, 150)
    assert (w, h) == pytest.approx((200, 100))
    assert w / h == pytest.approx(2.0)


def test_fit_small_image_is_scaled_up():
    w, h = fit_signature_size(40, 20)
    assert _in_footprint((w, h))
    assert w / h == pytest.approx(2.0)


def test_fit_image_already_in_range_is_unchanged():
    assert fit_signature_size(150, 60) == pytest.approx((150, 60))


@pytest.mark.parametrize("size", [(2000, 10), (10, 2000)])
def test_fit_extreme_aspect_ratio_is_clamped(size):
    assert _in_footprint(fit_signature_size(*size))


def test_resize_uses_larger_change_as_primary():
    # 幅の変化が大きいので幅が優先され、高さは縦横比から決まる
    w, h = resize_with_aspect((150, 60), (200, 62))
    assert w == pytest.approx(200)
    assert h == pytest.approx(80)

    # 高さの変化が大きい場合
    w, h = resize_with_aspect((150, 60), (152, 90))
    assert h == pytest.approx(90)
    assert w == pytest.approx(225)


def test_resize_is_clamped_without_breaking_ratio():
    w, h = resize_with_aspect((150, 60), (1000, 60))
    assert _in_footprint((w, h))
    assert w / h == pytest.approx(2.5)

    w, h = resize_with_aspect((150, 60), (10, 60))
    assert _in_footprint((w, h))
    assert w / h == pytest.approx(2.5)
