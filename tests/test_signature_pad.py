from PyQt6.QtCore import QPointF

from ui.widgets.signature_pad import PAD_HEIGHT, PAD_WIDTH, SignaturePad
from utils.image_utils import image_dimensions


def test_new_pad_is_empty():
    pad = SignaturePad()
    assert (pad.width(), pad.height()) == (PAD_WIDTH, PAD_HEIGHT)
    assert pad.has_content() is False


def test_stroke_gives_content_and_png_export():
    pad = SignaturePad()
    pad.draw_line(QPointF(10, 10), QPointF(120, 80))
    assert pad.has_content() is True
    assert image_dimensions(pad.to_png_bytes()) == (PAD_WIDTH, PAD_HEIGHT)


def test_clear_discards_strokes():
    pad = SignaturePad()
    pad.draw_line(QPointF(10, 10), QPointF(120, 80))
    pad.clear()
    assert pad.has_content() is False
