import pytest

from conftest import make_pdf
from models.errors import EmptyOrInvalidDocument
from utils.pdf_utils import PDFEngine


def test_ensure_ready_is_idempotent():
    PDFEngine.ensure_ready()
    PDFEngine.ensure_ready()
    assert PDFEngine.is_ready()


def test_open_document_and_page_size():
    document = PDFEngine.open_document(make_pdf(3, 400, 300))
    try:
        assert document.page_count == 3
        assert PDFEngine.page_size(document, 1) == (400, 300)
    finally:
        document.close()


@pytest.mark.parametrize("data", [b"", b"this is not a pdf"])
def test_empty_or_invalid_pdf_is_rejected(data):
    with pytest.raises(EmptyOrInvalidDocument):
        PDFEngine.open_document(data)


def test_render_page_scales_with_zoom():
    document = PDFEngine.open_document(make_pdf(1, 200, 100))
    try:
        image = PDFEngine.render_page(document.load_page(0), scale=1.5)
        assert (image.width(), image.height()) == (300, 150)
    finally:
        document.close()
