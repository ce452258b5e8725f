import pytest

from models.annotation_models import (
    Delete, EditText, Move, Resize, Signature, TextField,
    MIN_TEXT_HEIGHT, MIN_TEXT_WIDTH,
)
from models.errors import AnnotationNotFoundError, DocumentReadOnlyError
from services.annotation_service import AnnotationService, auto_text_width


def _text(id_="text-1", page=1, x=10.0, y=20.0, text=""):
    return TextField(id=id_, page_number=page, x=x, y=y, width=200, height=30, text_content=text)


def _signature(id_="sig-1", page=1, image_url=None):
    return Signature(id=id_, page_number=page, x=50, y=60, width=150, height=60,
                     signature_image_path="uploads/signatures/a.png", image_url=image_url)


def test_add_selects_new_annotation_and_notifies(store):
    events = []
    store.subscribe(lambda: events.append(store.active_id))
    store.add(_text())
    assert store.active_id == "text-1"
    assert events == ["text-1"]


def test_only_one_annotation_is_active(store):
    store.add(_text("a"))
    store.add(_text("b"))
    store.select("a")
    assert store.active_id == "a"
    store.select("b")
    assert store.active_id == "b"


def test_move_adds_document_space_delta(store):
    store.add(_text())
    store.dispatch(Move("text-1", 5, -3))
    field = store.get("text-1")
    assert (field.x, field.y) == (15.0, 17.0)
    assert field.page_number == 1


def test_text_resize_is_clamped_to_minimum(store):
    store.add(_text())
    store.dispatch(Resize("text-1", 5, 2))
    field = store.get("text-1")
    assert (field.width, field.height) == (MIN_TEXT_WIDTH, MIN_TEXT_HEIGHT)


def test_signature_resize_keeps_aspect_ratio(store):
    store.add(_signature())
    store.dispatch(Resize("sig-1", 225, 61))
    sig = store.get("sig-1")
    assert sig.width / sig.height == pytest.approx(2.5)
    assert sig.width == pytest.approx(225)


def test_edit_text_grows_width_with_content(store):
    store.add(_text())
    store.dispatch(EditText("text-1", "x" * 40))
    field = store.get("text-1")
    assert field.text_content == "x" * 40
    assert field.width == 320

    store.dispatch(EditText("text-1", "短い"))
    assert store.get("text-1").width == 200
    assert auto_text_width("") == 200


def test_delete_active_clears_selection_and_releases_image(store, assets):
    handle = assets.acquire(b"png")
    store.add(_signature(image_url=handle))
    assert store.active_id == "sig-1"
    store.dispatch(Delete("sig-1"))
    assert store.active_id is None
    assert len(store) == 0
    assert handle not in assets


def test_delete_inactive_keeps_selection(store):
    store.add(_text("a"))
    store.add(_text("b"))
    store.dispatch(Delete("a"))
    assert store.active_id == "b"


def test_unknown_annotation_raises(store):
    with pytest.raises(AnnotationNotFoundError):
        store.dispatch(Move("missing", 1, 1))


def test_read_only_rejects_every_mutation(read_only_session, assets):
    store = AnnotationService(read_only_session, assets)
    store.replace_all([_text()])
    before = [a.to_payload() for a in store.annotations]
    for intent in (Move("text-1", 1, 1), Resize("text-1", 300, 40),
                   EditText("text-1", "x"), Delete("text-1")):
        with pytest.raises(DocumentReadOnlyError):
            store.dispatch(intent)
    with pytest.raises(DocumentReadOnlyError):
        store.add(_text("text-2"))
    assert [a.to_payload() for a in store.annotations] == before


def test_replace_all_releases_previous_images(store, assets):
    old = assets.acquire(b"old")
    store.add(_signature(image_url=old))
    store.replace_all([_text()])
    assert old not in assets
    assert store.active_id is None
    assert [a.id for a in store.annotations] == ["text-1"]


def test_for_page_and_snapshot(store):
    store.add(_text("a", page=1))
    store.add(_text("b", page=2))
    assert [a.id for a in store.for_page(2)] == ["b"]
    snapshot = store.snapshot()
    snapshot[0].x = 999
    assert store.get("a").x == 10.0
