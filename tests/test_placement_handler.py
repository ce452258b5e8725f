import pytest

from models.annotation_models import PlacementMode, Signature, TextField
from models.errors import NoSignatureArtifact
from models.signature_models import SignatureArtifact
from services.session_service import SigningSession
from ui.handlers.interaction_handler import InteractionHandler
from ui.handlers.placement_handler import PlacementHandler


@pytest.fixture
def placement(fake_main):
    fake_main.interaction_handler = InteractionHandler(fake_main)
    handler = PlacementHandler(fake_main)
    fake_main.placement_handler = handler
    return handler


def test_text_click_creates_default_field_and_resets_mode(placement, fake_main, store):
    placement.toggle_mode(PlacementMode.TEXT)
    field = placement.handle_page_click(2, 100.0, 150.0)

    assert isinstance(field, TextField)
    assert (field.page_number, field.x, field.y) == (2, 100.0, 150.0)
    assert (field.width, field.height, field.font_size) == (200, 30, 14)
    assert field.text_content == "山田 太郎"
    assert store.active_id == field.id
    assert placement.mode == PlacementMode.NONE
    fake_main.update_mode_actions.assert_called_with(PlacementMode.NONE)


def test_click_is_ignored_when_mode_is_none(placement, store):
    assert placement.handle_page_click(1, 10, 10) is None
    assert len(store) == 0


def test_click_is_ignored_before_pdf_loads(placement, fake_main, store):
    fake_main.pdf_handler.page_count = None
    placement.toggle_mode(PlacementMode.TEXT)
    assert placement.handle_page_click(1, 10, 10) is None
    assert len(store) == 0
    assert placement.mode == PlacementMode.TEXT


def test_click_is_ignored_during_gesture(placement, fake_main, store):
    store.add(TextField(id="t", page_number=1, x=0, y=0, width=200, height=30))
    fake_main.interaction_handler.begin_drag("t", (0, 0))
    placement.toggle_mode(PlacementMode.TEXT)
    assert placement.handle_page_click(1, 300, 300) is None
    assert len(store) == 1


def test_read_only_ignores_toggle_and_clicks(fake_main, read_only_session, store):
    fake_main.session = read_only_session
    store.session = read_only_session
    fake_main.interaction_handler = InteractionHandler(fake_main)
    placement = PlacementHandler(fake_main)
    placement.toggle_mode(PlacementMode.TEXT)
    assert placement.mode == PlacementMode.NONE
    placement.mode = PlacementMode.TEXT
    assert placement.handle_page_click(1, 10, 10) is None
    assert len(store) == 0


def test_toggle_same_mode_returns_to_none_and_clears_selection(placement, store):
    store.add(TextField(id="t", page_number=1, x=0, y=0, width=200, height=30))
    placement.toggle_mode(PlacementMode.SIGNATURE)
    assert placement.mode == PlacementMode.SIGNATURE
    assert store.active_id is None
    placement.toggle_mode(PlacementMode.TEXT)
    assert placement.mode == PlacementMode.TEXT
    placement.toggle_mode(PlacementMode.TEXT)
    assert placement.mode == PlacementMode.NONE


def test_signature_click_without_artifact_keeps_mode(placement, fake_main, store):
    fake_main.signature_service.has_signature = False
    placement.toggle_mode(PlacementMode.SIGNATURE)
    with pytest.raises(NoSignatureArtifact):
        placement.handle_page_click(1, 10, 10)
    assert placement.mode == PlacementMode.SIGNATURE
    assert len(store) == 0
    fake_main.signing_handler.prepare_signature.assert_not_called()


def test_signature_click_starts_preparation_once(placement, fake_main):
    fake_main.signature_service.has_signature = True
    placement.toggle_mode(PlacementMode.SIGNATURE)
    placement.handle_page_click(1, 40, 50)
    placement.handle_page_click(1, 60, 70)
    fake_main.signing_handler.prepare_signature.assert_called_once_with(1, 40, 50)


def test_place_signature_appends_selects_and_clears_capture(placement, fake_main, store):
    placement.toggle_mode(PlacementMode.SIGNATURE)
    artifact = SignatureArtifact(path="uploads/signatures/s.png", image_url="asset://1", width=200, height=100)
    signature = placement.place_signature(1, 40, 50, artifact)

    assert isinstance(signature, Signature)
    assert (signature.width, signature.height) == (200, 100)
    assert signature.signature_image_path == "uploads/signatures/s.png"
    assert store.active_id == signature.id
    assert placement.mode == PlacementMode.NONE
    fake_main.signature_service.consume_after_placement.assert_called_once()
