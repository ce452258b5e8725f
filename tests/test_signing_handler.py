from unittest.mock import MagicMock

import pytest

from conftest import make_image_bytes
from models.annotation_models import PlacementMode
from services.signature_service import SignatureCaptureService
from ui.handlers.interaction_handler import InteractionHandler
from ui.handlers.placement_handler import PlacementHandler
from ui.handlers.signing_handler import SigningHandler


class RecordingSurface:
    def __init__(self) -> None:
        self.content = True
        self.png_calls = 0
        self.cleared = 0

    def has_content(self) -> bool:
        return self.content

    def to_png_bytes(self) -> bytes:
        self.png_calls += 1
        return make_image_bytes(300, 150)

    def clear(self) -> None:
        self.content = False
        self.cleared += 1


@pytest.fixture
def signing(fake_main, fake_api, assets, session):
    fake_main.signature_service = SignatureCaptureService(fake_api, assets, session)
    fake_main.interaction_handler = InteractionHandler(fake_main)
    fake_main.placement_handler = PlacementHandler(fake_main)
    fake_main.apply_session_state = MagicMock()
    handler = SigningHandler(fake_main)
    fake_main.signing_handler = handler
    return handler


def run_inline(handler, between=None):
    """ワーカーを使わず、タスクと結果の通知をその場で実行する。"""
    def run(task, name, on_result, on_error=None):
        try:
            result = task()
        except Exception as e:
            on_error(e)
            return None
        if between:
            between()
        on_result(result)
        return None
    handler._run = run


def test_drawn_signature_is_rasterised_before_background_work(signing, fake_main, store):
    surface = RecordingSurface()
    fake_main.signature_service.mark_drawn(surface)
    calls_before_task = []

    def run(task, name, on_result, on_error=None):
        calls_before_task.append(surface.png_calls)
        on_result(task())
    signing._run = run

    fake_main.placement_handler.toggle_mode(PlacementMode.SIGNATURE)
    fake_main.placement_handler.handle_page_click(1, 40, 50)

    assert calls_before_task == [1]
    assert surface.png_calls == 1
    assert len(store.signatures) == 1
    assert fake_main.signature_service.source is None
    assert surface.cleared == 1


def test_stroke_during_preparation_survives_placement(signing, fake_main, store):
    service = fake_main.signature_service
    service.mark_drawn(RecordingSurface())
    newer = RecordingSurface()
    run_inline(signing, between=lambda: service.mark_drawn(newer))

    fake_main.placement_handler.toggle_mode(PlacementMode.SIGNATURE)
    fake_main.placement_handler.handle_page_click(1, 40, 50)

    assert len(store.signatures) == 1
    assert service.source is not None and service.source.surface is newer
    assert newer.cleared == 0
    assert service.has_signature


def test_failed_placement_releases_prepared_image(signing, fake_main, session, assets, store):
    fake_main.signature_service.mark_drawn(RecordingSurface())
    run_inline(signing, between=session.lock)

    fake_main.placement_handler.toggle_mode(PlacementMode.SIGNATURE)
    fake_main.placement_handler.handle_page_click(1, 40, 50)

    assert len(store) == 0
    assert len(assets) == 0
    assert fake_main.placement_handler.accepts_clicks() is False
    fake_main.apply_session_state.assert_called()


def test_capture_failure_cancels_pending_signature(signing, fake_main):
    surface = RecordingSurface()
    fake_main.signature_service.mark_drawn(surface)
    surface.content = False
    run_inline(signing)

    signing.prepare_signature(1, 40, 50)

    fake_main.signing_panel.show_error.assert_called_once()
    assert fake_main.placement_handler._signature_pending is False
