import pytest

from conftest import make_document
from models.document_models import DocumentInfo, DocumentStatus, can_transition, parse_status
from models.errors import (
    DocumentReadOnlyError, EmptyOrInvalidDocument, InvalidTransitionError, MissingNoteError,
)
from services.document_service import DocumentService
from services.session_service import SigningSession
from services.storage_service import StorageService


@pytest.mark.parametrize("current,target", [
    (DocumentStatus.DRAFT, DocumentStatus.PENDING),
    (DocumentStatus.PENDING, DocumentStatus.SIGNED),
    (DocumentStatus.SIGNED, DocumentStatus.WAITING_CONFIRMATION),
    (DocumentStatus.WAITING_CONFIRMATION, DocumentStatus.CONFIRMED),
    (DocumentStatus.WAITING_CONFIRMATION, DocumentStatus.SENT_BACK_FOR_SIGNING),
    (DocumentStatus.SENT_BACK_FOR_SIGNING, DocumentStatus.PENDING),
])
def test_allowed_transitions(current, target):
    assert can_transition(current, target)


def test_illegal_transition_raises():
    document = make_document(DocumentStatus.CONFIRMED)
    with pytest.raises(InvalidTransitionError):
        document.transition_to(DocumentStatus.PENDING)
    assert document.status == DocumentStatus.CONFIRMED


def test_from_payload_and_unknown_status():
    document = DocumentInfo.from_payload({
        "id": "12", "title": "NDA", "status": "sent_back_for_signing",
        "revision_note": "住所が違います", "original_filename": "nda.pdf",
    })
    assert document.id == 12
    assert document.status == DocumentStatus.SENT_BACK_FOR_SIGNING
    assert document.download_file_name == "nda.pdf"
    assert parse_status("archived") is None


@pytest.mark.parametrize("status,recipient,editable", [
    (DocumentStatus.DRAFT, None, True),
    (DocumentStatus.PENDING, "pending", True),
    (DocumentStatus.SENT_BACK_FOR_SIGNING, None, True),
    (DocumentStatus.PENDING, "signed", False),
    (DocumentStatus.SIGNED, None, False),
    (DocumentStatus.WAITING_CONFIRMATION, None, False),
    (DocumentStatus.CONFIRMED, None, False),
])
def test_read_only_is_derived_from_status(status, recipient, editable):
    session = SigningSession(make_document(status, recipient_status=recipient))
    assert session.is_read_only is (not editable)


def test_explicit_read_only_flag_wins():
    session = SigningSession(make_document(), read_only=True)
    with pytest.raises(DocumentReadOnlyError):
        session.ensure_editable()


def test_lock_moves_sent_back_document_to_signed():
    session = SigningSession(make_document(DocumentStatus.SENT_BACK_FOR_SIGNING))
    session.lock()
    assert session.document.status == DocumentStatus.SIGNED
    assert session.document.is_signed_by_recipient
    assert session.is_read_only


@pytest.fixture
def review_service(fake_api, tmp_path):
    fake_api.document = make_document(DocumentStatus.WAITING_CONFIRMATION)
    service = DocumentService(fake_api, SigningSession(), StorageService(str(tmp_path)))
    service.load(7)
    return service


def test_load_starts_session(fake_api):
    session = SigningSession()
    loaded = DocumentService(fake_api, session).load(7)
    assert loaded.pdf_data == fake_api.pdf_data
    assert session.document_id == 7
    assert not session.is_read_only


def test_load_rejects_empty_pdf(fake_api):
    fake_api.pdf_data = b""
    with pytest.raises(EmptyOrInvalidDocument):
        DocumentService(fake_api, SigningSession()).load(7)


def test_confirm(review_service, fake_api):
    assert review_service.can_review
    document = review_service.confirm()
    assert document.status == DocumentStatus.CONFIRMED
    assert ("confirm_document", 7) in fake_api.calls


def test_send_back_requires_note(review_service, fake_api):
    with pytest.raises(MissingNoteError):
        review_service.send_back("   ")
    assert "send_back" not in fake_api.names()

    document = review_service.send_back(" 押印が必要です ")
    assert document.status == DocumentStatus.SENT_BACK_FOR_SIGNING
    assert document.revision_note == "押印が必要です"
    assert ("send_back", 7, "押印が必要です") in fake_api.calls


def test_confirm_outside_review_is_refused(fake_api):
    service = DocumentService(fake_api, SigningSession())
    service.load(7)
    with pytest.raises(InvalidTransitionError):
        service.confirm()
    assert "confirm_document" not in fake_api.names()


def test_download_writes_pdf(review_service, fake_api, tmp_path):
    target = tmp_path / "out" / "signed.pdf"
    assert review_service.download(str(target)) == str(target)
    assert target.read_bytes() == fake_api.pdf_data
