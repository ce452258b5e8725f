import json
from typing import Any, List, Optional

import pytest
import requests

from models.document_models import DocumentStatus
from models.errors import NetworkError
from services.api_service import SigningAPIService, signature_file_name
from utils.api_utils import ApiClient


def _response(status: int = 200, body: Any = None, content: Optional[bytes] = None) -> requests.Response:
    response = requests.Response()
    response.status_code = status
    response.reason = "OK" if status < 400 else "Error"
    response.url = "http://test/api"
    if content is not None:
        response._content = content
    elif body is not None:
        response._content = json.dumps(body).encode("utf-8")
    else:
        response._content = b""
    return response


class FakeHTTPSession:
    """requests.Sessionの代わりに、用意したレスポンスを順に返す。"""

    def __init__(self, *responses: Any) -> None:
        self.headers: dict = {}
        self.responses: List[Any] = list(responses)
        self.requests: List[dict] = []

    def request(self, method, url, json=None, files=None, timeout=None):
        self.requests.append({"method": method, "url": url, "json": json, "files": files, "timeout": timeout})
        result = self.responses.pop(0)
        if isinstance(result, Exception):
            raise result
        return result


def _service(*responses: Any, token: str = "") -> tuple:
    http = FakeHTTPSession(*responses)
    client = ApiClient("http://test/api/", timeout=3, auth_token=token, session=http)
    return SigningAPIService(client), http


def test_fetch_document_parses_metadata_and_sends_token():
    service, http = _service(_response(body={"document": {"id": 7, "title": "契約書", "status": "pending"}}),
                             token="abc")
    document = service.fetch_document(7)
    assert document.status == DocumentStatus.PENDING
    assert http.requests[0]["url"] == "http://test/api/documents/7"
    assert http.requests[0]["timeout"] == 3
    assert http.headers["Authorization"] == "Bearer abc"


def test_missing_draft_is_none():
    service, _ = _service(_response(404, body={"error": "Draft not found"}))
    assert service.fetch_draft(7) is None


def test_server_error_message_is_surfaced():
    service, _ = _service(_response(500, body={"error": "Failed to save draft"}))
    with pytest.raises(NetworkError) as info:
        service.save_draft(7, {"textFields": [], "signatures": []})
    assert str(info.value) == "Failed to save draft"
    assert info.value.status_code == 500


def test_connection_error_is_wrapped():
    service, _ = _service(requests.exceptions.ConnectionError("refused"))
    with pytest.raises(NetworkError) as info:
        service.download_document(7)
    assert info.value.status_code is None


def test_upload_signature_posts_form_field():
    service, http = _service(_response(body={"signature_path": "uploads/signatures/s1.png"}))
    path = service.upload_signature(b"png-bytes")
    assert path == "uploads/signatures/s1.png"
    request = http.requests[0]
    assert request["url"] == "http://test/api/signing/signature/upload"
    assert request["files"] == {"signature": ("signature.png", b"png-bytes", "image/png")}


def test_upload_without_path_fails():
    service, _ = _service(_response(body={}))
    with pytest.raises(NetworkError):
        service.upload_signature(b"png")


def test_signature_image_is_fetched_by_file_name():
    service, http = _service(_response(content=b"img"))
    assert service.fetch_signature_image("uploads\\signatures\\s1.png") == b"img"
    assert http.requests[0]["url"] == "http://test/api/signing/signatures/s1.png"
    assert signature_file_name("a/b/c.png") == "c.png"


def test_submit_and_send_back_endpoints():
    service, http = _service(_response(body={"message": "ok"}), _response(body={}))
    service.submit(7, {"textFields": [], "signatures": []})
    service.send_back(7, "やり直し")
    assert [r["url"] for r in http.requests] == [
        "http://test/api/signing/7/submit",
        "http://test/api/documents/7/send-back",
    ]
    assert http.requests[1]["json"] == {"note": "やり直し"}
