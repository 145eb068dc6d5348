import json
import re

import pytest
import requests

from curriculum.api.client import CourseApiClient
from curriculum.config import ApiConfig
from curriculum.exceptions import (
    ApiError,
    AuthenticationError,
    ConflictError,
    InvalidResponseError,
    NotFoundError,
    PayloadTooLargeError,
    PermissionDeniedError,
    TransportError,
)
from curriculum.models import EntityStatus, MaterialRequest, UnitDraft

from conftest import make_file


class FakeResponse:
    def __init__(self, status_code=200, body=None, text=None):
        self.status_code = status_code
        self._body = body
        self._text = text

    def json(self):
        if self._text is not None:
            return json.loads(self._text)
        return self._body


class FakeSession:
    """Replays queued responses and records requests."""

    def __init__(self, *responses):
        self.headers = {}
        self.responses = list(responses)
        self.requests = []
        self.closed = False

    def request(self, method, url, timeout=None, **kwargs):
        self.requests.append((method, url, timeout, kwargs))
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    def close(self):
        self.closed = True


def envelope(data, success=True, message="ok"):
    return {"success": success, "message": message, "data": data, "timestamp": 1700000000000}


def make_client(*responses, token="secret"):
    session = FakeSession(*responses)
    client = CourseApiClient("http://api.test/api/", access_token=token, timeout=5, session=session)
    return client, session


UNIT_DRAFT = UnitDraft(
    id="U1", title="Greetings", description="Basics", chapter_id="C1",
    prerequisite_unit_id="  ",
)


class TestUnits:

    def test_create_unit_posts_request_body(self):
        client, session = make_client(FakeResponse(201, envelope({
            "id": "U1", "title": "Greetings", "status": "INACTIVE",
            "chapterId": "C1", "prerequisiteUnitId": None,
        })))
        unit = client.create_unit(UNIT_DRAFT)

        method, url, timeout, kwargs = session.requests[0]
        assert (method, url, timeout) == ("POST", "http://api.test/api/units", 5)
        assert kwargs["json"] == {
            "id": "U1", "title": "Greetings", "description": "Basics",
            "status": "INACTIVE", "chapterId": "C1",
            "prerequisiteUnitId": None, "examIds": [],
        }
        assert unit.id == "U1"
        assert unit.chapter_id == "C1"
        assert unit.status == EntityStatus.INACTIVE

    def test_bearer_token_is_sent(self):
        client, session = make_client()
        assert session.headers["Authorization"] == "Bearer secret"

    def test_create_unit_without_id_is_invalid(self):
        client, _ = make_client(FakeResponse(200, envelope({"id": " "})))
        with pytest.raises(InvalidResponseError):
            client.create_unit(UNIT_DRAFT)

    def test_unsuccessful_envelope_is_an_error(self):
        client, _ = make_client(FakeResponse(200, envelope(None, success=False, message="nope")))
        with pytest.raises(ApiError, match="nope"):
            client.create_unit(UNIT_DRAFT)

    def test_list_units_by_chapter(self):
        client, session = make_client(FakeResponse(200, envelope([
            {"id": "U2", "title": "Two", "status": "ACTIVE", "prerequisiteUnitId": "U1"},
            {"id": "U1", "title": "One", "status": "ACTIVE", "prerequisiteUnitId": None},
        ])))
        units = client.list_units_by_chapter("C 1")
        assert session.requests[0][1] == "http://api.test/api/chapters/C%201/units"
        assert [u.id for u in units] == ["U2", "U1"]
        assert units[0].prerequisite_id == "U1"

    def test_list_chapters_by_course_handles_null_data(self):
        client, _ = make_client(FakeResponse(200, envelope(None)))
        assert client.list_chapters_by_course("JPD113") == []


class TestMaterials:

    def test_upload_sends_multipart_field(self):
        client, session = make_client(FakeResponse(200, envelope("stored_a.pdf")))
        reference = client.upload_material_file(make_file("a.pdf"))

        assert reference == "stored_a.pdf"
        method, url, _, kwargs = session.requests[0]
        assert (method, url) == ("POST", "http://api.test/api/materials/upload")
        name, _, content_type = kwargs["files"]["files"]
        assert (name, content_type) == ("a.pdf", "application/pdf")

    def test_upload_list_response_uses_first_element(self):
        client, _ = make_client(FakeResponse(200, envelope(["first.pdf", "second.pdf"])))
        assert client.upload_material_file(make_file("a.pdf")) == "first.pdf"

    @pytest.mark.parametrize("data", [None, [], {"url": "x"}, ""])
    def test_upload_rejects_non_string_reference(self, data):
        client, _ = make_client(FakeResponse(200, envelope(data)))
        with pytest.raises(InvalidResponseError):
            client.upload_material_file(make_file("a.pdf"))

    def test_create_material_body(self):
        client, session = make_client(FakeResponse(201, envelope({
            "id": "M1", "fileUrl": "stored.pdf", "type": "KANJI", "unitId": "U1",
        })))
        material = client.create_material(MaterialRequest(
            id="M1", file_reference="stored.pdf", type="KANJI", unit_id="U1",
        ))
        assert session.requests[0][3]["json"] == {
            "id": "M1", "fileUrl": "stored.pdf", "type": "KANJI",
            "script": "", "translation": "", "unitId": "U1",
        }
        assert material.file_url == "stored.pdf"

    def test_get_material_not_found(self):
        client, _ = make_client(FakeResponse(404, {"message": "Material not found"}))
        with pytest.raises(NotFoundError, match="Material not found"):
            client.get_material("M1")

    def test_get_material_with_empty_data_is_not_found(self):
        client, _ = make_client(FakeResponse(200, envelope(None)))
        with pytest.raises(NotFoundError):
            client.get_material("M1")


class TestErrorNormalization:

    @pytest.mark.parametrize("status,error_type", [
        (401, AuthenticationError),
        (403, PermissionDeniedError),
        (409, ConflictError),
        (413, PayloadTooLargeError),
    ])
    def test_status_codes_map_to_errors(self, status, error_type):
        client, _ = make_client(FakeResponse(status, {"message": "server says no"}))
        with pytest.raises(error_type) as exc_info:
            client.create_unit(UNIT_DRAFT)
        assert exc_info.value.status == status
        assert exc_info.value.message == "server says no"

    def test_error_list_is_joined(self):
        client, _ = make_client(FakeResponse(400, {"errors": [
            {"message": "title required"}, {"message": "chapter missing"},
        ]}))
        with pytest.raises(ApiError, match=re.escape("title required | chapter missing")) as exc_info:
            client.create_unit(UNIT_DRAFT)
        assert exc_info.value.status == 400

    def test_non_json_error_body(self):
        client, _ = make_client(FakeResponse(502, text="<html>Bad gateway</html>"))
        with pytest.raises(ApiError, match="status 502"):
            client.create_unit(UNIT_DRAFT)

    def test_timeout_becomes_transport_error(self):
        client, _ = make_client(requests.Timeout("read timed out"))
        with pytest.raises(TransportError) as exc_info:
            client.get_material("M1")
        assert exc_info.value.status is None

    def test_connection_error_becomes_transport_error(self):
        client, _ = make_client(requests.ConnectionError("refused"))
        with pytest.raises(TransportError, match="refused"):
            client.list_units_by_chapter("C1")

    def test_non_json_success_body(self):
        client, _ = make_client(FakeResponse(200, text="not json"))
        with pytest.raises(InvalidResponseError):
            client.get_material("M1")


def test_from_config_and_close():
    session = FakeSession()
    config = ApiConfig(base_url="https://lms.example.com/api", access_token=None, timeout_seconds=9)
    with CourseApiClient.from_config(config, session=session) as client:
        assert client.base_url == "https://lms.example.com/api"
        assert client.timeout == 9
        assert "Authorization" not in session.headers
    assert session.closed
