"""REST client for the course-content API."""

from typing import Any, Optional, Type, TypeVar
from urllib.parse import quote

import requests
from pydantic import BaseModel
from pydantic import ValidationError as SchemaError

from ..config import ApiConfig, get_config
from ..exceptions import (
    ApiError,
    AuthenticationError,
    ConflictError,
    InvalidResponseError,
    NotFoundError,
    PayloadTooLargeError,
    PermissionDeniedError,
    TransportError,
)
from ..logging_config import get_logger
from ..models import Chapter, Material, MaterialRequest, SelectedFile, Unit, UnitDraft
from .ports import CourseContentStore
from .schemas import (
    ApiEnvelope,
    ChapterRecord,
    ErrorBody,
    MaterialRecord,
    UnitRecord,
    UploadData,
)

logger = get_logger('client')

M = TypeVar('M', bound=BaseModel)


class CourseApiClient(CourseContentStore):
    """`requests`-based implementation of the course-content store."""

    def __init__(
        self,
        base_url: str,
        access_token: Optional[str] = None,
        timeout: float = 30.0,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.setdefault('Accept', 'application/json')
        if access_token:
            self.session.headers['Authorization'] = f"Bearer {access_token}"

    @classmethod
    def from_config(cls, config: Optional[ApiConfig] = None,
                    session: Optional[requests.Session] = None) -> 'CourseApiClient':
        config = config or get_config().api
        return cls(
            base_url=config.base_url,
            access_token=config.access_token,
            timeout=config.timeout_seconds,
            session=session,
        )

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> 'CourseApiClient':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    # ==================== TRANSPORT ====================

    def _request(self, method: str, path: str, **kwargs) -> requests.Response:
        """Send a request and turn every failure into an ApiError."""
        url = f"{self.base_url}{path}"
        logger.debug(f"{method} {url}")

        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.Timeout as e:
            raise TransportError(url, f"timed out after {self.timeout}s") from e
        except requests.RequestException as e:
            raise TransportError(url, str(e)) from e

        if response.status_code >= 400:
            raise self._error_for(response, path)
        return response

    @staticmethod
    def _error_for(response: requests.Response, path: str) -> ApiError:
        """Map an HTTP error response onto the API error taxonomy."""
        message = None
        try:
            message = ErrorBody.model_validate(response.json()).describe()
        except (ValueError, SchemaError):
            pass
        status = response.status_code

        if status == 401:
            return AuthenticationError(message)
        if status == 403:
            return PermissionDeniedError(message)
        if status == 404:
            return NotFoundError(path, message)
        if status == 409:
            return ConflictError(message)
        if status == 413:
            return PayloadTooLargeError(message)
        return ApiError(message or f"Request failed with status {status}", status=status)

    @staticmethod
    def _envelope(response: requests.Response, data_type: Any) -> ApiEnvelope:
        """Parse the standard envelope; an unsuccessful envelope is an ApiError."""
        try:
            body = response.json()
        except ValueError as e:
            raise InvalidResponseError("Response body is not JSON",
                                       status=response.status_code) from e

        try:
            envelope = ApiEnvelope[data_type].model_validate(body)
        except SchemaError as e:
            raise InvalidResponseError(f"Unexpected response shape: {e}",
                                       status=response.status_code) from e

        if not envelope.success:
            raise ApiError(envelope.message or "Request was not successful",
                           status=response.status_code)
        return envelope

    def _get_list(self, path: str, record_type: Type[M]) -> list[M]:
        response = self._request('GET', path)
        return self._envelope(response, list[record_type]).data or []

    # ==================== UNITS & CHAPTERS ====================

    def create_unit(self, draft: UnitDraft) -> Unit:
        response = self._request('POST', '/units', json=draft.to_request())
        record = self._envelope(response, UnitRecord).data

        if record is None or not record.id.strip():
            raise InvalidResponseError("Unit creation returned no unit id",
                                       status=response.status_code)
        logger.info(f"Created unit {record.id}")
        return record.to_model()

    def list_units_by_chapter(self, chapter_id: str) -> list[Unit]:
        records = self._get_list(f"/chapters/{quote(chapter_id, safe='')}/units", UnitRecord)
        return [r.to_model() for r in records]

    def list_chapters_by_course(self, course_id: str) -> list[Chapter]:
        records = self._get_list(f"/courses/{quote(course_id, safe='')}/chapters", ChapterRecord)
        return [r.to_model() for r in records]

    # ==================== MATERIALS ====================

    def upload_material_file(self, selected_file: SelectedFile) -> str:
        """
        Upload a file to the material store.

        Returns:
            The stored file name (e.g. "kanji_9a38d5bc-....pdf")
        """
        content_type = selected_file.content_type or 'application/octet-stream'
        with selected_file.open() as fh:
            response = self._request(
                'POST',
                '/materials/upload',
                files={'files': (selected_file.name, fh, content_type)},
            )

        data = self._envelope(response, UploadData).data
        if isinstance(data, list):
            data = data[0] if data else None
        if not isinstance(data, str) or not data.strip():
            raise InvalidResponseError(
                f"Upload returned an invalid file reference: {data!r}",
                status=response.status_code,
            )
        logger.debug(f"Uploaded {selected_file.name} as {data}")
        return data

    def create_material(self, request: MaterialRequest) -> Material:
        response = self._request('POST', '/materials', json=request.to_request())
        record = self._envelope(response, MaterialRecord).data
        if record is None:
            return Material(
                id=request.id,
                file_url=request.file_reference,
                type=request.type,
                script=request.script,
                translation=request.translation,
                unit_id=request.unit_id,
            )
        return record.to_model()

    def get_material(self, material_id: str) -> Material:
        path = f"/materials/{quote(material_id, safe='')}"
        response = self._request('GET', path)
        record = self._envelope(response, MaterialRecord).data
        if record is None:
            raise NotFoundError(path)
        return record.to_model()
