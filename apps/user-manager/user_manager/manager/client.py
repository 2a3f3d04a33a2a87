"""
Async HTTP client for the records service.

Every call returns a ``Result``: transport failures, timeouts, non-2xx
responses and malformed payloads all become a ``RequestError`` carrying the
underlying reason, so callers never see httpx exceptions.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import httpx
from pydantic import ValidationError as PydanticValidationError

from user_manager.manager.config import DEFAULT_TIMEOUT, ManagerConfig
from user_manager.manager.errors import RequestError
from user_manager.manager.models import Record
from user_manager.manager.state import Result

logger = logging.getLogger(__name__)

RECORDS_PATH = "/records"


def _record_path(record_id: str) -> str:
    return f"{RECORDS_PATH}/{quote(str(record_id), safe='')}"


def _error_reason(response: httpx.Response) -> str:
    """Extract the service's message from an error response."""
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and body.get("detail") is not None:
        detail = body["detail"]
        if isinstance(detail, list):
            # FastAPI request validation errors
            msgs = [str(d.get("msg", d)) if isinstance(d, dict) else str(d) for d in detail]
            return "; ".join(msgs) or response.reason_phrase
        return str(detail)
    text = (response.text or "").strip()
    return text[:200] if text else (response.reason_phrase or "request failed")


def _parse_record(payload: Any) -> Record:
    return Record.model_validate(payload)


class RecordServiceClient:
    """Thin async wrapper around the ``/records`` endpoints."""

    def __init__(
        self,
        base_url: str,
        timeout: float = DEFAULT_TIMEOUT,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @classmethod
    def from_config(cls, config: ManagerConfig, **kwargs) -> "RecordServiceClient":
        return cls(config.api_url, config.timeout, **kwargs)

    @property
    def is_open(self) -> bool:
        return self._client is not None

    async def open(self) -> None:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=httpx.Timeout(self.timeout),
                transport=self._transport,
            )

    async def aclose(self) -> None:
        client, self._client = self._client, None
        if client is not None:
            await client.aclose()

    async def __aenter__(self) -> "RecordServiceClient":
        await self.open()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def _request(self, method: str, path: str, *, json: Optional[Dict[str, Any]] = None) -> Result[httpx.Response]:
        client = self._client
        if client is None:
            return Result.failure(RequestError("client is not open"))
        logger.debug("records_request method=%s path=%s", method, path)
        try:
            response = await client.request(method, path, json=json)
        except httpx.TimeoutException:
            return Result.failure(RequestError(f"request timed out after {self.timeout}s"))
        except httpx.HTTPError as exc:
            reason = str(exc) or exc.__class__.__name__
            return Result.failure(RequestError(f"transport error: {reason}"))
        except RuntimeError as exc:
            # httpx raises RuntimeError when the client was closed mid-flight
            return Result.failure(RequestError(f"transport error: {exc}"))
        if response.is_success:
            return Result.success(response)
        reason = _error_reason(response)
        logger.debug("records_request_failed status=%s reason=%s", response.status_code, reason)
        return Result.failure(RequestError(reason, status_code=response.status_code))

    def _record_result(self, result: Result[httpx.Response]) -> Result[Record]:
        if not result.ok:
            return Result.failure(result.error)  # type: ignore[arg-type]
        try:
            return Result.success(_parse_record(result.value.json()))
        except (ValueError, PydanticValidationError) as exc:
            return Result.failure(RequestError(f"malformed record in response: {exc}"))

    async def list_records(self) -> Result[List[Record]]:
        result = await self._request("GET", RECORDS_PATH)
        if not result.ok:
            return Result.failure(result.error)  # type: ignore[arg-type]
        try:
            payload = result.value.json()
            if not isinstance(payload, list):
                raise ValueError("expected a JSON array")
            records = [_parse_record(item) for item in payload]
        except (ValueError, PydanticValidationError) as exc:
            return Result.failure(RequestError(f"malformed record list in response: {exc}"))
        seen = set()
        for record in records:
            if record.id in seen:
                return Result.failure(RequestError(f"duplicate record id {record.id!r} in response"))
            seen.add(record.id)
        return Result.success(records)

    async def get_record(self, record_id: str) -> Result[Record]:
        return self._record_result(await self._request("GET", _record_path(record_id)))

    async def create_record(self, fields: Dict[str, Any]) -> Result[Record]:
        return self._record_result(await self._request("POST", RECORDS_PATH, json=fields))

    async def update_record(self, record_id: str, fields: Dict[str, Any]) -> Result[Record]:
        """Partial update (PATCH)."""
        return self._record_result(await self._request("PATCH", _record_path(record_id), json=fields))

    async def replace_record(self, record_id: str, fields: Dict[str, Any]) -> Result[Record]:
        """Full replacement (PUT)."""
        return self._record_result(await self._request("PUT", _record_path(record_id), json=fields))

    async def delete_record(self, record_id: str) -> Result[None]:
        result = await self._request("DELETE", _record_path(record_id))
        if not result.ok:
            return Result.failure(result.error)  # type: ignore[arg-type]
        return Result.success(None)
