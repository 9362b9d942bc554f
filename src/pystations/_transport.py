"""HTTP transport for the document store REST gateway."""

from __future__ import annotations

import json
import logging
from collections.abc import Callable, Mapping
from typing import Any, Protocol
from urllib.parse import quote

import aiohttp

from pystations._constants import USER_AGENT
from pystations._redact import redact_for_log
from pystations.config import StationsConfig
from pystations.exceptions import StoreTransportError
from pystations.models.query import QueryDescriptor

_logger = logging.getLogger(__name__)


class DocumentTransport(Protocol):
    """Structural transport interface used by the station adapter.

    Having a protocol here makes it easy to pass test doubles while
    keeping the production implementation (`HttpDocumentTransport`)
    concrete.  Documents are plain dicts carrying their ``id``.
    """

    async def create_document(self, collection: str, fields: Mapping[str, Any]) -> dict[str, Any]: ...

    async def get_document(self, collection: str, document_id: str) -> dict[str, Any] | None: ...

    async def patch_document(self, collection: str, document_id: str, fields: Mapping[str, Any]) -> None: ...

    async def delete_document(self, collection: str, document_id: str) -> None: ...

    async def run_query(self, collection: str, query: QueryDescriptor) -> list[dict[str, Any]]: ...


def _json_default(value: Any) -> Any:
    isoformat = getattr(value, "isoformat", None)
    if callable(isoformat):
        return isoformat()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


class HttpDocumentTransport:
    """JSON document store client over aiohttp.

    Endpoints, relative to ``config.base_url``::

        POST   /{collection}            create, returns the stored document
        GET    /{collection}/{id}       point read, 404 when absent
        PATCH  /{collection}/{id}       merge fields
        DELETE /{collection}/{id}       remove
        POST   /{collection}:query      run a QueryDescriptor
    """

    def __init__(
        self,
        config: StationsConfig,
        http_session: aiohttp.ClientSession,
        *,
        id_token: Callable[[], str | None] | None = None,
    ) -> None:
        self._config = config
        self._http = http_session
        self._id_token = id_token

    def _headers(self) -> dict[str, str]:
        headers: dict[str, str] = {
            "accept": "application/json",
            "content-type": "application/json; charset=UTF-8",
            "user-agent": USER_AGENT,
        }
        token = self._id_token() if self._id_token is not None else None
        if token:
            headers["authorization"] = f"Bearer {token}"
        elif self._config.api_key:
            headers["x-api-key"] = self._config.api_key
        return headers

    def _url(self, collection: str, document_id: str | None = None, suffix: str = "") -> str:
        base = self._config.base_url.rstrip("/")
        path = f"{base}/{quote(collection, safe='')}"
        if document_id is not None:
            path = f"{path}/{quote(document_id, safe='')}"
        return f"{path}{suffix}"

    async def _request(
        self,
        method: str,
        url: str,
        *,
        body: Mapping[str, Any] | None = None,
        allow_not_found: bool = False,
    ) -> Any:
        data = json.dumps(body, default=_json_default, separators=(",", ":")) if body is not None else None
        _logger.debug("%s %s body=%s", method, url, redact_for_log(body))

        try:
            async with self._http.request(method, url, data=data, headers=self._headers()) as resp:
                text = await resp.text()
                if resp.status == 404 and allow_not_found:
                    return None
                if resp.status >= 400:
                    raise StoreTransportError(
                        f"HTTP {resp.status} from {method} {url}: {text[:200]}",
                        status_code=resp.status,
                        endpoint=url,
                    )
        except aiohttp.ClientError as exc:
            raise StoreTransportError(f"{method} {url} failed: {exc}", endpoint=url) from exc
        except TimeoutError as exc:
            # aiohttp's ClientTimeout surfaces as a bare TimeoutError.
            raise StoreTransportError(f"{method} {url} timed out", endpoint=url) from exc

        if not text.strip():
            return None
        try:
            return json.loads(text)
        except json.JSONDecodeError as exc:
            raise StoreTransportError(f"Invalid JSON from {url}: {text[:200]}", endpoint=url) from exc

    async def create_document(self, collection: str, fields: Mapping[str, Any]) -> dict[str, Any]:
        url = self._url(collection)
        result = await self._request("POST", url, body=fields)
        if not isinstance(result, dict) or not result.get("id"):
            raise StoreTransportError(f"Create response from {url} has no document id", endpoint=url)
        return result

    async def get_document(self, collection: str, document_id: str) -> dict[str, Any] | None:
        url = self._url(collection, document_id)
        result = await self._request("GET", url, allow_not_found=True)
        if result is None:
            return None
        if not isinstance(result, dict):
            raise StoreTransportError(f"Document from {url} is not an object", endpoint=url)
        result.setdefault("id", document_id)
        return result

    async def patch_document(self, collection: str, document_id: str, fields: Mapping[str, Any]) -> None:
        await self._request("PATCH", self._url(collection, document_id), body=fields)

    async def delete_document(self, collection: str, document_id: str) -> None:
        await self._request("DELETE", self._url(collection, document_id))

    async def run_query(self, collection: str, query: QueryDescriptor) -> list[dict[str, Any]]:
        url = self._url(collection, suffix=":query")
        result = await self._request("POST", url, body=query.to_wire())
        documents = result.get("documents") if isinstance(result, dict) else result
        if documents is None:
            return []
        if not isinstance(documents, list):
            raise StoreTransportError(f"Query response from {url} has no document list", endpoint=url)
        return documents
