from __future__ import annotations

import json
import logging
from typing import Any, Callable, Dict, List, Optional

import httpx

from snapset_loader.exceptions import RequestFailed, TransportError
from snapset_loader.logging import log_event

logger = logging.getLogger("snapset_loader.couch_gateway")

OnSuccess = Callable[[str, Any], Any]


class CouchHTTPClient:
    """
    Request handling for the document store: view queries and _bulk_docs writes.

    Every call streams the whole response body, classifies the outcome and
    hands a successful body to the caller's ``on_success(body, context)``
    transform, whose return value becomes the call's result. Failed calls
    never reach the transform.
    """

    def __init__(
        self,
        *,
        timeout_seconds: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        # None keeps the historical behaviour of waiting on the server indefinitely.
        self.timeout_seconds = timeout_seconds
        self.transport = transport

    async def query(
        self,
        url: str,
        on_success: OnSuccess,
        context: Any,
        *,
        error_prefix: str = "",
    ) -> Any:
        body = await self.request_body("GET", url, error_prefix=error_prefix)
        return on_success(body, context)

    async def bulk_write(
        self,
        records: List[Dict[str, Any]],
        on_success: OnSuccess,
        context: Any,
        *,
        error_prefix: str = "",
    ) -> Any:
        post_options = context.post_options
        payload = self.encode_bulk_docs(records)
        post_options.headers["Content-Length"] = str(len(payload))
        body = await self.request_body(
            post_options.method,
            post_options.url,
            content=payload,
            headers=dict(post_options.headers),
            error_prefix=error_prefix,
        )
        return on_success(body, context)

    @staticmethod
    def encode_bulk_docs(records: List[Dict[str, Any]]) -> bytes:
        return json.dumps({"docs": records}, separators=(",", ":"), ensure_ascii=False).encode("utf-8")

    async def request_body(
        self,
        method: str,
        url: str,
        *,
        content: Optional[bytes] = None,
        headers: Optional[Dict[str, str]] = None,
        error_prefix: str = "",
    ) -> str:
        operation = f"{method} {httpx.URL(url).path}"
        try:
            async with httpx.AsyncClient(timeout=self.timeout_seconds, transport=self.transport) as client:
                async with client.stream(method, url, content=content, headers=headers) as response:
                    chunks = []
                    async for chunk in response.aiter_text():
                        chunks.append(chunk)
                    body = "".join(chunks)
        except httpx.TimeoutException as exc:
            self.log_failure("timeout", operation=operation, error=str(exc))
            raise TransportError(f"{error_prefix}{exc}", cause=str(exc)) from exc
        except httpx.RequestError as exc:
            self.log_failure("network", operation=operation, error=str(exc))
            raise TransportError(f"{error_prefix}{exc}", cause=str(exc)) from exc

        if response.status_code >= 400:
            err = self.classify_http_error(
                status_code=response.status_code,
                status_text=response.reason_phrase,
                body=body,
                error_prefix=error_prefix,
            )
            self.log_failure("http_status", operation=operation, status_code=response.status_code, error=str(err))
            raise err
        return body

    @staticmethod
    def classify_http_error(
        *,
        status_code: int,
        status_text: str,
        body: str,
        error_prefix: str = "",
    ) -> RequestFailed:
        message = f"{error_prefix}{status_code} - {status_text}"
        reason = None
        # Document-not-found responses carry a reason in the body.
        if status_code == 404:
            reason = CouchHTTPClient.extract_reason(body)
            message = f"{message}, {reason}"
        return RequestFailed(message, status_code=status_code, status_text=status_text, reason=reason)

    @staticmethod
    def extract_reason(body: str) -> str:
        try:
            payload = json.loads(body)
        except json.JSONDecodeError:
            return body.strip()
        if isinstance(payload, dict) and payload.get("reason") is not None:
            return str(payload["reason"])
        return body.strip()

    @staticmethod
    def log_failure(failure_class: str, **fields: Any) -> None:
        log_event(
            "couch_gateway_failure",
            level=logging.WARNING,
            logger=logger,
            backend="couchdb",
            failure_class=failure_class,
            **fields,
        )
