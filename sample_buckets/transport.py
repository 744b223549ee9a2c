from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Literal

import httpx

from sample_buckets.config import Settings

ErrorCategory = Literal["retryable", "fatal"]

logger = logging.getLogger(__name__)

_RETRYABLE_STATUSES = frozenset({408, 425, 429, 500, 502, 503, 504})


@dataclass(frozen=True)
class ResponseResult:
    method: str
    path: str
    status_code: int | None
    body: str


class ClusterRequestError(RuntimeError):
    def __init__(
        self,
        *,
        message: str,
        result: ResponseResult,
        category: ErrorCategory,
        timed_out: bool = False,
    ) -> None:
        self.result = result
        self.category = category
        self.timed_out = timed_out
        super().__init__(self._build_message(message))

    @property
    def retryable(self) -> bool:
        return self.category == "retryable"

    def _build_message(self, message: str) -> str:
        detail = self.result.body.strip()
        if len(detail) > 400:
            detail = f"{detail[:397]}..."
        return (
            f"{message} (category={self.category}, status={self.result.status_code}, "
            f"request={self.result.method} {self.result.path}, detail={detail!r})"
        )


def classify_status(status_code: int) -> ErrorCategory:
    if status_code in _RETRYABLE_STATUSES or status_code >= 500:
        return "retryable"
    return "fatal"


class ClusterTransport:
    """Thin JSON-over-HTTP wrapper around one ``httpx.AsyncClient``."""

    def __init__(
        self,
        *,
        base_url: str,
        timeout: float,
        auth: tuple[str, str] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._client = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout,
            auth=auth,
            transport=transport,
            headers={"Accept": "application/json"},
        )

    @classmethod
    def from_settings(
        cls, settings: Settings, *, transport: httpx.AsyncBaseTransport | None = None
    ) -> ClusterTransport:
        return cls(
            base_url=settings.cluster_url,
            timeout=settings.read_timeout,
            auth=settings.auth,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> ClusterTransport:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def request_json(
        self,
        method: str,
        path: str,
        *,
        error_message: str,
        json: Any = None,
        timeout: float | None = None,
    ) -> Any:
        logger.debug("Cluster request %s %s", method, path)
        kwargs: dict[str, Any] = {}
        if json is not None:
            kwargs["json"] = json
        if timeout is not None:
            kwargs["timeout"] = timeout
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.TimeoutException as exc:
            raise ClusterRequestError(
                message=error_message,
                result=ResponseResult(method=method, path=path, status_code=None, body=str(exc)),
                category="retryable",
                timed_out=True,
            ) from exc
        except httpx.TransportError as exc:
            raise ClusterRequestError(
                message=error_message,
                result=ResponseResult(method=method, path=path, status_code=None, body=str(exc)),
                category="retryable",
            ) from exc

        if response.is_error:
            raise ClusterRequestError(
                message=error_message,
                result=ResponseResult(
                    method=method, path=path, status_code=response.status_code, body=response.text
                ),
                category=classify_status(response.status_code),
            )
        logger.debug("Cluster response %s %s -> %s", method, path, response.status_code)
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise ClusterRequestError(
                message=f"{error_message}: response is not JSON",
                result=ResponseResult(
                    method=method, path=path, status_code=response.status_code, body=response.text
                ),
                category="fatal",
            ) from exc
