"""Provider fetchers: one network call per request, typed failures instead of raises."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
import logging
from typing import Any, Protocol, runtime_checkable

import httpx

from beyondimport.config import ImportSettings
from beyondimport.models import AuthContext, Channel, ContentRequest, RawDocument
from beyondimport.result import Err, Ok

logger = logging.getLogger(__name__)

UNAUTHORIZED = "unauthorized"
UNAVAILABLE = "unavailable"
MALFORMED = "malformed"

_ACCEPT: dict[Channel, str] = {
    Channel.API: "application/json",
    Channel.HTML: "text/html,application/xhtml+xml",
}


@dataclass(slots=True)
class FetchError(RuntimeError):
    """Transport-level failure of one channel for one content id."""

    kind: str
    content_id: str
    channel: Channel
    message: str

    def __str__(self) -> str:
        return f"{self.message} (kind={self.kind}, id={self.content_id}, channel={self.channel.value})"

    def to_dict(self) -> dict[str, str]:
        return {
            "kind": self.kind,
            "content_id": self.content_id,
            "channel": self.channel.value,
            "message": self.message,
        }


FetchResult = Ok[RawDocument] | Err[FetchError]


@runtime_checkable
class DocumentFetcher(Protocol):
    """Protocol shared by the HTTP fetcher and offline collaborators."""

    async def fetch(self, request: ContentRequest, channel: Channel) -> FetchResult:
        """Return the raw document for one channel or a typed fetch error."""


def unwrap_envelope(data: Any) -> tuple[Mapping[str, Any] | None, str | None]:
    """Strip a ``{"success", "data"}`` envelope.

    Returns ``(payload, None)`` on success or ``(None, error_kind)``.
    """

    if not isinstance(data, Mapping):
        return None, MALFORMED
    if "success" in data and "data" in data:
        if not data.get("success"):
            return None, UNAVAILABLE
        data = data["data"]
        if not isinstance(data, Mapping):
            return None, MALFORMED
    return data, None


def _headers(settings: ImportSettings, auth: AuthContext, channel: Channel) -> dict[str, str]:
    headers = {"User-Agent": settings.user_agent, "Accept": _ACCEPT[channel]}
    if auth.bearer_token:
        headers["Authorization"] = f"Bearer {auth.bearer_token}"
    if auth.cobalt_session:
        headers["Cookie"] = f"CobaltSession={auth.cobalt_session}"
    return headers


class HttpDocumentFetcher:
    """Fetch API JSON or page markup with httpx; retries belong to the transport."""

    def __init__(self, settings: ImportSettings, client: httpx.AsyncClient | None = None) -> None:
        self._settings = settings
        self._client = client
        self._owns_client = client is None

    def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._settings.timeout_seconds, follow_redirects=True)
        return self._client

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "HttpDocumentFetcher":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def fetch(self, request: ContentRequest, channel: Channel) -> FetchResult:
        def failure(kind: str, message: str) -> Err[FetchError]:
            logger.warning(
                "Fetch failed: kind=%s id=%s channel=%s reason=%s",
                kind,
                request.content_id,
                channel.value,
                message,
            )
            return Err(FetchError(kind=kind, content_id=request.content_id, channel=channel, message=message))

        if not request.auth.is_present:
            return failure(UNAUTHORIZED, "no credential supplied")

        url = self._settings.url_for(request.content_kind, channel, request.content_id)
        if url is None:
            return failure(UNAVAILABLE, f"no provider id known for '{request.content_id}'")

        logger.debug("Fetching %s %s from %s", request.content_kind.value, request.content_id, url)
        try:
            response = await self._ensure_client().get(
                url,
                headers=_headers(self._settings, request.auth, channel),
                timeout=self._settings.timeout_seconds,
            )
        except httpx.TimeoutException as exc:
            return failure(UNAVAILABLE, f"timed out: {exc}")
        except httpx.RequestError as exc:
            return failure(UNAVAILABLE, f"transport error: {exc}")

        if response.status_code in {401, 403}:
            return failure(UNAUTHORIZED, f"HTTP {response.status_code}")
        if not response.is_success:
            return failure(UNAVAILABLE, f"HTTP {response.status_code}")

        if channel is Channel.HTML:
            markup = response.text
            if not markup.strip():
                return failure(MALFORMED, "empty page body")
            payload: Any = markup
        else:
            try:
                decoded = response.json()
            except ValueError as exc:
                return failure(MALFORMED, f"undecodable JSON: {exc}")
            payload, error_kind = unwrap_envelope(decoded)
            if error_kind == UNAVAILABLE:
                return failure(UNAVAILABLE, "provider envelope reported failure")
            if error_kind is not None:
                return failure(MALFORMED, "payload is not a JSON object")

        return Ok(
            RawDocument(
                content_id=request.content_id,
                content_kind=request.content_kind,
                channel=channel,
                payload=payload,
            )
        )
