"""Offline fetcher reading saved provider documents from a directory tree."""

from __future__ import annotations

import json
import logging
from pathlib import Path

from beyondimport.fetch.client import MALFORMED, UNAVAILABLE, FetchError, FetchResult, unwrap_envelope
from beyondimport.models import Channel, ContentRequest, RawDocument
from beyondimport.result import Err, Ok

logger = logging.getLogger(__name__)

_SUFFIXES: dict[Channel, str] = {Channel.API: ".json", Channel.HTML: ".html"}


class DirectoryDocumentFetcher:
    """Read ``{root}/{kind}/{content_id}.json`` and ``.html`` with the HTTP fetcher's result contract."""

    def __init__(self, root: Path) -> None:
        self.root = Path(root)

    def path_for(self, request: ContentRequest, channel: Channel) -> Path:
        return self.root / request.content_kind.value / f"{request.content_id}{_SUFFIXES[channel]}"

    async def fetch(self, request: ContentRequest, channel: Channel) -> FetchResult:
        path = self.path_for(request, channel)

        def failure(kind: str, message: str) -> Err[FetchError]:
            logger.warning("Local fetch failed: kind=%s path=%s reason=%s", kind, path, message)
            return Err(FetchError(kind=kind, content_id=request.content_id, channel=channel, message=message))

        if not path.is_file():
            return failure(UNAVAILABLE, "no saved document")

        logger.debug("Reading %s", path)
        try:
            text = path.read_text(encoding="utf-8")
        except UnicodeDecodeError as exc:
            return failure(MALFORMED, f"document is not valid UTF-8: {exc}")
        except OSError as exc:
            return failure(UNAVAILABLE, f"unreadable document: {exc}")
        if channel is Channel.HTML:
            if not text.strip():
                return failure(MALFORMED, "empty page body")
            payload: object = text
        else:
            try:
                decoded = json.loads(text)
            except json.JSONDecodeError as exc:
                return failure(MALFORMED, f"undecodable JSON: {exc}")
            payload, error_kind = unwrap_envelope(decoded)
            if error_kind == UNAVAILABLE:
                return failure(UNAVAILABLE, "saved envelope reported failure")
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
