"""End-to-end import flow: fetch, extract, merge, synthesize and validate one content id."""

from __future__ import annotations

import asyncio
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, replace
import logging
from typing import Any

from beyondimport.automation import synthesize
from beyondimport.extract import FieldExtractor, build_default_extractors, is_incomplete
from beyondimport.fetch import DocumentCache, DocumentFetcher, FetchError, FetchResult
from beyondimport.merge import merge
from beyondimport.models import (
    CanonicalRecord,
    Channel,
    ContentKind,
    ContentRequest,
    Diagnostic,
    DiagnosticKind,
    PartialFields,
)
from beyondimport.result import Err, Ok
from beyondimport.validation import ValidationIssue, validate_record

logger = logging.getLogger(__name__)

STAGE_FETCH = "fetch"
STAGE_VALIDATE = "validate"


@dataclass(frozen=True, slots=True)
class ImportResult:
    """Validated record plus the channels whose documents contributed to it."""

    record: CanonicalRecord
    channels: tuple[Channel, ...]

    def to_dict(self) -> dict[str, Any]:
        return {"channels": [channel.value for channel in self.channels], "record": self.record.to_dict()}


@dataclass(slots=True)
class PipelineError(Exception):
    """Fatal failure for one content id at the fetch or validate stage."""

    stage: str
    content_id: str
    fetch_errors: tuple[FetchError, ...] = ()
    issues: tuple[ValidationIssue, ...] = ()
    record: CanonicalRecord | None = None

    def __str__(self) -> str:
        if self.stage == STAGE_VALIDATE:
            detail = "; ".join(str(issue) for issue in self.issues)
        else:
            detail = "; ".join(str(error) for error in self.fetch_errors)
        return f"Import of '{self.content_id}' failed at {self.stage}: {detail}"

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "stage": self.stage,
            "content_id": self.content_id,
            "error": str(self),
            "fetch_errors": [error.to_dict() for error in self.fetch_errors],
            "issues": [issue.to_dict() for issue in self.issues],
        }
        if self.record is not None:
            payload["record"] = self.record.to_dict()
        return payload


PipelineResult = Ok[ImportResult] | Err[PipelineError]


def _fetch_failed(error: FetchError) -> Diagnostic:
    return Diagnostic(
        kind=DiagnosticKind.FETCH_FAILED,
        field="document",
        message=f"{error.kind}: {error.message}",
        channel=error.channel,
    )


class ImportPipeline:
    """Run the API-first, HTML-fallback import for one request at a time."""

    def __init__(
        self,
        fetcher: DocumentFetcher,
        *,
        cache: DocumentCache | None = None,
        extractors: Mapping[tuple[ContentKind, Channel], FieldExtractor] | None = None,
    ) -> None:
        self.fetcher = fetcher
        self.cache = cache
        self.extractors = dict(extractors) if extractors is not None else build_default_extractors()

    async def _document(self, request: ContentRequest, channel: Channel) -> FetchResult:
        if self.cache is not None:
            cached = self.cache.get(request.content_id, channel)
            if cached is not None:
                return Ok(cached)
        fetched = await self.fetcher.fetch(request, channel)
        if isinstance(fetched, Ok) and self.cache is not None:
            self.cache.put(fetched.value)
        return fetched

    async def _extract(
        self,
        request: ContentRequest,
        channel: Channel,
        fetch_errors: list[FetchError],
    ) -> PartialFields | None:
        fetched = await self._document(request, channel)
        if isinstance(fetched, Err):
            fetch_errors.append(fetched.error)
            return None
        extractor = self.extractors[(request.content_kind, channel)]
        return extractor.extract(fetched.value)

    async def run(self, request: ContentRequest) -> PipelineResult:
        kind = request.content_kind
        fetch_errors: list[FetchError] = []

        api_fields = await self._extract(request, Channel.API, fetch_errors)
        html_fields: PartialFields | None = None
        if api_fields is None or is_incomplete(api_fields, kind):
            reason = "api fetch failed" if api_fields is None else "api extraction incomplete"
            logger.info("Consulting html channel: id=%s reason=%s", request.content_id, reason)
            html_fields = await self._extract(request, Channel.HTML, fetch_errors)

        if api_fields is None and html_fields is None:
            return Err(
                PipelineError(
                    stage=STAGE_FETCH,
                    content_id=request.content_id,
                    fetch_errors=tuple(fetch_errors),
                )
            )

        outcome = merge(api_fields, html_fields, kind)
        record = outcome.record
        if fetch_errors:
            record = replace(
                record,
                diagnostics=tuple(_fetch_failed(error) for error in fetch_errors) + record.diagnostics,
            )
        if kind is ContentKind.SPELL:
            record = synthesize(record)

        for diagnostic in record.diagnostics:
            logger.debug(
                "Diagnostic: id=%s kind=%s field=%s %s",
                record.content_id,
                diagnostic.kind.value,
                diagnostic.field,
                diagnostic.message,
            )

        validated = validate_record(record)
        if isinstance(validated, Err):
            logger.warning(
                "Schema validation failed: id=%s issues=%d",
                request.content_id,
                len(validated.error),
            )
            return Err(
                PipelineError(
                    stage=STAGE_VALIDATE,
                    content_id=request.content_id,
                    fetch_errors=tuple(fetch_errors),
                    issues=tuple(validated.error),
                    record=record,
                )
            )

        logger.info(
            "Imported %s %s: channels=%s diagnostics=%d",
            kind.value,
            request.content_id,
            ",".join(channel.value for channel in outcome.consulted),
            len(record.diagnostics),
        )
        return Ok(ImportResult(record=validated.value, channels=outcome.consulted))

    async def run_many(self, requests: Iterable[ContentRequest]) -> list[PipelineResult]:
        """Run independent requests concurrently; results keep the input order."""

        return list(await asyncio.gather(*(self.run(request) for request in requests)))
