from __future__ import annotations

from typing import Any

import pytest

from beyondimport.extract import build_default_extractors
from beyondimport.extract.helpers import new_partial, put
from beyondimport.fetch import UNAVAILABLE, DocumentCache, FetchError
from beyondimport.models import (
    AuthContext,
    Channel,
    ContentKind,
    ContentRequest,
    DiagnosticKind,
    PartialFields,
    Provenance,
    RawDocument,
)
from beyondimport.pipeline import STAGE_FETCH, STAGE_VALIDATE, ImportPipeline, PipelineError
from beyondimport.result import Err, Ok

_AUTH = AuthContext(bearer_token="token")


class _StubFetcher:
    def __init__(self, documents: dict[tuple[str, Channel], Any]) -> None:
        self.documents = documents
        self.calls: list[tuple[str, Channel]] = []

    async def fetch(self, request: ContentRequest, channel: Channel):
        self.calls.append((request.content_id, channel))
        payload = self.documents.get((request.content_id, channel))
        if payload is None:
            return Err(FetchError(kind=UNAVAILABLE, content_id=request.content_id, channel=channel, message="HTTP 503"))
        return Ok(
            RawDocument(
                content_id=request.content_id,
                content_kind=request.content_kind,
                channel=channel,
                payload=payload,
            )
        )


class _BrokenLevelExtractor:
    content_kind = ContentKind.SPELL
    channel = Channel.API

    def extract(self, document: RawDocument) -> PartialFields:
        partial = new_partial(document)
        for name in ("name", "school", "description"):
            put(partial, name, "x")
        put(partial, "tags", ["x"])
        put(partial, "level", 12)
        return partial


def _class_request(content_id: str = "rogue") -> ContentRequest:
    return ContentRequest(content_id=content_id, content_kind=ContentKind.CLASS, auth=_AUTH)


def _spell_request(content_id: str = "2618-fireball") -> ContentRequest:
    return ContentRequest(content_id=content_id, content_kind=ContentKind.SPELL, auth=_AUTH)


@pytest.mark.asyncio
async def test_complete_api_document_skips_html(rogue_api_payload) -> None:
    fetcher = _StubFetcher({("rogue", Channel.API): rogue_api_payload})

    result = await ImportPipeline(fetcher).run(_class_request())

    assert isinstance(result, Ok)
    assert result.value.channels == (Channel.API,)
    assert fetcher.calls == [("rogue", Channel.API)]
    record = result.value.record
    assert record.fields["hit_die"] == "d8"
    assert record.fields["saving_throws"] == ["dex", "int"]


@pytest.mark.asyncio
async def test_api_failure_falls_back_to_html(rogue_html) -> None:
    fetcher = _StubFetcher({("rogue", Channel.HTML): rogue_html})

    result = await ImportPipeline(fetcher).run(_class_request())

    assert isinstance(result, Ok)
    record = result.value.record
    assert result.value.channels == (Channel.HTML,)
    assert record.provenance["name"].provenance is Provenance.HTML
    assert record.fields["starting_equipment"][1] == ["100 GP"]
    failed = [item for item in record.diagnostics if item.kind is DiagnosticKind.FETCH_FAILED]
    assert [(item.channel, item.field) for item in failed] == [(Channel.API, "document")]


@pytest.mark.asyncio
async def test_incomplete_api_document_consults_html(rogue_api_payload, rogue_html) -> None:
    del rogue_api_payload["sidebars"]
    fetcher = _StubFetcher({("rogue", Channel.API): rogue_api_payload, ("rogue", Channel.HTML): rogue_html})

    result = await ImportPipeline(fetcher).run(_class_request())

    record = result.value.record
    assert result.value.channels == (Channel.API, Channel.HTML)
    assert record.provenance["name"].provenance is Provenance.API
    assert record.provenance["sidebars"].provenance is Provenance.HTML


@pytest.mark.asyncio
async def test_tags_absent_everywhere_is_not_fatal(rogue_api_payload, rogue_html) -> None:
    del rogue_api_payload["tags"]
    html = rogue_html.replace('<div class="tags"><span class="tag">Martial</span></div>', "")
    fetcher = _StubFetcher({("rogue", Channel.API): rogue_api_payload, ("rogue", Channel.HTML): html})

    result = await ImportPipeline(fetcher).run(_class_request())

    assert isinstance(result, Ok)
    record = result.value.record
    assert record.fields["tags"] == []
    assert any(item.kind is DiagnosticKind.EXTRACTION_GAP and item.field == "tags" for item in record.diagnostics)


@pytest.mark.asyncio
async def test_both_channels_failing_is_a_fetch_error() -> None:
    fetcher = _StubFetcher({})

    result = await ImportPipeline(fetcher).run(_class_request())

    assert isinstance(result, Err)
    error = result.error
    assert isinstance(error, PipelineError)
    assert error.stage == STAGE_FETCH
    assert [item.channel for item in error.fetch_errors] == [Channel.API, Channel.HTML]
    assert error.to_dict()["stage"] == "fetch"
    assert "HTTP 503" in str(error)


@pytest.mark.asyncio
async def test_spell_import_synthesizes_activities(fireball_api_payload) -> None:
    fetcher = _StubFetcher({("2618-fireball", Channel.API): fireball_api_payload})

    result = await ImportPipeline(fetcher).run(_spell_request())

    (save,) = result.value.record.fields["activities"]
    assert save["type"] == "save"
    assert save["save"]["ability"] == ["dex"]
    assert save["damage"]["onSave"] == "half"
    assert save["scaling"] == {"mode": "perLevel", "formula": "1d6"}


@pytest.mark.asyncio
async def test_html_only_spell_scales_from_text(fireball_html) -> None:
    fetcher = _StubFetcher({("2618-fireball", Channel.HTML): fireball_html})

    result = await ImportPipeline(fetcher).run(_spell_request())

    record = result.value.record
    assert record.fields["activities"][0]["scaling"] == {"mode": "perLevel", "formula": "1d6"}
    assert record.provenance["activities"].provenance is Provenance.HTML


@pytest.mark.asyncio
async def test_schema_violation_returns_record_for_review() -> None:
    extractors = build_default_extractors()
    extractors[(ContentKind.SPELL, Channel.API)] = _BrokenLevelExtractor()
    fetcher = _StubFetcher({("2618-fireball", Channel.API): {"name": "x"}})

    result = await ImportPipeline(fetcher, extractors=extractors).run(_spell_request())

    assert isinstance(result, Err)
    assert result.error.stage == STAGE_VALIDATE
    assert [issue.path for issue in result.error.issues] == ["level"]
    assert result.error.record is not None
    assert result.error.record.fields["level"] == 12


@pytest.mark.asyncio
async def test_cache_serves_repeat_runs(rogue_api_payload) -> None:
    fetcher = _StubFetcher({("rogue", Channel.API): rogue_api_payload})
    cache = DocumentCache(ttl_for_kind=lambda kind: 60.0)
    pipeline = ImportPipeline(fetcher, cache=cache)

    first = await pipeline.run(_class_request())
    second = await pipeline.run(_class_request())

    assert fetcher.calls == [("rogue", Channel.API)]
    assert first.value.record.to_json() == second.value.record.to_json()


@pytest.mark.asyncio
async def test_run_many_keeps_request_order(rogue_api_payload, cure_wounds_api_payload) -> None:
    fetcher = _StubFetcher(
        {("rogue", Channel.API): rogue_api_payload, ("2609-cure-wounds", Channel.API): cure_wounds_api_payload}
    )

    results = await ImportPipeline(fetcher).run_many(
        [_spell_request("2609-cure-wounds"), _class_request("missing"), _class_request()]
    )

    assert [type(result) for result in results] == [Ok, Err, Ok]
    assert results[0].value.record.fields["activities"][0]["type"] == "heal"
    assert results[2].value.record.content_id == "rogue"
