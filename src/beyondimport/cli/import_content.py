"""CLI command importing classes or spells and emitting canonical records as JSON."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
from pathlib import Path

from dotenv import load_dotenv

from beyondimport.config import ImportSettings
from beyondimport.fetch import DirectoryDocumentFetcher, DocumentCache, HttpDocumentFetcher
from beyondimport.models import AuthContext, ContentKind, ContentRequest
from beyondimport.pipeline import STAGE_VALIDATE, ImportPipeline, PipelineResult
from beyondimport.result import Ok


load_dotenv()

LOGGER = logging.getLogger(__name__)


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Import D&D Beyond classes or spells as canonical records")
    parser.add_argument("--kind", required=True, choices=[kind.value for kind in ContentKind], help="Content kind")
    parser.add_argument(
        "--id",
        dest="ids",
        action="append",
        required=True,
        help="Content id or slug, e.g. rogue or 2618-fireball (repeatable)",
    )
    parser.add_argument("--from-dir", default=None, help="Read saved documents from {dir}/{kind}/{id}.json|.html")
    parser.add_argument(
        "--allow-invalid",
        action="store_true",
        help="Emit records that fail schema validation instead of reporting them as errors",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    return parser.parse_args(argv)


async def _run(
    pipeline: ImportPipeline,
    requests: list[ContentRequest],
    fetcher: HttpDocumentFetcher | None,
) -> list[PipelineResult]:
    try:
        return await pipeline.run_many(requests)
    finally:
        if fetcher is not None:
            await fetcher.aclose()


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        level=logging.DEBUG if args.verbose else logging.INFO,
    )

    try:
        settings = ImportSettings.from_env()
    except ValueError as exc:
        LOGGER.error("Invalid configuration: %s", exc)
        return 2

    kind = ContentKind(args.kind)
    auth = AuthContext.from_env()
    requests = [ContentRequest(content_id=content_id, content_kind=kind, auth=auth) for content_id in args.ids]

    http_fetcher: HttpDocumentFetcher | None = None
    if args.from_dir:
        fetcher = DirectoryDocumentFetcher(Path(args.from_dir))
    else:
        http_fetcher = HttpDocumentFetcher(settings)
        fetcher = http_fetcher

    pipeline = ImportPipeline(fetcher, cache=DocumentCache.from_settings(settings))
    outcomes = asyncio.run(_run(pipeline, requests, http_fetcher))

    results: list[dict[str, object]] = []
    errors: list[dict[str, object]] = []
    for outcome in outcomes:
        if isinstance(outcome, Ok):
            results.append(outcome.value.record.to_dict())
            continue
        error = outcome.error
        if args.allow_invalid and error.stage == STAGE_VALIDATE and error.record is not None:
            LOGGER.warning("Accepting invalid record: %s", error)
            results.append(error.record.to_dict())
            continue
        errors.append(error.to_dict())

    payload = {
        "kind": kind.value,
        "processed": len(results),
        "results": results,
        "errors": errors,
    }
    print(json.dumps(payload, ensure_ascii=False, indent=2))
    return 0 if not errors else 1


if __name__ == "__main__":
    raise SystemExit(main())
