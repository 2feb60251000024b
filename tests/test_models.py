from __future__ import annotations

import json

import pytest

from beyondimport.models import (
    AdvancementEntry,
    AdvancementKind,
    AuthContext,
    CanonicalRecord,
    Channel,
    Confidence,
    ContentKind,
    Diagnostic,
    DiagnosticKind,
    FieldValue,
    PartialFields,
    Provenance,
    RawDocument,
    is_empty,
)


def test_is_empty_treats_booleans_and_zero_as_data() -> None:
    assert is_empty(None)
    assert is_empty("   ")
    assert is_empty([])
    assert is_empty({"a": "", "b": []})
    assert not is_empty(False)
    assert not is_empty(0)
    assert not is_empty({"a": "", "b": ["x"]})


def test_auth_context_reads_env_and_hides_credentials() -> None:
    auth = AuthContext.from_env({"BEYOND_BEARER_TOKEN": " secret-token "})

    assert auth.is_present
    assert auth.bearer_token == "secret-token"
    assert "secret" not in repr(auth)
    assert not AuthContext.from_env({}).is_present


def test_excerpt_hash_only_covers_payload_head() -> None:
    head = "x" * 2048
    first = RawDocument("rogue", ContentKind.CLASS, Channel.HTML, head + "tail one")
    second = RawDocument("rogue", ContentKind.CLASS, Channel.HTML, head + "tail two")
    other = RawDocument("rogue", ContentKind.CLASS, Channel.HTML, "different")

    assert len(first.excerpt_hash()) == 12
    assert first.excerpt_hash() == second.excerpt_hash()
    assert first.excerpt_hash() != other.excerpt_hash()


def test_partial_fields_reports_absent_required_names() -> None:
    partial = PartialFields("rogue", ContentKind.CLASS, Channel.API)
    partial.values["name"] = FieldValue("Rogue", Provenance.API)
    partial.values["tags"] = FieldValue([], Provenance.API)

    assert partial.absent(["name", "tags", "features"]) == ["tags", "features"]
    assert partial.present_names() == ["name"]


def test_choice_advancement_rejects_count_outside_pool() -> None:
    with pytest.raises(ValueError, match="skills"):
        AdvancementEntry(AdvancementKind.CHOICE, level=1, trait="skills", pool=("Arcana",), count=2)

    with pytest.raises(ValueError):
        AdvancementEntry(AdvancementKind.CHOICE, level=1, trait="skills", pool=("Arcana",))

    grant = AdvancementEntry(AdvancementKind.GRANT, level=1, trait="armor", pool=("Light armor",))
    assert grant.to_dict() == {"kind": "grant", "level": 1, "trait": "armor", "pool": ["Light armor"]}


def test_record_serialization_is_stable() -> None:
    record = CanonicalRecord(
        content_id="rogue",
        content_kind=ContentKind.CLASS,
        fields={"name": "Rogue", "tags": ["Martial"]},
        provenance={
            "tags": FieldValue(None, Provenance.HTML, Confidence.HEURISTIC),
            "name": FieldValue(None, Provenance.API),
        },
        diagnostics=(Diagnostic(DiagnosticKind.SUPERSEDED_VALUE, "name", "html value shadowed by api", Channel.HTML),),
    )

    first = record.to_json()
    assert first == record.to_json()
    payload = json.loads(first)
    assert payload["id"] == "rogue"
    assert payload["kind"] == "class"
    assert payload["provenance"]["tags"] == {"source": "html", "confidence": "heuristic"}
    assert payload["diagnostics"][0]["channel"] == "html"
