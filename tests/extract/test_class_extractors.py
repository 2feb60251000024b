from __future__ import annotations

import logging

import pytest

from beyondimport.extract import ClassApiExtractor, ClassHtmlExtractor, FieldExtractor, build_default_extractors, is_incomplete
from beyondimport.models import Channel, Confidence, ContentKind, Provenance


def test_default_registry_covers_every_kind_and_channel() -> None:
    extractors = build_default_extractors()

    assert set(extractors) == {(kind, channel) for kind in ContentKind for channel in Channel}
    assert all(isinstance(extractor, FieldExtractor) for extractor in extractors.values())


def test_class_api_extraction(rogue_api_payload, make_document) -> None:
    partial = ClassApiExtractor().extract(make_document(rogue_api_payload, ContentKind.CLASS, Channel.API, "rogue"))

    traits = partial.get("core_traits").value
    assert partial.get("name").value == "Rogue"
    assert partial.get("name").provenance is Provenance.API
    assert traits["Hit Die"] == "D8 per Rogue level"
    assert traits["Saving Throws"] == "Dexterity and Intelligence"
    assert traits["Armor Training"] == "Light armor"
    assert partial.get("description").value == "Rogues rely on cunning, stealth, and their foes' vulnerabilities."
    assert partial.get("progression").value == [
        {"level": 1, "columns": ["1", "Expertise", "Sneak Attack"]},
        {"level": 2, "columns": ["2", "Cunning Action"]},
    ]
    assert partial.get("features").value[0] == {
        "name": "Expertise",
        "description": "You gain Expertise.",
        "required_level": 1,
    }
    assert partial.get("subclasses").value[0]["features"][0]["name"] == "Fast Hands"
    assert not partial.is_present("spellcasting")
    assert not is_incomplete(partial, ContentKind.CLASS)


def test_class_api_spellcasting_from_ability_id(make_document) -> None:
    payload = {"definition": {"name": "Wizard", "spellCastingAbilityId": 4}}

    partial = ClassApiExtractor().extract(make_document(payload, ContentKind.CLASS, Channel.API, "wizard"))

    assert partial.get("name").value == "Wizard"
    assert partial.get("spellcasting").value == {"progression": "", "ability": "int", "lists": []}


def test_class_api_rejects_non_object_payload(make_document, caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.WARNING):
        partial = ClassApiExtractor().extract(make_document(["not", "an", "object"], ContentKind.CLASS, Channel.API))

    assert partial.values == {}
    assert is_incomplete(partial, ContentKind.CLASS)
    assert "field=core_traits" in caplog.text
    assert "excerpt=" in caplog.text


def test_class_html_primary_anchors(rogue_html, make_document) -> None:
    partial = ClassHtmlExtractor().extract(make_document(rogue_html, ContentKind.CLASS, Channel.HTML, "rogue"))

    assert partial.get("name").value == "Rogue"
    assert partial.get("name").confidence is Confidence.EXACT
    assert partial.get("description").value == "Rogues rely on cunning, stealth, and their foes' vulnerabilities."
    assert partial.get("core_traits").value["Hit Point Die"] == "D8 per Rogue level"
    assert partial.get("core_traits").confidence is Confidence.EXACT
    assert partial.get("progression").value[0] == {"level": 1, "columns": ["1", "+2", "Expertise, Sneak Attack"]}
    assert [feature["name"] for feature in partial.get("features").value] == [
        "Expertise",
        "Sneak Attack",
        "Cunning Action",
    ]
    subclass = partial.get("subclasses").value[0]
    assert subclass["name"] == "Thief"
    assert subclass["overview"] == "Hunt for treasure as a classic adventurer."
    assert subclass["features"][0]["required_level"] == 3
    assert partial.get("tags").value == ["Martial"]
    assert partial.get("prerequisites").value == ["Dexterity 13"]
    assert partial.get("source").value == "Player's Handbook"
    assert partial.get("additional_tables").value == [
        {"title": "Thieves' Cant Phrases", "headers": ["Phrase", "Meaning"], "rows": [["The crow flies", "Leave now"]]}
    ]
    assert any(sidebar.startswith("As a Level 1 Character") for sidebar in partial.get("sidebars").value)
    assert not partial.is_present("spellcasting")
    assert partial.get("tags").provenance is Provenance.HTML


def test_class_html_fallback_anchors_are_heuristic(make_document) -> None:
    markup = """
    <h1>Bard</h1>
    <h2>Core Bard Traits</h2>
    <p><strong>Primary Ability:</strong> Charisma</p>
    <p><strong>Hit Point Die:</strong> D8 per Bard level</p>
    <h2>Bard Class Features</h2>
    <h3>Level 1: Bardic Inspiration</h3>
    <p>Inspire others.</p>
    <h3>Level 1: Spellcasting</h3>
    <p>Charisma is your spellcasting ability for your Bard spells. You learn spells from the Bard spell list. You are a full caster.</p>
    """

    partial = ClassHtmlExtractor().extract(make_document(markup, ContentKind.CLASS, Channel.HTML, "bard"))

    traits = partial.get("core_traits")
    assert traits.value == {"Primary Ability": "Charisma", "Hit Point Die": "D8 per Bard level"}
    assert traits.confidence is Confidence.HEURISTIC
    assert partial.get("features").confidence is Confidence.HEURISTIC
    assert partial.get("features").value[0]["description"] == "Inspire others."
    spellcasting = partial.get("spellcasting")
    assert spellcasting.value == {
        "progression": "full",
        "ability": "cha",
        "lists": [{"label": "Bard", "url": "/spells/bard"}],
    }
    assert spellcasting.confidence is Confidence.HEURISTIC


def test_class_html_empty_payload_yields_nothing(make_document) -> None:
    partial = ClassHtmlExtractor().extract(make_document("   ", ContentKind.CLASS, Channel.HTML))

    assert partial.values == {}
