from __future__ import annotations

from beyondimport.merge.aliases import (
    ARMOR_TRAINING,
    HIT_DIE,
    PRIMARY_ABILITY,
    SAVING_THROWS,
    SKILL_PROFICIENCIES,
    STARTING_EQUIPMENT,
    TOOL_PROFICIENCIES,
)
from beyondimport.merge.derived import derive_class_fields
from beyondimport.models import Confidence, DiagnosticKind, FieldValue, Provenance


def _sources(traits: dict[str, str], provenance: Provenance = Provenance.API) -> dict[str, FieldValue]:
    return {label: FieldValue(value=text, provenance=provenance) for label, text in traits.items()}


def test_rogue_traits_derive_structured_fields() -> None:
    traits = {
        HIT_DIE: "D8 per Rogue level",
        PRIMARY_ABILITY: "Dexterity",
        SAVING_THROWS: "Dexterity and Intelligence",
        SKILL_PROFICIENCIES: "Choose 4: Acrobatics, Athletics, Deception, Insight, Intimidation, or Stealth",
        TOOL_PROFICIENCIES: "Thieves' Tools",
        ARMOR_TRAINING: "Light armor",
        STARTING_EQUIPMENT: "Choose A or B: (A) leather armor, a dagger; or (B) a shortsword",
    }

    derived = derive_class_fields(traits, _sources(traits))

    assert derived.values["hit_die"] == "d8"
    assert derived.values["primary_abilities"] == ["dex"]
    assert derived.values["saving_throws"] == ["dex", "int"]
    assert derived.values["starting_equipment"] == [["leather armor", "a dagger"], ["a shortsword"]]
    advancement = derived.values["advancement"]
    assert advancement[0] == {"kind": "grant", "level": 1, "trait": "saves", "pool": ["dex", "int"]}
    assert advancement[1]["kind"] == "choice"
    assert advancement[1]["count"] == 4
    assert len(advancement[1]["pool"]) == 6
    assert [entry["trait"] for entry in advancement] == ["saves", "skills", "tools", "armor"]
    assert derived.provenance["hit_die"].provenance is Provenance.API
    assert derived.provenance["hit_die"].confidence is Confidence.HEURISTIC
    assert derived.diagnostics == []


def test_choice_count_is_clamped_to_pool() -> None:
    traits = {SKILL_PROFICIENCIES: "Choose 3: Arcana or History"}

    derived = derive_class_fields(traits, _sources(traits))

    entry = derived.values["advancement"][0]
    assert entry["count"] == 2
    assert entry["pool"] == ["Arcana", "History"]
    assert [item.kind for item in derived.diagnostics] == [DiagnosticKind.PARSE_AMBIGUITY]


def test_choice_counts_stay_within_pool_bounds() -> None:
    for text in (
        "Choose 2: Arcana, History, or Insight",
        "Choose any 5: Arcana, History",
        "Choose 0 from Arcana",
        "Choose one from Arcana",
    ):
        traits = {SKILL_PROFICIENCIES: text}
        for entry in derive_class_fields(traits, _sources(traits)).values["advancement"]:
            assert 0 <= entry["count"] <= len(entry["pool"])


def test_none_traits_are_skipped_and_unparsable_text_is_reported() -> None:
    traits = {ARMOR_TRAINING: "None", HIT_DIE: "varies", PRIMARY_ABILITY: "Luck"}

    derived = derive_class_fields(traits, _sources(traits, Provenance.HTML))

    assert "advancement" not in derived.values
    assert "hit_die" not in derived.values
    assert "primary_abilities" not in derived.values
    assert {item.field for item in derived.diagnostics} == {"hit_die", "primary_abilities"}


def test_derived_fields_inherit_trait_provenance() -> None:
    traits = {HIT_DIE: "D12 per Barbarian level", TOOL_PROFICIENCIES: "None"}
    sources = {HIT_DIE: FieldValue(traits[HIT_DIE], Provenance.HTML, Confidence.HEURISTIC)}

    derived = derive_class_fields(traits, sources)

    assert derived.values["hit_die"] == "d12"
    assert derived.provenance["hit_die"].provenance is Provenance.HTML


def test_hit_die_with_leading_count_is_recognized() -> None:
    for text, expected in (("1d8 per rogue level", "d8"), ("1 d10 per Fighter level", "d10"), ("d6", "d6")):
        traits = {HIT_DIE: text}

        derived = derive_class_fields(traits, _sources(traits))

        assert derived.values["hit_die"] == expected
        assert derived.diagnostics == []
