from __future__ import annotations

from typing import Any

import pytest

from beyondimport.models import Channel, ContentKind, RawDocument

ROGUE_HTML = """
<html>
<head><title>Rogue - Classes - D&amp;D Beyond</title></head>
<body>
<h1 class="page-title">Rogue Class Details</h1>
<div class="static-container-details">
  <p>Rogues rely on cunning, stealth, and their foes' vulnerabilities.</p>
  <table>
    <caption>Core Rogue Traits</caption>
    <tr><th>Primary Ability</th><td>Dexterity</td></tr>
    <tr><th>Hit Point Die</th><td>D8 per Rogue level</td></tr>
    <tr><th>Saving Throw Proficiencies</th><td>Dexterity and Intelligence</td></tr>
    <tr><th>Skill Proficiencies</th><td>Choose 4: Acrobatics, Athletics, Deception, Insight, Intimidation, Investigation, Perception, Persuasion, Sleight of Hand, or Stealth</td></tr>
    <tr><th>Weapon Proficiencies</th><td>Simple weapons and Martial weapons that have the Finesse or Light property</td></tr>
    <tr><th>Tool Proficiencies</th><td>Thieves' Tools</td></tr>
    <tr><th>Armor Training</th><td>Light armor</td></tr>
    <tr><th>Starting Equipment</th><td>Choose A or B: (A) Leather Armor, 2 Daggers, Shortsword, Thieves' Tools, Burglar's Pack, and 8 GP; or (B) 100 GP</td></tr>
  </table>
  <h2>Becoming a Rogue</h2>
  <h4>As a Level 1 Character</h4>
  <p>Gain all the traits in the Core Rogue Traits table.</p>
  <table>
    <caption>Rogue Features</caption>
    <tr><th>Level</th><th>Proficiency Bonus</th><th>Class Features</th></tr>
    <tr><td>1</td><td>+2</td><td>Expertise, Sneak Attack</td></tr>
    <tr><td>2</td><td>+2</td><td>Cunning Action</td></tr>
  </table>
  <table>
    <caption>Thieves' Cant Phrases</caption>
    <tr><th>Phrase</th><th>Meaning</th></tr>
    <tr><td>The crow flies</td><td>Leave now</td></tr>
  </table>
  <h2>Rogue Class Features</h2>
  <h4>Level 1: Expertise</h4>
  <p>You gain Expertise in two of your skill proficiencies.</p>
  <h4>Level 1: Sneak Attack</h4>
  <p>Once per turn, you can deal an extra 1d6 damage to one creature you hit.</p>
  <h4>Level 2: Cunning Action</h4>
  <p>You can take the Dash, Disengage, or Hide action as a Bonus Action.</p>
  <div class="subitems-list-details-item">
    <h2>Rogue Subclass: Thief</h2>
    <p>Hunt for treasure as a classic adventurer.</p>
    <h4>Level 3: Fast Hands</h4>
    <p>You can use an object as a Bonus Action.</p>
  </div>
  <div class="tags"><span class="tag">Martial</span></div>
  <ul class="prerequisites"><li>Dexterity 13</li></ul>
  <p class="source">Player's Handbook</p>
</div>
</body>
</html>
"""

FIREBALL_HTML = """
<html>
<body>
<h1 class="page-title">Fireball</h1>
<div class="ddb-statblock ddb-statblock-spell">
  <div class="ddb-statblock-item ddb-statblock-item-level">
    <div class="ddb-statblock-item-label">Level</div><div class="ddb-statblock-item-value">3rd</div>
  </div>
  <div class="ddb-statblock-item ddb-statblock-item-casting-time">
    <div class="ddb-statblock-item-label">Casting Time</div><div class="ddb-statblock-item-value">1 Action</div>
  </div>
  <div class="ddb-statblock-item ddb-statblock-item-range-area">
    <div class="ddb-statblock-item-label">Range/Area</div><div class="ddb-statblock-item-value">150 ft. (20 ft.)</div>
  </div>
  <div class="ddb-statblock-item ddb-statblock-item-components">
    <div class="ddb-statblock-item-label">Components</div><div class="ddb-statblock-item-value">V, S, M *</div>
  </div>
  <div class="ddb-statblock-item ddb-statblock-item-duration">
    <div class="ddb-statblock-item-label">Duration</div><div class="ddb-statblock-item-value">Instantaneous</div>
  </div>
  <div class="ddb-statblock-item ddb-statblock-item-school">
    <div class="ddb-statblock-item-label">School</div><div class="ddb-statblock-item-value">Evocation</div>
  </div>
  <div class="ddb-statblock-item ddb-statblock-item-attack-save">
    <div class="ddb-statblock-item-label">Attack/Save</div><div class="ddb-statblock-item-value">DEX Save</div>
  </div>
</div>
<div class="more-info-content">
  <p>A bright streak flashes from you to a point you choose within range and then blossoms into an explosion of flame. Each creature in a 20-foot-radius Sphere centered on that point makes a Dexterity saving throw, taking 8d6 Fire damage on a failed save or half as much damage on a successful one.</p>
  <p>Using a Higher-Level Spell Slot. The damage increases by 1d6 for each spell slot level above 3.</p>
  <p>* - (a tiny ball of bat guano and sulfur)</p>
</div>
<span class="components-blurb">* - (a tiny ball of bat guano and sulfur)</span>
<div class="spell-tags"><span class="spell-tag">Damage</span></div>
<div class="available-for"><span class="class-tag">Sorcerer</span><span class="class-tag">Wizard</span></div>
<p class="spell-source">Player's Handbook</p>
</body>
</html>
"""


def _rogue_api() -> dict[str, Any]:
    return {
        "id": 2190883,
        "name": "Rogue",
        "description": "<p>Rogues rely on cunning, stealth, and their foes' vulnerabilities.</p>",
        "source": "Player's Handbook",
        "tags": ["Martial"],
        "prerequisites": ["Dexterity 13"],
        "hitDie": 8,
        "primaryAbility": ["Dexterity"],
        "savingThrowProficiencies": ["Dexterity", "Intelligence"],
        "armorProficiencies": ["Light armor"],
        "weaponProficiencies": "Simple weapons, Martial weapons that have the Finesse or Light property",
        "toolProficiencies": ["Thieves' Tools"],
        "skillProficiencies": (
            "Choose 4: Acrobatics, Athletics, Deception, Insight, Intimidation, Investigation, "
            "Perception, Persuasion, Sleight of Hand, or Stealth"
        ),
        "startingEquipment": (
            "Choose A or B: (A) Leather Armor, 2 Daggers, Shortsword, Thieves' Tools, "
            "Burglar's Pack, and 8 GP; or (B) 100 GP"
        ),
        "classFeatures": [
            {"name": "Expertise", "description": "<p>You gain Expertise.</p>", "requiredLevel": 1},
            {"name": "Sneak Attack", "description": "<p>Once per turn, deal an extra 1d6.</p>", "requiredLevel": 1},
            {"name": "Cunning Action", "description": "<p>Dash, Disengage, or Hide.</p>", "requiredLevel": 2},
        ],
        "subclasses": [
            {
                "name": "Thief",
                "description": "<p>Hunt for treasure.</p>",
                "classFeatures": [
                    {"name": "Fast Hands", "description": "<p>Use an object.</p>", "requiredLevel": 3},
                ],
            }
        ],
        "sidebars": ["Becoming a Rogue: gain all the traits in the Core Rogue Traits table."],
    }


def _fireball_api() -> dict[str, Any]:
    return {
        "id": 2618,
        "name": "Fireball",
        "level": 3,
        "school": "Evocation",
        "activation": {"activationTime": 1, "activationType": 1},
        "range": {"origin": "Ranged", "rangeValue": 150, "aoeType": "Sphere", "aoeValue": 20},
        "duration": {"durationType": "Instantaneous"},
        "components": [1, 2, 3],
        "componentsDescription": "a tiny ball of bat guano and sulfur",
        "ritual": False,
        "concentration": False,
        "description": (
            "<p>A bright streak flashes from you to a point you choose within range. Each creature in a "
            "20-foot-radius Sphere makes a Dexterity saving throw, taking 8d6 Fire damage on a failed save "
            "or half as much damage on a successful one.</p>"
            "<p><strong>Using a Higher-Level Spell Slot.</strong> The damage increases by 1d6 for each "
            "spell slot level above 3.</p>"
        ),
        "tags": ["Damage"],
        "classes": ["Sorcerer", "Wizard"],
        "source": "Player's Handbook",
        "requiresSavingThrow": True,
        "saveDcAbilityId": 2,
        "modifiers": [
            {
                "type": "damage",
                "subType": "fire",
                "die": {"diceCount": 8, "diceValue": 6},
                "atHigherLevels": {
                    "higherLevelDefinitions": [{"level": 4, "dice": {"diceCount": 1, "diceValue": 6}}],
                },
            }
        ],
    }


def _cure_wounds_api() -> dict[str, Any]:
    return {
        "id": 2609,
        "name": "Cure Wounds",
        "level": 1,
        "school": "Abjuration",
        "activation": {"activationTime": 1, "activationType": 1},
        "range": {"origin": "Touch"},
        "duration": {"durationType": "Instantaneous"},
        "components": [2],
        "description": (
            "<p>A creature you touch regains a number of Hit Points equal to 2d8 plus your spellcasting "
            "ability modifier.</p>"
            "<p><strong>Using a Higher-Level Spell Slot.</strong> The healing increases by 2d8 for each "
            "spell slot level above 1.</p>"
        ),
        "tags": ["Healing"],
        "classes": ["Cleric", "Druid"],
        "healingDice": [{"diceCount": 2, "diceValue": 8, "usePrimaryStat": True}],
    }


@pytest.fixture
def rogue_api_payload() -> dict[str, Any]:
    return _rogue_api()


@pytest.fixture
def rogue_html() -> str:
    return ROGUE_HTML


@pytest.fixture
def fireball_api_payload() -> dict[str, Any]:
    return _fireball_api()


@pytest.fixture
def fireball_html() -> str:
    return FIREBALL_HTML


@pytest.fixture
def cure_wounds_api_payload() -> dict[str, Any]:
    return _cure_wounds_api()


@pytest.fixture
def make_document():
    def _make(payload: Any, kind: ContentKind, channel: Channel, content_id: str = "sample") -> RawDocument:
        return RawDocument(content_id=content_id, content_kind=kind, channel=channel, payload=payload)

    return _make
