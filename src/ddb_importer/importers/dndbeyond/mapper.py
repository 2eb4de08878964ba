"""
Core mapper functions for translating D&D Beyond JSON to a normalized sheet.

This module contains the mapping logic that converts the extension's
``characterData`` section into the dnd5e-shaped NormalizedSheet. Each mapper
function returns a (result, warnings) tuple so callers can report which
fields fell back to defaults. Nothing here performs I/O.
"""

from __future__ import annotations

import math
from typing import Any

from ddb_importer.models import (
    AbilityValue,
    ArmorClass,
    Attributes,
    ClassLevel,
    Details,
    HitPoints,
    Movement,
    NormalizedSheet,
    Traits,
)

from ..base import MalformedCharacterError
from .schema import (
    ALIGNMENT_MAP,
    DEFAULT_ABILITY_SCORE,
    DEFAULT_ARMOR_CLASS,
    DEFAULT_CHARACTER_NAME,
    DEFAULT_CLASS_KEY,
    DEFAULT_CLASS_LEVEL,
    DEFAULT_PRIMARY_LEVEL,
    DEFAULT_SIZE,
    DEFAULT_WALK_SPEED,
    ENVELOPE_DATA_KEY,
    STAT_ID_MAP,
    UNKNOWN_ALIGNMENT,
)


def _section(obj: Any, key: str) -> dict:
    """Return ``obj[key]`` if it is a dict, else an empty dict."""
    if isinstance(obj, dict):
        value = obj.get(key)
        if isinstance(value, dict):
            return value
    return {}


def _number_or_none(value: Any) -> int | float | None:
    """Return a JSON number as-is; anything else counts as absent."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    # NaN and Infinity are accepted by json.loads but are not usable numbers
    if isinstance(value, float) and math.isfinite(value):
        return value
    return None


def _class_entries(ddb: dict) -> list[dict]:
    classes = ddb.get("classes")
    if not isinstance(classes, list):
        return []
    return [c for c in classes if isinstance(c, dict)]


def _source_data(character_data: Any) -> dict:
    """Extract the ``data`` object from a characterData section.

    Raises:
        MalformedCharacterError: If the section or its data object is missing.
    """
    if not isinstance(character_data, dict):
        raise MalformedCharacterError(
            f"Character data must be a JSON object, got {type(character_data).__name__}"
        )
    data = character_data.get(ENVELOPE_DATA_KEY)
    if not isinstance(data, dict):
        raise MalformedCharacterError(
            "Character data has no 'data' object. "
            "Use 'Copy Character Data' from the extension and paste the whole result."
        )
    return data


def proficiency_bonus(level: int | float) -> int:
    """Proficiency bonus for a class level: ceil(level / 4) + 1."""
    return math.ceil(level / 4) + 1


def alignment_code(alignment_id: Any) -> str:
    """Look up the two-letter alignment code, or "" for unknown IDs."""
    if isinstance(alignment_id, bool) or not isinstance(alignment_id, int):
        return UNKNOWN_ALIGNMENT
    alignment = ALIGNMENT_MAP.get(alignment_id)
    return alignment.value if alignment else UNKNOWN_ALIGNMENT


def character_name(character_data: Any) -> str:
    """Display name of the character, or the fixed fallback name."""
    name = _source_data(character_data).get("name")
    return name if isinstance(name, str) and name else DEFAULT_CHARACTER_NAME


def map_abilities(ddb: dict) -> tuple[dict[str, AbilityValue], list[str]]:
    """Map ability scores from the DDB ``stats`` array.

    Args:
        ddb: The source character (the ``data`` object).

    Returns:
        Tuple of (abilities_dict, warnings). Only abilities listed in
        ``stats`` appear; unknown stat IDs are dropped.
    """
    warnings: list[str] = []
    abilities: dict[str, AbilityValue] = {}

    stats = ddb.get("stats")
    if not isinstance(stats, list):
        warnings.append("No ability scores found")
        return abilities, warnings

    for stat in stats:
        if not isinstance(stat, dict):
            continue
        stat_id = _number_or_none(stat.get("id"))
        ability = STAT_ID_MAP.get(stat_id) if stat_id is not None else None
        if ability is None:
            warnings.append(f"Ignoring unknown stat id {stat.get('id')!r}")
            continue

        value = _number_or_none(stat.get("value"))
        if value is None:
            warnings.append(f"No value for {ability.value.upper()}, defaulting to {DEFAULT_ABILITY_SCORE}")
            value = DEFAULT_ABILITY_SCORE
        abilities[ability.value] = AbilityValue(value=value)

    return abilities, warnings


def map_hit_points(ddb: dict) -> tuple[HitPoints, list[str]]:
    """Map current, maximum and temporary hit points.

    ``removedHitPoints`` is only subtracted when the field is present.
    Current HP is not clamped and can go negative.
    """
    warnings: list[str] = []

    base_hp = _number_or_none(ddb.get("baseHitPoints")) or 0
    bonus_hp = _number_or_none(ddb.get("bonusHitPoints")) or 0
    removed_hp = _number_or_none(ddb.get("removedHitPoints"))
    temp_hp = _number_or_none(ddb.get("temporaryHitPoints")) or 0

    hp_max = base_hp + bonus_hp
    if removed_hp is not None:
        hp_current = hp_max - removed_hp
    else:
        hp_current = hp_max

    if hp_current < 0:
        warnings.append(f"Current hit points are negative ({hp_current})")

    return HitPoints(value=hp_current, max=hp_max, temp=temp_hp), warnings


def map_attributes(ddb: dict) -> tuple[Attributes, list[str]]:
    """Map hit points, armor class, walking speed and proficiency bonus."""
    hp, warnings = map_hit_points(ddb)

    armor_class = _number_or_none(ddb.get("armorClass"))
    if armor_class is None:
        warnings.append(f"No armor class found, defaulting to {DEFAULT_ARMOR_CLASS}")
        armor_class = DEFAULT_ARMOR_CLASS

    walk = _number_or_none(_section(ddb, "speed").get("walk"))
    if walk is None:
        warnings.append(f"No walking speed found, defaulting to {DEFAULT_WALK_SPEED}")
        walk = DEFAULT_WALK_SPEED

    # Primary class is the first entry, not the highest-level one
    classes = _class_entries(ddb)
    primary_level = _number_or_none(classes[0].get("level")) if classes else None
    if not primary_level:
        primary_level = DEFAULT_PRIMARY_LEVEL

    attributes = Attributes(
        hp=hp,
        ac=ArmorClass(value=armor_class),
        speed=Movement(value=walk),
        prof=proficiency_bonus(primary_level),
    )
    return attributes, warnings


def map_details(ddb: dict) -> tuple[Details, list[str]]:
    """Map race, background, alignment and total level."""
    warnings: list[str] = []

    race = _section(ddb, "race").get("fullName") or ""
    background = _section(_section(ddb, "background"), "definition").get("name") or ""

    alignment = alignment_code(ddb.get("alignmentId"))
    if ddb.get("alignmentId") is not None and not alignment:
        warnings.append(f"Unknown alignment id {ddb.get('alignmentId')!r}")

    classes = _class_entries(ddb)
    if not classes:
        warnings.append("No classes found, total level is 0")
    level = sum(_number_or_none(c.get("level")) or 0 for c in classes)

    details = Details(
        race=race if isinstance(race, str) else "",
        background=background if isinstance(background, str) else "",
        alignment=alignment,
        level=level,
    )
    return details, warnings


def map_traits(ddb: dict) -> tuple[Traits, list[str]]:
    size = _section(ddb, "race").get("size")
    if not isinstance(size, str) or not size:
        return Traits(size=DEFAULT_SIZE), []
    return Traits(size=size), []


def map_classes(ddb: dict) -> tuple[dict[str, ClassLevel], list[str]]:
    """Map per-class levels keyed by lowercased class name.

    Two classes that lowercase to the same key collide and the later entry
    overwrites the earlier one. This is a known limitation; a warning is
    emitted so the loss is visible.
    """
    warnings: list[str] = []
    result: dict[str, ClassLevel] = {}

    for entry in _class_entries(ddb):
        name = _section(entry, "definition").get("name")
        key = name.lower() if isinstance(name, str) and name else DEFAULT_CLASS_KEY
        level = _number_or_none(entry.get("level")) or DEFAULT_CLASS_LEVEL

        if key in result:
            warnings.append(f"Class '{key}' appears more than once; keeping the later entry")
        result[key] = ClassLevel(level=level)

    return result, warnings


def map_ddb_to_sheet(character_data: Any) -> tuple[NormalizedSheet, list[str]]:
    """Orchestrate the full characterData → NormalizedSheet mapping.

    Args:
        character_data: The ``characterData`` section of the transport envelope.

    Returns:
        Tuple of (sheet, warnings).

    Raises:
        MalformedCharacterError: If there is no ``data`` object to map.
    """
    ddb = _source_data(character_data)
    all_warnings: list[str] = []

    abilities, warnings = map_abilities(ddb)
    all_warnings.extend(warnings)

    attributes, warnings = map_attributes(ddb)
    all_warnings.extend(warnings)

    details, warnings = map_details(ddb)
    all_warnings.extend(warnings)

    traits, warnings = map_traits(ddb)
    all_warnings.extend(warnings)

    classes, warnings = map_classes(ddb)
    all_warnings.extend(warnings)

    sheet = NormalizedSheet(
        name=character_name(character_data),
        abilities=abilities,
        attributes=attributes,
        details=details,
        traits=traits,
        classes=classes,
    )
    return sheet, all_warnings


def translate(character_data: Any) -> NormalizedSheet:
    """Translate a characterData section into a NormalizedSheet.

    Pure: the same input always produces an equal sheet.
    """
    sheet, _ = map_ddb_to_sheet(character_data)
    return sheet
