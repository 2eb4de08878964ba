"""
D&D Beyond JSON schema constants and lookup tables.

These map DDB's internal IDs and field names to the dnd5e sheet keys
used by the normalized character sheet.
"""

import re
from enum import Enum

# ---------------------------------------------------------------------------
# API endpoint
# ---------------------------------------------------------------------------

DDB_API_BASE_URL = "https://character-service.dndbeyond.com/character/v5/character"

# Public character page, used to rebuild a characterUrl after a fetch
DDB_CHARACTER_PAGE_URL = "https://www.dndbeyond.com/characters"

# ---------------------------------------------------------------------------
# URL parsing
# ---------------------------------------------------------------------------

# Matches: https://www.dndbeyond.com/characters/12345678[/anything]
DDB_CHARACTER_URL_PATTERN = re.compile(
    r"(?:https?://)?(?:www\.)?dndbeyond\.com/characters/(\d+)"
)

# ---------------------------------------------------------------------------
# Transport envelope keys (browser extension "Copy Character Data")
# ---------------------------------------------------------------------------

ENVELOPE_SECTION_KEY = "characterData"
ENVELOPE_DATA_KEY = "data"
ENVELOPE_URL_KEY = "characterUrl"
ENVELOPE_ID_KEY = "characterId"

# ---------------------------------------------------------------------------
# Ability score stat IDs
# ---------------------------------------------------------------------------


class Ability(str, Enum):
    """dnd5e ability keys."""
    STR = "str"
    DEX = "dex"
    CON = "con"
    INT = "int"
    WIS = "wis"
    CHA = "cha"


STAT_ID_MAP: dict[int, Ability] = {
    1: Ability.STR,
    2: Ability.DEX,
    3: Ability.CON,
    4: Ability.INT,
    5: Ability.WIS,
    6: Ability.CHA,
}


# ---------------------------------------------------------------------------
# Alignment IDs
# ---------------------------------------------------------------------------


class Alignment(str, Enum):
    """dnd5e alignment codes."""
    LAWFUL_GOOD = "lg"
    NEUTRAL_GOOD = "ng"
    CHAOTIC_GOOD = "cg"
    LAWFUL_NEUTRAL = "ln"
    TRUE_NEUTRAL = "tn"
    CHAOTIC_NEUTRAL = "cn"
    LAWFUL_EVIL = "le"
    NEUTRAL_EVIL = "ne"
    CHAOTIC_EVIL = "ce"


ALIGNMENT_MAP: dict[int, Alignment] = {
    1: Alignment.LAWFUL_GOOD,
    2: Alignment.NEUTRAL_GOOD,
    3: Alignment.CHAOTIC_GOOD,
    4: Alignment.LAWFUL_NEUTRAL,
    5: Alignment.TRUE_NEUTRAL,
    6: Alignment.CHAOTIC_NEUTRAL,
    7: Alignment.LAWFUL_EVIL,
    8: Alignment.NEUTRAL_EVIL,
    9: Alignment.CHAOTIC_EVIL,
}

# Returned for unknown or absent alignment IDs
UNKNOWN_ALIGNMENT = ""

# ---------------------------------------------------------------------------
# Defaults for absent source fields
# ---------------------------------------------------------------------------

DEFAULT_ABILITY_SCORE = 10
DEFAULT_ARMOR_CLASS = 10
DEFAULT_WALK_SPEED = 30
DEFAULT_SIZE = "med"
DEFAULT_CLASS_KEY = "class"
DEFAULT_CLASS_LEVEL = 1
DEFAULT_PRIMARY_LEVEL = 1
DEFAULT_CHARACTER_NAME = "Imported Character"
