"""
Character import from D&D Beyond.

Currently supports:
- Text pasted from the browser extension's "Copy Character Data" action
- Saved pastes on disk
- Re-fetching a linked public character by URL
"""

from .dndbeyond.fetcher import fetch_character, parse_payload, read_payload_file
from .dndbeyond.mapper import map_ddb_to_sheet, translate
from .base import (
    ImportResult,
    ImportError,
    InvalidCharacterDataError,
    InvalidPayloadError,
    MalformedCharacterError,
    MalformedInputError,
)
from .workflow import CharacterImporter, CharacterStore, LinkStatus, Notifier

__all__ = [
    "fetch_character",
    "parse_payload",
    "read_payload_file",
    "map_ddb_to_sheet",
    "translate",
    "ImportResult",
    "ImportError",
    "InvalidPayloadError",
    "InvalidCharacterDataError",
    "MalformedCharacterError",
    "MalformedInputError",
    "CharacterImporter",
    "CharacterStore",
    "Notifier",
    "LinkStatus",
]
