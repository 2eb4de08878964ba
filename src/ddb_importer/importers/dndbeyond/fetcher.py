"""
Read and fetch D&D Beyond character data.

This module handles the text pasted from the browser extension's
"Copy Character Data" action, saved pastes on disk, and re-fetching
a linked character from the D&D Beyond character service.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import httpx

from ..base import ImportError, InvalidPayloadError
from .schema import (
    DDB_API_BASE_URL,
    DDB_CHARACTER_PAGE_URL,
    DDB_CHARACTER_URL_PATTERN,
    ENVELOPE_DATA_KEY,
    ENVELOPE_ID_KEY,
    ENVELOPE_SECTION_KEY,
    ENVELOPE_URL_KEY,
)

logger = logging.getLogger("ddb-importer")


def _unwrap_envelope(envelope: Any) -> dict:
    """Return the characterData section of a decoded envelope.

    Raises:
        InvalidPayloadError: If the envelope is not an object or has no
            characterData object.
    """
    if not isinstance(envelope, dict):
        raise InvalidPayloadError(
            f"Invalid data format: expected a JSON object, got {type(envelope).__name__}. "
            "Please use 'Copy Character Data' from the extension."
        )

    section = envelope.get(ENVELOPE_SECTION_KEY)
    if not isinstance(section, dict):
        raise InvalidPayloadError(
            "Invalid data format. Please use 'Copy Character Data' from the extension."
        )

    return section


def parse_payload(raw: str) -> dict:
    """
    Parse text pasted from the D&D Beyond browser extension.

    Args:
        raw: The raw transport envelope, as pasted by the user

    Returns:
        The ``characterData`` section (``data``, ``characterUrl``, ``characterId``)

    Raises:
        InvalidPayloadError: If the text is empty, not JSON, or not an envelope
    """
    if not raw or not raw.strip():
        raise InvalidPayloadError(
            "Please paste character data from D&D Beyond extension"
        )

    try:
        envelope = json.loads(raw)
    except json.JSONDecodeError as e:
        raise InvalidPayloadError(
            f"Pasted data is not valid JSON: {e}"
        ) from None

    return _unwrap_envelope(envelope)


def read_payload_file(file_path: str | Path) -> dict:
    """
    Read and validate a saved extension paste from disk.

    Args:
        file_path: Path to the JSON file

    Returns:
        The ``characterData`` section

    Raises:
        InvalidPayloadError: If file not found, invalid JSON, or unrecognized format
    """
    path = Path(file_path)

    try:
        raw = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise InvalidPayloadError(
            f"Character file not found: {file_path}"
        ) from None
    except OSError as e:
        raise InvalidPayloadError(
            f"Failed to read character file: {e}"
        ) from None

    return parse_payload(raw)


def extract_character_id(url_or_id: str) -> int:
    """
    Extract character ID from a D&D Beyond URL or bare numeric ID.

    Accepts:
    - Full URL: https://www.dndbeyond.com/characters/12345678
    - Builder URL: https://www.dndbeyond.com/characters/12345678/builder
    - Bare ID: "12345678"

    Args:
        url_or_id: D&D Beyond character URL or numeric ID string

    Returns:
        Character ID as integer

    Raises:
        ImportError: If the input doesn't match expected format
    """
    match = DDB_CHARACTER_URL_PATTERN.search(url_or_id)
    if match:
        return int(match.group(1))

    try:
        return int(url_or_id)
    except ValueError:
        raise ImportError(
            f"Invalid D&D Beyond character URL or ID: '{url_or_id}'. "
            "Expected format: https://www.dndbeyond.com/characters/12345678 or just the numeric ID."
        ) from None


async def fetch_character(
    url_or_id: str,
    *,
    timeout: float = 10.0,
    base_url: str = DDB_API_BASE_URL,
) -> dict:
    """
    Fetch a public character from the D&D Beyond character service.

    The response is reshaped into the same ``characterData`` section the
    browser extension produces, so it can go straight to the mapper.

    Args:
        url_or_id: D&D Beyond character URL or numeric ID
        timeout: Request timeout in seconds
        base_url: Character service endpoint

    Returns:
        A characterData section with ``data``, ``characterUrl`` and ``characterId``

    Raises:
        ImportError: If fetch fails, character not found, or character is private
    """
    character_id = extract_character_id(url_or_id)
    api_url = f"{base_url}/{character_id}"
    logger.debug(f"🌐 Fetching D&D Beyond character {character_id}")

    try:
        async with httpx.AsyncClient() as client:
            response = await client.get(api_url, timeout=timeout)

            if response.status_code == 404:
                raise ImportError(
                    f"Character not found. Check the ID or URL: {character_id}"
                )
            elif response.status_code == 403:
                raise ImportError(
                    "Character is private. Set it to Public on D&D Beyond, or paste it from the extension."
                )

            response.raise_for_status()

            data = response.json()

    except httpx.TimeoutException:
        raise ImportError(
            "D&D Beyond is not responding. Try again later or paste from the extension."
        ) from None
    except httpx.HTTPStatusError as e:
        raise ImportError(
            f"D&D Beyond returned HTTP {e.response.status_code}: {e.response.reason_phrase}"
        ) from None
    except httpx.RequestError as e:
        raise ImportError(
            f"Failed to connect to D&D Beyond: {e}"
        ) from None

    # The service wraps the character in {"data": {...}}
    if isinstance(data, dict) and ENVELOPE_DATA_KEY in data:
        data = data[ENVELOPE_DATA_KEY]

    if not isinstance(data, dict):
        raise ImportError("Invalid response from D&D Beyond: expected JSON object")

    return {
        ENVELOPE_DATA_KEY: data,
        ENVELOPE_URL_KEY: f"{DDB_CHARACTER_PAGE_URL}/{character_id}",
        ENVELOPE_ID_KEY: str(character_id),
    }
