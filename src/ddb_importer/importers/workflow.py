"""
Import workflow: find-or-create an actor and write a translated sheet to it.

The workflow depends only on two ports supplied by the host adapter:

- ``CharacterStore``: actor lookup and upsert
- ``Notifier``: user-facing status messages

Translation happens completely before the store is touched, so a failed
import never leaves a half-written actor behind.
"""

from __future__ import annotations

import logging
from typing import Protocol

from pydantic import BaseModel, Field, ValidationError

from ddb_importer.config import ImporterConfig
from ddb_importer.models import ImportMetadata, NormalizedSheet

from .base import ImportError, ImportResult, InvalidPayloadError
from .dndbeyond.fetcher import fetch_character, parse_payload
from .dndbeyond.mapper import map_ddb_to_sheet
from .dndbeyond.schema import DDB_API_BASE_URL, ENVELOPE_ID_KEY, ENVELOPE_URL_KEY

logger = logging.getLogger("ddb-importer")


# ---------------------------------------------------------------------------
# Ports
# ---------------------------------------------------------------------------


class CharacterStore(Protocol):
    """Protocol for the host's actor store."""

    def find_existing(self, name: str, type: str = "character") -> str | None:
        """Return the identity of an actor with this exact name and type, if any."""
        ...

    def upsert(
        self, identity: str | None, sheet: NormalizedSheet, metadata: ImportMetadata
    ) -> str:
        """Create an actor (identity is None) or update one, returning its identity."""
        ...

    def get_metadata(self, identity: str) -> ImportMetadata | None:
        """Return the source link stored on an actor, if any."""
        ...

    def get_name(self, identity: str) -> str | None:
        """Return the stored display name of an actor, if it exists."""
        ...


class Notifier(Protocol):
    """Protocol for user-facing notifications."""

    def info(self, message: str) -> None: ...

    def success(self, message: str) -> None: ...

    def error(self, message: str) -> None: ...


class LinkStatus(BaseModel):
    """What the import dialog shows about an actor's D&D Beyond link."""
    character_url: str = ""
    last_sync: str = Field(default="Never", description="Last sync time, or 'Never'")
    has_stored_url: bool = False


# ---------------------------------------------------------------------------
# Workflow
# ---------------------------------------------------------------------------


class CharacterImporter:
    """Runs paste imports and URL syncs against an injected store.

    Attributes:
        store: Actor store port
        notifier: Notification port
        config: Workflow settings
    """

    def __init__(
        self,
        store: CharacterStore,
        notifier: Notifier,
        config: ImporterConfig | None = None,
    ) -> None:
        self.store = store
        self.notifier = notifier
        self.config = config or ImporterConfig()

    def import_payload(self, raw: str, target: str | None = None) -> ImportResult:
        """Import text pasted from the browser extension.

        Args:
            raw: The pasted transport envelope
            target: Identity of the actor to update. When omitted, an actor
                with the character's name is updated, or a new one created.

        Returns:
            ImportResult describing the written actor

        Raises:
            ImportError: If the paste cannot be parsed or translated
        """
        try:
            character_data = parse_payload(raw)
        except ImportError as e:
            logger.error(f"❌ Rejected pasted payload: {e}")
            self.notifier.error(str(e))
            raise

        return self.import_character_data(character_data, target=target)

    def import_character_data(
        self, character_data: dict, target: str | None = None
    ) -> ImportResult:
        """Import an already-decoded ``characterData`` section."""
        self.notifier.info("Importing character...")

        try:
            result = self._write(character_data, target)
        except ImportError as e:
            logger.error(f"❌ Import failed: {e}")
            self.notifier.error(f"Import failed: {e}")
            raise

        self.notifier.success(f'Character "{result.name}" imported successfully!')
        return result

    async def sync(self, identity: str) -> ImportResult:
        """Re-fetch a linked character from D&D Beyond and update its actor.

        Raises:
            ImportError: If the actor has no stored link or the fetch fails
        """
        metadata = self.store.get_metadata(identity)
        source = None
        if metadata is not None:
            source = metadata.character_url or metadata.character_id

        if not source:
            message = (
                "No D&D Beyond link stored for this character. "
                "Import it from the extension first."
            )
            self.notifier.error(message)
            raise ImportError(message)

        self.notifier.info("Syncing from D&D Beyond...")
        try:
            character_data = await fetch_character(
                source,
                timeout=self.config.fetch_timeout,
                base_url=self.config.api_base_url or DDB_API_BASE_URL,
            )
        except ImportError as e:
            logger.error(f"❌ Sync fetch failed for {identity}: {e}")
            self.notifier.error(f"Import failed: {e}")
            raise

        return self.import_character_data(character_data, target=identity)

    def link_status(self, identity: str | None) -> LinkStatus:
        """Describe the stored D&D Beyond link of an actor."""
        metadata = self.store.get_metadata(identity) if identity else None
        if metadata is None:
            return LinkStatus()

        return LinkStatus(
            character_url=metadata.character_url or "",
            last_sync=metadata.last_sync.isoformat(timespec="seconds"),
            has_stored_url=bool(metadata.character_url),
        )

    def _write(self, character_data: dict, target: str | None) -> ImportResult:
        # Translate first; nothing below runs if the data is malformed
        sheet, warnings = map_ddb_to_sheet(character_data)
        for warning in warnings:
            logger.debug(f"⚠️ {sheet.name}: {warning}")

        try:
            metadata = ImportMetadata(
                character_url=character_data.get(ENVELOPE_URL_KEY),
                character_id=character_data.get(ENVELOPE_ID_KEY),
            )
        except ValidationError as e:
            raise InvalidPayloadError(
                f"Invalid D&D Beyond link in character data: {e.error_count()} bad field(s) "
                f"({', '.join(str(err['loc'][0]) for err in e.errors())})"
            ) from None

        identity = target
        if identity is None:
            identity = self.store.find_existing(sheet.name, type=self.config.actor_type)

        created = identity is None
        # An update keeps the actor's stored name
        name = sheet.name if created else (self.store.get_name(identity) or sheet.name)
        identity = self.store.upsert(identity, sheet, metadata)

        if created:
            logger.info(f"✅ Created new character '{name}' ({identity})")
            self.notifier.info(f"Created new character: {name}")
        else:
            logger.info(f"✅ Updated character '{name}' ({identity})")
            self.notifier.info(f"Updated character: {name}")

        return ImportResult(
            identity=identity,
            name=name,
            created=created,
            sheet=sheet,
            metadata=metadata,
            warnings=warnings,
        )
