"""Tests for the find-or-create import workflow."""

import json
from datetime import datetime, timezone
from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest

from ddb_importer.config import ImporterConfig
from ddb_importer.importers import CharacterImporter
from ddb_importer.importers.base import (
    ImportError,
    InvalidPayloadError,
    MalformedCharacterError,
)
from ddb_importer.models import ImportMetadata, NormalizedSheet
from ddb_importer.storage import JSONCharacterStore

FIXTURE = Path(__file__).parent / "fixtures" / "ddb_extension_paste.json"


class RecordingStore:
    """In-memory CharacterStore that records every call."""

    def __init__(self) -> None:
        self.actors: dict[str, tuple[str, str, NormalizedSheet, ImportMetadata]] = {}
        self.upserts: list[tuple[str | None, NormalizedSheet, ImportMetadata]] = []
        self.lookups: list[tuple[str, str]] = []

    def add(self, identity: str, name: str, type: str = "character", metadata: ImportMetadata | None = None):
        self.actors[identity] = (name, type, None, metadata)

    def find_existing(self, name, type="character"):
        self.lookups.append((name, type))
        for identity, (actor_name, actor_type, _, _) in self.actors.items():
            if actor_name == name and actor_type == type:
                return identity
        return None

    def upsert(self, identity, sheet, metadata):
        self.upserts.append((identity, sheet, metadata))
        if identity is None:
            identity = f"actor{len(self.actors) + 1}"
            self.actors[identity] = (sheet.name, "character", sheet, metadata)
        else:
            name, type, _, _ = self.actors[identity]
            self.actors[identity] = (name, type, sheet, metadata)
        return identity

    def get_metadata(self, identity):
        entry = self.actors.get(identity)
        return entry[3] if entry else None

    def get_name(self, identity):
        entry = self.actors.get(identity)
        return entry[0] if entry else None


class RecordingNotifier:

    def __init__(self) -> None:
        self.messages: list[tuple[str, str]] = []

    def info(self, message):
        self.messages.append(("info", message))

    def success(self, message):
        self.messages.append(("success", message))

    def error(self, message):
        self.messages.append(("error", message))

    def of(self, level):
        return [m for lvl, m in self.messages if lvl == level]


@pytest.fixture
def store():
    return RecordingStore()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def importer(store, notifier):
    return CharacterImporter(store, notifier)


@pytest.fixture
def paste():
    return FIXTURE.read_text()


class TestImportPayload:
    """Test importing pasted extension data."""

    def test_creates_new_character(self, importer, store, notifier, paste):
        result = importer.import_payload(paste)

        assert result.created is True
        assert result.name == "Thalion Nightbreeze"
        assert result.identity == "actor1"
        assert store.lookups == [("Thalion Nightbreeze", "character")]

        identity, sheet, metadata = store.upserts[0]
        assert identity is None
        assert sheet.attributes.hp.value == 44
        assert metadata.character_url == "https://www.dndbeyond.com/characters/87654321"
        assert metadata.character_id == "87654321"

        assert notifier.of("info") == ["Importing character...", "Created new character: Thalion Nightbreeze"]
        assert notifier.of("success") == ['Character "Thalion Nightbreeze" imported successfully!']
        assert notifier.of("error") == []

    def test_updates_character_with_same_name(self, importer, store, notifier, paste):
        store.add("abc123", "Thalion Nightbreeze")

        result = importer.import_payload(paste)

        assert result.created is False
        assert result.identity == "abc123"
        assert store.upserts[0][0] == "abc123"
        assert "Updated character: Thalion Nightbreeze" in notifier.of("info")

    def test_same_name_other_type_is_not_matched(self, importer, store, paste):
        store.add("npc1", "Thalion Nightbreeze", type="npc")

        result = importer.import_payload(paste)

        assert result.created is True
        assert result.identity != "npc1"

    def test_target_wins_over_name_lookup(self, importer, store, paste):
        store.add("abc123", "Thalion Nightbreeze")
        store.add("target", "Someone Else")

        result = importer.import_payload(paste, target="target")

        assert result.identity == "target"
        assert result.created is False
        assert store.lookups == []

    def test_update_reports_stored_name(self, importer, store, notifier):
        store.add("bob-id", "Bob")

        result = importer.import_payload('{"characterData": {"data": {"name": "Alice"}}}', target="bob-id")

        assert result.name == "Bob"
        assert store.actors["bob-id"][0] == "Bob"
        assert "Updated character: Bob" in notifier.of("info")
        assert notifier.of("success") == ['Character "Bob" imported successfully!']

    def test_configured_actor_type(self, store, notifier, paste):
        importer = CharacterImporter(store, notifier, ImporterConfig(actor_type="pc"))

        importer.import_payload(paste)

        assert store.lookups == [("Thalion Nightbreeze", "pc")]

    def test_fallback_name(self, importer, store):
        result = importer.import_payload('{"characterData": {"data": {}}}')

        assert result.name == "Imported Character"
        assert store.lookups == [("Imported Character", "character")]

    def test_metadata_timestamp(self, importer, paste):
        before = datetime.now(timezone.utc)
        result = importer.import_payload(paste)

        assert result.metadata.last_sync >= before

    def test_numeric_character_id_is_stringified(self, importer):
        result = importer.import_payload('{"characterData": {"data": {}, "characterId": 555}}')

        assert result.metadata.character_id == "555"
        assert result.metadata.character_url is None

    def test_numeric_link_fields_are_stringified(self, importer):
        result = importer.import_payload('{"characterData": {"data": {}, "characterId": 123.0, "characterUrl": 5}}')

        assert result.metadata.character_id == "123"
        assert result.metadata.character_url == "5"

    @pytest.mark.parametrize("url", [["a"], {"href": "x"}, True])
    def test_unusable_link_fields_upsert_nothing(self, importer, store, notifier, url):
        payload = json.dumps({"characterData": {"data": {"name": "Linkless"}, "characterUrl": url}})

        with pytest.raises(InvalidPayloadError):
            importer.import_payload(payload)

        assert store.upserts == []
        assert notifier.of("error")[0].startswith("Import failed:")
        assert notifier.of("success") == []

    def test_warnings_are_reported(self, importer):
        result = importer.import_payload('{"characterData": {"data": {"stats": [{"id": 7, "value": 3}]}}}')

        assert any("7" in w for w in result.warnings)

    def test_blank_paste(self, importer, store, notifier):
        with pytest.raises(InvalidPayloadError):
            importer.import_payload("")

        assert store.upserts == []
        assert notifier.of("error") == ["Please paste character data from D&D Beyond extension"]

    def test_invalid_envelope_upserts_nothing(self, importer, store, notifier):
        with pytest.raises(InvalidPayloadError):
            importer.import_payload('{"data": {"name": "No Envelope"}}')

        assert store.upserts == []
        assert store.lookups == []
        assert len(notifier.of("error")) == 1
        assert notifier.of("success") == []

    def test_malformed_character_upserts_nothing(self, importer, store, notifier):
        with pytest.raises(MalformedCharacterError):
            importer.import_payload('{"characterData": {"characterId": "1"}}')

        assert store.upserts == []
        assert notifier.of("error")[0].startswith("Import failed:")


class TestImportCharacterData:

    def test_import_character_data(self, importer, store):
        result = importer.import_character_data({"data": {"name": "Direct"}})

        assert result.name == "Direct"
        assert len(store.upserts) == 1


class TestSync:
    """Test re-syncing a linked character from D&D Beyond."""

    @pytest.mark.asyncio
    async def test_sync(self, importer, store, notifier):
        link = ImportMetadata(
            character_url="https://www.dndbeyond.com/characters/87654321",
            character_id="87654321",
        )
        store.add("abc123", "Thalion Nightbreeze", metadata=link)
        fetched = {
            "data": {"name": "Thalion Nightbreeze", "baseHitPoints": 60},
            "characterUrl": "https://www.dndbeyond.com/characters/87654321",
            "characterId": "87654321",
        }

        with patch(
            "ddb_importer.importers.workflow.fetch_character",
            new=AsyncMock(return_value=fetched),
        ) as fetch:
            result = await importer.sync("abc123")

        fetch.assert_awaited_once()
        assert fetch.call_args.args[0] == "https://www.dndbeyond.com/characters/87654321"
        assert fetch.call_args.kwargs["timeout"] == 10.0
        assert result.identity == "abc123"
        assert result.created is False
        assert result.sheet.attributes.hp.max == 60
        assert "Syncing from D&D Beyond..." in notifier.of("info")

    @pytest.mark.asyncio
    async def test_sync_falls_back_to_character_id(self, importer, store):
        store.add("abc123", "Someone", metadata=ImportMetadata(character_id="42"))

        with patch(
            "ddb_importer.importers.workflow.fetch_character",
            new=AsyncMock(return_value={"data": {"name": "Someone"}}),
        ) as fetch:
            await importer.sync("abc123")

        assert fetch.call_args.args[0] == "42"

    @pytest.mark.asyncio
    async def test_sync_without_link(self, importer, store, notifier):
        store.add("abc123", "Unlinked")

        with pytest.raises(ImportError) as exc_info:
            await importer.sync("abc123")

        assert "No D&D Beyond link" in str(exc_info.value)
        assert store.upserts == []
        assert len(notifier.of("error")) == 1

    @pytest.mark.asyncio
    async def test_sync_fetch_failure(self, importer, store, notifier):
        store.add("abc123", "Linked", metadata=ImportMetadata(character_url="https://www.dndbeyond.com/characters/1"))

        with patch(
            "ddb_importer.importers.workflow.fetch_character",
            new=AsyncMock(side_effect=ImportError("Character is private.")),
        ):
            with pytest.raises(ImportError):
                await importer.sync("abc123")

        assert store.upserts == []
        assert notifier.of("error") == ["Import failed: Character is private."]


class TestLinkStatus:

    def test_never_synced(self, importer):
        status = importer.link_status(None)

        assert status.has_stored_url is False
        assert status.last_sync == "Never"
        assert status.character_url == ""

    def test_linked(self, importer, store):
        when = datetime(2026, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
        store.add("abc123", "Linked", metadata=ImportMetadata(
            character_url="https://www.dndbeyond.com/characters/1", last_sync=when,
        ))

        status = importer.link_status("abc123")

        assert status.has_stored_url is True
        assert status.character_url == "https://www.dndbeyond.com/characters/1"
        assert status.last_sync == "2026-01-02T03:04:05+00:00"


class TestWithJSONStore:
    """Run the workflow end to end against the bundled JSON store."""

    def test_import_twice_updates_same_actor(self, tmp_path, notifier, paste):
        store = JSONCharacterStore(data_dir=tmp_path)
        importer = CharacterImporter(store, notifier)

        first = importer.import_payload(paste)
        second = importer.import_payload(paste)

        assert first.created is True
        assert second.created is False
        assert first.identity == second.identity
        assert len(store.list_actors()) == 1

        status = importer.link_status(first.identity)
        assert status.has_stored_url is True
