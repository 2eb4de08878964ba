"""
Storage layer for imported characters.
Handles persistence of actor records to JSON files.
"""

import json
import logging
from pathlib import Path

from .models import ActorRecord, ImportMetadata, NormalizedSheet

logger = logging.getLogger("ddb-importer")


class JSONCharacterStore:
    """A ``CharacterStore`` that keeps one JSON file per actor.

    Layout: ``<data_dir>/actors/<id>.json``. All records are loaded into
    memory on construction and written through on every upsert.
    """

    def __init__(self, data_dir: str | Path = "ddb_data", flag_scope: str = "nevelish-ddb-importer"):
        self.data_dir = Path(data_dir)
        self.flag_scope = flag_scope
        logger.debug(f"📂 Initializing JSONCharacterStore with data_dir: {self.data_dir.resolve()}")

        self._actors_dir = self.data_dir / "actors"
        self._actors_dir.mkdir(parents=True, exist_ok=True)

        self._actors: dict[str, ActorRecord] = {}
        self._load_actors()

    def _load_actors(self) -> None:
        for path in sorted(self._actors_dir.glob("*.json")):
            try:
                with path.open("r", encoding="utf-8") as f:
                    record = ActorRecord.model_validate(json.load(f))
            except (OSError, ValueError) as e:
                logger.error(f"❌ Skipping unreadable actor file {path.name}: {e}")
                continue
            self._actors[record.id] = record
        logger.debug(f"📂 Loaded {len(self._actors)} actors")

    def _save_actor(self, record: ActorRecord) -> None:
        path = self._actors_dir / f"{record.id}.json"
        with path.open("w", encoding="utf-8") as f:
            f.write(record.model_dump_json(indent=2))

    # --- CharacterStore port ---

    def find_existing(self, name: str, type: str = "character") -> str | None:
        """Return the id of the first actor with this exact name and type."""
        for record in self._actors.values():
            if record.name == name and record.type == type:
                return record.id
        return None

    def upsert(
        self, identity: str | None, sheet: NormalizedSheet, metadata: ImportMetadata
    ) -> str:
        """Create a new actor or replace the sheet of an existing one.

        Updates keep the actor's name and any flags outside this importer's
        scope; the importer's own flag is replaced.

        Raises:
            KeyError: If ``identity`` does not name a stored actor.
        """
        if identity is None:
            record = ActorRecord(
                name=sheet.name,
                system=sheet,
                flags={self.flag_scope: metadata},
            )
            logger.debug(f"✨ Creating actor '{record.name}' ({record.id})")
        else:
            existing = self._actors.get(identity)
            if existing is None:
                raise KeyError(f"Actor '{identity}' not found")
            flags = dict(existing.flags)
            flags[self.flag_scope] = metadata
            record = existing.model_copy(update={"system": sheet, "flags": flags})
            logger.debug(f"📝 Updating actor '{record.name}' ({record.id})")

        self._actors[record.id] = record
        self._save_actor(record)
        return record.id

    def get_metadata(self, identity: str) -> ImportMetadata | None:
        record = self._actors.get(identity)
        if record is None:
            return None
        return record.flags.get(self.flag_scope)

    # --- Queries ---

    def get_name(self, identity: str) -> str | None:
        record = self._actors.get(identity)
        return record.name if record else None

    def get(self, identity: str) -> ActorRecord | None:
        return self._actors.get(identity)

    def list_actors(self, type: str | None = None) -> list[ActorRecord]:
        """All stored actors, optionally filtered by type, sorted by name."""
        actors = [a for a in self._actors.values() if type is None or a.type == type]
        return sorted(actors, key=lambda a: a.name)
