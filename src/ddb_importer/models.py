"""
Data models for the D&D Beyond importer.
"""

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field, field_validator
from shortuuid import random


class AbilityValue(BaseModel):
    """A single ability score as stored on the sheet."""
    value: int | float = Field(description="Raw ability score")


class HitPoints(BaseModel):
    """Current, maximum and temporary hit points."""
    value: int | float = Field(description="Current hit points (not clamped, may be negative)")
    max: int | float = Field(description="Maximum hit points")
    temp: int | float = Field(default=0, description="Temporary hit points")


class ArmorClass(BaseModel):
    value: int | float


class Movement(BaseModel):
    value: int | float = Field(description="Walking speed, in feet")


class Attributes(BaseModel):
    """Combat attributes block of the sheet."""
    hp: HitPoints
    ac: ArmorClass
    speed: Movement
    prof: int = Field(description="Proficiency bonus derived from the primary class level")


class Details(BaseModel):
    race: str = ""
    background: str = ""
    alignment: str = Field(default="", description="Two-letter alignment code, or empty if unknown")
    level: int | float = Field(default=0, description="Total character level across all classes")


class Traits(BaseModel):
    size: str = "med"


class ClassLevel(BaseModel):
    level: int | float


class NormalizedSheet(BaseModel):
    """Character sheet produced from a D&D Beyond export.

    Every block is always present. ``abilities`` only holds the abilities
    the source actually listed; a missing key means "unset".
    """
    name: str = Field(description="Character display name")
    abilities: dict[str, AbilityValue] = Field(default_factory=dict)
    attributes: Attributes
    details: Details = Field(default_factory=Details)
    traits: Traits = Field(default_factory=Traits)
    classes: dict[str, ClassLevel] = Field(
        default_factory=dict,
        description="Per-class levels keyed by lowercased class name",
    )

    def to_system(self) -> dict[str, Any]:
        """Return the ``system`` payload of a dnd5e actor update."""
        return self.model_dump(mode="json", include={"abilities", "attributes", "details", "traits"})


class ImportMetadata(BaseModel):
    """Link between a stored actor and its D&D Beyond source."""
    character_url: str | None = Field(default=None, description="D&D Beyond character page URL")
    character_id: str | None = Field(default=None, description="D&D Beyond character ID")
    last_sync: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the actor was last imported or synced",
    )

    @field_validator("character_url", "character_id", mode="before")
    @classmethod
    def _stringify_id(cls, v: Any) -> Any:
        # The extension sends the ID as a number in some versions
        if isinstance(v, bool):
            return v
        if isinstance(v, float) and v.is_integer():
            return str(int(v))
        if isinstance(v, (int, float)):
            return str(v)
        return v


class ActorRecord(BaseModel):
    """A character actor as persisted by the bundled JSON store."""
    id: str = Field(default_factory=lambda: random(length=8))
    name: str
    type: str = "character"
    system: NormalizedSheet
    flags: dict[str, ImportMetadata] = Field(default_factory=dict)
