"""
Base models and exceptions for the character import system.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from ..models import ImportMetadata, NormalizedSheet


class ImportError(Exception):
    """Raised when a character import fails.

    Provides a user-facing message explaining what went wrong
    and, where possible, how to fix it.
    """


class InvalidPayloadError(ImportError):
    """The pasted text is not a transport envelope with a characterData section."""


class MalformedCharacterError(ImportError):
    """The characterData section has no usable ``data`` object."""


# Names used by callers that think in terms of the input stage that failed
InvalidCharacterDataError = InvalidPayloadError
MalformedInputError = MalformedCharacterError


class ImportResult(BaseModel):
    """Result of a character import operation."""

    identity: str = Field(description="Store identity of the created or updated actor")
    name: str = Field(description="Name of the imported character")
    created: bool = Field(description="True if a new actor was created, False if one was updated")
    sheet: NormalizedSheet = Field(description="The normalized sheet that was written")
    metadata: ImportMetadata = Field(description="Source link and sync time stored with the actor")
    warnings: list[str] = Field(
        default_factory=list,
        description="Non-fatal issues encountered during mapping (defaults used, dropped stats, etc.)",
    )

    def format(self) -> str:
        """Format the result as a readable text block.

        Returns:
            Multi-line formatted string suitable for a tool response.
        """
        sheet = self.sheet
        hp = sheet.attributes.hp
        action = "Created" if self.created else "Updated"

        lines: list[str] = [
            f"D&D Beyond Import - {self.name}",
            f"Status: {action.upper()}",
            "",
        ]

        if sheet.abilities:
            parts = [f"{key.upper()} {ability.value}" for key, ability in sheet.abilities.items()]
            lines.append(f"  Abilities: {', '.join(parts)}")
        else:
            lines.append("  Abilities: none imported")

        lines.append(
            f"  Combat: HP {hp.value}/{hp.max}"
            + (f" (+{hp.temp} temp)" if hp.temp else "")
            + f", AC {sheet.attributes.ac.value}"
            + f", Speed {sheet.attributes.speed.value} ft"
            + f", Prof +{sheet.attributes.prof}"
        )

        details = sheet.details
        identity = [details.race or "Unknown race", f"level {details.level}"]
        if details.background:
            identity.append(details.background)
        if details.alignment:
            identity.append(details.alignment.upper())
        lines.append(f"  Identity: {', '.join(identity)}")

        if sheet.classes:
            classes = [f"{name} {entry.level}" for name, entry in sheet.classes.items()]
            lines.append(f"  Classes: {', '.join(classes)}")

        if self.warnings:
            lines.append("")
            lines.append(f"Warnings ({len(self.warnings)}):")
            for w in self.warnings:
                lines.append(f"  - {w}")

        lines.append("")
        lines.append(f"Source: {self.metadata.character_url or 'unknown'}")
        lines.append(f"Last sync: {self.metadata.last_sync.isoformat(timespec='seconds')}")

        return "\n".join(lines)
