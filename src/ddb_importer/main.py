"""
D&D Beyond Importer MCP Server
Imports characters pasted from the D&D Beyond browser extension into a character store.
"""

import logging
from typing import Annotated

from dotenv import load_dotenv
from fastmcp import FastMCP
from pydantic import Field

from .config import ImporterConfig
from .importers import CharacterImporter, ImportError
from .storage import JSONCharacterStore

logger = logging.getLogger("ddb-importer")

logging.basicConfig(
    level=logging.DEBUG,
    )


class MessageNotifier:
    """Notifier that logs each message and keeps them for the tool response."""

    def __init__(self) -> None:
        self.messages: list[str] = []

    def info(self, message: str) -> None:
        logger.info(f"ℹ️ {message}")
        self.messages.append(f"ℹ️ {message}")

    def success(self, message: str) -> None:
        logger.info(f"✅ {message}")
        self.messages.append(f"✅ {message}")

    def error(self, message: str) -> None:
        logger.error(f"❌ {message}")
        self.messages.append(f"❌ {message}")

    def drain(self) -> str:
        text = "\n".join(self.messages)
        self.messages.clear()
        return text


if not load_dotenv():
    logger.warning("❌ .env file invalid or not found! Using default settings.")

config = ImporterConfig.from_env()
logger.debug(f"📂 Data path: {config.data_dir.resolve()}")

storage = JSONCharacterStore(data_dir=config.data_dir, flag_scope=config.flag_scope)
notifier = MessageNotifier()
importer = CharacterImporter(storage, notifier, config)
logger.debug("✅ Storage layer initialized")

mcp = FastMCP(
    name="ddb-importer"
)


def _resolve(name: str) -> str | None:
    return storage.find_existing(name, type=config.actor_type)


@mcp.tool
def import_ddb_character(
    payload: Annotated[str, Field(description="Text copied with 'Copy Character Data' in the D&D Beyond extension")],
    target_name: Annotated[str | None, Field(description="Existing character to overwrite. Defaults to the character with the imported name.")] = None,
) -> str:
    """Import a character from D&D Beyond extension data.

    Creates a new character, or updates the one with the same name.
    """
    target = None
    if target_name:
        target = _resolve(target_name)
        if target is None:
            return f"❌ Character '{target_name}' not found."

    try:
        result = importer.import_payload(payload, target=target)
        return notifier.drain() + "\n\n" + result.format()
    except ImportError:
        return notifier.drain()
    finally:
        # Unexpected errors must not leak messages into the next response
        notifier.drain()


@mcp.tool
async def sync_ddb_character(
    name: Annotated[str, Field(description="Name of a previously imported character")],
) -> str:
    """Sync a previously imported character from its stored D&D Beyond URL."""
    identity = _resolve(name)
    if identity is None:
        return f"❌ Character '{name}' not found."

    try:
        result = await importer.sync(identity)
        return notifier.drain() + "\n\n" + result.format()
    except ImportError:
        return notifier.drain()
    finally:
        # Unexpected errors must not leak messages into the next response
        notifier.drain()


@mcp.tool
def ddb_link_status(
    name: Annotated[str, Field(description="Character name")],
) -> str:
    """Show the D&D Beyond URL and last sync time stored for a character."""
    status = importer.link_status(_resolve(name))
    if not status.has_stored_url:
        return f"🔗 '{name}' is not linked to D&D Beyond. Last sync: {status.last_sync}"
    return f"🔗 '{name}' → {status.character_url}\n🕒 Last sync: {status.last_sync}"


@mcp.tool
def list_imported_characters() -> str:
    """List all characters in the store."""
    actors = storage.list_actors(type=config.actor_type)
    if not actors:
        return f"❌ No characters found in {storage.data_dir}!"

    lines = []
    for actor in actors:
        linked = " (D&D Beyond)" if config.flag_scope in actor.flags else ""
        lines.append(f"• {actor.name} - level {actor.system.details.level}{linked}")
    return "**Characters:**\n" + "\n".join(lines)


logger.debug("✅ All tools successfully registered. D&D Beyond importer running! 🎲")

def main() -> None:
    """Main entry point for the D&D Beyond Importer MCP Server."""
    mcp.run()

if __name__ == "__main__":
    main()
