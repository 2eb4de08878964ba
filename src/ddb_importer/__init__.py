"""
D&D Beyond Importer - maps D&D Beyond character exports onto dnd5e character sheets.
"""

from .config import ImporterConfig
from .models import *
from .storage import JSONCharacterStore

try:
    from importlib.metadata import version as _get_version
    __version__ = _get_version("ddb-importer")
except Exception:
    __version__ = "0.1.0"  # Fallback if metadata unavailable
__all__ = ["ImporterConfig", "JSONCharacterStore"]
