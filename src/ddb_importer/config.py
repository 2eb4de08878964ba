"""
Configuration model for the D&D Beyond import workflow.
"""

import os
from pathlib import Path

from pydantic import BaseModel, Field

ENV_PREFIX = "DDB_IMPORTER_"


class ImporterConfig(BaseModel):
    """Settings for the import workflow and its store adapter.

    The translator itself takes no configuration; these values only control
    how imported sheets are looked up, linked and persisted.
    """

    flag_scope: str = Field(
        default="nevelish-ddb-importer",
        description="Namespace under which the source link is stored on each actor",
    )
    actor_type: str = Field(
        default="character",
        description="Actor type used for find-or-create lookups",
    )
    api_base_url: str | None = Field(
        default=None,
        description="Override for the D&D Beyond character service endpoint used for sync",
    )
    fetch_timeout: float = Field(
        default=10.0,
        gt=0.0,
        description="Maximum seconds to wait for D&D Beyond during sync",
    )
    data_dir: Path = Field(
        default=Path("ddb_data"),
        description="Directory for the bundled JSON character store",
    )

    @classmethod
    def from_env(cls) -> "ImporterConfig":
        """Build a config from ``DDB_IMPORTER_*`` environment variables.

        Unset variables keep their defaults.
        """
        overrides: dict[str, str] = {}
        for name, env_key in (
            ("flag_scope", "FLAG_SCOPE"),
            ("actor_type", "ACTOR_TYPE"),
            ("api_base_url", "API_BASE_URL"),
            ("fetch_timeout", "FETCH_TIMEOUT"),
            ("data_dir", "STORAGE_DIR"),
        ):
            value = os.getenv(ENV_PREFIX + env_key)
            if value:
                overrides[name] = value
        return cls(**overrides)
