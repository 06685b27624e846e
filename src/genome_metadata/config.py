"""Runtime settings for genome metadata processing.

Settings come from environment variables, optionally loaded from a .env file.
Command-line options override them.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

from genome_metadata.store.genome_store import DEFAULT_DATABASE_NAME, DEFAULT_MONGODB_URI

load_dotenv()

TRUE_VALUES = {"1", "true", "yes", "on"}


def env_flag(name: str, default: bool = False) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in TRUE_VALUES


@dataclass
class Settings:
    """Connection and processing settings.

    Attributes:
        db_uri: SQLAlchemy URI of the database server, without a database name
        mongodb_uri: MongoDB URI of the metadata store
        mongodb_database: Name of the metadata store database
        contigs: Retrieve sequence inventories from core databases
    """

    db_uri: str | None = None
    mongodb_uri: str = DEFAULT_MONGODB_URI
    mongodb_database: str = DEFAULT_DATABASE_NAME
    contigs: bool = False

    @classmethod
    def from_env(cls) -> Settings:
        return cls(
            db_uri=os.environ.get("GENOME_METADATA_DB_URI"),
            mongodb_uri=os.environ.get("GENOME_METADATA_MONGODB_URI", DEFAULT_MONGODB_URI),
            mongodb_database=os.environ.get("GENOME_METADATA_MONGODB_DATABASE", DEFAULT_DATABASE_NAME),
            contigs=env_flag("GENOME_METADATA_CONTIGS"),
        )
