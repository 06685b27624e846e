#!/usr/bin/env python3
"""Process genome databases into the metadata store.

Reads the named core, companion and compara databases from one server,
builds a SpeciesRecord per species, resolves comparative analyses and writes
the results to the MongoDB metadata store.

Usage:
    uv run genome-metadata-process --db-uri mysql+pymysql://ensro@localhost:3306 \\
        --dbname homo_sapiens_core_110_38 --dbname ensembl_compara_110
    uv run genome-metadata-process --dbname mus_musculus_core_110_39 --contigs --dry-run
"""

from __future__ import annotations

import logging
import sys

import click
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url

from genome_metadata.config import Settings
from genome_metadata.dbs.discovery import discover_handles
from genome_metadata.processing.errors import MetadataProcessingError
from genome_metadata.processing.processor import MetadataProcessor
from genome_metadata.store.genome_store import GenomeStore

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool) -> None:
    """Configure logging based on verbosity."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s",
    )


def engine_factory_for(db_uri: str):
    """Return a function creating one engine per database on the server."""
    base_url = make_url(db_uri)

    def create(dbname: str) -> Engine:
        return create_engine(base_url.set(database=dbname))

    return create


@click.command()
@click.option(
    "--db-uri",
    envvar="GENOME_METADATA_DB_URI",
    help="SQLAlchemy URI of the database server (e.g. mysql+pymysql://user@host:3306)",
)
@click.option(
    "--dbname",
    "-d",
    "dbnames",
    multiple=True,
    required=True,
    help="Database to process (repeatable)",
)
@click.option("--mongodb-uri", help="MongoDB URI of the metadata store")
@click.option("--mongodb-database", help="MongoDB database name of the metadata store")
@click.option("--contigs/--no-contigs", default=None, help="Retrieve sequence inventories")
@click.option("--no-variation", is_flag=True, help="Skip variation databases")
@click.option("--no-compara", is_flag=True, help="Skip compara databases")
@click.option("--force-update", is_flag=True, help="Overwrite genomes already in the store")
@click.option("--dry-run", is_flag=True, help="Process without writing to the store")
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose logging",
)
def main(
    db_uri: str | None,
    dbnames: tuple[str, ...],
    mongodb_uri: str | None,
    mongodb_database: str | None,
    contigs: bool | None,
    no_variation: bool,
    no_compara: bool,
    force_update: bool,
    dry_run: bool,
    verbose: bool,
) -> None:
    """Build genome metadata from core, companion and compara databases."""
    setup_logging(verbose)
    settings = Settings.from_env()
    db_uri = db_uri or settings.db_uri
    if not db_uri:
        raise click.UsageError("No database server given; use --db-uri or set GENOME_METADATA_DB_URI")

    store = GenomeStore(
        mongodb_uri=mongodb_uri or settings.mongodb_uri,
        database_name=mongodb_database or settings.mongodb_database,
    )
    processor = MetadataProcessor(
        contigs=settings.contigs if contigs is None else contigs,
        store=store,
        variation=not no_variation,
        compara=not no_compara,
        force_update=force_update,
    )

    try:
        handles = discover_handles(engine_factory_for(db_uri), dbnames)
        click.echo(f"Processing {len(handles)} database handles")
        genomes = processor.process_metadata(handles)
        click.echo(f"Built {len(genomes)} genomes and {len(processor.comparas)} comparative analyses")

        if dry_run:
            click.echo("Dry run: nothing written to the store")
            return
        written = processor.persist()
        click.echo(f"Stored {written} genomes")
    except MetadataProcessingError as e:
        click.echo(f"ERROR [{e.kind.value}]: {e}", err=True)
        sys.exit(1)
    finally:
        store.close()


if __name__ == "__main__":
    main()
