"""Command line entry point for tcmwalker."""

import asyncio
import logging
from pathlib import Path
from typing import Optional

import typer

from tcmwalker.app import TcmWalkerApp
from tcmwalker.config import Settings
from tcmwalker.descriptors import load_topology
from tcmwalker.exceptions import TcmWalkerError
from tcmwalker.log import setup_logging
from tcmwalker.navigation import NavigationController
from tcmwalker.store import TopologyStore

logger = logging.getLogger(__name__)

app = typer.Typer(add_completion=False)


def prepare_store(settings: Settings) -> TopologyStore:
    """
    Create a fresh database and load the descriptors into it.

    Raises:
        TcmWalkerError: The descriptors or the database are unusable.
    """
    drop_database(settings.db_path)
    store = TopologyStore(settings.db_path)
    try:
        store.create_schema()
        load_topology(settings.config_path, store)
    except TcmWalkerError:
        store.close()
        raise
    return store


def drop_database(db_path: Path) -> None:
    """Remove the session database file if present."""
    if db_path.exists():
        db_path.unlink()
        logger.debug("Dropped database file %s", db_path)


@app.command()
def run(
    config_path: Optional[Path] = typer.Option(
        None, "--config-path", "-c", help="Directory holding host.xml, proc.xml and procdeploy.xml"
    ),
    debug: bool = typer.Option(False, "--debug", "-d", help="Enable debug logging"),
    db_path: Optional[Path] = typer.Option(None, "--db-path", help="Session database file"),
    log_file: Optional[Path] = typer.Option(None, "--log-file", help="Log file path"),
):
    """
    Explore the deployment topology described by TCM descriptor files.

    Address queries take the form world.zone.func_id.inst_id, with * as a
    wildcard, e.g. *.200.201.1
    """
    settings = Settings.from_env(
        config_path=config_path, db_path=db_path, log_file=log_file, debug=debug
    )
    setup_logging(debug=settings.debug, log_file=settings.log_file)

    try:
        store = prepare_store(settings)
    except TcmWalkerError as e:
        logger.error("Init data failed, error -> [%s]", e)
        drop_database(settings.db_path)
        raise typer.Exit(code=1)

    try:
        controller = asyncio.run(NavigationController.create(store))
        TcmWalkerApp(controller).run()
    except TcmWalkerError as e:
        logger.error("Session failed, error -> [%s]", e)
        raise typer.Exit(code=1)
    finally:
        store.close()
        drop_database(settings.db_path)


def main() -> None:
    """Entry point for the tcmwalker command."""
    app()


if __name__ == "__main__":
    main()
