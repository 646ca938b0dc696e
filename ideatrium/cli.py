"""
Ideatrium CLI Interface
Command line interface implemented using Typer
"""

from typing import Optional

import typer
import uvicorn

from ideatrium.config.loader import get_config
from ideatrium.core.errors import BackendError
from ideatrium.core.logger import get_logger, setup_logging

logger = get_logger(__name__)

app = typer.Typer(help="Ideatrium idea and task tracker")


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, help="Server host address"),
    port: Optional[int] = typer.Option(None, help="Server port"),
    config_file: Optional[str] = typer.Option(None, help="Configuration file path"),
    debug: bool = typer.Option(False, help="Enable debug mode"),
):
    """Start the Ideatrium API server"""
    config = get_config(config_file)
    host = host or config.get("server.host", "0.0.0.0")
    port = port or int(config.get("server.port", 8000))
    debug = debug or bool(config.get("server.debug", False))
    setup_logging("DEBUG" if debug else None)

    logger.info("Starting Ideatrium service...")
    logger.info(f"Host: {host}, Port: {port}")
    logger.info(f"Debug mode: {debug}")

    uvicorn.run(
        "ideatrium.app:app",
        host=host,
        port=port,
        reload=debug,
        log_level="debug" if debug else "info",
    )


@app.command("init-db")
def init_db(
    config_file: Optional[str] = typer.Option(None, help="Configuration file path"),
):
    """Create the database schema"""
    from ideatrium.core.db import DatabaseManager
    from ideatrium.core.paths import get_db_path

    get_config(config_file)
    setup_logging()
    db_path = get_db_path()
    try:
        DatabaseManager(str(db_path))
    except BackendError as e:
        logger.error(f"Database initialization failed: {e.message}")
        raise typer.Exit(1)

    typer.echo(f"Database ready: {db_path}")


def main():
    """Main function"""
    app()


if __name__ == "__main__":
    main()
