"""Command-line interface for FavStash."""

import os
import sys
from pathlib import Path
from typing import Optional

import click
import httpx
import uvicorn


@click.group()
@click.version_option(version="0.1.0", prog_name="favstash")
def cli():
    """FavStash - favorites and bookmark storage service."""
    pass


@cli.command()
@click.option(
    "--config-dir",
    type=click.Path(path_type=Path),
    default=None,
    help="Configuration directory (default: ~/.favstash)",
)
@click.option(
    "--database-path",
    type=click.Path(path_type=Path, dir_okay=False),
    default=None,
    help="SQLite store file (default: <config-dir>/favstash.db)",
)
@click.option(
    "--port",
    type=int,
    default=8000,
    show_default=True,
    help="Port written to config.yaml",
)
def init(config_dir: Optional[Path], database_path: Optional[Path], port: int):
    """Initialize FavStash configuration and create the store."""
    from .config import ConfigError, ConfigManager
    from .core.database import Database, StoreError
    from .core.migrations import ensure_schema
    from .models.config import AppConfig

    try:
        cm = ConfigManager(config_dir)

        click.echo(f"Initializing FavStash at {cm.config_dir}...")
        cm.config_dir.mkdir(parents=True, exist_ok=True)

        app_config = AppConfig(
            port=port,
            database_path=str(database_path) if database_path else "favstash.db",
        )
        cm.save_app_config(app_config)
        click.echo("[OK] Created config.yaml")

        if not cm.env_file.exists():
            cm.create_env_file()
            click.echo("[OK] Created .env file")

        db_path = cm.resolve_database_path(app_config)
        with Database(db_path).connection() as conn:
            version = ensure_schema(conn)
        click.echo(f"[OK] Created store at {db_path} (schema version {version})")

        click.echo("\n" + "=" * 60)
        click.echo("[SUCCESS] FavStash initialized successfully!")
        click.echo("=" * 60)
        click.echo("\nStart the server with: favstash serve")

    except (ConfigError, StoreError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


@cli.command()
@click.option(
    "--host",
    type=str,
    default=None,
    help="Host to bind (default: from config.yaml)",
)
@click.option(
    "--port",
    type=int,
    default=None,
    help="Port to bind (default: from config.yaml)",
)
@click.option(
    "--reload",
    is_flag=True,
    default=False,
    help="Enable auto-reload for development",
)
@click.option(
    "--config-dir",
    type=click.Path(path_type=Path),
    default=None,
    help="Configuration directory (default: ~/.favstash)",
)
def serve(host: Optional[str], port: Optional[int], reload: bool, config_dir: Optional[Path]):
    """Start the FavStash API server."""
    from .config import ConfigError, ConfigManager

    cm = ConfigManager(config_dir)

    if not cm.config_file.exists():
        click.echo("Error: Configuration not found", err=True)
        click.echo(f"Run 'favstash init' to create configuration at {cm.config_dir}", err=True)
        sys.exit(1)

    try:
        app_config = cm.load()
    except ConfigError as e:
        click.echo(f"Configuration error: {e}", err=True)
        sys.exit(1)

    # The app's lifespan reads configuration from here.
    if config_dir:
        os.environ["FAVSTASH_CONFIG_DIR"] = str(config_dir)

    host = host or app_config.host
    port = port or app_config.port

    click.echo("=" * 60)
    click.echo("Starting FavStash API server...")
    click.echo("=" * 60)
    click.echo(f"Config directory: {cm.config_dir}")
    click.echo(f"Database: {app_config.database_path}")
    click.echo(f"Server URL: http://{host}:{port}")
    click.echo(f"API docs: http://{host}:{port}/docs")
    click.echo("=" * 60)
    click.echo("\nPress Ctrl+C to stop the server\n")

    try:
        uvicorn.run(
            "favstash.api:app",
            host=host,
            port=port,
            reload=reload,
            log_level=app_config.log_level.lower(),
        )
    except KeyboardInterrupt:
        click.echo("\n\nShutting down server...")
        sys.exit(0)


@cli.command()
@click.option(
    "--config-dir",
    type=click.Path(path_type=Path),
    default=None,
    help="Configuration directory (default: ~/.favstash)",
)
def migrate(config_dir: Optional[Path]):
    """Bring the store schema up to the latest version."""
    import sqlite3

    from .config import ConfigError, ConfigManager, configure_logging
    from .core.database import Database, StoreError
    from .core.migrations import current_version, ensure_schema

    try:
        app_config = ConfigManager(config_dir).load()
        configure_logging(app_config.log_level)

        with Database(app_config.database_path).connection() as conn:
            before = current_version(conn)
            after = ensure_schema(conn)

        if before == after:
            click.echo(f"Store already at schema version {after}")
        else:
            click.echo(f"Migrated store from schema version {before} to {after}")

    except ConfigError as e:
        click.echo(f"Configuration error: {e}", err=True)
        sys.exit(1)
    except (StoreError, sqlite3.Error) as e:
        click.echo(f"Migration failed: {e}", err=True)
        sys.exit(1)


@cli.command()
@click.option(
    "--config-dir",
    type=click.Path(path_type=Path),
    default=None,
    help="Configuration directory (default: ~/.favstash)",
)
@click.option(
    "--api-url",
    type=str,
    default=None,
    help="Optional running API URL to verify (example: http://127.0.0.1:8000)",
)
def doctor(config_dir: Optional[Path], api_url: Optional[str]):
    """Validate local setup and report actionable fixes."""
    import sqlite3

    from .config import ConfigError, ConfigManager
    from .core.database import Database, StoreError
    from .core.migrations import LATEST_VERSION, current_version

    cm = ConfigManager(config_dir)
    failures = 0
    warnings = 0
    app_config = None

    def report(status: str, message: str, fix: Optional[str] = None) -> None:
        click.echo(f"[{status}] {message}")
        if fix:
            click.echo(f"      Fix: {fix}")

    click.echo("=" * 60)
    click.echo("FavStash doctor")
    click.echo("=" * 60)
    click.echo(f"Config directory: {cm.config_dir}")

    if cm.config_file.exists():
        report("PASS", f"Found config file: {cm.config_file}")
        try:
            app_config = cm.load()
            report("PASS", "config.yaml parsed successfully")
        except ConfigError as e:
            failures += 1
            report("FAIL", f"config.yaml validation failed: {e}")
    else:
        failures += 1
        report("FAIL", f"Missing config file: {cm.config_file}", "Run: favstash init")

    if not cm.env_file.exists():
        warnings += 1
        report("WARN", f"No .env file at {cm.env_file}", "Optional; run favstash init to create one")

    if app_config is not None:
        try:
            cm.validate_database_location(app_config)
            report("PASS", f"Database location is usable: {app_config.database_path}")
        except ConfigError as e:
            failures += 1
            report("FAIL", f"Database location is not usable: {e}")

        db_path = Path(app_config.database_path)
        if not db_path.exists():
            failures += 1
            report("FAIL", f"Database file does not exist: {db_path}", "Run: favstash migrate")
        else:
            try:
                with Database(db_path).connection() as conn:
                    version = current_version(conn)
                if version == LATEST_VERSION:
                    report("PASS", f"Schema is up to date (version {version})")
                else:
                    failures += 1
                    report(
                        "FAIL",
                        f"Schema version {version} is behind latest {LATEST_VERSION}",
                        "Run: favstash migrate",
                    )
            except (StoreError, sqlite3.Error) as e:
                failures += 1
                report("FAIL", f"Cannot open database: {e}")

    if api_url:
        health_url = f"{api_url.rstrip('/')}/api/v1/health"
        try:
            response = httpx.get(health_url, timeout=3.0)
            if response.status_code == 200:
                report("PASS", f"Server is reachable: {health_url}")
            else:
                failures += 1
                report(
                    "FAIL",
                    f"Server health check returned HTTP {response.status_code}: {health_url}",
                    "Start server: favstash serve --port 8000",
                )
        except httpx.HTTPError as e:
            failures += 1
            report(
                "FAIL",
                f"Server is not reachable at {health_url} ({e})",
                "Start server and ensure API URL matches --api-url",
            )
    else:
        warnings += 1
        report("WARN", "Skipped server reachability check (no --api-url provided)")

    click.echo("-" * 60)
    click.echo(f"Summary: {failures} fail, {warnings} warn")

    if failures:
        sys.exit(1)
    sys.exit(0)


def main():
    """Entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
