"""Command line entry point for the workflow orchestrator."""

import argparse
import os
import sys
from typing import List, Optional

from .config import AppConfig, LogLevel, load_config, validate_config
from .core.exceptions import ConfigurationError
from .core.logging import get_logger, setup_logging
from .factory import create_app

__all__ = ["create_app", "main"]

APP_FACTORY = "orchestrator.factory:create_app"


def create_argument_parser() -> argparse.ArgumentParser:
    """Create command line argument parser."""
    parser = argparse.ArgumentParser(
        description="Workflow Orchestrator - executes declarative workflow graphs"
    )

    parser.add_argument("--host", help="Host to bind the server to")
    parser.add_argument("--port", type=int, help="Port to bind the server to")
    parser.add_argument("--reload", action="store_true", help="Enable auto-reload for development")
    parser.add_argument("--config", help="Path to a .env configuration file")
    parser.add_argument("--database-url", help="Database connection URL")
    parser.add_argument(
        "--log-level",
        choices=[level.value for level in LogLevel],
        help="Logging level"
    )
    parser.add_argument("--log-file", help="Path to log file")
    parser.add_argument("--debug", action="store_true", help="Enable debug mode")
    parser.add_argument(
        "--strict-branching",
        action="store_true",
        help="Fail condition nodes without a matching labeled edge"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser("run", help="Run the orchestrator server")

    db_parser = subparsers.add_parser("db", help="Database management commands")
    db_subparsers = db_parser.add_subparsers(dest="db_command", help="Database commands")
    db_subparsers.add_parser("init", help="Create tables and the sample workflow")
    db_subparsers.add_parser("reset", help="Drop and recreate all tables")

    config_parser = subparsers.add_parser("config", help="Configuration management")
    config_subparsers = config_parser.add_subparsers(dest="config_command", help="Config commands")
    config_subparsers.add_parser("show", help="Show current configuration")
    config_subparsers.add_parser("validate", help="Validate configuration")

    return parser


def load_configuration(args: argparse.Namespace) -> AppConfig:
    """Load configuration and apply command line overrides."""
    config = load_config(args.config)

    overrides = {}
    if args.host:
        overrides["host"] = args.host
    if args.port:
        overrides["port"] = args.port
    if args.reload:
        overrides["reload"] = True
    if args.database_url:
        overrides["database_url"] = args.database_url
    if args.log_level:
        overrides["log_level"] = LogLevel(args.log_level)
    if args.log_file:
        overrides["log_file"] = args.log_file
    if args.debug:
        overrides["debug"] = True
    if args.strict_branching:
        overrides["strict_branching"] = True

    if overrides:
        config = AppConfig(**{**config.model_dump(), **overrides})
    return config


def run_server(config: AppConfig):
    """Run the orchestrator HTTP server.

    With reload enabled uvicorn imports the app factory in a worker process,
    so the effective configuration is handed over through the environment.
    """
    import uvicorn

    if config.reload:
        os.environ.update(config.to_env())
        uvicorn.run(APP_FACTORY, factory=True, **config.get_uvicorn_config())
        return

    app = create_app(config)
    uvicorn.run(app, **config.get_uvicorn_config())


def run_database_command(command: Optional[str], config: AppConfig):
    """Run database management commands."""
    from .storage.database import create_tables, drop_tables, init_database
    from .storage.repository import WorkflowRepository
    from .storage.seed import seed_weather_workflow

    logger = get_logger(__name__)

    if command == "init":
        logger.info("Initializing database tables...")
        init_database(config.database_url, echo=config.database_echo)
        workflow_id = seed_weather_workflow(WorkflowRepository())
        logger.info(f"Database initialized; sample workflow {workflow_id}")

    elif command == "reset":
        logger.info("Resetting database...")
        init_database(config.database_url, echo=config.database_echo)
        drop_tables()
        create_tables()
        logger.info("Database reset completed successfully")

    else:
        raise SystemExit("Specify a database command: init or reset")


def show_configuration(config: AppConfig):
    """Show current configuration, hiding secrets."""
    print("Current Configuration:")
    for key, value in config.model_dump(mode="json").items():
        if key == "resend_api_key" and value:
            value = "***"
        print(f"  {key}: {value}")


def main(argv: Optional[List[str]] = None) -> int:
    """Parse arguments and dispatch the selected command."""
    parser = create_argument_parser()
    args = parser.parse_args(argv)

    config = load_configuration(args)
    setup_logging(
        level=config.log_level.value,
        log_file=config.log_file,
        log_format=config.log_format,
        structured=config.log_structured
    )
    logger = get_logger(__name__)

    try:
        if args.command == "db":
            run_database_command(args.db_command, config)
        elif args.command == "config":
            if args.config_command == "validate":
                validate_config(config)
                print("Configuration is valid")
            else:
                show_configuration(config)
        else:
            run_server(config)
    except ConfigurationError as e:
        logger.error(e.message)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
