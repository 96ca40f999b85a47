"""
CLI for the location sync worker.

Commands:
    run         Migrate every enabled unit once and exit
    serve       Start the liveness server and the periodic run trigger
    list-units  Show the configured units
    init-db     Create the destination table for a unit
"""

import argparse
import json
import signal
import sys

from location_sync.core.errors import ConfigurationError, MigrationError
from location_sync.core.registry import SourceRegistry
from location_sync.core.settings import Settings
from location_sync.observability.health import HealthServer
from location_sync.observability.logger import configure_logging, get_logger
from location_sync.pipeline import Extractor, Loader, MigrationOrchestrator, Purger, RunTrigger
from location_sync.source import MongoDocumentStore
from location_sync.warehouse.connection import DatabaseConnectionPool
from location_sync.warehouse.location_table import create_location_table

logger = get_logger(__name__)


def load_config(args: argparse.Namespace) -> tuple[Settings, SourceRegistry]:
    """
    Read settings and the unit registry, applying command-line overrides.

    Raises:
        ConfigurationError: If either is invalid
    """
    settings = Settings.from_env(env_file=args.env_file)
    if args.units_config:
        settings = settings.model_copy(update={"units_config": args.units_config})

    configure_logging(settings.log_level, settings.log_format)
    registry = SourceRegistry.from_yaml(settings.units_config)
    return settings, registry


def build_orchestrator(
    settings: Settings, registry: SourceRegistry, store: MongoDocumentStore
) -> MigrationOrchestrator:
    """Wire the pipeline components around an open document store."""
    return MigrationOrchestrator(
        registry=registry,
        extractor=Extractor(store),
        loader=Loader(
            max_pool_size=settings.db_pool_max_size,
            connect_timeout=settings.db_connect_timeout,
        ),
        purger=Purger(store, batch_size=settings.purge_batch_size),
    )


def create_store(settings: Settings) -> MongoDocumentStore:
    return MongoDocumentStore(
        uri=settings.mongo_uri,
        database=settings.mongo_database,
        server_selection_timeout_ms=settings.mongo_timeout_ms,
    )


def run_command(args: argparse.Namespace) -> int:
    """
    Run one migration pass.

    Returns:
        0 if no unit failed, 1 otherwise
    """
    settings, registry = load_config(args)

    with create_store(settings) as store:
        summary = build_orchestrator(settings, registry, store).run()

    output = {
        "run_id": summary.run_id,
        "skipped": summary.skipped,
        "outcomes": summary.outcome_counts(),
        "units": [
            {
                "unit_id": r.unit_id,
                "outcome": r.outcome.value if r.outcome else None,
                "records_extracted": r.records_extracted,
                "records_loaded": r.records_loaded,
                "records_purged": r.records_purged,
                "error": r.error_detail,
            }
            for r in summary.results
        ],
    }
    print(json.dumps(output, indent=2))

    return 0 if summary.succeeded else 1


def serve_command(args: argparse.Namespace) -> int:
    """
    Serve liveness and run migrations on a schedule until SIGINT/SIGTERM.
    """
    settings, registry = load_config(args)
    port = args.port or settings.port

    health_server = HealthServer(port=port)
    store = create_store(settings)

    try:
        health_server.start()
        store.open()

        orchestrator = build_orchestrator(settings, registry, store)
        trigger = RunTrigger(
            orchestrator.run,
            every_hours=settings.sync_interval_hours,
            run_at_startup=settings.run_at_startup,
        )

        def signal_handler(signum, frame):  # type: ignore[no-untyped-def]
            signal_name = signal.Signals(signum).name
            logger.info(f"Received {signal_name} signal, stopping after the current run...")
            trigger.stop()

        signal.signal(signal.SIGINT, signal_handler)
        signal.signal(signal.SIGTERM, signal_handler)

        logger.info(
            "Location sync worker started",
            extra={
                "unit_count": len(registry),
                "sync_interval_hours": settings.sync_interval_hours,
                "port": health_server.port,
            },
        )
        trigger.run_forever()
    finally:
        store.close()
        health_server.stop()

    logger.info("Shutdown complete")
    return 0


def list_units_command(args: argparse.Namespace) -> int:
    """Print the configured units (passwords excluded)."""
    _, registry = load_config(args)

    units = [
        {
            "unit_id": unit.unit_id,
            "collection": unit.collection_id,
            "destination": unit.destination.describe(),
            "enabled": unit.enabled,
        }
        for unit in registry.all_units()
    ]
    print(json.dumps({"units": units}, indent=2))
    return 0


def init_db_command(args: argparse.Namespace) -> int:
    """Create the destination table of one unit if it does not exist."""
    settings, registry = load_config(args)

    try:
        unit = registry.get(args.unit)
    except KeyError as e:
        print(json.dumps({"status": "error", "error": e.args[0]}), file=sys.stderr)
        return 1

    with DatabaseConnectionPool(
        unit.destination,
        max_size=settings.db_pool_max_size,
        timeout=settings.db_connect_timeout,
    ) as pool:
        create_location_table(pool, unit.destination.table)

    print(json.dumps({
        "status": "created",
        "unit_id": unit.unit_id,
        "table": unit.destination.table,
        "destination": unit.destination.describe(),
    }, indent=2))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="location-sync",
        description="Migrate location documents from MongoDB into PostgreSQL",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Run one pass over all enabled units
  %(prog)s run

  # Start the worker (runs at startup, then every SYNC_INTERVAL_HOURS)
  %(prog)s serve --port 3000

  # Create the destination table for a unit
  %(prog)s init-db --unit branch_north
        """
    )
    parser.add_argument(
        "--env-file",
        help="Path to a .env file (default: .env in the working directory, if present)"
    )
    parser.add_argument(
        "--units-config",
        help="Path to the unit registry YAML (overrides UNITS_CONFIG)"
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    subparsers.add_parser("run", help="Migrate every enabled unit once")

    serve_parser = subparsers.add_parser("serve", help="Start the scheduled worker")
    serve_parser.add_argument(
        "--port",
        type=int,
        help="Liveness/metrics port (overrides PORT, default: 3000)"
    )

    subparsers.add_parser("list-units", help="Show configured units")

    init_parser = subparsers.add_parser("init-db", help="Create the destination table for a unit")
    init_parser.add_argument("--unit", required=True, help="Unit ID")

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the location-sync CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    commands = {
        "run": run_command,
        "serve": serve_command,
        "list-units": list_units_command,
        "init-db": init_db_command,
    }

    try:
        return commands[args.command](args)
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        print(json.dumps({"status": "error", "error": str(e)}), file=sys.stderr)
        return 2
    except MigrationError as e:
        logger.error(f"{args.command} failed: {e}", exc_info=True)
        print(json.dumps({"status": "error", "error": str(e)}), file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    sys.exit(main())
