"""
Main entry point for the space launch booking service
Wires configuration, database, SpaceX client and booking service, then serves the HTTP API
"""
import argparse
import logging

import uvicorn

from api import create_app
from backend.booking_repository import BookingRepository
from backend.booking_service import BookingService
from backend.config import Config
from backend.observability import setup_logging
from backend.spacex_client import SpaceXClient
from database.database import DatabaseManager, set_db_manager

logger = logging.getLogger(__name__)


def build_service(config: Config, db_manager: DatabaseManager, manifest: SpaceXClient) -> BookingService:
    """Assemble the booking service from its collaborators"""
    return BookingService(
        repository=BookingRepository(db_manager),
        manifest=manifest,
        default_limit=config.page_default_limit,
        max_limit=config.page_max_limit,
        request_timeout=config.request_timeout,
    )


def main(argv=None):
    """Main application entry point"""
    parser = argparse.ArgumentParser(description="Space launch booking API")
    parser.add_argument('--init-db', action='store_true',
                        help="create tables and seed destinations before serving")
    args = parser.parse_args(argv)

    config = Config.from_env()
    setup_logging(config.log_level, config.log_format)

    try:
        db_manager = DatabaseManager(
            database_url=config.database_url,
            min_connections=config.db_pool_min,
            max_connections=config.db_pool_max,
        )
    except RuntimeError as e:
        logger.error("Failed to connect to database: %s", e)
        return 1
    set_db_manager(db_manager)

    if args.init_db:
        db_manager.create_tables()
        logger.info("Database schema applied")

    manifest = SpaceXClient(base_url=config.spacex_url, timeout=config.spacex_timeout)
    app = create_app(build_service(config, db_manager, manifest), db_manager=db_manager)

    try:
        logger.info("Starting server on %s:%s", config.server_host, config.server_port)
        uvicorn.run(app, host=config.server_host, port=config.server_port,
                    log_config=None)
    finally:
        logger.info("Shutting down")
        manifest.close()
        db_manager.close_all_connections()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
