"""
Server bootstrap for the link registry.

The registry (and its expiry sweeper) is created in the FastAPI lifespan and
shut down exactly once when the server exits.

Environment variables:
    HOST, PORT - Binding host and listening port
    EXPIRATION_DAYS - Lifetime of registered links
    SWEEP_INTERVAL_SECONDS - Delay between expiry sweeps (defaults to the lifetime)
    LOG_LEVEL, LOG_FILE, LOG_JSON - Logging
    DB_HOST, DB_PORT, DB_USER, DB_PASSWORD, DB_NAME - PostgreSQL connection
    DB_MAX_OPEN_CONNECTIONS, DB_MAX_IDLE_CONNECTIONS - Pool bounds
    DB_CREATE_TABLES - Create the url table on startup
"""

import signal
import sys
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from .config import Config, load_config
from .lib.registry import Registry
from .lib.common.logging_config import setup_logging
from .web_app import create_app


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup and shutdown."""
    config = app.state.config
    logger = app.state.logger

    logger.info("Starting link registry service...")

    registry = await Registry.create(
        config.expiration_days,
        sweep_interval_seconds=config.sweep_interval_seconds,
        logger=logger,
    )
    app.state.registry = registry

    logger.info("Service started successfully")

    try:
        yield
    finally:
        logger.info("Shutting down web server...")
        await registry.shutdown()
        logger.info("Web server successfully shut down")


def run_server(config: Config) -> int:
    """Run the HTTP server until interrupted.

    Returns:
        Process exit code
    """
    logger = setup_logging(
        level=config.log_level,
        log_file=config.log_file,
        json_format=config.log_json,
    )

    logger.info("Link Registry Service")
    logger.info(f"Configuration: {config.model_dump()}")

    app = create_app(registry_instance=None, config=config, logger=logger)
    app.state.logger = logger
    app.router.lifespan_context = lifespan

    uvicorn_config = uvicorn.Config(
        app,
        host=config.host,
        port=config.port,
        log_level=config.log_level.lower(),
        access_log=True,
    )
    server = uvicorn.Server(uvicorn_config)

    def handle_signal(signum, frame):
        logger.info(f"Received signal: {signum}")
        server.should_exit = True

    signal.signal(signal.SIGINT, handle_signal)
    signal.signal(signal.SIGTERM, handle_signal)

    try:
        logger.info(f"Server accepts requests on {config.host}:{config.port}")
        server.run()
    except Exception as e:
        logger.error(f"Error while processing requests: {e}")
        return 1

    return 0


def main():
    """Main entry point."""
    sys.exit(run_server(load_config()))


if __name__ == "__main__":
    main()
