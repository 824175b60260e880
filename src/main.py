import asyncio
import os
import sys
import logging
from aiohttp import web
from dotenv import load_dotenv

from src.infrastructure.database import create_engine, create_schema
from src.infrastructure.http_api import create_app
from src.application.registry_service import build_service

DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 8080

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s [%(levelname)s] %(message)s",
        handlers=[
            logging.StreamHandler(sys.stdout)
        ]
    )


async def main():
    # Load environment variables from .env file
    load_dotenv()
    configure_logging(os.getenv("LOG_LEVEL", "INFO"))

    db_url = os.getenv("DATABASE_URL")
    host = os.getenv("HOST", DEFAULT_HOST)
    port = int(os.getenv("PORT", DEFAULT_PORT))

    if not db_url:
        logger.error("DATABASE_URL is not set in the environment.")
        sys.exit(1)

    # Initialize the storage engine and make sure the entries table exists
    engine = create_engine(db_url)
    await create_schema(engine)

    service = build_service(engine)
    runner = web.AppRunner(create_app(service))
    await runner.setup()

    try:
        await web.TCPSite(runner, host, port).start()
        logger.info(f"Registry listening on {host}:{port}.")
        await asyncio.Event().wait()
    finally:
        await runner.cleanup()
        await engine.dispose()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("Registry stopped by user. Exiting gracefully.")
    except Exception as e:
        logger.exception(f"An unexpected error occurred: {e}")
        sys.exit(1)
