"""Entry point for the Event Showcase API.

Builds the settings once, creates the FastAPI application and serves
it with Uvicorn.  Configuration other than the port (secret, database
paths, SMTP, public URL) is read from environment variables; see
``event_showcase_api/app/core/config.py``.

Usage:
    python run.py 8000          # production database
    python run.py 8000 --test   # test database, wiped on startup
"""
import argparse
import asyncio
import os

from uvicorn import Config, Server

from event_showcase_api.app.core.config import Settings
from event_showcase_api.app.main import create_app


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run the Event Showcase API")
    parser.add_argument("port", type=int, help="port to listen on")
    parser.add_argument("--test", action="store_true", help="use the test database")
    return parser.parse_args(argv)


async def main(argv=None) -> None:
    args = parse_args(argv)
    settings = Settings.from_env(test_mode=args.test)
    app = create_app(settings)
    host = os.getenv("HOST", "0.0.0.0")
    config = Config(app=app, host=host, port=args.port, reload=False, log_level=settings.log_level.lower())
    server = Server(config)
    await server.serve()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except (KeyboardInterrupt, SystemExit):
        pass
