"""Run the photo scraper service: python -m server"""

import logging

import uvicorn

from .app import create_app
from .config import ServerConfig


def main():
    config = ServerConfig.from_env()

    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    uvicorn.run(create_app(config), host=config.host, port=config.port)


if __name__ == "__main__":
    main()
