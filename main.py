"""
MetaProxy - allow-listed request director
Main entry point for the application.
"""

import os

import structlog
from dotenv import load_dotenv

from metaproxy.config import configure_logging, get_settings
from metaproxy.proxy.config import ProxyConfig
from metaproxy.proxy.server import run_proxy_server

# Load environment variables
load_dotenv(".env.local")

logger = structlog.get_logger(__name__)


def main():
    """Main entry point."""
    settings = get_settings()
    configure_logging(level=settings.app.log_level, json=settings.app.log_json)

    logger.info(
        "starting_metaproxy_service",
        version="0.1.0",
        environment=os.getenv("APP_ENV", settings.app.env),
    )

    run_proxy_server(
        config=ProxyConfig.from_env(),
        log_level=settings.app.log_level.lower(),
    )


if __name__ == "__main__":
    main()
