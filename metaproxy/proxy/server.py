"""
Proxy Server Entry Point

Standalone server for running MetaProxy.
"""

import argparse
import os
import sys
from typing import List, Optional
import structlog
import uvicorn

from metaproxy.config import configure_logging, get_settings
from metaproxy.proxy.config import AllowListSource, CredentialSource, ProxyConfig
from metaproxy.proxy.gateway import create_proxy_app

logger = structlog.get_logger(__name__)


def run_proxy_server(
    config: Optional[ProxyConfig] = None,
    log_level: str = "info",
) -> None:
    """
    Run the proxy server.

    Args:
        config: Proxy configuration (or load from environment)
        log_level: Logging level
    """
    if config is None:
        config = ProxyConfig.from_env()

    errors = config.validate()
    if errors:
        logger.error("configuration_invalid", errors=errors)
        print(f"Configuration errors: {errors}", file=sys.stderr)
        sys.exit(1)

    logger.info(
        "starting_metaproxy",
        host=config.listen_host,
        port=config.listen_port,
        prefix=config.prefix,
        allowed_hosts=len(config.allowed_hosts),
        allow_list_source=config.allow_list_source.value,
        credential_source=config.credential_source.value,
    )

    app = create_proxy_app(config=config)

    uvicorn.run(
        app,
        host=config.listen_host,
        port=config.listen_port,
        log_level=log_level,
        access_log=config.log_requests,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="MetaProxy - allow-listed request director",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Proxy to a single API
  metaproxy --allow api.github.com

  # Sign with credentials from a local JSON file
  metaproxy --allow api.github.com --credentials-file creds.json

  # Allow every AWS endpoint, signing with credentials stored in Redis
  metaproxy --allow '*.amazonaws.com' --credential-source redis

  # Read the allow-list from Redis on every request
  metaproxy --allow-list-source redis --credential-source redis
        """,
    )

    parser.add_argument(
        "--host",
        default=os.getenv("PROXY_HOST", "0.0.0.0"),
        help="Host to bind to (default: 0.0.0.0)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=int(os.getenv("PROXY_PORT", "8080")),
        help="Port to listen on (default: 8080)",
    )
    parser.add_argument(
        "--prefix",
        default=os.getenv("PROXY_PREFIX", "/meta/proxy/"),
        help="Path prefix before the embedded destination (default: /meta/proxy/)",
    )
    parser.add_argument(
        "--allow",
        action="append",
        dest="allowed_hosts",
        help="Allowed destination host or *suffix pattern (repeatable)",
    )
    parser.add_argument(
        "--allow-list-source",
        choices=[s.value for s in AllowListSource],
        default=os.getenv("PROXY_ALLOW_LIST_SOURCE", "static"),
        help="Where the allow-list is read from (default: static)",
    )
    parser.add_argument(
        "--credential-source",
        choices=[s.value for s in CredentialSource],
        default=os.getenv("PROXY_CREDENTIAL_SOURCE", "memory"),
        help="Where signers look up credentials (default: memory)",
    )
    parser.add_argument(
        "--credentials-file",
        default=os.getenv("PROXY_CREDENTIALS_FILE"),
        help="JSON credentials for the memory credential source",
    )
    parser.add_argument(
        "--log-level",
        choices=["debug", "info", "warning", "error"],
        default=None,
        help="Log level (default: LOG_LEVEL or info)",
    )
    return parser


def config_from_args(args: argparse.Namespace) -> ProxyConfig:
    """Build a ProxyConfig from environment defaults and parsed arguments."""
    config = ProxyConfig.from_env()
    config.listen_host = args.host
    config.listen_port = args.port
    config.prefix = args.prefix
    config.allow_list_source = AllowListSource(args.allow_list_source)
    config.credential_source = CredentialSource(args.credential_source)
    config.credentials_file = args.credentials_file or None
    if args.allowed_hosts:
        config.allowed_hosts = list(args.allowed_hosts)
    return config


def main(argv: Optional[List[str]] = None) -> None:
    """Main entry point for proxy server."""
    args = build_parser().parse_args(argv)

    settings = get_settings()
    log_level = args.log_level or settings.app.log_level.lower()
    configure_logging(level=log_level, json=settings.app.log_json)

    run_proxy_server(config=config_from_args(args), log_level=log_level)


if __name__ == "__main__":
    main()
