#!/usr/bin/env python3
"""
LAN Discovery entry point.

Usage:
    lan-discovery                     # announce as "Player" on service port 8080
    lan-discovery PlayerB --port 9090
    lan-discovery PlayerA --api-port 8765   # also serve /api/peers and /ws
"""

import asyncio
import logging
import signal
import sys

import click
import uvicorn

from lan_discovery.api.app import create_app
from lan_discovery.config import API_HOST, DEFAULT_NAME, DEFAULT_SERVICE_PORT
from lan_discovery.discovery.errors import TransportError
from lan_discovery.discovery.interfaces import parse_interface
from lan_discovery.discovery.service import DiscoveryService

logger = logging.getLogger(__name__)


def _interface_option(ctx, param, value):
    if value is None:
        return None
    try:
        return parse_interface(value)
    except ValueError as e:
        raise click.BadParameter(str(e)) from e


def setup_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


async def run(name: str, service_port: int, interface: str | None, api_port: int | None) -> None:
    """Start discovery and keep it running until cancelled."""
    discovery_service = DiscoveryService(
        name=name, service_port=service_port, interface=interface
    )
    await discovery_service.start()

    try:
        if api_port:
            app = create_app(discovery_service)
            server = uvicorn.Server(
                uvicorn.Config(app, host=API_HOST, port=api_port, log_level="info")
            )
            logger.info(f"Peer API listening on {API_HOST}:{api_port}")
            await server.serve()
        else:
            main_task = asyncio.current_task()
            try:
                asyncio.get_running_loop().add_signal_handler(signal.SIGTERM, main_task.cancel)
            except NotImplementedError:
                pass  # Windows event loops have no signal handlers
            await discovery_service.wait()
    finally:
        await discovery_service.stop()


@click.command()
@click.argument("name", required=False, default=DEFAULT_NAME)
@click.option("--port", "service_port", default=DEFAULT_SERVICE_PORT,
              type=click.IntRange(0, 65535), help="Service port to announce")
@click.option("--interface", default=None, callback=_interface_option,
              help="Local IPv4 address to multicast on (auto-detected)")
@click.option("--api-port", default=None, type=click.IntRange(1, 65535),
              help="Serve the peer list over HTTP on this port")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
def main(name, service_port, interface, api_port, verbose):
    """Announce NAME on the LAN and list the other peers found."""
    setup_logging(verbose)

    try:
        asyncio.run(run(name, service_port, interface, api_port))
    except TransportError as e:
        logger.error(f"Discovery could not start: {e}")
        sys.exit(1)
    except (KeyboardInterrupt, asyncio.CancelledError):
        logger.info("Shutting down")


if __name__ == "__main__":
    main()
