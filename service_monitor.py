# service_monitor.py
import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Mapping, Tuple

import uvicorn
from dynaconf import Dynaconf

from address_pool import AddressPoolError, AddressPoolSpec
from lease import AddressLeaseManager, LeaseError
from probes import get_probe
from scheduler import ScanScheduler, ServiceCheck
from service import NOT_YET_CHECKED, DnsTarget, HttpTarget, MailTarget
from status_api import create_app
from status_store import StatusStore
from utils import IpCommand

DEFAULT_SETTINGS = 'config/settings.toml'
MAIL_PORTS = {"smtp": 25, "pop3": 110}

logger = logging.getLogger(__name__)

def load_settings(settings_file: str = DEFAULT_SETTINGS) -> Dynaconf:
    return Dynaconf(settings_files=[settings_file])

def load_pools(config: Dynaconf) -> List[AddressPoolSpec]:
    """Parses the configured pool texts. Raises AddressPoolError on a bad entry."""
    return [AddressPoolSpec.parse(str(text)) for text in config.general.get("ip_pools", [])]

def build_target(name: str, probe_type: str, service: Mapping[str, Any]) -> Any:
    """Builds the target descriptor for one service entry.

    Raises:
        ValueError: a required setting is missing or the probe type is unknown.
    """
    try:
        if probe_type == "http":
            return HttpTarget(
                address=str(service["address"]),
                port=int(service.get("port", 80)),
                path=service.get("path", "/"),
                response=service.get("response", ""),
                verify_response=bool(service.get("verify_response", False)),
                timeout=service.get("timeout"),
            )
        if probe_type == "dns":
            return DnsTarget(
                address=str(service["address"]),
                domain=str(service["domain"]),
                response=str(service["response"]),
            )
        if probe_type in MAIL_PORTS:
            return MailTarget(
                address=str(service["address"]),
                port=int(service.get("port", MAIL_PORTS[probe_type])),
            )
    except KeyError as e:
        raise ValueError(f"Service {name} is missing setting {e}") from e
    raise ValueError(f"Unsupported probe type for {name}: {probe_type}")

def load_services(config: Dynaconf) -> Tuple[List[ServiceCheck], Dict[str, Any]]:
    """Builds a target for every configured service and a check for those with an implemented probe.

    Returns:
        The checks, and the targets of all configured services keyed by name
        (including the ones without a probe, which keep their placeholder status).

    Raises:
        ValueError: a service entry is incomplete or has an unknown type.
    """
    checks: List[ServiceCheck] = []
    targets: Dict[str, Any] = {}
    probe_timeout = float(config.general.get("probe_timeout", 10))

    for name, service in (config.get("services") or {}).items():
        probe_type = service.get("type", "http")
        target = build_target(name, probe_type, service)
        targets[name] = target
        try:
            probe = get_probe(probe_type, timeout=probe_timeout)
        except NotImplementedError as e:
            logger.warning(f"Skipping {name} ({target}): {e}. Status stays '{NOT_YET_CHECKED}'")
            continue

        checks.append(ServiceCheck(name, probe, target))
        logger.debug(f"Configured {probe_type} check {name}: {target}")
    return checks, targets

def build_monitor(config: Dynaconf) -> Tuple[StatusStore, ScanScheduler]:
    """Creates the shared status store and the scheduler that writes to it."""
    pools = load_pools(config)
    checks, targets = load_services(config)
    store = StatusStore(targets)

    configurator = IpCommand(
        binary=config.general.get("ip_binary", "ip"),
        timeout=int(config.general.get("command_timeout", 10)),
    )
    lease_manager = AddressLeaseManager(
        configurator, strict_exit_status=bool(config.general.get("strict_exit_status", False))
    )
    status_file = config.general.get("status_file")
    scheduler = ScanScheduler(
        pools=pools,
        device=config.general.get("device", "eth0"),
        checks=checks,
        store=store,
        lease_manager=lease_manager,
        interval=float(config.general.get("interval", 60)),
        status_file=Path(status_file) if status_file else None,
    )
    return store, scheduler

async def serve(config: Dynaconf, store: StatusStore, scheduler: ScanScheduler) -> None:
    """Serves the status API while the scheduler runs; stops both if the scheduler fails."""
    server_config = config.get("server") or {}
    server = uvicorn.Server(uvicorn.Config(
        create_app(store),
        host=server_config.get("host", "127.0.0.1"),
        port=int(server_config.get("port", 8000)),
        log_level="info",
    ))
    server_task = asyncio.create_task(server.serve())
    try:
        await scheduler.run()
    finally:
        server.should_exit = True
        await server_task

def main():
    parser = argparse.ArgumentParser(description="Service monitor probing from rotating source addresses")
    parser.add_argument("--settings", default=DEFAULT_SETTINGS, help="Path to the settings file")
    parser.add_argument("--once", action="store_true", help="Run a single scan without the status server")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    if args.debug:
        logging.basicConfig(level=logging.DEBUG, format='%(asctime)s - %(levelname)s - %(message)s')
    else:
        logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')

    try:
        config = load_settings(args.settings)
        store, scheduler = build_monitor(config)
    except AddressPoolError as e:
        logger.critical(f"Invalid address pool in {args.settings}: {e}")
        sys.exit(2)
    except ValueError as e:
        logger.critical(f"Invalid service settings in {args.settings}: {e}")
        sys.exit(2)

    try:
        if args.once:
            asyncio.run(scheduler.run(max_ticks=1))
        else:
            asyncio.run(serve(config, store, scheduler))
    except LeaseError as e:
        logger.critical(f"Scanner stopped: {e}")
        sys.exit(1)

if __name__ == "__main__":
    main()
