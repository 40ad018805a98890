# scheduler.py
import asyncio
import itertools
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, Iterator, List, Optional, Sequence

from address_pool import AddressPoolSpec
from data import save_status_snapshot
from lease import AddressLease, AddressLeaseManager
from probes import BaseProbe
from service import ServiceStatus
from status_store import StatusStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ServiceCheck:
    name: str
    probe: BaseProbe
    target: Any


class ScanScheduler:
    """Runs every check once per tick from a freshly leased source address.

    Pools are used round-robin in configuration order. With no pools, the
    device's existing address is used for every tick.

    Lease changes call blocking commands and run in a worker thread, so the
    event loop keeps serving status reads meanwhile. Lease errors propagate
    and stop the loop; probe failures are recorded as statuses.
    """

    def __init__(self, pools: Sequence[AddressPoolSpec], device: str, checks: List[ServiceCheck],
                 store: StatusStore, lease_manager: AddressLeaseManager, interval: float,
                 status_file: Optional[Path] = None,
                 sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep):
        self.pools = list(pools)
        self.device = device
        self.checks = checks
        self.store = store
        self.lease_manager = lease_manager
        self.interval = interval
        self.status_file = status_file
        self._sleep = sleep
        self._cursor: Iterator[AddressPoolSpec] = itertools.cycle(self.pools)

    def next_pool(self) -> Optional[AddressPoolSpec]:
        """Advances the cursor. None means the device's default address is used."""
        return next(self._cursor, None)

    def _acquire(self, pool: Optional[AddressPoolSpec]) -> AddressLease:
        if pool is None:
            return self.lease_manager.acquire_default(self.device)
        return self.lease_manager.acquire_ephemeral(pool, self.device)

    async def tick(self) -> Dict[str, ServiceStatus]:
        """Runs one scan and commits the results. Returns them as well."""
        pool = self.next_pool()
        acquiring = asyncio.ensure_future(asyncio.to_thread(self._acquire, pool))
        try:
            lease = await asyncio.shield(acquiring)
        except asyncio.CancelledError:
            # the worker thread keeps going; wait for it so the address does not linger
            lease = await acquiring
            await asyncio.to_thread(self.lease_manager.release, lease)
            raise
        try:
            logger.info(f"Scanning {len(self.checks)} service(s) from {lease.address}")
            statuses = await asyncio.gather(
                *(check.probe.check(check.target, lease.address) for check in self.checks)
            )
        finally:
            # the address must be gone before the next tick can pick it again
            await asyncio.to_thread(self.lease_manager.release, lease)

        results = {check.name: status for check, status in zip(self.checks, statuses)}
        for name, status in results.items():
            self.store.set(name, status)
        logger.info("Update status")
        if self.status_file:
            save_status_snapshot(self.store.get(), self.status_file)
        return results

    async def run(self, max_ticks: Optional[int] = None) -> None:
        """Ticks until ``max_ticks`` is reached, or forever when it is None."""
        logger.info(f"Starting scanner on {self.device} with {len(self.pools)} pool(s), interval {self.interval}s")
        ticks = itertools.count(1) if max_ticks is None else range(1, max_ticks + 1)
        for n in ticks:
            await self.tick()
            if max_ticks is not None and n == max_ticks:
                break
            await self._sleep(self.interval)
