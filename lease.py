# lease.py
import logging
import subprocess
from dataclasses import dataclass, field
from ipaddress import IPv4Address
from typing import Dict, Optional, Union

from address_pool import AddressPoolSpec
from utils import BaseAddressConfigurator, CommandResult

logger = logging.getLogger(__name__)


class LeaseError(Exception):
    """Base class for address lease failures."""


class AddressAssignmentFailed(LeaseError):
    pass


class AddressReleaseFailed(LeaseError):
    pass


class NoAddressFound(LeaseError):
    pass


@dataclass
class OwnedLease:
    """An address this process added to the device and must remove again."""
    address: IPv4Address
    device: str
    released: bool = field(default=False, compare=False)


@dataclass
class BorrowedLease:
    """An address already configured on the device. Releasing it does nothing."""
    address: IPv4Address
    device: str
    released: bool = field(default=False, compare=False)


AddressLease = Union[OwnedLease, BorrowedLease]


def parse_inet_address(output: str) -> Optional[IPv4Address]:
    """Returns the address of the first ``inet a.b.c.d/n`` pair in ``ip addr show`` output."""
    words = iter(output.split())
    for word in words:
        if word == "inet":
            break
    else:
        return None
    token = next(words, None)
    if token is None or "/" not in token:
        return None
    address, _, _prefix = token.partition("/")
    try:
        return IPv4Address(address)
    except ValueError:
        return None


class AddressLeaseManager:
    """Acquires and releases source addresses on a network device.

    Not safe for concurrent use on the same device; callers hold at most one
    active lease per device.
    """

    def __init__(self, configurator: BaseAddressConfigurator, strict_exit_status: bool = False):
        self.configurator = configurator
        self.strict_exit_status = strict_exit_status
        self._active: Dict[str, OwnedLease] = {}

    def _succeeded(self, result: CommandResult) -> bool:
        if result.returncode is None:
            return not self.strict_exit_status
        return result.returncode == 0

    def acquire_ephemeral(self, pool: AddressPoolSpec, device: str) -> OwnedLease:
        """Adds a random address from ``pool`` to ``device``.

        Raises:
            AddressAssignmentFailed: the address could not be added.
        """
        if device in self._active:
            raise RuntimeError(f"Device {device} still holds lease {self._active[device].address}")
        address = pool.generate_random_address()
        try:
            result = self.configurator.add(device, address)
        except (OSError, subprocess.SubprocessError) as err:
            raise AddressAssignmentFailed(f"Could not add {address} to {device}: {err}") from err
        if not self._succeeded(result):
            raise AddressAssignmentFailed(
                f"Adding {address} to {device} exited with {result.returncode}: {result.stderr}"
            )
        lease = OwnedLease(address, device)
        self._active[device] = lease
        logger.info(f"Acquired {address} on {device} from pool {pool}")
        return lease

    def acquire_default(self, device: str) -> BorrowedLease:
        """Borrows the first address already configured on ``device``.

        Raises:
            NoAddressFound: the device reports no usable ``inet`` address.
        """
        try:
            result = self.configurator.show(device)
        except (OSError, subprocess.SubprocessError) as err:
            raise NoAddressFound(f"Could not list addresses on {device}: {err}") from err
        if not self._succeeded(result):
            raise NoAddressFound(f"Listing addresses on {device} exited with {result.returncode}")
        address = parse_inet_address(result.stdout)
        if address is None:
            raise NoAddressFound(f"No inet address found on {device}")
        logger.debug(f"Using existing address {address} on {device}")
        return BorrowedLease(address, device)

    def release(self, lease: AddressLease) -> None:
        """Removes an owned lease's address from its device. Borrowed leases are left alone.

        Raises:
            AddressReleaseFailed: the address could not be removed.
            RuntimeError: the lease was already released.
        """
        if lease.released:
            raise RuntimeError(f"Lease {lease.address} on {lease.device} already released")
        lease.released = True
        if isinstance(lease, BorrowedLease):
            return

        self._active.pop(lease.device, None)
        try:
            result = self.configurator.delete(lease.device, lease.address)
        except (OSError, subprocess.SubprocessError) as err:
            raise AddressReleaseFailed(f"Could not remove {lease.address} from {lease.device}: {err}") from err
        if not self._succeeded(result):
            raise AddressReleaseFailed(
                f"Removing {lease.address} from {lease.device} exited with {result.returncode}: {result.stderr}"
            )
        logger.info(f"Released {lease.address} on {lease.device}")
