# probes/base.py
import logging
from abc import ABC, abstractmethod
from ipaddress import IPv4Address
from typing import Any

from service import ServiceStatus

logger = logging.getLogger(__name__)


class ProbeFailure(Exception):
    """A failed check that still yields a status record.

    ``up`` is the value reported for the service when this failure occurs.
    """
    up = False


class TransportFailure(ProbeFailure):
    up = False


class NonSuccessStatus(ProbeFailure):
    up = False


class BodyReadFailure(ProbeFailure):
    # the service answered, only the content could not be read
    up = True


class BaseProbe(ABC):
    """Abstract base class for protocol-specific service checks."""

    async def check(self, target: Any, source_address: IPv4Address) -> ServiceStatus:
        """Checks ``target`` from ``source_address``. Never raises."""
        try:
            return await self._probe(target, source_address)
        except ProbeFailure as e:
            logger.info(f"{type(self).__name__} {target.address}: {e}")
            return ServiceStatus(up=e.up, failure_reason=str(e))
        except Exception as e:  # pylint: disable=broad-except
            logger.exception(f"Unexpected error probing {target.address}")
            return ServiceStatus(up=False, failure_reason=f"Probe error: {type(e).__name__}: {e}")

    @abstractmethod
    async def _probe(self, target: Any, source_address: IPv4Address) -> ServiceStatus:
        """Runs the check.

        Returns:
            The status on success. Failures are raised as ProbeFailure
            subclasses and converted by :meth:`check`.
        """
        pass
