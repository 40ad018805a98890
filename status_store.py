# status_store.py
import logging
import threading
from types import MappingProxyType
from typing import Dict, Iterable, Mapping

from service import ServiceStatus

logger = logging.getLogger(__name__)


class StatusStore:
    """Latest status per service, shared between the scheduler and readers.

    The lock is only held for a single dict copy or assignment.
    """

    def __init__(self, names: Iterable[str] = ()):
        self._lock = threading.Lock()
        self._statuses: Dict[str, ServiceStatus] = {name: ServiceStatus.placeholder() for name in names}

    def set(self, name: str, status: ServiceStatus) -> None:
        with self._lock:
            self._statuses[name] = status
        logger.debug(f"Status for {name}: up={status.up} reason={status.failure_reason!r}")

    def get(self) -> Mapping[str, ServiceStatus]:
        """Returns a read-only snapshot that later writes do not affect."""
        with self._lock:
            snapshot = dict(self._statuses)
        return MappingProxyType(snapshot)
