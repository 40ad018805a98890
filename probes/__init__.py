# probes/__init__.py
from typing import Any

from .base import BaseProbe, BodyReadFailure, NonSuccessStatus, ProbeFailure, TransportFailure
from .http import HttpProbe  # Import all concrete implementations

# declared in the settings format but without an implementation yet
PLANNED_PROBES = ("dns", "smtp", "pop3")


def get_probe(probe_type: str, **options: Any) -> BaseProbe:
    """Probe factory: returns an instance of the probe class for ``probe_type``."""

    if probe_type == "http":
        return HttpProbe(**options)
    # Add other probe types here:
    # elif probe_type == "dns":
    #     return DnsProbe(**options)
    elif probe_type in PLANNED_PROBES:
        raise NotImplementedError(f"Probe type not implemented yet: {probe_type}")
    else:
        raise ValueError(f"Unsupported probe type: {probe_type}")
