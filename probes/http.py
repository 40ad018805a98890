# probes/http.py
import logging
from ipaddress import IPv4Address
from typing import Callable, Optional

import httpx

from service import HttpTarget, ServiceStatus
from .base import BaseProbe, BodyReadFailure, NonSuccessStatus, TransportFailure

logger = logging.getLogger(__name__)

TransportFactory = Callable[[IPv4Address], httpx.AsyncBaseTransport]


def bound_transport(source_address: IPv4Address) -> httpx.AsyncBaseTransport:
    """Transport whose outgoing connections originate from ``source_address``."""
    return httpx.AsyncHTTPTransport(local_address=str(source_address))


class HttpProbe(BaseProbe):
    """Single GET request; reachability decides ``up``, not body content."""

    def __init__(self, timeout: float = 10.0, transport_factory: Optional[TransportFactory] = None):
        self.timeout = timeout
        self.transport_factory = transport_factory or bound_transport

    @staticmethod
    def url_for(target: HttpTarget) -> str:
        if target.port == 80:
            return f"http://{target.address}{target.path}"
        return f"http://{target.address}:{target.port}{target.path}"

    async def _probe(self, target: HttpTarget, source_address: IPv4Address) -> ServiceStatus:
        url = self.url_for(target)
        timeout = target.timeout if target.timeout is not None else self.timeout
        logger.debug(f"GET {url} from {source_address}")
        async with httpx.AsyncClient(transport=self.transport_factory(source_address), timeout=timeout) as client:
            try:
                async with client.stream("GET", url) as response:
                    if not response.is_success:
                        raise NonSuccessStatus(
                            f"Get failed: HTTP {response.status_code} {response.reason_phrase}"
                        )
                    try:
                        body = await response.aread()
                    except httpx.HTTPError as e:
                        raise BodyReadFailure(f"Error reading body: {type(e).__name__}: {e}") from e
            except httpx.HTTPError as e:
                raise TransportFailure(f"Get failed: {type(e).__name__}: {e}") from e

        if target.verify_response and target.response:
            if target.response not in body.decode("utf-8", errors="replace"):
                return ServiceStatus(up=True, failure_reason="Response did not contain expected marker")
        return ServiceStatus(up=True)
