"""Shared fakes for the service monitor tests."""

from __future__ import annotations

from ipaddress import IPv4Address

import pytest

from probes import BaseProbe
from service import ServiceStatus
from utils import BaseAddressConfigurator, CommandResult

IP_ADDR_SHOW = """\
2: eth0: <BROADCAST,MULTICAST,UP,LOWER_UP> mtu 1500 qdisc fq_codel state UP group default qlen 1000
    link/ether 52:54:00:12:34:56 brd ff:ff:ff:ff:ff:ff
    inet 192.168.1.23/24 brd 192.168.1.255 scope global dynamic eth0
       valid_lft 86123sec preferred_lft 86123sec
    inet6 fe80::5054:ff:fe12:3456/64 scope link
       valid_lft forever preferred_lft forever
"""


class FakeConfigurator(BaseAddressConfigurator):
    """Records every call; return codes are set per operation."""

    def __init__(self, show_output: str = IP_ADDR_SHOW):
        self.calls: list[tuple[str, str, IPv4Address | None]] = []
        self.show_output = show_output
        self.add_returncode: int | None = 0
        self.delete_returncode: int | None = 0
        self.show_returncode: int | None = 0

    def add(self, device, address):
        self.calls.append(("add", device, address))
        return CommandResult(self.add_returncode, "", "" if self.add_returncode == 0 else "RTNETLINK answers: error")

    def delete(self, device, address):
        self.calls.append(("delete", device, address))
        return CommandResult(self.delete_returncode)

    def show(self, device):
        self.calls.append(("show", device, None))
        return CommandResult(self.show_returncode, self.show_output)


class RecordingProbe(BaseProbe):
    """Returns a fixed status and remembers the source addresses it was given."""

    def __init__(self, status: ServiceStatus | None = None):
        self.status = status or ServiceStatus(up=True)
        self.sources: list[IPv4Address] = []

    async def _probe(self, target, source_address):
        self.sources.append(source_address)
        return self.status


@pytest.fixture
def configurator():
    return FakeConfigurator()


@pytest.fixture
def recording_probe():
    return RecordingProbe()
