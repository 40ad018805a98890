# utils.py
import logging
import subprocess
from abc import ABC, abstractmethod
from dataclasses import dataclass
from ipaddress import IPv4Address
from typing import List, Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CommandResult:
    """Outcome of a device configuration command.

    ``returncode`` is None when the process ended without an exit status
    (terminated by a signal).
    """
    returncode: Optional[int]
    stdout: str = ""
    stderr: str = ""


class BaseAddressConfigurator(ABC):
    """Adds, removes and lists addresses on a network device."""

    @abstractmethod
    def add(self, device: str, address: IPv4Address) -> CommandResult:
        pass

    @abstractmethod
    def delete(self, device: str, address: IPv4Address) -> CommandResult:
        pass

    @abstractmethod
    def show(self, device: str) -> CommandResult:
        pass


class IpCommand(BaseAddressConfigurator):
    """Configures addresses on a local device with the iproute2 ``ip`` tool."""

    def __init__(self, binary: str = "ip", timeout: int = 10):
        self.binary = binary
        self.timeout = timeout

    def add(self, device: str, address: IPv4Address) -> CommandResult:
        return self.execute_command(["addr", "add", "dev", device, f"{address}/32"])

    def delete(self, device: str, address: IPv4Address) -> CommandResult:
        return self.execute_command(["addr", "del", "dev", device, f"{address}/32"])

    def show(self, device: str) -> CommandResult:
        return self.execute_command(["addr", "show", "dev", device])

    def execute_command(self, args: List[str]) -> CommandResult:
        """Runs ``ip`` with the given arguments.

        Raises:
            OSError: the binary could not be started.
            subprocess.TimeoutExpired: the command did not finish in time.
        """
        command = [self.binary, *args]
        logger.debug(f"Running: {' '.join(command)}")
        completed = subprocess.run(
            command,
            capture_output=True,
            encoding="utf-8",
            errors="replace",
            check=False,
            timeout=self.timeout,
        )
        returncode: Optional[int] = completed.returncode
        if returncode is not None and returncode < 0:
            # negative return codes are signal numbers
            returncode = None
        stderr = completed.stderr.strip()
        if stderr:
            logger.warning(f"Command '{' '.join(command)}' returned error: {stderr}")
        return CommandResult(returncode, completed.stdout, stderr)
