# address_pool.py
import ipaddress
import random
import re
from dataclasses import dataclass
from typing import Optional

MAX_RANDOM_BITS = 32
_DIGITS = re.compile(r"[0-9]+")


class AddressPoolError(ValueError):
    """Base class for pool specification errors."""


class InvalidAddressSpec(AddressPoolError):
    pass


class PrefixOutOfRange(AddressPoolError):
    def __init__(self, bits: int):
        super().__init__(f"Random bit count {bits} exceeds {MAX_RANDOM_BITS}")
        self.bits = bits


@dataclass(frozen=True)
class AddressPoolSpec:
    """A base address plus the number of low-order bits that may be randomized.

    This is not a routing prefix: ``10.0.0.0/8`` randomizes the *low* 8 bits,
    so every generated address falls in ``10.0.0.0 - 10.0.0.255``.
    """

    base_address: ipaddress.IPv4Address
    random_bits: int = MAX_RANDOM_BITS

    @classmethod
    def parse(cls, text: str) -> "AddressPoolSpec":
        """Parses ``"a.b.c.d/n"``. A missing ``/n`` means 32 random bits.

        Raises:
            InvalidAddressSpec: malformed address or non-numeric bit count.
            PrefixOutOfRange: bit count above 32.
        """
        address, sep, bits = text.partition("/")
        if not sep:
            bits = str(MAX_RANDOM_BITS)
        try:
            base = ipaddress.IPv4Address(address)
        except ValueError as err:
            raise InvalidAddressSpec(f"Invalid address in pool spec {text!r}: {err}") from err
        if not _DIGITS.fullmatch(bits):
            raise InvalidAddressSpec(f"Invalid bit count in pool spec {text!r}")
        random_bits = int(bits)
        if random_bits > MAX_RANDOM_BITS:
            raise PrefixOutOfRange(random_bits)
        return cls(base, random_bits)

    def serialize(self) -> str:
        return f"{self.base_address}/{self.random_bits}"

    def __str__(self) -> str:
        return self.serialize()

    @property
    def mask(self) -> int:
        if self.random_bits == MAX_RANDOM_BITS:
            return 0xFFFFFFFF
        return (1 << self.random_bits) - 1

    def generate_random_address(self, rng: Optional[random.Random] = None) -> ipaddress.IPv4Address:
        """Returns the base address with its low ``random_bits`` bits scrambled."""
        r = (rng or random).getrandbits(32)
        return ipaddress.IPv4Address(int(self.base_address) ^ (r & self.mask))
