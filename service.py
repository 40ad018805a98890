# service.py
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional

NOT_YET_CHECKED = "not yet checked"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class ServiceStatus:
    up: bool
    last_checked: datetime = field(default_factory=utcnow)
    failure_reason: str = ""

    @classmethod
    def placeholder(cls) -> "ServiceStatus":
        return cls(up=False, failure_reason=NOT_YET_CHECKED)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "up": self.up,
            "last_checked": self.last_checked.isoformat(),
            "failure_reason": self.failure_reason,
        }


@dataclass(frozen=True)
class HttpTarget:
    address: str
    port: int = 80
    path: str = "/"
    response: str = ""  # expected marker in the body
    verify_response: bool = False
    timeout: Optional[float] = None


@dataclass(frozen=True)
class DnsTarget:
    address: str
    domain: str
    response: str  # expected A record


@dataclass(frozen=True)
class MailTarget:
    address: str
    port: int
