"""
Record types shared by the decoders, normalizer and sender
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional, Union

ADDRESS_WIDTH = 7


class ProtocolFamily(Enum):
    """Transmission family a raw line belongs to"""
    POCSAG = "pocsag"
    FLEX = "flex"
    EAS = "eas"
    UNKNOWN = "unknown"


class LineOutcome(Enum):
    """What happened to a single input line"""
    EMITTED = "emitted"
    PASSTHROUGH = "passthrough"
    REJECTED = "rejected"
    MALFORMED = "malformed"
    DECODE_FAILED = "decode_failed"
    ERROR = "error"


@dataclass
class DecodedLine:
    """Address/message/time triple produced by a protocol decoder

    ``message`` is None when the line carries nothing deliverable, e.g. a
    held FLEX fragment or a POCSAG line without a payload marker.
    """
    address: str
    message: Optional[str]
    datetime: int


@dataclass(frozen=True)
class PagingMessage:
    """Canonical record delivered to the collector"""
    address: str
    message: str
    datetime: int
    source: str

    def as_form(self) -> Dict[str, Union[str, int]]:
        """Form fields for the collector's /api/messages endpoint"""
        return {
            "address": self.address,
            "message": self.message,
            "datetime": self.datetime,
            "source": self.source,
        }


@dataclass
class DeliveryAttempt:
    """Retry state of one message while it is being sent"""
    message: PagingMessage
    retry_count: int = 0
    scheduled_delay_ms: int = 0


@dataclass
class LineResult:
    """Result of processing one raw line"""
    line: str
    family: ProtocolFamily
    outcome: LineOutcome
    message: Optional[PagingMessage] = None
    reason: Optional[str] = None
    error: Optional[BaseException] = field(default=None, repr=False)

    @property
    def emitted(self) -> bool:
        return self.outcome is LineOutcome.EMITTED
