"""
EAS/SAME alert adapter
Hands EAS header lines to a SAME decoder and maps its result to a pager
address and message.
"""

import re
import logging
from typing import Any, Callable, Dict, Iterable, Optional

from . import same
from .base import ProtocolDecoder
from ..errors import DecodeFailureError
from ..models import DecodedLine, ProtocolFamily
from ..utils.timestamps import TimestampResolver

logger = logging.getLogger(__name__)

EAS_REGEX = re.compile(r"(EAS[:|]|ZCZC-)")

# decode(line, exclude_events, include_fips) -> dict or None
SameDecodeFunc = Callable[[str, Iterable[str], Iterable[str]], Optional[Dict[str, Any]]]

class EASAdapter(ProtocolDecoder):
    """EAS/SAME line adapter"""

    family = ProtocolFamily.EAS

    def __init__(self, decode_func: Optional[SameDecodeFunc] = None,
                 exclude_events: Iterable[str] = (), include_fips: Iterable[str] = (),
                 address_add_type: bool = False,
                 timestamps: Optional[TimestampResolver] = None):
        self.decode_func = decode_func or same.decode
        self.exclude_events = list(exclude_events)
        self.include_fips = list(include_fips)
        self.address_add_type = address_add_type
        self.timestamps = timestamps or TimestampResolver()
        self.alert_count = 0
        self.failure_count = 0
        self.event_types: Dict[str, int] = {}

    def matches(self, line: str) -> bool:
        return EAS_REGEX.search(line) is not None

    def decode(self, line: str) -> DecodedLine:
        """Decode a single EAS line"""
        decoded = self.decode_func(line, self.exclude_events, self.include_fips)
        if not decoded:
            self.failure_count += 1
            raise DecodeFailureError("Failed to decode EAS message", line)

        event_type = decoded.get("type")
        if self.address_add_type:
            address = f"{decoded['LLLL-ORG']}-{event_type}"
        else:
            address = decoded["LLLL-ORG"]

        self.alert_count += 1
        if event_type:
            self.event_types[event_type] = self.event_types.get(event_type, 0) + 1

        # Headers carry no reusable issuance time, so alerts are stamped on receipt
        return DecodedLine(address=str(address), message=decoded.get("MESSAGE"),
                           datetime=self.timestamps.now())

    def get_statistics(self) -> Dict[str, Any]:
        """Get adapter statistics"""
        return {
            'total_alerts': self.alert_count,
            'decode_failures': self.failure_count,
            'event_types': dict(self.event_types)
        }
