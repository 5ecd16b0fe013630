"""
Turns decoder output into the record sent to the collector
"""

import logging
from typing import Any, Dict, Optional

from .models import DecodedLine, PagingMessage
from .utils.validators import is_valid_address, pad_address

logger = logging.getLogger(__name__)

class MessageNormalizer:
    """Filters false hits and pads addresses"""

    def __init__(self, source: str):
        self.source = source
        self.accepted_count = 0
        self.rejected_count = 0

    def normalize(self, decoded: DecodedLine) -> Optional[PagingMessage]:
        """PagingMessage for a decoded line, or None if it is not a message"""
        if not is_valid_address(decoded.address) or not decoded.message:
            self.rejected_count += 1
            return None

        self.accepted_count += 1
        return PagingMessage(
            address=pad_address(decoded.address),
            message=decoded.message,
            datetime=int(decoded.datetime),
            source=self.source,
        )

    def get_statistics(self) -> Dict[str, Any]:
        return {
            'accepted': self.accepted_count,
            'rejected': self.rejected_count
        }
