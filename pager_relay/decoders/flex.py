"""
FLEX Pager Decoder
Extracts address and message from multimon-ng FLEX output and reassembles
messages split across several frames.

Both multimon-ng layouts are accepted:
    FLEX: 2024-03-01 10:20:30 1600/2/K/A 10.120 [001234567] ALN Message text
    FLEX|2024-03-01 10:20:30|1600/2/K/A|10.120|001234567|ALN|Message text
"""

import re
import time
import logging
from typing import Any, Dict, Optional

from .base import ProtocolDecoder
from .fragments import FragmentStore
from ..errors import MalformedLineError
from ..models import DecodedLine, ProtocolFamily
from ..utils.timestamps import TimestampResolver

logger = logging.getLogger(__name__)

FLEX_ADDRESS_REGEX = re.compile(r"FLEX[:|] ?.*?[\[|](\d*?)[\]| ]")
FLEX_MESSAGE_REGEX = re.compile(r"FLEX[:|].*[|\[][0-9 ]*[|\]] ?...[ |](.+)")
CONTENT_TYPE_REGEX = re.compile(r"([ |]ALN[ |]|[ |]GPN[ |]|[ |]NUM[ |])")

# Frame/cycle/fragment-flag/phase, e.g. 1600/2/F/A
FRAGMENT_CODE_REGEX = re.compile(r"[ |][0-9]{4}/[0-9]/(.)/.[ |]")
FRAGMENT_START = "F"
FRAGMENT_COMPLETE = "C"

FLEX_TIMESTAMP_PATTERNS = (
    re.compile(r"FLEX[:|] ?(\d{2} \w+ \d{4} \d{2}:\d{2}:\d{2})"),
    re.compile(r"FLEX[:|] ?(\d+-\d+-\d+ \d{2}:\d{2}:\d{2})"),
)

class FLEXDecoder(ProtocolDecoder):
    """FLEX pager line decoder with fragment reassembly"""

    family = ProtocolFamily.FLEX

    def __init__(self, fragments: Optional[FragmentStore] = None,
                 timestamps: Optional[TimestampResolver] = None,
                 use_timestamp: bool = True):
        self.fragments = fragments if fragments is not None else FragmentStore()
        clock = timestamps.clock if timestamps else time.time
        self.timestamps = TimestampResolver(clock=clock, patterns=FLEX_TIMESTAMP_PATTERNS)
        self.use_timestamp = use_timestamp
        self.message_count = 0
        self.fragment_count = 0
        self.reassembled_count = 0

    def matches(self, line: str) -> bool:
        return FLEX_ADDRESS_REGEX.search(line) is not None

    def decode(self, line: str) -> DecodedLine:
        """Decode a single FLEX line"""
        match = FLEX_ADDRESS_REGEX.search(line)
        address = match.group(1).strip() if match else ""
        if not address:
            raise MalformedLineError("Failed to extract FLEX address", line)

        if self.use_timestamp:
            datetime = self.timestamps.resolve(line)
        else:
            datetime = self.timestamps.now()

        message = None
        if CONTENT_TYPE_REGEX.search(line):
            message_match = FLEX_MESSAGE_REGEX.search(line)
            if message_match:
                message = self._reassemble(address, message_match.group(1), line)
            else:
                logger.warning(f"Failed to extract FLEX message from line: {line!r}")

        return DecodedLine(address=address, message=message, datetime=datetime)

    def _reassemble(self, address: str, text: str, line: str) -> Optional[str]:
        """Apply the fragment flag of the frame to its text

        A fragment keeps its trailing whitespace so that a word boundary at
        the frame split survives concatenation.
        """
        self.message_count += 1
        code = FRAGMENT_CODE_REGEX.search(line)
        flag = code.group(1) if code else None

        if flag == FRAGMENT_START:
            self.fragments.store(address, text.lstrip())
            self.fragment_count += 1
            logger.debug(f"FLEX: holding fragment for {address}")
            return None

        if flag == FRAGMENT_COMPLETE:
            partial = self.fragments.take(address) or ""
            self.reassembled_count += 1
            return (partial + text).strip()

        # K or an unrecognised flag: a complete single-frame message
        return text.strip()

    def get_statistics(self) -> Dict[str, Any]:
        """Get decoder statistics"""
        stats = {
            'total_messages': self.message_count,
            'fragments_received': self.fragment_count,
            'messages_reassembled': self.reassembled_count
        }
        stats.update(self.fragments.get_statistics())
        return stats
