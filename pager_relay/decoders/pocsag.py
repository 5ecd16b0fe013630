"""
POCSAG Pager Decoder
Extracts address and message from multimon-ng POCSAG512/1200/2400 output
"""

import re
import logging
from typing import Any, Dict, Optional

from .base import ProtocolDecoder
from ..errors import MalformedLineError
from ..models import DecodedLine, ProtocolFamily
from ..utils.timestamps import TimestampResolver

logger = logging.getLogger(__name__)

# multimon-ng: "POCSAG1200: Address: 1234567  Function: 3  Alpha:   TEXT"
POCSAG_LINE_REGEX = re.compile(r"POCSAG(\d+): Address: ")
POCSAG_ADDRESS_REGEX = re.compile(r"POCSAG(\d+): Address:(.*?)Function")
POCSAG_FUNCTION_REGEX = re.compile(r"POCSAG(\d+): Address:(.*?)Function: (\d)")
ALPHA_REGEX = re.compile(r"Alpha:(.*?)$")
NUMERIC_REGEX = re.compile(r"Numeric:(.*?)$")

# Three-letter control characters rendered by multimon-ng, e.g. <EOT>, <NUL>
CONTROL_TOKEN_REGEX = re.compile(r"<[A-Za-z]{3}>")

# German charset artifacts multimon-ng prints for square brackets
BRACKET_ARTIFACTS = {
    "\u00c4": "[",
    "\u00dc": "]",
}

def clean_payload(text: str) -> str:
    """Strip control tokens and map bracket artifacts back to ASCII"""
    text = CONTROL_TOKEN_REGEX.sub("", text)
    for artifact, replacement in BRACKET_ARTIFACTS.items():
        text = text.replace(artifact, replacement)
    return text

class POCSAGDecoder(ProtocolDecoder):
    """POCSAG pager line decoder"""

    family = ProtocolFamily.POCSAG

    def __init__(self, timestamps: Optional[TimestampResolver] = None,
                 send_function_code: bool = False, use_timestamp: bool = True):
        self.timestamps = timestamps or TimestampResolver()
        self.send_function_code = send_function_code
        self.use_timestamp = use_timestamp
        self.message_count = 0
        self.alpha_count = 0
        self.numeric_count = 0
        self.bitrates: Dict[str, int] = {}

    def matches(self, line: str) -> bool:
        return POCSAG_LINE_REGEX.search(line) is not None

    def decode(self, line: str) -> DecodedLine:
        """Decode a single POCSAG line"""
        match = POCSAG_ADDRESS_REGEX.search(line)
        address = match.group(2).strip() if match else ""
        if not address:
            raise MalformedLineError("Failed to extract address", line)

        bitrate = match.group(1)
        self.bitrates[bitrate] = self.bitrates.get(bitrate, 0) + 1
        self.message_count += 1

        if self.send_function_code:
            function_match = POCSAG_FUNCTION_REGEX.search(line)
            if function_match:
                address += function_match.group(3)
            else:
                logger.warning(f"Failed to extract function code from line: {line!r}")

        datetime = self.timestamps.now()
        message = None

        if "Alpha:" in line:
            payload = self._payload(ALPHA_REGEX, line, "Alpha")
            if payload:
                if self.use_timestamp:
                    payload, datetime = self.timestamps.extract(payload)
                message = clean_payload(payload).strip()
                self.alpha_count += 1
        elif "Numeric:" in line:
            payload = self._payload(NUMERIC_REGEX, line, "Numeric")
            if payload:
                message = clean_payload(payload)
                self.numeric_count += 1

        return DecodedLine(address=address, message=message, datetime=datetime)

    def _payload(self, regex: re.Pattern, line: str, kind: str) -> Optional[str]:
        match = regex.search(line)
        payload = match.group(1).strip() if match else ""
        if not payload:
            logger.warning(f"Failed to extract {kind} message from line: {line!r}")
            return None
        return payload

    def get_statistics(self) -> Dict[str, Any]:
        """Get decoder statistics"""
        return {
            'total_messages': self.message_count,
            'alpha_messages': self.alpha_count,
            'numeric_messages': self.numeric_count,
            'bitrates': dict(self.bitrates)
        }
