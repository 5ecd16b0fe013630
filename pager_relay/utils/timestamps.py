"""
Embedded timestamp extraction for pager message text
"""

import logging
import re
import time
from datetime import datetime
from typing import Callable, Optional, Sequence, Tuple

logger = logging.getLogger(__name__)

# "01 March 2024 10:20:30" and "2024-03-01 10:20:30" as emitted by paging terminals
LONG_DATE_REGEX = re.compile(r"\d{2} \w+ \d{4} \d{2}:\d{2}:\d{2}")
ISO_DATE_REGEX = re.compile(r"\d+-\d+-\d+ \d{2}:\d+:\d{2}")

# Month names may be written out or abbreviated
TIMESTAMP_FORMATS = (
    "%d %B %Y %H:%M:%S",
    "%d %b %Y %H:%M:%S",
    "%Y-%m-%d %H:%M:%S",
)


def parse_timestamp(text: str, formats: Sequence[str] = TIMESTAMP_FORMATS) -> Optional[int]:
    """Parse a local-time timestamp string into Unix seconds, None if invalid"""
    for fmt in formats:
        try:
            parsed = datetime.strptime(text.strip(), fmt)
        except ValueError:
            continue
        return int(parsed.timestamp())
    return None


class TimestampResolver:
    """Finds a timestamp inside message text, falling back to the clock"""

    def __init__(self, clock: Callable[[], float] = time.time,
                 patterns: Sequence[re.Pattern] = (LONG_DATE_REGEX, ISO_DATE_REGEX)):
        self.clock = clock
        self.patterns = tuple(patterns)

    def now(self) -> int:
        """Current time in Unix seconds"""
        return int(self.clock())

    def find(self, text: str) -> Optional[Tuple[str, int]]:
        """Return (matched text, Unix seconds) for the first parseable timestamp

        Patterns are tried in order; the first pattern that matches decides,
        even if its match turns out not to parse.
        """
        for pattern in self.patterns:
            match = pattern.search(text)
            if not match:
                continue
            # Patterns with a group carry a prefix that is not part of the stamp
            stamp = match.group(1) if pattern.groups else match.group(0)
            value = parse_timestamp(stamp)
            if value is None:
                logger.debug(f"Ignoring unparseable timestamp {stamp!r}")
                return None
            return stamp, value
        return None

    def resolve(self, text: str) -> int:
        """Embedded timestamp if present and valid, else the current time"""
        found = self.find(text)
        if found:
            return found[1]
        return self.now()

    def extract(self, text: str) -> Tuple[str, int]:
        """Resolve the timestamp and remove it from the text

        Returns the text with the timestamp removed (and trimmed), plus the
        resolved time. Text without a valid timestamp is returned unchanged.
        """
        found = self.find(text)
        if not found:
            return text, self.now()
        matched, value = found
        return text.replace(matched, "", 1).strip(), value
