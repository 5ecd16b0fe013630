"""
Utility functions for pager-relay
"""

from .timestamps import TimestampResolver, parse_timestamp
from .validators import (
    is_valid_address,
    pad_address,
    messages_url
)

__all__ = [
    "TimestampResolver",
    "parse_timestamp",
    "is_valid_address",
    "pad_address",
    "messages_url"
]
