"""
Protocol decoders for multimon-ng output lines
"""

from .base import ProtocolDecoder
from .fragments import FragmentStore
from .pocsag import POCSAGDecoder
from .flex import FLEXDecoder
from .eas import EASAdapter

__all__ = [
    "ProtocolDecoder",
    "FragmentStore",
    "POCSAGDecoder",
    "FLEXDecoder",
    "EASAdapter"
]
