"""
Base class for protocol decoders
"""

from abc import ABC, abstractmethod
from typing import Any, Dict

from ..models import DecodedLine, ProtocolFamily

class ProtocolDecoder(ABC):
    """Abstract base class for line decoders

    Subclasses must set ``family`` to POCSAG, FLEX or EAS; the dispatcher
    refuses decoders left at UNKNOWN.
    """

    family: ProtocolFamily = ProtocolFamily.UNKNOWN

    @abstractmethod
    def matches(self, line: str) -> bool:
        """True if the line belongs to this decoder's family"""
        pass

    @abstractmethod
    def decode(self, line: str) -> DecodedLine:
        """Decode a matching line

        Raises MalformedLineError or DecodeFailureError when the line cannot
        be decoded.
        """
        pass

    @abstractmethod
    def get_statistics(self) -> Dict[str, Any]:
        """Get decoder statistics"""
        pass
