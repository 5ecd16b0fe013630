"""
Exceptions raised by pager-relay
"""


class PagerRelayError(Exception):
    """Base class for all pager-relay errors"""


class ConfigError(PagerRelayError):
    """Configuration file is missing required values or unreadable"""


class LineError(PagerRelayError):
    """A single input line could not be decoded"""

    def __init__(self, message: str, line: str):
        super().__init__(message)
        self.line = line


class MalformedLineError(LineError):
    """A required field (address, payload) is absent from the line"""


class DecodeFailureError(LineError):
    """The EAS/SAME decoder returned no result for the line"""
