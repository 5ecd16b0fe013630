"""
Validation and formatting utilities for pager-relay
"""

from ..models import ADDRESS_WIDTH

MIN_ADDRESS_LENGTH = 3

def is_valid_address(address: str) -> bool:
    """Addresses of two characters or fewer are decoder noise"""
    return bool(address) and len(address) >= MIN_ADDRESS_LENGTH

def pad_address(address: str, width: int = ADDRESS_WIDTH) -> str:
    """Left-pad an address with zeros to a fixed width"""
    return str(address).rjust(width, "0")

def messages_url(hostname: str) -> str:
    """Collector endpoint for the configured base URL"""
    base = hostname[:-1] if hostname.endswith("/") else hostname
    return f"{base}/api/messages"
