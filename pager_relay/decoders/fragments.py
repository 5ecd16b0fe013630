"""
Holding area for FLEX messages split across several frames
"""

import logging
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

class FragmentStore:
    """Partial FLEX message text keyed by pager address

    At most one pending fragment is held per address. Entries for which no
    completion frame ever arrives are kept for the lifetime of the store.
    """

    def __init__(self):
        self._fragments: Dict[str, str] = {}
        self.stored_count = 0
        self.completed_count = 0
        self.overwritten_count = 0

    def store(self, address: str, text: str):
        """Hold text for an address, replacing any earlier partial"""
        if address in self._fragments:
            self.overwritten_count += 1
            logger.debug(f"FLEX: replacing pending fragment for {address}")
        self._fragments[address] = text
        self.stored_count += 1

    def take(self, address: str) -> Optional[str]:
        """Remove and return the partial text for an address"""
        text = self._fragments.pop(address, None)
        if text is not None:
            self.completed_count += 1
        return text

    def get(self, address: str) -> Optional[str]:
        return self._fragments.get(address)

    def clear(self, address: str):
        """Drop the pending fragment for an address, if any"""
        self._fragments.pop(address, None)

    def addresses(self) -> List[str]:
        return list(self._fragments)

    def __contains__(self, address: str) -> bool:
        return address in self._fragments

    def __len__(self) -> int:
        return len(self._fragments)

    def get_statistics(self) -> Dict[str, Any]:
        """Get fragment store statistics"""
        return {
            'pending_fragments': len(self._fragments),
            'fragments_stored': self.stored_count,
            'fragments_completed': self.completed_count,
            'fragments_overwritten': self.overwritten_count
        }
