"""
In-memory key-value store

Backs sessions in tests and offline use. Values live only as long as the
process; use RedisStore where state must survive restarts.
"""

import logging
from typing import Dict, Optional

logger = logging.getLogger(__name__)


class InMemoryStore:
    """Async key-value store held in a dict"""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    async def get(self, key: str) -> Optional[str]:
        """Get stored string, or None if absent"""
        return self._data.get(key)

    async def set(self, key: str, value: str) -> bool:
        """Store string value"""
        self._data[key] = value
        logger.debug(f"Saved {key} to memory store")
        return True

    async def delete(self, key: str) -> bool:
        """Delete key, returns True if it existed"""
        return self._data.pop(key, None) is not None

    def snapshot(self) -> Dict[str, str]:
        """Copy of everything stored (for inspection in tests and tooling)"""
        return dict(self._data)
