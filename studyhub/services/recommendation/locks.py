"""
Per-user serialization for recommendation generation.

Two generation runs for the same user must not interleave their
delete/insert steps, so each run holds that user's lock for its whole
duration. Runs for different users proceed concurrently.

Locks are held weakly: once no run holds or awaits a user's lock it is
dropped, and the next run creates a fresh one.
"""

import asyncio
import weakref


class UserLockRegistry:
    """Hands out one asyncio.Lock per user id."""

    def __init__(self) -> None:
        self._locks: weakref.WeakValueDictionary[int, asyncio.Lock] = (
            weakref.WeakValueDictionary()
        )

    def lock_for(self, user_id: int) -> asyncio.Lock:
        """Return the lock guarding ``user_id``'s recommendation set."""
        lock = self._locks.get(user_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[user_id] = lock
        return lock

    def __len__(self) -> int:
        return len(self._locks)
