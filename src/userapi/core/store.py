"""
In-memory user record store.

Records are kept in an ordered list and addressed by their position at the
time of the call. Removing a record shifts every later record down by one,
so an index is not a stable identity across mutations.
"""

import threading
from typing import List

import structlog

from ..models.user import User
from .exceptions import NotFoundError

logger = structlog.get_logger(__name__)


class UserStore:
    """
    Ordered, process-local collection of user records.

    All operations are serialized by a single lock. Records are copied on the
    way in and out so callers cannot change stored state behind the lock.
    """

    def __init__(self) -> None:
        self._users: List[User] = []
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._users)

    def list(self) -> List[User]:
        """Return a snapshot of all records in order."""
        with self._lock:
            return [user.model_copy() for user in self._users]

    def get(self, index: int) -> User:
        """Return the record at index, raising NotFoundError when out of range."""
        with self._lock:
            self._check_bounds(index)
            return self._users[index].model_copy()

    def append(self, user: User) -> int:
        """Append a record and return its index."""
        with self._lock:
            self._users.append(user.model_copy())
            index = len(self._users) - 1

        logger.debug("User appended", index=index)
        return index

    def replace(self, index: int, user: User) -> User:
        """Overwrite the record at index."""
        with self._lock:
            self._check_bounds(index)
            self._users[index] = user.model_copy()

        logger.debug("User replaced", index=index)
        return user

    def remove(self, index: int) -> List[User]:
        """Remove the record at index and return the remaining records."""
        with self._lock:
            self._check_bounds(index)
            del self._users[index]
            remaining = [u.model_copy() for u in self._users]

        logger.debug("User removed", index=index, remaining=len(remaining))
        return remaining

    def _check_bounds(self, index: int) -> None:
        # Negative indices are out of range, never counted from the end
        if index < 0 or index >= len(self._users):
            raise NotFoundError(index=index)
