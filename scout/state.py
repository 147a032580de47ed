import threading
from typing import Set, Tuple

class FoundState:
    """Shared dedup and found-state for a single scan run.

    Every public method is one atomic check-and-set under the same lock, so
    "first success wins" holds no matter how callers interleave. Workers must
    never read a set and then write it in two steps.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._hosts_confirmed: Set[str] = set()
        self._paths_confirmed: Set[Tuple[str, str]] = set()
        self._hosts_attempted: Set[str] = set()
        self._hosts_warned: Set[str] = set()
        self._found = 0

    def try_confirm_host(self, target: str, limit: int = 0) -> bool:
        """True exactly once per target, on the call that confirms it.

        With a positive limit, confirmation is refused once the found count
        has reached it.
        """
        with self._lock:
            if target in self._hosts_confirmed:
                return False
            if limit > 0 and self._found >= limit:
                return False
            self._hosts_confirmed.add(target)
            self._found += 1
            return True

    def is_host_confirmed(self, target: str) -> bool:
        with self._lock:
            return target in self._hosts_confirmed

    def try_confirm_path(self, target: str, path: str) -> bool:
        with self._lock:
            key = (target, path)
            if key in self._paths_confirmed:
                return False
            self._paths_confirmed.add(key)
            return True

    def is_path_confirmed(self, target: str, path: str) -> bool:
        with self._lock:
            return (target, path) in self._paths_confirmed

    def mark_attempted(self, target: str) -> bool:
        """True if the target had not been attempted before"""
        with self._lock:
            if target in self._hosts_attempted:
                return False
            self._hosts_attempted.add(target)
            return True

    def warn_once(self, target: str) -> bool:
        with self._lock:
            if target in self._hosts_warned:
                return False
            self._hosts_warned.add(target)
            return True

    @property
    def found_count(self) -> int:
        with self._lock:
            return self._found

    def quota_reached(self, limit: int) -> bool:
        return limit > 0 and self.found_count >= limit
