"""Thread-safe one-time initialization cell."""

import threading
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


class OnceCell(Generic[T]):
    """
    A value that is written at most once.

    Concurrent writers race harmlessly: the first stored value wins and every
    caller of ``set`` gets that settled value back.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._value: Optional[T] = None
        self._is_set = False

    @property
    def is_set(self) -> bool:
        return self._is_set

    def get(self) -> Optional[T]:
        """Return the stored value, or None if nothing was stored yet."""
        return self._value if self._is_set else None

    def set(self, value: T) -> T:
        """Store ``value`` unless a value is already present; return the stored value."""
        with self._lock:
            if not self._is_set:
                self._value = value
                self._is_set = True
            return self._value  # type: ignore[return-value]
