"""Account context management for authenticated operations."""

import contextvars
from typing import Optional
from uuid import UUID

# Context variable to store the authenticated account ID
_account_context: contextvars.ContextVar[Optional[UUID]] = contextvars.ContextVar(
    "account_id", default=None
)


def get_current_account_id() -> Optional[UUID]:
    """Get the authenticated account ID from context."""
    return _account_context.get()


def set_current_account_id(account_id: UUID) -> contextvars.Token:
    """Set the authenticated account ID in context."""
    return _account_context.set(account_id)


def require_current_account_id() -> UUID:
    """Get the authenticated account ID, failing if none is set."""
    account_id = _account_context.get()
    if account_id is None:
        raise LookupError("No authenticated account in context")
    return account_id


class AccountContext:
    """Context manager for setting the authenticated account."""

    def __init__(self, account_id: UUID) -> None:
        """Initialize with account ID."""
        self.account_id = account_id
        self.token: Optional[contextvars.Token] = None

    def __enter__(self) -> "AccountContext":
        """Enter the context and set account ID."""
        self.token = _account_context.set(self.account_id)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Exit the context and reset account ID."""
        if self.token is not None:
            _account_context.reset(self.token)

    async def __aenter__(self) -> "AccountContext":
        """Async context manager entry."""
        return self.__enter__()

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        self.__exit__(exc_type, exc_val, exc_tb)
