"""Pal infrastructure package."""

from .account_context import (
    AccountContext,
    get_current_account_id,
    require_current_account_id,
    set_current_account_id,
)
from .once_cell import OnceCell

__all__ = [
    "AccountContext",
    "OnceCell",
    "get_current_account_id",
    "require_current_account_id",
    "set_current_account_id",
]
