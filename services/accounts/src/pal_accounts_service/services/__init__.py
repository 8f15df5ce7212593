"""
Service layer for the Accounts Service
======================================

- Address fingerprint lookup-or-create of accounts
- Session token issuance and verification
- Operation boundaries that never leak unexpected errors
"""

from .account_service import (
    AccountService,
    CreateAccountResult,
    LoginError,
    LoginResult,
    create_token_verifier,
)
from .account_store import AccountStore, ProvisionResult
from .token_service import IssuedToken, TokenIssuer, TokenVerifier, parse_account_id

__all__ = [
    "AccountService",
    "AccountStore",
    "CreateAccountResult",
    "IssuedToken",
    "LoginError",
    "LoginResult",
    "ProvisionResult",
    "TokenIssuer",
    "TokenVerifier",
    "create_token_verifier",
    "parse_account_id",
]
