"""
Session token issuance and verification for accounts.
"""

import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from pal_errors import AuthenticationError, InvalidAccountIdError
from pal_logging import get_logger
from pal_session_tokens import issue_session_token_raw, verify_session_token_raw

from .account_store import AccountStore

logger = get_logger(__name__)


def parse_account_id(account_id: Optional[str]) -> UUID:
    """Parse a caller-supplied account identifier without touching storage."""
    try:
        return uuid.UUID(account_id.strip())
    except (AttributeError, TypeError, ValueError):
        raise InvalidAccountIdError(str(account_id), details={"reason": "malformed"})


@dataclass
class IssuedToken:
    """A freshly minted session token as reported to the caller."""
    account_id: UUID
    auth_token: str
    expires_at: datetime
    token_expires_at: datetime


class TokenIssuer:
    """Mints session tokens for existing accounts."""

    def __init__(
        self,
        store: AccountStore,
        signing_key: bytes,
        issuer: str,
        audience: str,
        lifetime_seconds: int = 24 * 60 * 60,
        refresh_margin_seconds: int = 5 * 60,
    ) -> None:
        self.store = store
        self.signing_key = signing_key
        self.issuer = issuer
        self.audience = audience
        self.lifetime_seconds = lifetime_seconds
        self.refresh_margin = timedelta(seconds=refresh_margin_seconds)

    async def issue(
        self, session: AsyncSession, account_id: str, now: Optional[datetime] = None
    ) -> IssuedToken:
        """
        Issue a token for ``account_id``.

        The reported expiry is earlier than the signed ``exp`` claim by the
        refresh margin, so callers renew before clock-skewed verifiers start
        rejecting the token.

        Raises:
            InvalidAccountIdError: If the id is malformed or names no account
        """
        parsed = parse_account_id(account_id)

        account = await self.store.find_by_id(session, parsed)
        if account is None:
            raise InvalidAccountIdError(account_id, details={"reason": "not_found"})

        token = issue_session_token_raw(
            signing_key=self.signing_key,
            sub=str(account.id),
            issuer=self.issuer,
            audience=self.audience,
            ttl_secs=self.lifetime_seconds,
            now=now,
        )
        return IssuedToken(
            account_id=account.id,
            auth_token=token.token,
            expires_at=token.expires_at - self.refresh_margin,
            token_expires_at=token.expires_at,
        )


class TokenVerifier:
    """Validates inbound session tokens and extracts the account identity."""

    def __init__(self, signing_key: bytes, issuer: str, audience: str, leeway_seconds: int = 0) -> None:
        self.signing_key = signing_key
        self.issuer = issuer
        self.audience = audience
        self.leeway_seconds = leeway_seconds

    def verify(self, token: str) -> UUID:
        """
        Return the authenticated account id.

        Every failure is reported the same way, as ``AuthenticationError``.
        """
        try:
            payload = verify_session_token_raw(
                self.signing_key,
                token,
                issuer=self.issuer,
                audience=self.audience,
                leeway_secs=self.leeway_seconds,
            )
            return uuid.UUID(payload["sub"])
        except (ValueError, TypeError, KeyError, AttributeError) as e:
            logger.info("Rejected session token", reason=str(e))
            raise AuthenticationError("Invalid session token")
