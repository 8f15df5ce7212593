"""
Account Store
=============

Lookup-or-create of accounts keyed by address fingerprint. The unique index
on ``accounts.fingerprint`` is the only arbiter of uniqueness; this layer
takes no locks across requests.
"""

import uuid
from dataclasses import dataclass
from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from pal_errors import ErrorCode
from pal_logging import get_logger

from ..models import Account, utcnow

logger = get_logger(__name__)


@dataclass
class ProvisionResult:
    """Outcome of a lookup-or-create call."""
    account_id: Optional[UUID]
    success: bool
    created: bool = False


class AccountStore:
    """Service for account persistence."""

    async def find_by_id(self, session: AsyncSession, account_id: UUID) -> Optional[Account]:
        return await session.get(Account, account_id)

    async def find_by_fingerprint(self, session: AsyncSession, fingerprint: str) -> Optional[Account]:
        result = await session.execute(
            select(Account).where(Account.fingerprint == fingerprint)
        )
        return result.scalar_one_or_none()

    async def provision_or_retrieve(self, session: AsyncSession, fingerprint: str) -> ProvisionResult:
        """
        Return the account for ``fingerprint``, creating it on first sight.

        When a concurrent request wins the insert race, the unique index
        rejects our row; the winner's account is then read back so both
        callers converge on the same identity. The insert itself is never
        retried, and failures are reported rather than raised.
        """
        existing = await self.find_by_fingerprint(session, fingerprint)
        if existing is not None:
            return ProvisionResult(account_id=existing.id, success=True)

        account = Account(id=uuid.uuid4(), fingerprint=fingerprint, created_at=utcnow())
        session.add(account)
        try:
            await session.commit()
        except IntegrityError as e:
            await session.rollback()
            logger.warning(
                "Account insert lost a race on the fingerprint index",
                error_code=ErrorCode.DUPLICATE_FINGERPRINT,
                fingerprint=fingerprint,
                error=str(e.orig),
            )
            winner = await self.find_by_fingerprint(session, fingerprint)
            if winner is None:
                return ProvisionResult(account_id=None, success=False)
            return ProvisionResult(account_id=winner.id, success=True)
        except SQLAlchemyError as e:
            await session.rollback()
            logger.error(
                "Failed to persist account",
                error_code=ErrorCode.DATABASE_ERROR,
                fingerprint=fingerprint,
                error=str(e),
            )
            return ProvisionResult(account_id=None, success=False)

        return ProvisionResult(account_id=account.id, success=True, created=True)
