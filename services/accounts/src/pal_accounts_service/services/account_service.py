"""
Account operations exposed to callers.

Each public coroutine is an operation boundary: anything unexpected is
logged and turned into a failed result instead of escaping to the
transport.
"""

import enum
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Optional, Tuple
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from pal_errors import AddressResolutionError, ConfigurationError, InvalidAccountIdError
from pal_infrastructure import OnceCell
from pal_logging import get_logger

from ..address_resolver import AddressResolver
from ..fingerprints import IdentityHasher, SaltProvider
from ..settings import AccountsSettings
from .account_store import AccountStore
from .token_service import TokenIssuer, TokenVerifier

logger = get_logger(__name__)


class LoginError(str, enum.Enum):
    UNKNOWN = "Unknown"
    INVALID_ACCOUNT_ID = "InvalidAccountId"


@dataclass
class CreateAccountResult:
    success: bool
    account_id: Optional[UUID] = None


@dataclass
class LoginResult:
    success: bool
    auth_token: Optional[str] = None
    expires_at: Optional[datetime] = None
    error: Optional[LoginError] = None


class AccountService:
    """Account creation and login."""

    def __init__(
        self,
        resolver: AddressResolver,
        salt_provider: SaltProvider,
        hasher: IdentityHasher,
        store: AccountStore,
        issuer: TokenIssuer,
    ) -> None:
        self.resolver = resolver
        self.salt_provider = salt_provider
        self.hasher = hasher
        self.store = store
        self.issuer = issuer

    @classmethod
    def from_settings(
        cls, settings: AccountsSettings, salt_cell: Optional[OnceCell[bytes]] = None
    ) -> "AccountService":
        store = AccountStore()
        return cls(
            resolver=AddressResolver(settings.trusted_proxies, settings.real_ip_header),
            salt_provider=SaltProvider(salt_cell),
            hasher=IdentityHasher(
                iterations=settings.fingerprint_iterations,
                length=settings.fingerprint_length,
                algorithm=settings.fingerprint_hash,
            ),
            store=store,
            issuer=TokenIssuer(
                store=store,
                signing_key=settings.signing_key,
                issuer=settings.jwt_issuer,
                audience=settings.jwt_audience,
                lifetime_seconds=settings.token_lifetime_seconds,
                refresh_margin_seconds=settings.token_refresh_margin_seconds,
            ),
        )

    async def create_account(
        self,
        session: AsyncSession,
        source: Optional[str],
        headers: Iterable[Tuple[str, str]],
    ) -> CreateAccountResult:
        """Return the account for the caller's address, creating it if needed."""
        try:
            address = self.resolver.resolve(source, headers)
            salt = await self.salt_provider.get_salt(session)
            fingerprint = self.hasher.fingerprint(address, salt)
            result = await self.store.provision_or_retrieve(session, fingerprint)
        except AddressResolutionError as e:
            logger.warning("CreateAccount: no usable client address", reason=e.message)
            return CreateAccountResult(success=False)
        except ConfigurationError as e:
            logger.critical("CreateAccount: service is misconfigured", **e.to_dict())
            return CreateAccountResult(success=False)
        except Exception:
            logger.exception("Could not create account")
            return CreateAccountResult(success=False)

        if not result.success:
            return CreateAccountResult(success=False)

        if result.created:
            logger.info("CreateAccount: created new account", account_id=str(result.account_id), fingerprint=fingerprint)
        else:
            logger.info(
                "CreateAccount: returning existing account",
                account_id=str(result.account_id),
                fingerprint=fingerprint,
                address_prefix=str(address)[:5],
            )
        return CreateAccountResult(success=True, account_id=result.account_id)

    async def login(self, session: AsyncSession, account_id: str) -> LoginResult:
        """Issue a session token for an existing account."""
        try:
            issued = await self.issuer.issue(session, account_id)
        except InvalidAccountIdError as e:
            logger.warning("Login rejected", account_id=account_id, reason=e.details.get("reason"))
            return LoginResult(success=False, error=LoginError.INVALID_ACCOUNT_ID)
        except Exception:
            logger.exception("Could not log into account", account_id=account_id)
            return LoginResult(success=False, error=LoginError.UNKNOWN)

        logger.info("Login: issued session token", account_id=str(issued.account_id))
        return LoginResult(success=True, auth_token=issued.auth_token, expires_at=issued.expires_at)


def create_token_verifier(settings: AccountsSettings) -> TokenVerifier:
    return TokenVerifier(
        signing_key=settings.signing_key,
        issuer=settings.jwt_issuer,
        audience=settings.jwt_audience,
        leeway_seconds=settings.token_leeway_seconds,
    )
