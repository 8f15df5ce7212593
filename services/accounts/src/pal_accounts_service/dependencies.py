"""FastAPI dependencies for the Accounts API."""

from uuid import UUID

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from pal_errors import AuthenticationError, ErrorCode
from pal_infrastructure import set_current_account_id

from .services import AccountService, TokenVerifier

bearer_scheme = HTTPBearer(auto_error=False)


def get_account_service(request: Request) -> AccountService:
    return request.app.state.account_service


def get_token_verifier(request: Request) -> TokenVerifier:
    return request.app.state.token_verifier


def _unauthenticated() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail={"error": ErrorCode.UNAUTHENTICATED, "message": "Not authenticated"},
        headers={"WWW-Authenticate": "Bearer"},
    )


async def require_account(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
    verifier: TokenVerifier = Depends(get_token_verifier),
) -> UUID:
    """
    Authenticate the bearer token of a protected operation.

    Rejects before the operation runs; on success the account id is also
    published in the request's account context.
    """
    if credentials is None:
        raise _unauthenticated()
    try:
        account_id = verifier.verify(credentials.credentials)
    except AuthenticationError:
        raise _unauthenticated()

    set_current_account_id(account_id)
    return account_id
