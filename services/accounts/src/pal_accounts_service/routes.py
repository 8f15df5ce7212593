"""Account API routes."""

from uuid import UUID

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from pal_logging import get_logger

from .database import get_async_session
from .dependencies import get_account_service, require_account
from .schemas import CreateAccountResponse, LoginRequest, LoginResponse, VerifyResponse
from .services import AccountService

logger = get_logger(__name__)

router = APIRouter()


@router.post("", response_model=CreateAccountResponse, response_model_exclude_none=True)
async def create_account(
    request: Request,
    db: AsyncSession = Depends(get_async_session),
    service: AccountService = Depends(get_account_service),
) -> CreateAccountResponse:
    """Create an account for the calling address, or return the existing one."""
    source = request.client.host if request.client else None
    result = await service.create_account(db, source, request.headers.items())
    return CreateAccountResponse(
        success=result.success,
        account_id=str(result.account_id) if result.account_id else None,
    )


async def read_login_request(request: Request) -> LoginRequest:
    """Parse the login body; unreadable or non-object bodies carry no account id."""
    try:
        data = await request.json()
    except ValueError:
        data = None
    if not isinstance(data, dict):
        data = {}
    return LoginRequest.model_validate(data)


@router.post(
    "/login",
    response_model=LoginResponse,
    response_model_exclude_none=True,
    openapi_extra={
        "requestBody": {
            "required": True,
            "content": {"application/json": {"schema": LoginRequest.model_json_schema(by_alias=True)}},
        }
    },
)
async def login(
    body: LoginRequest = Depends(read_login_request),
    db: AsyncSession = Depends(get_async_session),
    service: AccountService = Depends(get_account_service),
) -> LoginResponse:
    """Exchange an account id for a session token."""
    result = await service.login(db, body.account_id)
    return LoginResponse(
        success=result.success,
        auth_token=result.auth_token,
        expires_at=result.expires_at,
        error=result.error,
    )


@router.post("/verify", response_model=VerifyResponse)
async def verify(account_id: UUID = Depends(require_account)) -> VerifyResponse:
    """Succeeds only for callers holding a valid session token."""
    logger.debug("Verified session token", account_id=str(account_id))
    return VerifyResponse()
