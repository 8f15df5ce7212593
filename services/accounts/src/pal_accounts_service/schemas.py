"""Pydantic request/response models for the Accounts API."""

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .services import LoginError


class CreateAccountResponse(BaseModel):
    """Response model for account creation."""
    model_config = ConfigDict(populate_by_name=True)

    success: bool = Field(..., description="Whether an account id is returned")
    account_id: Optional[str] = Field(None, alias="accountId", description="Account identifier")


class LoginRequest(BaseModel):
    """Request model for login."""
    model_config = ConfigDict(populate_by_name=True)

    account_id: str = Field(default="", alias="accountId", description="Account identifier")

    @field_validator("account_id", mode="before")
    @classmethod
    def coerce_account_id(cls, value: Any) -> str:
        # Non-string ids are left for the account service to reject
        if value is None:
            return ""
        return value if isinstance(value, str) else str(value)


class LoginResponse(BaseModel):
    """Response model for login."""
    model_config = ConfigDict(populate_by_name=True)

    success: bool = Field(..., description="Whether a token was issued")
    auth_token: Optional[str] = Field(None, alias="authToken", description="Signed session token")
    expires_at: Optional[datetime] = Field(None, alias="expiresAt", description="Refresh the token before this time")
    error: Optional[LoginError] = Field(None, description="Failure reason")


class VerifyResponse(BaseModel):
    """Empty response for a successful token check."""


class HealthResponse(BaseModel):
    """Response model for health check."""
    status: str = Field(..., description="Service status")
    version: str = Field(..., description="Service version")
    uptime_seconds: int = Field(..., description="Service uptime in seconds")
    database: Dict[str, Any] = Field(..., description="Database health status")
