"""
Faxon Portal API — Authentication Schemas
==========================================

What:  Request/response contracts for the /api/auth routes.
How:   Field names follow what the portal frontend already sends and reads
       (camelCase `userId`, `maskedEmail`, `authData`, `fullName`), so
       aliases are used where Python naming differs.

Request bodies declare every field Optional: a missing field is a business
validation error (400 with a specific message), not a schema error.
"""

from datetime import datetime
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class LogoutRequest(BaseModel):
    """Optional identity sent by the client when it logs out."""
    user_id: Optional[Union[int, str]] = Field(default=None, alias="userId")
    username: Optional[str] = None

    model_config = ConfigDict(populate_by_name=True)


class UsernameCheckRequest(BaseModel):
    username: Optional[str] = None
    otp: Optional[str] = Field(default=None, description="Client-generated code to e-mail")


class ResendOtpRequest(BaseModel):
    username: Optional[str] = None
    otp: Optional[str] = Field(default=None, description="New client-generated code to e-mail")
    email: Optional[str] = Field(default=None, description="Sent by the client; not used")


class VerifyOtpRequest(BaseModel):
    username: Optional[str] = None
    otp: Optional[str] = None
    email: Optional[str] = Field(default=None, description="Sent by the client; not used")


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class LogoutResponse(BaseModel):
    success: bool = True
    message: str = "Logged out successfully"
    warning: Optional[str] = None


class LogoutRedirectResponse(BaseModel):
    success: bool = True
    message: str = "Logout endpoint reached"
    redirect: str = "/auth"


class ProfileUser(BaseModel):
    """Fixed projection of a team member returned by the profile route."""
    id: int
    full_name: Optional[str] = None
    role: Optional[str] = None
    bio: Optional[str] = None
    email: str
    phone_number: Optional[str] = None
    photo_url: Optional[str] = None
    username: str
    last_login: Optional[datetime] = None
    status: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class ProfileResponse(BaseModel):
    success: bool = True
    message: str = "Profile fetched successfully"
    user: ProfileUser


class UsernameCheckResponse(BaseModel):
    success: bool = True
    masked_email: str = Field(alias="maskedEmail")
    email: str
    message: str = "OTP sent successfully"

    model_config = ConfigDict(populate_by_name=True)


class ResendOtpResponse(BaseModel):
    success: bool = True
    message: str = "OTP resent successfully"
    attempts_remaining: int = Field(alias="attemptsRemaining", ge=0)

    model_config = ConfigDict(populate_by_name=True)


class LoginUser(BaseModel):
    id: int
    username: str
    email: str
    full_name: Optional[str] = None
    role: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class UserInfo(BaseModel):
    """The copy of the user the client keeps in local storage."""
    id: int
    username: str
    email: str
    full_name: Optional[str] = Field(default=None, alias="fullName")
    role: Optional[str] = None

    model_config = ConfigDict(populate_by_name=True)


class AuthData(BaseModel):
    """
    Client-storage payload written by the login page after verification.

    `auth_token` is a plain `session_<id>_<epoch ms>` marker for the
    frontend's own bookkeeping; it is not a credential and nothing on the
    server validates it.
    """
    authenticated: str = "true"
    auth_token: str = Field(alias="authToken")
    user_info: UserInfo = Field(alias="userInfo")

    model_config = ConfigDict(populate_by_name=True)


class VerifyOtpResponse(BaseModel):
    success: bool = True
    message: str = "OTP verified successfully"
    user: LoginUser
    auth_data: AuthData = Field(alias="authData")

    model_config = ConfigDict(populate_by_name=True)
