"""
Faxon Portal API — Authentication Route Handlers
=================================================

What:  /api/auth/logout, /api/auth/profile/{id}, /api/auth/check-username,
       /api/auth/resend-otp, /api/auth/verify-otp.
How:   Thin handlers: read the request, delegate to AuthService, return the
       response model. Errors raised by the service reach the global handlers
       in main.py, except on logout, which always answers with success.
Who:   The portal's login page, navbar (logout) and profile page.
"""

import json
import logging

from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from faxon_api.database import get_db_session
from faxon_api.exceptions import ValidationError
from faxon_api.schemas.auth import (
    LogoutRedirectResponse,
    LogoutRequest,
    LogoutResponse,
    ProfileResponse,
    ResendOtpRequest,
    ResendOtpResponse,
    UsernameCheckRequest,
    UsernameCheckResponse,
    VerifyOtpRequest,
    VerifyOtpResponse,
)
from faxon_api.schemas.common import ErrorResponse
from faxon_api.services.auth_service import auth_service
from faxon_api.services.providers import BrevoMailer, get_mailer

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Auth"])

# Client-side session flags the GET logout expires
SESSION_COOKIES = ("authenticated", "userId", "userInfo")


async def _read_logout_body(request: Request) -> LogoutRequest:
    """Parse the optional logout body; absent or non-JSON bodies carry no identity."""
    raw = await request.body()
    if not raw:
        return LogoutRequest()
    try:
        data = json.loads(raw)
    except ValueError:
        logger.debug("Logout body is not JSON; ignoring it")
        return LogoutRequest()
    if not isinstance(data, dict):
        return LogoutRequest()
    return LogoutRequest.model_validate(data)


@router.post(
    "/logout",
    response_model=LogoutResponse,
    response_model_exclude_none=True,
    summary="Log out (records the logout when the caller identifies itself)",
)
async def logout(
    request: Request,
    db: AsyncSession = Depends(get_db_session),
) -> LogoutResponse:
    """
    Always succeeds: the browser clears its own session state regardless of
    what happens here. Server-side failures only add a `warning`.
    """
    try:
        payload = await _read_logout_body(request)
        if payload.user_id is not None or payload.username:
            await auth_service.logout(
                db,
                user_id=payload.user_id,
                username=payload.username,
                user_agent=request.headers.get("user-agent"),
            )
    except Exception as e:
        logger.warning("Logout cleanup failed: %s", str(e), exc_info=True)
        await db.rollback()
        return LogoutResponse(warning="Server-side cleanup may have failed")

    return LogoutResponse()


@router.get(
    "/logout",
    response_model=LogoutRedirectResponse,
    summary="Logout by navigation (expires session cookies)",
)
async def logout_redirect(response: Response) -> LogoutRedirectResponse:
    for name in SESSION_COOKIES:
        response.delete_cookie(name, path="/")
    return LogoutRedirectResponse()


@router.get(
    "/profile/{user_id}",
    response_model=ProfileResponse,
    responses={
        400: {"description": "Invalid user ID", "model": ErrorResponse},
        404: {"description": "Unknown or inactive member", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="Fetch an active team member's profile",
)
async def get_profile(
    user_id: str,
    request: Request,
    db: AsyncSession = Depends(get_db_session),
) -> ProfileResponse:
    # Path parameter kept as str: the service owns validation so that a bad
    # id is a 400 with its own message rather than a schema error
    return await auth_service.get_profile(
        db,
        user_id,
        user_agent=request.headers.get("user-agent"),
    )


@router.get(
    "/profile",
    response_model=ProfileResponse,
    responses={400: {"description": "Invalid user ID", "model": ErrorResponse}},
    include_in_schema=False,
)
async def get_profile_without_id() -> ProfileResponse:
    raise ValidationError(message="Invalid user ID", field="id")


@router.post(
    "/check-username",
    response_model=UsernameCheckResponse,
    response_model_by_alias=True,
    responses={
        400: {"description": "Username or OTP missing", "model": ErrorResponse},
        404: {"description": "Unknown or inactive member", "model": ErrorResponse},
        500: {"description": "E-mail delivery failed", "model": ErrorResponse},
    },
    summary="Start an OTP login: e-mail the code to the member",
)
async def check_username(
    payload: UsernameCheckRequest,
    db: AsyncSession = Depends(get_db_session),
    mailer: BrevoMailer = Depends(get_mailer),
) -> UsernameCheckResponse:
    return await auth_service.check_username(db, mailer, payload.username, payload.otp)


@router.post(
    "/resend-otp",
    response_model=ResendOtpResponse,
    response_model_by_alias=True,
    responses={
        400: {"description": "Username or OTP missing", "model": ErrorResponse},
        404: {"description": "Unknown or inactive member", "model": ErrorResponse},
        429: {"description": "Too many resends", "model": ErrorResponse},
        500: {"description": "E-mail delivery failed", "model": ErrorResponse},
    },
    summary="E-mail a new OTP (throttled per member)",
)
async def resend_otp(
    payload: ResendOtpRequest,
    db: AsyncSession = Depends(get_db_session),
    mailer: BrevoMailer = Depends(get_mailer),
) -> ResendOtpResponse:
    return await auth_service.resend_otp(db, mailer, payload.username, payload.otp)


@router.post(
    "/verify-otp",
    response_model=VerifyOtpResponse,
    response_model_by_alias=True,
    responses={
        400: {"description": "Username or OTP missing", "model": ErrorResponse},
        404: {"description": "Unknown or inactive member", "model": ErrorResponse},
    },
    summary="Complete an OTP login",
)
async def verify_otp(
    payload: VerifyOtpRequest,
    db: AsyncSession = Depends(get_db_session),
) -> VerifyOtpResponse:
    return await auth_service.verify_otp(db, payload.username, payload.otp)
