"""
Faxon Portal API — Authentication Service
==========================================

What:  Business logic behind /api/auth: logout bookkeeping, profile fetch,
       the username check that e-mails an OTP, throttled OTP resends, and
       OTP verification.
How:   Straight-line queries against `team_members`, each followed by a
       best-effort activity log entry.
Who:   Called by routes/auth.py with the request's session.

Login Flow:
    ┌─────────────┐  username + otp   ┌──────────────────┐  e-mail   ┌───────┐
    │  Login page │──────────────────▶│  check_username  │──────────▶│ Brevo │
    │  (browser)  │                   └──────────────────┘           └───────┘
    │  compares   │  username + otp   ┌──────────────────┐  e-mail       ▲
    │  OTP itself │──────────────────▶│    resend_otp    │───────────────┘
    │             │                   └──────────────────┘  (3 per 15 min)
    │             │  username + otp   ┌──────────────────┐
    │             │──────────────────▶│    verify_otp    │──▶ last_login, authData
    └─────────────┘                   └──────────────────┘

The OTP is generated and compared in the browser; the server never checks the
submitted code. See DESIGN.md (open questions) before changing this.
"""

import logging
import re
import time
from datetime import datetime, timedelta, timezone
from typing import Optional, Union

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from faxon_api.config import settings
from faxon_api.database import translate_db_error
from faxon_api.exceptions import (
    EmailDeliveryError,
    NotFoundError,
    RateLimitExceededError,
    ValidationError,
)
from faxon_api.models.activity_log import ActivityLog
from faxon_api.models.team_member import TeamMember
from faxon_api.schemas.auth import (
    AuthData,
    LoginUser,
    ProfileResponse,
    ProfileUser,
    ResendOtpResponse,
    UserInfo,
    UsernameCheckResponse,
    VerifyOtpResponse,
)
from faxon_api.services.activity_log_service import (
    ActivityLogService,
    activity_log_service,
    utc_timestamp,
)
from faxon_api.services.providers.brevo_mailer import BrevoMailer

logger = logging.getLogger(__name__)

_DECIMAL_ID = re.compile(r"[0-9]+")

OTP_RESENT = "otp_resent"


def parse_positive_id(raw: Optional[Union[int, str]]) -> Optional[int]:
    """Return `raw` as a positive int, or None when it is not one."""
    if isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw if raw > 0 else None
    if raw is None:
        return None
    raw = str(raw).strip()
    if not _DECIMAL_ID.fullmatch(raw):
        return None
    value = int(raw)
    return value if value > 0 else None


def mask_email(email: str) -> str:
    """
    Hide most of the local part of an address.

        john@example.com → j**n@example.com
        jo@example.com   → j*@example.com
    """
    local, _, domain = email.partition("@")
    if len(local) > 2:
        masked = local[0] + "*" * (len(local) - 2) + local[-1]
    else:
        masked = local[:1] + "*"
    return f"{masked}@{domain}"


class AuthService:
    """Team member authentication and profile operations."""

    def __init__(self, activity_log: ActivityLogService = activity_log_service):
        self.activity_log = activity_log

    async def _active_member_by_username(
        self, db: AsyncSession, username: str
    ) -> Optional[TeamMember]:
        result = await db.execute(
            select(TeamMember).where(
                TeamMember.username == username.lower(),
                TeamMember.status.is_(True),
            )
        )
        return result.scalar_one_or_none()

    # ── Logout ────────────────────────────────────────────────────────────

    async def logout(
        self,
        db: AsyncSession,
        user_id: Optional[Union[int, str]] = None,
        username: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> bool:
        """
        Record a `logout_success` entry when the caller identified itself.

        `userId` wins over `username`; a username is resolved to an id
        regardless of the member's status. Returns True when an entry was
        written. Database errors propagate; the route turns them into a
        warning instead of a failure.
        """
        resolved = parse_positive_id(user_id)
        if resolved is None and username:
            result = await db.execute(
                select(TeamMember.id).where(TeamMember.username == username.lower())
            )
            resolved = result.scalar_one_or_none()

        if resolved is None:
            logger.debug("Logout without a resolvable identity")
            return False

        logged = await self.activity_log.record(
            db,
            action="logout_success",
            resource_type="auth",
            resource_id=resolved,
            user_id=resolved,
            details={
                "username": username or "unknown",
                "logout_method": "manual",
                "timestamp": utc_timestamp(),
                "user_agent": user_agent or "unknown",
            },
        )
        await db.commit()
        logger.info("User %s logged out", resolved)
        return logged

    # ── Profile ───────────────────────────────────────────────────────────

    async def get_profile(
        self,
        db: AsyncSession,
        raw_user_id: Optional[str],
        user_agent: Optional[str] = None,
    ) -> ProfileResponse:
        """
        Fetch the profile of an active team member.

        The id is validated before the session is touched, so a malformed
        id never costs a query.

        Raises:
            ValidationError:      id absent, non-numeric or not positive (400)
            NotFoundError:        no active member with that id (404)
            TablesNotFoundError:  schema not provisioned (500)
            DatabaseError:        any other database failure (500)
        """
        user_id = parse_positive_id(raw_user_id)
        if user_id is None:
            raise ValidationError(
                message="Invalid user ID",
                field="id",
                context={"value": raw_user_id},
            )

        try:
            result = await db.execute(
                select(TeamMember).where(
                    TeamMember.id == user_id,
                    TeamMember.status.is_(True),
                )
            )
            member = result.scalar_one_or_none()
            if member is None:
                raise NotFoundError(
                    message="User not found or account is inactive",
                    resource="team_member",
                    resource_id=str(user_id),
                )

            profile = ProfileUser.model_validate(member)

            await self.activity_log.record(
                db,
                action="profile_viewed",
                resource_type="user",
                resource_id=user_id,
                user_id=user_id,
                details={
                    "username": member.username,
                    "timestamp": utc_timestamp(),
                    "user_agent": user_agent or "unknown",
                },
            )
            await db.commit()
        except SQLAlchemyError as e:
            logger.error("Profile fetch for %s failed: %s", user_id, str(e))
            raise translate_db_error(e, user_id=user_id) from e

        return ProfileResponse(user=profile)

    # ── Username check (OTP request) ──────────────────────────────────────

    async def check_username(
        self,
        db: AsyncSession,
        mailer: BrevoMailer,
        username: Optional[str],
        otp: Optional[str],
    ) -> UsernameCheckResponse:
        """
        Look up an active member and e-mail them the client-generated OTP.

        Raises:
            ValidationError:    username or otp missing (400)
            NotFoundError:      unknown or inactive username (404)
            EmailDeliveryError: Brevo did not accept the message (500)
        """
        if not username:
            raise ValidationError(message="Username is required", field="username")
        if not otp:
            raise ValidationError(message="OTP is required", field="otp")

        try:
            member = await self._active_member_by_username(db, username)
        except SQLAlchemyError as e:
            logger.error("Username lookup failed: %s", str(e))
            raise translate_db_error(e, operation="check_username") from e

        if member is None:
            raise NotFoundError(
                message="Username not found or account is inactive",
                resource="team_member",
                context={"username": username.lower()},
            )

        await mailer.send_otp(member.email, member.full_name or member.username, otp)

        masked = mask_email(member.email)
        try:
            await self.activity_log.record(
                db,
                action="otp_requested",
                resource_type="auth",
                resource_id=member.id,
                user_id=member.id,
                details={
                    "username": member.username,
                    "email": masked,
                    "timestamp": utc_timestamp(),
                },
            )
            await db.commit()
        except SQLAlchemyError as e:
            # The e-mail is already out; only the audit entry is lost
            logger.warning("Could not commit OTP request log for %s: %s", member.id, str(e))
            await db.rollback()

        logger.info("OTP sent to member %s (%s)", member.id, masked)
        return UsernameCheckResponse(masked_email=masked, email=member.email)

    # ── OTP resend ────────────────────────────────────────────────────────

    async def _recent_resends(self, db: AsyncSession, member_id: int) -> int:
        """Count `otp_resent` entries for the member inside the resend window."""
        cutoff = datetime.now(timezone.utc) - timedelta(seconds=settings.otp_resend_window)
        try:
            async with db.begin_nested():
                result = await db.execute(
                    select(func.count(ActivityLog.id)).where(
                        ActivityLog.action == OTP_RESENT,
                        ActivityLog.user_id == member_id,
                        ActivityLog.created_at > cutoff,
                    )
                )
                return result.scalar_one()
        except SQLAlchemyError as e:
            logger.warning("Resend count for member %s failed, not throttling: %s", member_id, str(e))
            return 0

    async def resend_otp(
        self,
        db: AsyncSession,
        mailer: BrevoMailer,
        username: Optional[str],
        otp: Optional[str],
    ) -> ResendOtpResponse:
        """
        E-mail a fresh client-generated OTP to an active member.

        At most `settings.otp_resend_limit` resends per member within
        `settings.otp_resend_window` seconds, counted from the audit log.

        Raises:
            ValidationError:        username or otp missing (400)
            NotFoundError:          unknown or inactive username (404)
            RateLimitExceededError: resend budget used up (429)
            EmailDeliveryError:     Brevo did not accept the message (500)
        """
        if not username or not otp:
            raise ValidationError(
                message="Username and OTP are required",
                context={"username": bool(username), "otp": bool(otp)},
            )

        try:
            member = await self._active_member_by_username(db, username)
        except SQLAlchemyError as e:
            logger.error("Username lookup failed: %s", str(e))
            raise translate_db_error(e, operation="resend_otp") from e

        if member is None:
            raise NotFoundError(
                message="Username not found or account is inactive",
                resource="team_member",
                context={"username": username.lower()},
            )

        limit = settings.otp_resend_limit
        used = await self._recent_resends(db, member.id)
        if used >= limit:
            window = settings.otp_resend_window
            logger.warning("Member %s hit the OTP resend limit (%d)", member.id, used)
            raise RateLimitExceededError(
                retry_after=window,
                message=(
                    f"Too many resend attempts. Please wait {window // 60} minutes "
                    "before trying again."
                ),
                context={"limit": limit},
            )

        try:
            await mailer.send_otp(
                member.email, member.full_name or member.username, otp, resend=True
            )
        except EmailDeliveryError as e:
            raise EmailDeliveryError(
                message="Failed to resend OTP email. Please try again.",
                context=e.context,
            ) from e

        masked = mask_email(member.email)
        logged = False
        try:
            logged = await self.activity_log.record(
                db,
                action=OTP_RESENT,
                resource_type="auth",
                resource_id=member.id,
                user_id=member.id,
                details={
                    "username": member.username,
                    "email": masked,
                    "timestamp": utc_timestamp(),
                },
            )
            await db.commit()
        except SQLAlchemyError as e:
            logger.warning("Could not commit OTP resend log for %s: %s", member.id, str(e))
            await db.rollback()
            logged = False

        logger.info("OTP resent to member %s (%s)", member.id, masked)
        return ResendOtpResponse(attempts_remaining=max(0, limit - used - int(logged)))

    # ── OTP verification ──────────────────────────────────────────────────

    async def verify_otp(
        self,
        db: AsyncSession,
        username: Optional[str],
        otp: Optional[str],
    ) -> VerifyOtpResponse:
        """
        Complete the login of an active member.

        Stamps `last_login`, logs `login_success` and returns the payload the
        login page stores client-side. The `otp` value is required but not
        compared.

        Raises:
            ValidationError: username or otp missing (400)
            NotFoundError:   unknown or inactive username (404); `last_login`
                             is not touched
        """
        if not username or not otp:
            raise ValidationError(
                message="Username and OTP are required",
                context={"username": bool(username), "otp": bool(otp)},
            )

        try:
            member = await self._active_member_by_username(db, username)
            if member is None:
                raise NotFoundError(
                    message="User not found or account is inactive",
                    resource="team_member",
                    context={"username": username.lower()},
                )

            member.last_login = datetime.now(timezone.utc)
            await db.flush()

            await self.activity_log.record(
                db,
                action="login_success",
                resource_type="auth",
                resource_id=member.id,
                user_id=member.id,
                details={
                    "username": member.username,
                    "login_method": "otp",
                    "timestamp": utc_timestamp(),
                },
            )
            await db.commit()
        except SQLAlchemyError as e:
            logger.error("OTP verification for %s failed: %s", username, str(e))
            raise translate_db_error(e, operation="verify_otp") from e

        auth_token = f"session_{member.id}_{int(time.time() * 1000)}"
        logger.info("Member %s logged in", member.id)

        return VerifyOtpResponse(
            user=LoginUser.model_validate(member),
            auth_data=AuthData(
                auth_token=auth_token,
                user_info=UserInfo(
                    id=member.id,
                    username=member.username,
                    email=member.email,
                    full_name=member.full_name,
                    role=member.role,
                ),
            ),
        )


auth_service = AuthService()
