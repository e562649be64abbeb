"""Admin authentication: password check, emailed OTP, session tokens."""

import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional, Union

from litestar import Controller, post
from litestar.exceptions import HTTPException, NotAuthorizedException
from litestar.status_codes import HTTP_200_OK, HTTP_403_FORBIDDEN, HTTP_503_SERVICE_UNAVAILABLE
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.schemas import AdminInfo, LoginRequest, OtpSentResponse, TokenResponse, VerifyOtpRequest
from app.auth.security import create_access_token, generate_otp, verify_password
from app.config import Settings
from app.models import Admin
from app.models.base import as_utc
from app.services import Mailer

logger = logging.getLogger("AISolutions.auth")

INVALID_CREDENTIALS = "Invalid credentials"
INVALID_OTP = "Invalid or expired code"


async def authenticate(session: AsyncSession, settings: Settings, email: str, password: str) -> Admin:
    """
    Check email + password against the single configured admin.

    Every failure raises the same 401 so callers cannot tell an unknown
    email from a wrong password.
    """
    email = email.strip().lower()
    if email != settings.admin_email:
        logger.warning(f"Login attempt for non-admin email: {email}")
        raise NotAuthorizedException(INVALID_CREDENTIALS)

    admin = (await session.execute(select(Admin).where(Admin.email == email))).scalar_one_or_none()
    if admin is None or not verify_password(password, admin.password_hash):
        logger.warning(f"Failed login for {email}")
        raise NotAuthorizedException(INVALID_CREDENTIALS)
    return admin


def issue_token(admin: Admin, settings: Settings) -> TokenResponse:
    token = create_access_token(admin.id, admin.email, settings.jwt_secret, settings.jwt_expires_hours)
    return TokenResponse(token=token, admin=AdminInfo(id=admin.id, email=admin.email))


class AuthController(Controller):
    """Login endpoints for the admin dashboard."""

    path = "/auth"
    tags = ["auth"]

    @post("/login", status_code=HTTP_200_OK)
    async def login(
        self,
        data: LoginRequest,
        session: AsyncSession,
        settings: Settings,
        mailer: Mailer,
    ) -> Union[OtpSentResponse, TokenResponse]:
        """Verify the password, then email an OTP (or issue a token when OTP is off)."""
        admin = await authenticate(session, settings, data.email, data.password)

        if not settings.otp_enabled:
            logger.info(f"Admin logged in without OTP: {admin.email}")
            return issue_token(admin, settings)

        otp = generate_otp()
        admin.otp_code = otp
        admin.otp_expires_at = datetime.now(timezone.utc) + timedelta(minutes=settings.otp_ttl_minutes)
        admin.otp_attempts = 0
        email = admin.email
        await session.commit()
        logger.info(f"OTP issued for {email}")

        result = await mailer.send_otp(email, otp, settings.otp_ttl_minutes)
        if not result.ok:
            # the OTP stays stored; the admin can retry delivery by logging in again
            raise HTTPException(detail=result.error, status_code=HTTP_503_SERVICE_UNAVAILABLE)

        return OtpSentResponse()

    @post("/verify-otp", status_code=HTTP_200_OK)
    async def verify_otp(
        self,
        data: VerifyOtpRequest,
        session: AsyncSession,
        settings: Settings,
    ) -> TokenResponse:
        """Exchange a valid, unexpired OTP for a session token. The OTP is single use."""
        email = data.email.strip().lower()
        admin: Optional[Admin] = (
            await session.execute(select(Admin).where(Admin.email == email))
        ).scalar_one_or_none()

        if admin is None or not admin.otp_code or not admin.otp_expires_at:
            logger.warning(f"OTP verification without pending OTP: {email}")
            raise NotAuthorizedException(INVALID_OTP)

        if datetime.now(timezone.utc) >= as_utc(admin.otp_expires_at):
            admin.clear_otp()
            await session.commit()
            logger.warning(f"Expired OTP for {email}")
            raise NotAuthorizedException(INVALID_OTP)

        code = data.otp.strip()
        if not secrets.compare_digest(admin.otp_code.encode(), code.encode()):
            admin.otp_attempts = (admin.otp_attempts or 0) + 1
            if admin.otp_attempts >= settings.otp_max_attempts:
                logger.warning(f"OTP attempts exhausted for {email}")
                admin.clear_otp()
            await session.commit()
            raise NotAuthorizedException(INVALID_OTP)

        # consume in one statement so concurrent requests cannot both win
        consumed = await session.execute(
            update(Admin)
            .where(
                Admin.id == admin.id,
                Admin.otp_code == code,
                Admin.otp_expires_at > datetime.now(timezone.utc),
            )
            .values(otp_code=None, otp_expires_at=None, otp_attempts=0)
            .execution_options(synchronize_session=False)
        )
        await session.commit()
        if consumed.rowcount != 1:
            logger.warning(f"OTP already consumed for {email}")
            raise NotAuthorizedException(INVALID_OTP)

        await session.refresh(admin)
        logger.info(f"Admin authenticated: {email}")
        return issue_token(admin, settings)

    @post("/login-direct", status_code=HTTP_200_OK)
    async def login_direct(
        self,
        data: LoginRequest,
        session: AsyncSession,
        settings: Settings,
    ) -> TokenResponse:
        """Password-only login, available only when explicitly enabled."""
        if not settings.allow_direct_login:
            raise HTTPException(detail="Direct login is disabled", status_code=HTTP_403_FORBIDDEN)
        admin = await authenticate(session, settings, data.email, data.password)
        logger.info(f"Admin logged in directly: {admin.email}")
        return issue_token(admin, settings)
