"""GMB Dashboard: Login, OTP & Password Reset Routes."""

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlmodel import Session

from gmb_dashboard.core.errors import ok
from gmb_dashboard.database import get_session
from gmb_dashboard.services import auth_service
from gmb_dashboard.services.mailer import Mailer, get_mailer

router = APIRouter(prefix="/api", tags=["Auth"])


# ── Request Models ──


class LoginRequest(BaseModel):
    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)

    model_config = {
        "json_schema_extra": {
            "examples": [{"email": "branch.lead@example.com", "password": "secret"}]
        }
    }


class EmailRequest(BaseModel):
    email: str = Field(..., min_length=1)


class VerifyOtpRequest(BaseModel):
    email: str = Field(..., min_length=1)
    otp: str = Field(..., min_length=1)


class ResetPasswordRequest(BaseModel):
    email: str = Field(..., min_length=1)
    token: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=1)


# ── Endpoints ──


@router.post("/login")
async def login(request: LoginRequest, session: Session = Depends(get_session)):
    """Password login. Returns the user and a bearer token."""
    return ok(auth_service.login(session, request.email, request.password))


@router.post("/send-otp")
async def send_otp(
    request: EmailRequest,
    session: Session = Depends(get_session),
    mailer: Mailer = Depends(get_mailer),
):
    auth_service.send_otp(session, mailer, request.email)
    return ok(message="OTP sent to your email")


@router.post("/verify-otp")
async def verify_otp(request: VerifyOtpRequest, session: Session = Depends(get_session)):
    return ok(auth_service.verify_otp(session, request.email, request.otp))


@router.post("/forgot-password")
async def forgot_password(
    request: EmailRequest,
    session: Session = Depends(get_session),
    mailer: Mailer = Depends(get_mailer),
):
    auth_service.forgot_password(session, mailer, request.email)
    return ok(message="Password reset link sent to your email")


@router.post("/reset-password")
async def reset_password(request: ResetPasswordRequest, session: Session = Depends(get_session)):
    auth_service.reset_password(session, request.email, request.token, request.new_password)
    return ok(message="Password updated successfully")
