"""Authentication routes."""
import logging
import secrets
from datetime import datetime
from typing import Optional
from urllib.parse import quote

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import RedirectResponse
from pydantic import BaseModel, EmailStr

from closecircle.api.deps import get_auth_service, get_current_user, get_google_oauth
from closecircle.domain.identity.models import User
from closecircle.domain.identity.services import AuthService
from closecircle.infra.vendors.google_oauth import GoogleOAuthClient
from closecircle.settings import settings

logger = logging.getLogger(__name__)

router = APIRouter()

OAUTH_STATE_COOKIE = "oauth_state"


class RegisterRequest(BaseModel):
    """Register request model."""
    name: str
    username: str
    email: EmailStr
    password: str


class LoginRequest(BaseModel):
    """Login request model. username_or_email accepts either form."""
    username_or_email: str
    password: str


class RefreshRequest(BaseModel):
    """Refresh token request model."""
    refresh_token: str


class ForgotPasswordRequest(BaseModel):
    email: EmailStr


class ResetPasswordRequest(BaseModel):
    password: str


class MessageResponse(BaseModel):
    message: str


class TokenResponse(BaseModel):
    """Token response model."""
    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class UserResponse(BaseModel):
    """The signed-in user's own account."""
    id: str
    name: str
    username: str
    email: str
    profile_image: Optional[str] = None
    bio: Optional[str] = None
    location: Optional[str] = None
    total_likes: int = 0
    total_reads: int = 0
    consistency: int = 0
    created_at: datetime

    @classmethod
    def of(cls, user: User) -> "UserResponse":
        return cls(
            id=user.id,
            name=user.name,
            username=user.username,
            email=user.email,
            profile_image=user.profile_image,
            bio=user.bio,
            location=user.location,
            total_likes=user.total_likes,
            total_reads=user.total_reads,
            consistency=user.consistency,
            created_at=user.created_at,
        )


class AuthResponse(TokenResponse):
    """Tokens plus the account they belong to."""
    user: UserResponse


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(
    request: RegisterRequest,
    auth: AuthService = Depends(get_auth_service),
):
    """Register a new user."""
    logger.info(f"🔵 [SERVER] Register request received for email: {request.email}, username: {request.username}")
    user, tokens = await auth.register(request.name, request.username, request.email, request.password)
    logger.info(f"✅ [SERVER] Register successful for user: {user.id} (@{user.username})")
    return AuthResponse(user=UserResponse.of(user), **tokens.model_dump())


@router.post("/login", response_model=AuthResponse)
async def login(
    request: LoginRequest,
    auth: AuthService = Depends(get_auth_service),
):
    """Login with username or email."""
    logger.info(f"🔵 [SERVER] Login request received for: {request.username_or_email}")
    user, tokens = await auth.login(request.username_or_email, request.password)
    logger.info(f"✅ [SERVER] Login successful for user: {user.id}")
    return AuthResponse(user=UserResponse.of(user), **tokens.model_dump())


@router.post("/refresh", response_model=TokenResponse)
async def refresh(
    request: RefreshRequest,
    auth: AuthService = Depends(get_auth_service),
):
    """Refresh access token."""
    tokens = await auth.refresh(request.refresh_token)
    return TokenResponse(**tokens.model_dump())


@router.get("/me", response_model=UserResponse)
async def get_me(current_user: User = Depends(get_current_user)):
    """Get current user."""
    return UserResponse.of(current_user)


@router.post("/forgot-password", response_model=MessageResponse)
async def forgot_password(
    request: ForgotPasswordRequest,
    auth: AuthService = Depends(get_auth_service),
):
    """Email a password reset link."""
    logger.info(f"🔵 [SERVER] Password reset requested for: {request.email}")
    await auth.forgot_password(
        request.email,
        frontend_url=settings.frontend_url,
        expire_minutes=settings.reset_password_token_expire_minutes,
    )
    return MessageResponse(message="Reset link sent to your email.")


@router.post("/reset-password/{token}", response_model=MessageResponse)
async def reset_password(
    token: str,
    request: ResetPasswordRequest,
    auth: AuthService = Depends(get_auth_service),
):
    """Set a new password with a reset token."""
    await auth.reset_password(token, request.password)
    return MessageResponse(message="Password reset successful")


@router.get("/google")
async def google_login(google: GoogleOAuthClient = Depends(get_google_oauth)):
    """Redirect to Google's consent screen."""
    if not google.configured:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Google login is not configured",
        )
    state = secrets.token_urlsafe(24)
    response = RedirectResponse(url=google.authorization_url(state), status_code=302)
    response.set_cookie(
        OAUTH_STATE_COOKIE,
        state,
        max_age=600,
        httponly=True,
        samesite="lax",
        secure=not settings.debug,
    )
    return response


@router.get("/google/callback")
async def google_callback(
    request: Request,
    code: Optional[str] = None,
    state: Optional[str] = None,
    error: Optional[str] = None,
    google: GoogleOAuthClient = Depends(get_google_oauth),
    auth: AuthService = Depends(get_auth_service),
):
    """Finish Google login and hand the token to the frontend."""
    frontend = settings.frontend_url.rstrip("/")
    if error or not code:
        logger.warning(f"❌ [SERVER] Google callback without code (error: {error})")
        return RedirectResponse(url=f"{frontend}/login?error={quote(error or 'missing_code')}", status_code=302)

    expected_state = request.cookies.get(OAUTH_STATE_COOKIE)
    if not expected_state or not state or not secrets.compare_digest(expected_state, state):
        logger.warning("❌ [SERVER] Google callback state mismatch")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid OAuth state")

    profile = await google.fetch_profile(code)
    user, tokens = await auth.login_federated(profile)
    logger.info(f"✅ [SERVER] Google login successful for user: {user.id}")

    response = RedirectResponse(url=f"{frontend}/oauth-success?token={quote(tokens.access_token)}", status_code=302)
    response.delete_cookie(OAUTH_STATE_COOKIE)
    return response
