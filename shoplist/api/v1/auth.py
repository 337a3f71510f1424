from fastapi import APIRouter, Depends, Request, Response, status
from sqlalchemy.orm import Session

from shoplist.config import settings
from shoplist.database import get_db
from shoplist.models.user import User
from shoplist.schemas.auth import (
    RegisterRequest, LoginRequest, GoogleLoginRequest,
    RefreshTokenRequest, LogoutRequest,
    TokenResponse, RegisterResponse, ClientInfo,
)
from shoplist.schemas.common import ErrorResponse
from shoplist.services.auth_service import AuthService, get_auth_service
from shoplist.utils.cookies import set_refresh_cookie, clear_refresh_cookie, read_refresh_cookie
from shoplist.utils.exceptions import ValidationException

router = APIRouter(
    prefix="/auth",
    responses={
        401: {"model": ErrorResponse, "description": "Authentication failed"},
        422: {"model": ErrorResponse, "description": "Validation error"},
    },
)


# ─── Helpers ──────────────────────────────────────────────────────────────────
def get_client_info(request: Request) -> ClientInfo:
    """User agent and caller IP, honouring X-Forwarded-For / X-Real-IP from a proxy."""
    ip = request.headers.get("X-Forwarded-For")
    if not ip or ip.lower() == "unknown":
        ip = request.headers.get("X-Real-IP")
    if not ip or ip.lower() == "unknown":
        ip = request.client.host if request.client else None
    if ip and "," in ip:
        ip = ip.split(",")[0].strip()
    return ClientInfo(user_agent=request.headers.get("User-Agent"), ip=ip)


def _presented_refresh_token(request: Request, body_token: str | None) -> str:
    # An explicit body value wins over the cookie
    token = body_token or read_refresh_cookie(request)
    if not token or not token.strip():
        raise ValidationException("Refresh token is required", field="refreshToken")
    return token


def _token_response(response: Response, tokens: dict) -> TokenResponse:
    set_refresh_cookie(response, tokens["refreshToken"])
    if settings.REFRESH_COOKIE_ONLY:
        tokens = {**tokens, "refreshToken": None}
    return TokenResponse(**tokens)


def _user_summary(user: User) -> RegisterResponse:
    return RegisterResponse(
        id=user.id,
        email=user.email,
        name=user.name,
        provider=user.provider.value,
        status=user.status.value,
        roles=user.role_names,
        createdAt=user.createdAt.isoformat(),
    )


# ─── POST /auth/register ──────────────────────────────────────────────────────
@router.post(
    "/register",
    status_code=status.HTTP_201_CREATED,
    summary="Register a new local account",
    response_model=RegisterResponse,
)
def register(
    data: RegisterRequest,
    db: Session = Depends(get_db),
    service: AuthService = Depends(get_auth_service),
):
    """
    Register a new user with the USER role. No tokens are issued.
    - Email must be unique (409 otherwise).
    - Password minimum 8 characters, 1 uppercase, 1 number.
    """
    user = service.register(db, data)
    return _user_summary(user)


# ─── POST /auth/login ─────────────────────────────────────────────────────────
@router.post(
    "/login",
    status_code=status.HTTP_200_OK,
    summary="Login and receive access + refresh tokens",
    response_model=TokenResponse,
    response_model_exclude_none=True,
)
def login(
    data: LoginRequest,
    request: Request,
    response: Response,
    db: Session = Depends(get_db),
    service: AuthService = Depends(get_auth_service),
):
    tokens = service.login(db, data, get_client_info(request))
    return _token_response(response, tokens)


# ─── POST /auth/google ────────────────────────────────────────────────────────
@router.post(
    "/google",
    status_code=status.HTTP_200_OK,
    summary="Login with a Google ID token",
    response_model=TokenResponse,
    response_model_exclude_none=True,
)
def google_login(
    data: GoogleLoginRequest,
    request: Request,
    response: Response,
    db: Session = Depends(get_db),
    service: AuthService = Depends(get_auth_service),
):
    """First sign-in with a Google account creates the user."""
    tokens = service.google_login(db, data.idToken, get_client_info(request))
    return _token_response(response, tokens)


# ─── POST /auth/refresh ───────────────────────────────────────────────────────
@router.post(
    "/refresh",
    status_code=status.HTTP_200_OK,
    summary="Rotate the refresh token and get a new access token",
    response_model=TokenResponse,
    response_model_exclude_none=True,
)
def refresh_token(
    request: Request,
    response: Response,
    data: RefreshTokenRequest | None = None,
    db: Session = Depends(get_db),
    service: AuthService = Depends(get_auth_service),
):
    """
    Each refresh token works once. Presenting a token that was already
    rotated revokes the whole chain issued from it.
    """
    raw = _presented_refresh_token(request, data.refreshToken if data else None)
    tokens = service.refresh(db, raw, get_client_info(request))
    return _token_response(response, tokens)


# ─── POST /auth/logout ────────────────────────────────────────────────────────
@router.post(
    "/logout",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Revoke refresh token (logout)",
    response_class=Response,
)
def logout(
    request: Request,
    data: LogoutRequest | None = None,
    db: Session = Depends(get_db),
    service: AuthService = Depends(get_auth_service),
):
    raw = _presented_refresh_token(request, data.refreshToken if data else None)
    service.logout(db, raw)
    response = Response(status_code=status.HTTP_204_NO_CONTENT)
    clear_refresh_cookie(response)
    return response
