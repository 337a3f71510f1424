from fastapi import Request, Response

from shoplist.config import settings


def set_refresh_cookie(response: Response, refresh_token: str) -> None:
    """Store the refresh token in an HttpOnly cookie scoped to the auth routes."""
    response.set_cookie(
        key=settings.REFRESH_COOKIE_NAME,
        value=refresh_token,
        max_age=settings.refresh_cookie_max_age,
        path=settings.REFRESH_COOKIE_PATH,
        secure=settings.REFRESH_COOKIE_SECURE,
        httponly=True,
        samesite=settings.REFRESH_COOKIE_SAMESITE,
    )


def clear_refresh_cookie(response: Response) -> None:
    response.delete_cookie(
        key=settings.REFRESH_COOKIE_NAME,
        path=settings.REFRESH_COOKIE_PATH,
        secure=settings.REFRESH_COOKIE_SECURE,
        httponly=True,
        samesite=settings.REFRESH_COOKIE_SAMESITE,
    )


def read_refresh_cookie(request: Request) -> str | None:
    value = request.cookies.get(settings.REFRESH_COOKIE_NAME)
    return value or None
