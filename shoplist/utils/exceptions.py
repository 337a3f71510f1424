from fastapi import HTTPException, status


# ═══════════════════════════════════════════════════════════════════════════════
# ERROR CODES: machine-readable constants the mobile client switches on
# ═══════════════════════════════════════════════════════════════════════════════
class ErrorCode:
    VALIDATION_ERROR        = "VALIDATION_ERROR"
    UNAUTHORIZED            = "UNAUTHORIZED"
    INVALID_CREDENTIALS     = "INVALID_CREDENTIALS"
    INVALID_EXTERNAL_TOKEN  = "INVALID_EXTERNAL_TOKEN"
    ACCOUNT_DISABLED        = "ACCOUNT_DISABLED"
    ACCESS_TOKEN_EXPIRED    = "ACCESS_TOKEN_EXPIRED"
    INVALID_TOKEN_SIGNATURE = "INVALID_TOKEN_SIGNATURE"
    MALFORMED_TOKEN         = "MALFORMED_TOKEN"
    INVALID_TOKEN           = "INVALID_TOKEN"
    TOKEN_NOT_FOUND         = "TOKEN_NOT_FOUND"
    REFRESH_TOKEN_EXPIRED   = "REFRESH_TOKEN_EXPIRED"
    TOKEN_REVOKED           = "TOKEN_REVOKED"
    TOKEN_ALREADY_USED      = "TOKEN_ALREADY_USED"
    FORBIDDEN               = "FORBIDDEN"
    NOT_FOUND               = "NOT_FOUND"
    EMAIL_TAKEN             = "EMAIL_TAKEN"
    DUPLICATE_ENTRY         = "DUPLICATE_ENTRY"
    INTERNAL_SERVER_ERROR   = "INTERNAL_SERVER_ERROR"


# ═══════════════════════════════════════════════════════════════════════════════
# BASE EXCEPTIONS
# ═══════════════════════════════════════════════════════════════════════════════
class AppException(HTTPException):
    """
    Base exception for all application-level errors.
    Carries a machine-readable error_code for frontend handling.
    """
    def __init__(
        self,
        status_code: int,
        message: str,
        error_code: str,
        details: list | None = None,
        field: str | None = None,
        headers: dict | None = None,
    ):
        super().__init__(status_code=status_code, headers=headers, detail={
            "message": message,
            "error": {
                "code": error_code,
                "details": details,
                "field": field,
            }
        })
        self.error_code = error_code
        self.message = message


class AuthenticationException(AppException):
    """Every 401. Clients are told to present a bearer token."""
    def __init__(self, message: str, error_code: str):
        super().__init__(
            status.HTTP_401_UNAUTHORIZED, message, error_code,
            headers={"WWW-Authenticate": "Bearer"},
        )


# ═══════════════════════════════════════════════════════════════════════════════
# AUTHENTICATION (401)
# ═══════════════════════════════════════════════════════════════════════════════

class UnauthorizedException(AuthenticationException):
    def __init__(self, message: str = "Authentication required"):
        super().__init__(message, ErrorCode.UNAUTHORIZED)


class InvalidCredentialsException(AuthenticationException):
    # Same wording whether or not the email exists
    def __init__(self):
        super().__init__("Invalid email or password", ErrorCode.INVALID_CREDENTIALS)


class InvalidExternalTokenException(AuthenticationException):
    def __init__(self, message: str = "Google token is invalid"):
        super().__init__(message, ErrorCode.INVALID_EXTERNAL_TOKEN)


class AccountDisabledException(AuthenticationException):
    def __init__(self):
        super().__init__("This account has been disabled", ErrorCode.ACCOUNT_DISABLED)


# ─── Access token (JWT) ───────────────────────────────────────────────────────
class AccessTokenExpiredException(AuthenticationException):
    def __init__(self):
        super().__init__("Access token has expired", ErrorCode.ACCESS_TOKEN_EXPIRED)


class InvalidTokenSignatureException(AuthenticationException):
    def __init__(self):
        super().__init__("Access token signature is invalid", ErrorCode.INVALID_TOKEN_SIGNATURE)


class MalformedTokenException(AuthenticationException):
    def __init__(self):
        super().__init__("Access token is malformed", ErrorCode.MALFORMED_TOKEN)


class InvalidTokenException(AuthenticationException):
    def __init__(self, message: str = "Access token is invalid"):
        super().__init__(message, ErrorCode.INVALID_TOKEN)


# ─── Refresh token ────────────────────────────────────────────────────────────
class TokenNotFoundException(AuthenticationException):
    def __init__(self):
        super().__init__("Refresh token is invalid", ErrorCode.TOKEN_NOT_FOUND)


class TokenExpiredException(AuthenticationException):
    def __init__(self):
        super().__init__("Refresh token has expired, please login again", ErrorCode.REFRESH_TOKEN_EXPIRED)


class TokenRevokedException(AuthenticationException):
    def __init__(self):
        super().__init__("Refresh token has been revoked", ErrorCode.TOKEN_REVOKED)


class TokenAlreadyUsedException(AuthenticationException):
    def __init__(self):
        super().__init__("Refresh token has already been used", ErrorCode.TOKEN_ALREADY_USED)


# ═══════════════════════════════════════════════════════════════════════════════
# AUTHORIZATION / RESOURCES
# ═══════════════════════════════════════════════════════════════════════════════

class ForbiddenException(AppException):
    def __init__(self, message: str = "You do not have permission to perform this action"):
        super().__init__(status.HTTP_403_FORBIDDEN, message, ErrorCode.FORBIDDEN)


class NotFoundException(AppException):
    def __init__(self, resource: str = "Resource"):
        super().__init__(status.HTTP_404_NOT_FOUND, f"{resource} not found", ErrorCode.NOT_FOUND)


class EmailTakenException(AppException):
    def __init__(self):
        super().__init__(
            status.HTTP_409_CONFLICT,
            "Email already registered",
            ErrorCode.EMAIL_TAKEN,
            field="email",
        )


class ValidationException(AppException):
    def __init__(self, message: str, field: str | None = None):
        super().__init__(
            status.HTTP_422_UNPROCESSABLE_ENTITY,
            message,
            ErrorCode.VALIDATION_ERROR,
            details=[{"field": field, "message": message}] if field else None,
            field=field,
        )
