from pydantic import BaseModel, ConfigDict, EmailStr, field_validator
import re


# ─── Helpers ──────────────────────────────────────────────────────────────────
def validate_password_strength(v: str) -> str:
    if len(v) < 8:
        raise ValueError("Password must be at least 8 characters")
    if len(v.encode("utf-8")) > 72:
        raise ValueError("Password must be at most 72 bytes")
    if not re.search(r"[A-Z]", v):
        raise ValueError("Password must contain at least one uppercase letter")
    if not re.search(r"[0-9]", v):
        raise ValueError("Password must contain at least one digit")
    return v


# ─── Request Schemas ──────────────────────────────────────────────────────────
class RegisterRequest(BaseModel):
    email:    EmailStr
    name:     str
    password: str

    @field_validator("password")
    @classmethod
    def password_strength(cls, v: str) -> str:
        return validate_password_strength(v)

    @field_validator("name")
    @classmethod
    def name_not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Name cannot be empty")
        if len(v.strip()) > 150:
            raise ValueError("Name must be at most 150 characters")
        return v.strip()

    @field_validator("email")
    @classmethod
    def email_lowercase(cls, v: str) -> str:
        return v.lower()


class LoginRequest(BaseModel):
    email:    EmailStr
    password: str

    @field_validator("email")
    @classmethod
    def email_lowercase(cls, v: str) -> str:
        return v.lower()


class GoogleLoginRequest(BaseModel):
    idToken: str

    @field_validator("idToken")
    @classmethod
    def id_token_not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("idToken cannot be empty")
        return v


# The refresh token may come from the HttpOnly cookie instead of the body
class RefreshTokenRequest(BaseModel):
    refreshToken: str | None = None


class LogoutRequest(BaseModel):
    refreshToken: str | None = None


# ─── Response Schemas ─────────────────────────────────────────────────────────
class TokenResponse(BaseModel):
    accessToken:  str
    refreshToken: str | None = None
    tokenType:    str = "Bearer"
    expiresIn:    int          # seconds


class RegisterResponse(BaseModel):
    id:        int
    email:     str
    name:      str
    provider:  str
    status:    str
    roles:     list[str]
    createdAt: str


# ─── Request context ──────────────────────────────────────────────────────────
class Principal(BaseModel):
    """Authenticated identity attached to a request after token validation."""
    model_config = ConfigDict(frozen=True)

    user_id: int
    email:   str | None = None
    roles:   tuple[str, ...] = ()

    def has_role(self, role: str) -> bool:
        return role in self.roles


class ClientInfo(BaseModel):
    """Client metadata stored alongside a refresh token."""
    user_agent: str | None = None
    ip:         str | None = None
