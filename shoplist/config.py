from pydantic import field_validator
from pydantic_settings import BaseSettings
from typing import List


class Settings(BaseSettings):
    # ─── Application ───────────────────────────────────────────────────────────
    APP_NAME: str = "Shopping List API"
    APP_ENV:  str = "development"
    APP_DEBUG: bool = True
    APP_HOST:  str = "0.0.0.0"
    APP_PORT:  int = 8000

    # ─── Database ──────────────────────────────────────────────────────────────
    DATABASE_URL:          str
    DATABASE_POOL_SIZE:    int  = 10
    DATABASE_MAX_OVERFLOW: int  = 20
    DATABASE_POOL_TIMEOUT: int  = 30
    DATABASE_ECHO:         bool = False

    # ─── JWT ───────────────────────────────────────────────────────────────────
    SECRET_KEY:                    str
    ALGORITHM:                     str = "HS256"
    JWT_ISSUER:                    str = "shopping-list-api"
    ACCESS_TOKEN_EXPIRE_MINUTES:   int = 60
    REFRESH_TOKEN_EXPIRE_DAYS:     int = 7

    # ─── Passwords ─────────────────────────────────────────────────────────────
    BCRYPT_ROUNDS: int = 12

    # ─── Refresh Token Cookie ──────────────────────────────────────────────────
    REFRESH_COOKIE_NAME:     str  = "refreshToken"
    REFRESH_COOKIE_PATH:     str  = "/api/v1/auth"
    REFRESH_COOKIE_SECURE:   bool = False
    REFRESH_COOKIE_SAMESITE: str  = "lax"
    REFRESH_COOKIE_ONLY:     bool = False

    # ─── Google OAuth2 ─────────────────────────────────────────────────────────
    GOOGLE_CLIENT_ID:       str   = ""
    GOOGLE_TOKENINFO_URL:   str   = "https://oauth2.googleapis.com/tokeninfo"
    GOOGLE_TIMEOUT_SECONDS: float = 10.0

    # ─── Users ─────────────────────────────────────────────────────────────────
    DEFAULT_ROLE: str = "USER"

    # ─── CORS ──────────────────────────────────────────────────────────────────
    CORS_ORIGINS: str = "http://localhost:8081,http://localhost:19006"

    @field_validator("SECRET_KEY")
    @classmethod
    def secret_key_length(cls, v: str) -> str:
        # HS256 needs a key of at least 256 bits
        if len(v.encode("utf-8")) < 32:
            raise ValueError("SECRET_KEY must be at least 32 bytes long")
        return v

    def get_cors_origins(self) -> List[str]:
        return [o.strip() for o in self.CORS_ORIGINS.split(",")]

    @property
    def refresh_cookie_max_age(self) -> int:
        return self.REFRESH_TOKEN_EXPIRE_DAYS * 24 * 60 * 60

    @property
    def is_production(self) -> bool:
        return self.APP_ENV == "production"

    @property
    def is_development(self) -> bool:
        return self.APP_ENV == "development"

    model_config = {"env_file": ".env", "case_sensitive": True, "extra": "ignore"}


settings = Settings()
