import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from sqlalchemy.exc import IntegrityError

from shoplist.config import settings
from shoplist.database import check_db_connection
from shoplist.utils.exceptions import AppException
from shoplist.middleware.authentication import AuthenticationMiddleware
from shoplist.middleware.error_handler import (
    app_exception_handler,
    validation_exception_handler,
    integrity_error_handler,
    generic_exception_handler,
)
from shoplist.services.auth_service import get_auth_service

from shoplist.api.v1 import auth
from shoplist.api.v1 import users
from shoplist.api.v1 import admin

logging.basicConfig(
    level=logging.DEBUG if settings.APP_DEBUG else logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    app = FastAPI(
        title=settings.APP_NAME,
        version="1.0.0",
        description="Shopping list API: accounts, sign-in and token rotation",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    # ─── Middleware ───────────────────────────────────────────────────────────
    # Added last runs first: CORS wraps authentication
    app.add_middleware(AuthenticationMiddleware, auth_service_provider=get_auth_service)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.get_cors_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ─── Exception Handlers ───────────────────────────────────────────────────
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(IntegrityError, integrity_error_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    # ─── Routers ──────────────────────────────────────────────────────────────
    PREFIX = "/api/v1"
    app.include_router(auth.router,  prefix=PREFIX, tags=["Auth"])
    app.include_router(users.router, prefix=PREFIX, tags=["Users"])
    app.include_router(admin.router, prefix=PREFIX, tags=["Admin"])

    # ─── Startup ──────────────────────────────────────────────────────────────
    @app.on_event("startup")
    def on_startup():
        ok = check_db_connection()
        logger.info("DB connected" if ok else "DB connection FAILED")

    # ─── Health ───────────────────────────────────────────────────────────────
    @app.get("/health", tags=["Health"])
    def health():
        return {"status": "ok", "app": settings.APP_NAME, "version": "1.0.0"}

    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("shoplist.main:app", host=settings.APP_HOST, port=settings.APP_PORT,
                reload=settings.is_development)
