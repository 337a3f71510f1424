from typing import Any, Generic, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


# ─── Error envelope ───────────────────────────────────────────────────────────
class ErrorDetail(BaseModel):
    field: str | None = None
    message: str


class ErrorBody(BaseModel):
    code: str
    details: list[ErrorDetail] | None = None
    field: str | None = None


class ErrorResponse(BaseModel):
    """Body of every non-2xx response."""
    success: bool = False
    message: str
    error: ErrorBody


# ─── Success envelope ─────────────────────────────────────────────────────────
class SuccessResponse(BaseModel, Generic[T]):
    success: bool = True
    message: str
    data: T | None = None


def success_response(message: str, data: Any = None) -> dict:
    return {"success": True, "message": message, "data": data}


def error_content(
    message: str,
    code: str,
    details: list[dict] | None = None,
    field: str | None = None,
) -> dict:
    """The dict form of ErrorResponse, ready for a JSONResponse."""
    return {
        "success": False,
        "message": message,
        "error": {"code": code, "details": details, "field": field},
    }
