from datetime import datetime, timezone

from fastapi import APIRouter, Depends, status

from shoplist.dependencies import get_admin_principal
from shoplist.schemas.auth import Principal
from shoplist.schemas.common import SuccessResponse, success_response

router = APIRouter(prefix="/admin")


# GET /admin/ping (ADMIN only)
@router.get("/ping", status_code=status.HTTP_200_OK, summary="Check admin access",
            response_model=SuccessResponse)
def ping(principal: Principal = Depends(get_admin_principal)):
    return success_response("pong", {
        "message":   "pong",
        "userId":    principal.user_id,
        "roles":     list(principal.roles),
        "timestamp": datetime.now(timezone.utc).isoformat(),
    })
