from fastapi import APIRouter, Depends, status

from shoplist.dependencies import get_current_user
from shoplist.models.user import User
from shoplist.schemas.common import SuccessResponse, success_response
from shoplist.schemas.user import serialize_user

router = APIRouter(prefix="/users")


# GET /users/me (any authenticated user)
@router.get("/me", status_code=status.HTTP_200_OK, summary="Get current user profile",
            response_model=SuccessResponse)
def get_me(current_user: User = Depends(get_current_user)):
    return success_response("Profile retrieved", serialize_user(current_user))
