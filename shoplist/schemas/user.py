from pydantic import BaseModel

from shoplist.models.user import User


# ─── Response ─────────────────────────────────────────────────────────────────
class UserMeResponse(BaseModel):
    id:        int
    email:     str
    name:      str
    provider:  str
    status:    str
    roles:     list[str]
    createdAt: str
    updatedAt: str


def serialize_user(u: User) -> dict:
    return UserMeResponse(
        id=u.id,
        email=u.email,
        name=u.name,
        provider=u.provider.value,
        status=u.status.value,
        roles=u.role_names,
        createdAt=u.createdAt.isoformat(),
        updatedAt=u.updatedAt.isoformat(),
    ).model_dump()
