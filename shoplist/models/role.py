from sqlalchemy import Column, Integer, String, TIMESTAMP
from sqlalchemy.sql import func
from shoplist.database import Base


class RoleName:
    USER  = "USER"
    ADMIN = "ADMIN"


class Role(Base):
    __tablename__ = "roles"

    id          = Column(Integer, primary_key=True, index=True)
    name        = Column(String(50), unique=True, nullable=False)
    description = Column(String(255), nullable=True)
    createdAt   = Column(TIMESTAMP(timezone=True), server_default=func.now(), nullable=False)
    updatedAt   = Column(TIMESTAMP(timezone=True), server_default=func.now(),
                         onupdate=func.now(), nullable=False)

    @classmethod
    def create(cls, name: str, description: str | None = None) -> "Role":
        """Build a new role. Names are uppercase by convention, e.g. USER, ADMIN."""
        if not name or not name.strip():
            raise ValueError("Role name cannot be empty")
        if len(name) > 50:
            raise ValueError("Role name cannot be longer than 50 characters")
        if name != name.upper():
            raise ValueError("Role name must be uppercase")
        return cls(name=name, description=description)

    def update_description(self, description: str | None) -> None:
        self.description = description

    @property
    def is_admin(self) -> bool:
        return self.name == RoleName.ADMIN

    def __repr__(self):
        return f"<Role id={self.id} name={self.name}>"
