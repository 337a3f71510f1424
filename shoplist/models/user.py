import enum
from sqlalchemy import Column, Integer, String, Text, Enum, ForeignKey, Table, TIMESTAMP
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from shoplist.database import Base
from shoplist.models.role import Role, RoleName


class AuthProvider(str, enum.Enum):
    LOCAL  = "LOCAL"
    GOOGLE = "GOOGLE"


class UserStatus(str, enum.Enum):
    ACTIVE   = "ACTIVE"
    DISABLED = "DISABLED"


# ─── User <-> Role join table ─────────────────────────────────────────────────
user_roles = Table(
    "user_roles",
    Base.metadata,
    Column("userId", Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("roleId", Integer, ForeignKey("roles.id", ondelete="CASCADE"), primary_key=True),
)


def _require_text(value: str | None, label: str) -> None:
    if value is None or not value.strip():
        raise ValueError(f"{label} cannot be empty")


class User(Base):
    __tablename__ = "users"

    id           = Column(Integer, primary_key=True, index=True)
    email        = Column(String(100), unique=True, nullable=False, index=True)
    name         = Column(String(150), nullable=False)
    passwordHash = Column(Text, nullable=True)
    provider     = Column(Enum(AuthProvider), nullable=False)
    status       = Column(Enum(UserStatus), default=UserStatus.ACTIVE, nullable=False)
    createdAt    = Column(TIMESTAMP(timezone=True), server_default=func.now(), nullable=False)
    updatedAt    = Column(TIMESTAMP(timezone=True), server_default=func.now(),
                          onupdate=func.now(), nullable=False)

    # ─── Relationships ─────────────────────────────────────────────────────────
    roles          = relationship("Role", secondary=user_roles, lazy="selectin")
    refresh_tokens = relationship("RefreshToken", back_populates="user",
                                  cascade="all, delete-orphan", passive_deletes=True)

    # ─── Factories ─────────────────────────────────────────────────────────────
    @classmethod
    def create_local(cls, email: str, name: str, password_hash: str) -> "User":
        _require_text(email, "Email")
        _require_text(name, "Name")
        _require_text(password_hash, "Password hash")
        return cls(
            email=email,
            name=name,
            passwordHash=password_hash,
            provider=AuthProvider.LOCAL,
            status=UserStatus.ACTIVE,
        )

    @classmethod
    def create_google(cls, email: str, name: str) -> "User":
        _require_text(email, "Email")
        _require_text(name, "Name")
        return cls(
            email=email,
            name=name,
            passwordHash=None,
            provider=AuthProvider.GOOGLE,
            status=UserStatus.ACTIVE,
        )

    # ─── Mutators ──────────────────────────────────────────────────────────────
    def disable(self) -> None:
        self.status = UserStatus.DISABLED

    def activate(self) -> None:
        self.status = UserStatus.ACTIVE

    def rename(self, name: str) -> None:
        _require_text(name, "Name")
        self.name = name

    def change_password(self, password_hash: str) -> None:
        if self.provider != AuthProvider.LOCAL:
            raise ValueError("Only LOCAL users have a password")
        _require_text(password_hash, "Password hash")
        self.passwordHash = password_hash

    def add_role(self, role: Role) -> None:
        if role is None:
            raise ValueError("Role cannot be None")
        if role not in self.roles:
            self.roles.append(role)

    def remove_role(self, role: Role) -> None:
        if role in self.roles:
            self.roles.remove(role)

    # ─── Queries ───────────────────────────────────────────────────────────────
    def has_role(self, role_name: str) -> bool:
        return any(r.name == role_name for r in self.roles)

    @property
    def role_names(self) -> list[str]:
        return [r.name for r in self.roles]

    @property
    def is_admin(self) -> bool:
        return self.has_role(RoleName.ADMIN)

    @property
    def is_active(self) -> bool:
        return self.status == UserStatus.ACTIVE

    @property
    def is_local(self) -> bool:
        return self.provider == AuthProvider.LOCAL

    def __repr__(self):
        return f"<User id={self.id} email={self.email} provider={self.provider}>"
