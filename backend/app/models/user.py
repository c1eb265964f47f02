import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import CheckConstraint, Column, DateTime, Integer, String
from app.core.database import Base


class Role(enum.IntEnum):
    USER = 1
    ADMIN = 2


def _utcnow():
    return datetime.now(timezone.utc)


class User(Base):
    __tablename__ = "users"

    __table_args__ = (
        CheckConstraint("role_id IN (1, 2)", name="ck_users_role_id"),
    )

    # assigned once by the store, never reassigned
    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    username = Column(String, unique=True, index=True, nullable=False)
    name = Column(String, nullable=False)

    # Role value: 1 = user, 2 = admin
    role_id = Column(Integer, nullable=False, default=int(Role.USER))

    password_hash = Column(String, nullable=False)

    # soft delete marker
    archived_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False)

    @property
    def role(self) -> Role:
        return Role(self.role_id)
