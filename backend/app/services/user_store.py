from typing import Any, List, Optional, Protocol

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.errors import StoreError, UsernameTaken
from app.models.user import Role, User as UserModel

# fields update() may touch; id/username are fixed at creation
UPDATABLE_FIELDS = frozenset({"name", "password_hash", "role_id", "archived_at"})


class UserStore(Protocol):
    def create(self, *, username: str, name: str, password_hash: str, role: Role = Role.USER) -> UserModel: ...

    def get_by_id(self, user_id: str) -> Optional[UserModel]: ...

    def update(self, user_id: str, changes: dict[str, Any]) -> Optional[UserModel]: ...

    def delete(self, user_id: str) -> int: ...

    def list_all(self) -> List[UserModel]: ...


class SqlUserStore:
    """UserStore backed by a SQLAlchemy session (one per request)."""

    def __init__(self, db: Session):
        self.db = db

    def create(self, *, username: str, name: str, password_hash: str, role: Role = Role.USER) -> UserModel:
        u = UserModel(
            username=username,
            name=name,
            password_hash=password_hash,
            role_id=int(role),
        )
        self.db.add(u)
        try:
            self.db.commit()
        except IntegrityError as e:
            # unique index on username decides races between concurrent creates
            self.db.rollback()
            raise UsernameTaken(f"username {username!r} already exists") from e
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StoreError("create failed") from e
        self.db.refresh(u)
        return u

    def get_by_id(self, user_id: str) -> Optional[UserModel]:
        try:
            return self.db.get(UserModel, user_id)
        except SQLAlchemyError as e:
            raise StoreError("lookup failed") from e

    def update(self, user_id: str, changes: dict[str, Any]) -> Optional[UserModel]:
        unknown = set(changes) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"not updatable: {sorted(unknown)}")

        u = self.get_by_id(user_id)
        if not u:
            return None

        for k, v in changes.items():
            setattr(u, k, v)

        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StoreError("update failed") from e
        self.db.refresh(u)
        return u

    def delete(self, user_id: str) -> int:
        """Physically remove the row; returns the number of rows affected."""
        try:
            result = self.db.execute(delete(UserModel).where(UserModel.id == user_id))
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StoreError("delete failed") from e
        return result.rowcount or 0

    def list_all(self) -> List[UserModel]:
        try:
            return list(self.db.execute(select(UserModel)).scalars().all())
        except SQLAlchemyError as e:
            raise StoreError("list failed") from e
