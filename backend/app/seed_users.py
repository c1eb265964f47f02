# backend/app/seed_users.py
#
# Bootstrap the first admin. POST /users cannot mint admins by default, so
# run this once per environment:
#
#   SEED_ADMIN_USERNAME=admin SEED_ADMIN_PASSWORD=... python -m app.seed_users

import os

from sqlalchemy.orm import Session

from app.core.database import Base, SessionLocal, engine
from app.core.security import create_access_token, hash_password, verify_password
from app.models.user import Role, User as UserModel
from app.services.user_store import SqlUserStore
from app.services.validation import MIN_PASSWORD_LENGTH


def seed_admin(db: Session, *, username: str, name: str, password: str) -> UserModel:
    """Create the admin account, or restore an existing one to admin with the given password."""
    store = SqlUserStore(db)

    existing = db.query(UserModel).filter(UserModel.username == username).first()
    if not existing:
        u = store.create(
            username=username,
            name=name,
            password_hash=hash_password(password),
            role=Role.ADMIN,
        )
        print(f"✅ Created: {u.username} ({u.role.name})")
        return u

    changes = {"role_id": int(Role.ADMIN), "archived_at": None}
    # only rehash when the password actually changed
    if not verify_password(password, existing.password_hash):
        changes["password_hash"] = hash_password(password)

    u = store.update(existing.id, changes)
    print(f"♻️ Updated: {u.username} ({u.role.name})")
    return u


def main():
    username = os.getenv("SEED_ADMIN_USERNAME", "admin").strip()
    name = os.getenv("SEED_ADMIN_NAME", "Administrator").strip()
    password = os.getenv("SEED_ADMIN_PASSWORD", "")

    if len(password) < MIN_PASSWORD_LENGTH:
        raise SystemExit(f"SEED_ADMIN_PASSWORD must be set (at least {MIN_PASSWORD_LENGTH} characters)")

    # make sure tables exist
    Base.metadata.create_all(bind=engine)

    db: Session = SessionLocal()
    try:
        u = seed_admin(db, username=username, name=name, password=password)
        token = create_access_token({"sub": u.id})
        print("\nBearer token:")
        print(f" {token}")
    finally:
        db.close()


if __name__ == "__main__":
    main()
