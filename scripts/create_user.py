# scripts/create_user.py
"""Create a user with a role, or change the role of an existing one.

    python -m scripts.create_user admin@example.com admin --password s3cret-pass
"""
import argparse
import logging

from app.core.config import settings
from app.core.logging import configure_logging
from app.core.security import hash_password
from app.db.mixins import Base
from app.db.models.user import User, ROLES
from app.db.session import SessionLocal, engine

logger = logging.getLogger("scripts.create_user")


def upsert_user(db, email: str, role: str, password: str | None = None, full_name: str | None = None) -> User:
    email = (email or "").strip().lower()
    if not email:
        raise ValueError("email is required")
    if role not in ROLES:
        raise ValueError(f"role must be one of {', '.join(ROLES)}")

    user = db.query(User).filter(User.email == email).first()
    if user is None:
        if not password:
            raise ValueError("a password is required for a new user")
        user = User(email=email, full_name=full_name, is_active=True)
        db.add(user)

    user.role = role
    if password:
        user.password_hash = hash_password(password)
    if full_name:
        user.full_name = full_name
    return user


def main(argv=None):
    parser = argparse.ArgumentParser(description="Create or promote a user")
    parser.add_argument("email")
    parser.add_argument("role", choices=ROLES)
    parser.add_argument("--password")
    parser.add_argument("--full-name")
    args = parser.parse_args(argv)

    configure_logging(settings.LOG_LEVEL)
    Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        user = upsert_user(db, args.email, args.role, args.password, args.full_name)
        db.commit()
        logger.info("User %s saved with role %s", user.email, user.role)
    except Exception:
        db.rollback()
        logger.exception("Saving user failed")
        raise
    finally:
        db.close()


if __name__ == "__main__":
    main()
