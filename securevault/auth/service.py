
import logging
from datetime import datetime, timezone
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from securevault.errors import (
    AuthError,
    ConflictError,
    InactiveAccountError,
    InvalidCredentialsError,
    ValidationError,
)
from securevault.models.user import User
from securevault.utils.security import hash_password, verify_password

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6


def _prepare_password(password: str) -> str:
    """Pre-persistence step for every plaintext password: check, then hash."""
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")
    return hash_password(password)


def _email_taken(db: Session, email: str, exclude_user_id: str | None = None) -> bool:
    q = db.query(User.id).filter(User.email == email)
    if exclude_user_id is not None:
        q = q.filter(User.id != exclude_user_id)
    return q.first() is not None


def get_user(db: Session, user_id: str) -> User | None:
    return db.get(User, user_id)


def register_user(db: Session, name: str, email: str, password: str) -> User:
    if _email_taken(db, email):
        raise ConflictError("User with this email already exists")
    user = User(name=name, email=email, password_hash=_prepare_password(password))
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError("User with this email already exists")
    db.refresh(user)
    logger.info("Registered user %s", user.id)
    return user


def authenticate_user(db: Session, email: str, password: str) -> User:
    user = db.query(User).filter(User.email == email).first()
    if not user:
        raise InvalidCredentialsError()
    if not user.is_active:
        raise InactiveAccountError()
    if not verify_password(password, user.password_hash):
        raise InvalidCredentialsError()
    return user


def record_login(db: Session, user: User) -> User:
    user.last_login = datetime.now(timezone.utc)
    db.commit()
    db.refresh(user)
    return user


def update_profile(db: Session, user: User, name: str | None = None, email: str | None = None) -> User:
    if not name and not email:
        raise ValidationError("No valid fields to update")
    if email and email != user.email:
        if _email_taken(db, email, exclude_user_id=user.id):
            raise ConflictError("Email is already taken by another user")
        user.email = email
    if name:
        user.name = name
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError("Email is already taken by another user")
    db.refresh(user)
    return user


def change_password(db: Session, user: User, current_password: str, new_password: str) -> None:
    if not verify_password(current_password, user.password_hash):
        raise AuthError("Current password is incorrect")
    user.password_hash = _prepare_password(new_password)
    db.commit()
    logger.info("Password changed for user %s", user.id)


def confirm_password(user: User, password: str) -> None:
    if not verify_password(password, user.password_hash):
        raise AuthError("Password is incorrect")


def delete_user(db: Session, user: User) -> None:
    user_id = user.id
    db.delete(user)
    db.commit()
    logger.info("Deleted account %s", user_id)
