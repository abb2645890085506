
from fastapi import Request, Depends
from sqlalchemy.orm import Session
from securevault.auth.service import get_user
from securevault.db.session import SessionLocal
from securevault.documents.store import find_document
from securevault.errors import AuthError, AuthorizationError, InvalidTokenError, NotFoundError
from securevault.models.document import Document
from securevault.models.user import User
from securevault.utils.security import bearer_token, validate_token


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

def get_current_user(request: Request, db: Session = Depends(get_db)) -> User:
    # the auth middleware has normally validated the token already
    user_id = getattr(request.state, "user_id", None)
    if user_id is None:
        token = bearer_token(request.headers.get("Authorization"))
        if not token:
            raise AuthError("Access denied. No token provided.")
        user_id = validate_token(token)

    user = get_user(db, user_id)
    if user is None or not user.is_active:
        raise InvalidTokenError("Invalid token. User not found or inactive.")
    return user

def get_owned_document(
    doc_id: str,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> Document:
    doc = find_document(db, doc_id)
    if doc is None:
        raise NotFoundError("Document not found.")
    if doc.user_id != user.id:
        raise AuthorizationError()
    return doc

def require_admin(user: User = Depends(get_current_user)) -> User:
    if not user.is_admin:
        raise AuthorizationError("Access denied. Admin privileges required.")
    return user
