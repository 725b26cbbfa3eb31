
import logging
from datetime import datetime, timezone

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from paperless.auth.deps import INVALID_TOKEN
from paperless.errors import Conflict, InvalidCredentials, NotFound, Unauthenticated
from paperless.models.user import User
from paperless.utils.security import create_access_token

log = logging.getLogger(__name__)

def issue_token(user: User) -> str:
    return create_access_token(str(user.id), email=user.email)

def register_user(db: Session, username: str, email: str, password: str, department: str) -> User:
    email = email.strip().lower()
    existing = db.query(User).filter(or_(User.email == email, User.username == username)).first()
    if existing:
        field = "email" if existing.email == email else "username"
        raise Conflict(f"{field} already exists")

    user = User(username=username, email=email, department=department)
    user.password = password
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise Conflict("User already exists")
    db.refresh(user)
    log.info("Registered user id=%s", user.id)
    return user

def login_user(db: Session, email: str, password: str) -> User:
    user = db.query(User).filter(User.email == email.strip().lower()).first()
    if not user or not user.is_active or not user.check_password(password):
        log.info("Rejected login attempt")
        raise InvalidCredentials()
    user.last_login = datetime.now(timezone.utc)
    db.commit()
    db.refresh(user)
    return user

def get_user(db: Session, user_id: int) -> User:
    user = db.get(User, user_id)
    if user is None:
        raise NotFound("User not found")
    if not user.is_active:
        raise Unauthenticated(INVALID_TOKEN)
    return user

def list_users(db: Session) -> list[User]:
    return db.query(User).order_by(User.username.asc()).all()
