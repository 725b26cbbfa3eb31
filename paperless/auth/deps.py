
from fastapi import Request, Depends
from sqlalchemy.orm import Session
from jose import JWTError
from paperless.db.session import SessionLocal
from paperless.errors import Unauthenticated
from paperless.utils.security import decode_token
from paperless.models.user import User

INVALID_TOKEN = "Invalid or missing authentication token"


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

def get_bearer_token(request: Request) -> str | None:
    auth = request.headers.get("Authorization")
    if auth and auth.startswith("Bearer "):
        return auth.split(" ", 1)[1].strip() or None
    return None

def get_token_subject(request: Request) -> int:
    """Verify the bearer token and return the user id it names.

    Expired, malformed and badly signed tokens all fail the same way.
    """
    token = get_bearer_token(request)
    if not token:
        raise Unauthenticated(INVALID_TOKEN)

    try:
        payload = decode_token(token)
        return int(payload["sub"])
    except (JWTError, KeyError, TypeError, ValueError):
        raise Unauthenticated(INVALID_TOKEN)

def get_current_user(user_id: int = Depends(get_token_subject), db: Session = Depends(get_db)) -> User:
    user = db.get(User, user_id)
    if user is None or not user.is_active:
        raise Unauthenticated(INVALID_TOKEN)
    return user
