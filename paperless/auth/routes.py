
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from paperless.auth.deps import get_db, get_token_subject
from paperless.auth.policy import require
from paperless.schemas.auth import RegisterIn, LoginIn, AuthOut, UserOut
from paperless.auth.service import register_user, login_user, issue_token, get_user, list_users
from paperless.models.user import User

router = APIRouter(prefix="/auth", tags=["auth"])

@router.post("/register", response_model=AuthOut, status_code=status.HTTP_201_CREATED)
def register(body: RegisterIn, db: Session = Depends(get_db)):
    user = register_user(db, body.username, body.email, body.password, body.department)
    return AuthOut(user=UserOut.model_validate(user), token=issue_token(user))

@router.post("/login", response_model=AuthOut)
def login(body: LoginIn, db: Session = Depends(get_db)):
    user = login_user(db, body.email, body.password)
    return AuthOut(user=UserOut.model_validate(user), token=issue_token(user))

@router.get("/me", response_model=UserOut)
def me(user_id: int = Depends(get_token_subject), db: Session = Depends(get_db)):
    return get_user(db, user_id)

@router.get("/users", response_model=list[UserOut])
def users(db: Session = Depends(get_db), _: User = Depends(require("users:list"))):
    return list_users(db)
