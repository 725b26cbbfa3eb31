
from datetime import datetime
from pydantic import BaseModel, EmailStr, Field
from pydantic.alias_generators import to_camel

class RegisterIn(BaseModel):
    username: str = Field(min_length=3, max_length=50)
    email: EmailStr
    password: str = Field(min_length=6, max_length=256)
    department: str = Field(min_length=1, max_length=120)

    class Config:
        str_strip_whitespace = True

class LoginIn(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)

class UserOut(BaseModel):
    id: int
    username: str
    email: str
    role: str
    department: str
    is_active: bool = True
    last_login: datetime | None = None
    created_at: datetime | None = None

    class Config:
        from_attributes = True
        alias_generator = to_camel
        populate_by_name = True

class AuthOut(BaseModel):
    user: UserOut
    token: str
