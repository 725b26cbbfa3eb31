
import enum

from sqlalchemy import Column, Integer, String, Boolean, DateTime, func
from sqlalchemy.orm import relationship
from paperless.db.session import Base
from paperless.utils.security import hash_password, verify_password


class Role(str, enum.Enum):
    EMPLOYEE = "employee"
    BOSS = "boss"


class User(Base):
    __tablename__ = "users"
    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(50), unique=True, index=True, nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, default=Role.EMPLOYEE.value)
    department = Column(String(120), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    last_login = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    documents = relationship(
        "Document",
        back_populates="owner",
        foreign_keys="Document.created_by",
    )

    @property
    def password(self):
        raise AttributeError("password is write-only")

    @password.setter
    def password(self, raw: str) -> None:
        # unchanged plaintext keeps the existing hash
        if self.password_hash and verify_password(raw, self.password_hash):
            return
        self.password_hash = hash_password(raw)

    def check_password(self, raw: str) -> bool:
        return bool(self.password_hash) and verify_password(raw, self.password_hash)

    @property
    def is_boss(self) -> bool:
        return self.role == Role.BOSS.value
