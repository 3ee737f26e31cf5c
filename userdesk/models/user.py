"""User model definitions."""

import enum

from sqlalchemy import Column, DateTime, Integer, String, func
from userdesk.database import Base


class Role(str, enum.Enum):
    """Roles a user can hold."""
    ADMIN = "admin"
    USER = "user"


class User(Base):
    """Represents an application user."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    hashed_password = Column(String, nullable=False)
    role = Column(String, nullable=False, default=Role.USER.value)  # admin/user
    created_at = Column(DateTime, server_default=func.now())

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN.value
