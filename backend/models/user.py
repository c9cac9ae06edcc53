"""User model definitions."""

from datetime import datetime

from sqlalchemy import CheckConstraint, Column, DateTime, Integer, String
from backend.database import Base

USER_ROLES = ('admin', 'user')


class User(Base):
    """Represents an application user."""
    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint(
            "role IN ({})".format(", ".join(f"'{role}'" for role in USER_ROLES)),
            name='ck_users_role',
        ),
    )

    id = Column(Integer, primary_key=True)
    email = Column(String(255), unique=True, nullable=False)
    hashed_password = Column(String(255), nullable=False)
    name = Column(String(255), nullable=False)
    role = Column(String(50), nullable=False, default='user')  # admin/user
    created_at = Column(DateTime, nullable=False, default=datetime.now)
    updated_at = Column(DateTime, nullable=False, default=datetime.now)
