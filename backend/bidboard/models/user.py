from sqlalchemy import Boolean, Column, String, DateTime
from sqlalchemy.sql import func

from bidboard.models.base import Base


class UserRole:
    ADMIN = "Admin"
    ESTIMATING = "Estimating"
    APM = "APM"

    ALL = (ADMIN, ESTIMATING, APM)


DEFAULT_USER_COLOR = "#d4af37"


class User(Base):
    __tablename__ = "users"

    id = Column(String(128), primary_key=True)  # external identity id (Auth0 sub)
    email = Column(String(255), nullable=False, unique=True, index=True)
    name = Column(String(255), nullable=False)
    color_preference = Column(String(16), default=DEFAULT_USER_COLOR, nullable=False)
    role = Column(String(32), nullable=True)
    is_active = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
