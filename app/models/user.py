"""ORM models for site users and their roles."""

from sqlalchemy import Boolean, Column, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from app.models.base import Base


class SiteUser(Base):
    """
    Registered user with bcrypt password hash and four account-state flags.

    Roles are never lazy-loaded: queries must ask for them (selectinload).
    """

    __tablename__ = "site_users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    # Indexed but not unique; uniqueness is the ENFORCE_UNIQUE_USERNAMES policy.
    username = Column(String(255), nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    enabled = Column(Boolean, nullable=False, default=True)
    account_non_expired = Column(Boolean, nullable=False, default=True)
    credentials_non_expired = Column(Boolean, nullable=False, default=True)
    account_non_locked = Column(Boolean, nullable=False, default=True)

    roles = relationship(
        "Role",
        back_populates="user",
        cascade="all, delete-orphan",
        lazy="raise",
    )


class Role(Base):
    """Authority granted to a user; role is free text passed through verbatim."""

    __tablename__ = "roles"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(
        Integer, ForeignKey("site_users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    role = Column(String(255), nullable=False, default="")

    user = relationship("SiteUser", back_populates="roles")
