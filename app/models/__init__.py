"""SQLAlchemy ORM models."""

from app.models.base import Base
from app.models.user import Role, SiteUser

__all__ = ["Base", "Role", "SiteUser"]
