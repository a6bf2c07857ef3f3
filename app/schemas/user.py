"""Pydantic records for stored users and authenticated identities."""

from pydantic import BaseModel, ConfigDict, Field


class RoleRecord(BaseModel):
    """One role row; user_id is the back-reference to the owning user."""

    model_config = ConfigDict(from_attributes=True)

    id: int | None = None
    user_id: int | None = None
    role: str = ""


class UserRecord(BaseModel):
    """
    Full image of a stored user as the credential store reads and writes it.

    password_hash must already be a bcrypt hash when passed to upsert.
    """

    model_config = ConfigDict(from_attributes=True)

    id: int | None = None
    username: str
    password_hash: str
    enabled: bool = True
    account_non_expired: bool = True
    credentials_non_expired: bool = True
    account_non_locked: bool = True
    roles: list[RoleRecord] = Field(default_factory=list)


class AuthenticatedIdentity(BaseModel):
    """Result of a successful login: the username and its authority names."""

    model_config = ConfigDict(frozen=True)

    username: str
    authorities: frozenset[str] = frozenset()

    def has_authority(self, authority: str) -> bool:
        return authority in self.authorities
