# This project was developed with assistance from AI tools.
"""Authentication and authorization schemas."""

from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field
from relief_db.enums import UserRole


class UserContext(BaseModel):
    """Injected by auth middleware into every authenticated request."""

    model_config = ConfigDict(frozen=True)

    user_id: str
    role: UserRole
    email: str
    name: str
    account_created_at: datetime | None = None

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


class TokenPayload(BaseModel):
    """Decoded JWT token claims from Keycloak."""

    sub: str
    email: str = ""
    preferred_username: str = ""
    name: str = ""
    realm_access: dict = Field(default_factory=dict)
    admin: bool | None = None
    created_timestamp: int | None = Field(
        default=None,
        alias="createdTimestamp",
        description="Account creation time in epoch milliseconds (Keycloak user attribute mapper).",
    )

    model_config = ConfigDict(populate_by_name=True)

    @property
    def account_created_at(self) -> datetime | None:
        if self.created_timestamp is None:
            return None
        return datetime.fromtimestamp(self.created_timestamp / 1000, tz=UTC)
