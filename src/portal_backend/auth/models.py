"""Caller identity supplied by the upstream identity provider."""

from enum import Enum
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class Role(str, Enum):
    """Roles the identity provider assigns."""
    CANDIDATE = "CANDIDATE"
    REVIEWER = "REVIEWER"
    ADMIN = "ADMIN"


class Caller(BaseModel):
    """The authenticated caller of an operation.

    The core trusts this value; credentials are verified upstream.
    """

    model_config = ConfigDict(frozen=True)

    user_id: UUID
    role: Role

    @property
    def is_reviewer(self) -> bool:
        """Reviewers and admins may drive the review pipeline."""
        return self.role in (Role.REVIEWER, Role.ADMIN)

    @property
    def is_admin(self) -> bool:
        return self.role is Role.ADMIN
