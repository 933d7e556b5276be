"""Admin record schemas"""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from backoffice.core.roles import Role

ASSIGNABLE_ROLES = tuple(role.value for role in Role if role is not Role.OWNER)


def _check_role(value: str) -> str:
    if value not in ASSIGNABLE_ROLES:
        raise ValueError(f"role must be one of: {', '.join(ASSIGNABLE_ROLES)} (owner is reserved for initial setup)")
    return value


class AdminGrant(BaseModel):
    subject_id: str = Field(..., min_length=1, description="Identity provider subject id")
    email: str = Field("", description="Informational only")
    role: str = Field(..., description="Role: super_admin | admin | moderator | support")

    @field_validator("role")
    @classmethod
    def role_assignable(cls, value: str) -> str:
        return _check_role(value)


class AdminRoleUpdate(BaseModel):
    role: str

    @field_validator("role")
    @classmethod
    def role_assignable(cls, value: str) -> str:
        return _check_role(value)


class AdminRecordResponse(BaseModel):
    subject_id: str
    email: str
    role: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class AdminIdentityResponse(BaseModel):
    subject_id: str
    email: str
    role: str
    permissions: List[str]


class SetupResponse(BaseModel):
    success: bool = True
    message: str
    admin: AdminRecordResponse
