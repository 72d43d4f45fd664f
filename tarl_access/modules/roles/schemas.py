from pydantic import BaseModel, Field
from typing import Optional, List, Dict
from datetime import datetime


class RoleCreate(BaseModel):
    name: str = Field(..., min_length=1)
    description: Optional[str] = None


class RoleUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None


class RoleResponse(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class RoleHierarchyResponse(BaseModel):
    hierarchy: Dict[str, List[str]]


class CreatableRolesResponse(BaseModel):
    acting_role: Optional[str] = None
    can_create_users: bool
    roles: List[RoleResponse]
