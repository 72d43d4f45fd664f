from pydantic import BaseModel
from typing import Optional, List, Dict
from datetime import datetime


class PagePermissionUpdate(BaseModel):
    page_id: int
    can_access: bool


class RolePermissionsSave(BaseModel):
    permissions: List[PagePermissionUpdate]


class PermissionCell(BaseModel):
    page_id: int
    page_name: str
    page_path: str
    can_access: bool


class RolePermissionRow(BaseModel):
    role_id: int
    role_name: str
    permissions: Dict[int, PermissionCell]


class PermissionResponse(BaseModel):
    id: Optional[int] = None
    role: str
    page_id: int
    can_access: bool
    page_name: Optional[str] = None
    page_path: Optional[str] = None
    updated_at: Optional[datetime] = None


class RolePermissionsSaveResponse(BaseModel):
    role_id: int
    role_name: str
    total_pages: int
    granted_count: int
    changed_count: int
    permissions: List[PermissionCell]
    message: str
