from pydantic import BaseModel, Field
from typing import Optional, List, Dict
from datetime import datetime


class ActionPermissionUpdate(BaseModel):
    page_id: int
    role: str = Field(..., min_length=1)
    action_name: str
    is_allowed: bool


class ActionPermissionBulkUpdate(BaseModel):
    page_id: int
    role: str = Field(..., min_length=1)
    actions: Dict[str, bool]


class ActionPermissionResponse(BaseModel):
    id: Optional[int] = None
    page_id: int
    role: str
    action_name: str
    is_allowed: bool
    page_name: Optional[str] = None
    page_path: Optional[str] = None
    updated_at: Optional[datetime] = None


class ActionPermissionBulkResponse(BaseModel):
    page_id: int
    role: str
    actions: Dict[str, bool]
    message: str


class ActionCheckRequest(BaseModel):
    page_name: str
    action_name: str
    role: Optional[str] = None


class ActionCheckResponse(BaseModel):
    can_perform: bool
    role: Optional[str] = None
    page_name: str
    action_name: str


class UserActionPermissions(BaseModel):
    page_name: str
    page_path: str
    actions: Dict[str, bool]


class DefaultActionsResponse(BaseModel):
    page_name: str
    actions: List[str]
