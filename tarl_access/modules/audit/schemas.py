from pydantic import BaseModel
from typing import Optional
from datetime import datetime


class ChangedBy(BaseModel):
    user_id: Optional[str] = None
    username: str = "Unknown"
    role: Optional[str] = None


class AuditLogResponse(BaseModel):
    id: int
    action_type: str
    description: str
    page_id: Optional[int] = None
    role_affected: Optional[str] = None
    changed_by_user_id: Optional[str] = None
    changed_by: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True
