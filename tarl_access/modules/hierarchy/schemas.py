from pydantic import BaseModel, Field
from typing import Optional, List


class HierarchyAssignmentRequest(BaseModel):
    user_id: str = Field(..., min_length=1)
    assignment_type: str
    assignment_id: int


class HierarchyAssignmentResponse(BaseModel):
    id: Optional[int] = None
    user_id: str
    assignment_type: str
    assignment_id: int
    name: Optional[str] = None
    level: str
    assigned_by: Optional[str] = None


class AssignmentResult(BaseModel):
    success: bool
    message: str
    assignment: HierarchyAssignmentResponse


class UserHierarchyResponse(BaseModel):
    user_id: str
    role: Optional[str] = None
    is_global: bool = False
    accessible_zones: List[int] = []
    accessible_provinces: List[int] = []
    accessible_districts: List[int] = []
    accessible_schools: List[int] = []
