from fastapi import APIRouter, Depends, HTTPException, status
from tarl_access.database.supabase_client import get_supabase
from tarl_access.modules.hierarchy.schemas import (
    HierarchyAssignmentRequest, HierarchyAssignmentResponse,
    AssignmentResult, UserHierarchyResponse
)
from tarl_access.modules.hierarchy.service import HierarchyService, validate_assignment_type
from tarl_access.core.dependencies import (
    get_current_user,
    get_access_cache,
    is_admin_role,
    require_user_manager,
    user_can_access_school,
    user_can_access_user,
)
from supabase import Client
from typing import List, Dict

router = APIRouter(prefix="/hierarchy", tags=["hierarchy"])


def get_hierarchy_service(supabase: Client = Depends(get_supabase)) -> HierarchyService:
    return HierarchyService(supabase)


def _check_visible(current_user: Dict, user_id: str, supabase: Client, cache: Dict):
    if not user_can_access_user(current_user, user_id, supabase, cache):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="User not accessible")


def _check_assignment_scope(current_user: Dict, body: HierarchyAssignmentRequest, supabase: Client, cache: Dict):
    """Non-admins may only move other users between schools already inside their own scopes"""
    validate_assignment_type(body.assignment_type)
    _check_visible(current_user, body.user_id, supabase, cache)
    if is_admin_role(current_user.get("role")):
        return
    if body.user_id == current_user["id"]:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only an admin can change your own assignments"
        )
    if body.assignment_type != "school" or not user_can_access_school(
        current_user, body.assignment_id, supabase, cache
    ):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Assignment is outside your scope"
        )


@router.get("/users/{user_id}", response_model=UserHierarchyResponse)
async def get_user_hierarchy(
    user_id: str,
    current_user: Dict = Depends(get_current_user),
    service: HierarchyService = Depends(get_hierarchy_service),
    supabase: Client = Depends(get_supabase),
    cache: Dict = Depends(get_access_cache)
):
    _check_visible(current_user, user_id, supabase, cache)
    return service.get_user_hierarchy(user_id)


@router.get("/users/{user_id}/assignments", response_model=List[HierarchyAssignmentResponse])
async def list_user_assignments(
    user_id: str,
    current_user: Dict = Depends(get_current_user),
    service: HierarchyService = Depends(get_hierarchy_service),
    supabase: Client = Depends(get_supabase),
    cache: Dict = Depends(get_access_cache)
):
    """Active zone/province/district/school assignments of a user"""
    _check_visible(current_user, user_id, supabase, cache)
    return service.list_assignments(user_id)


@router.post("/assign", response_model=AssignmentResult)
async def assign_user(
    body: HierarchyAssignmentRequest,
    current_user: Dict = Depends(require_user_manager),
    service: HierarchyService = Depends(get_hierarchy_service),
    supabase: Client = Depends(get_supabase),
    cache: Dict = Depends(get_access_cache)
):
    _check_assignment_scope(current_user, body, supabase, cache)
    return service.assign(body.user_id, body.assignment_type, body.assignment_id, current_user["id"])


@router.delete("/assign", response_model=AssignmentResult)
async def remove_assignment(
    body: HierarchyAssignmentRequest,
    current_user: Dict = Depends(require_user_manager),
    service: HierarchyService = Depends(get_hierarchy_service),
    supabase: Client = Depends(get_supabase),
    cache: Dict = Depends(get_access_cache)
):
    _check_assignment_scope(current_user, body, supabase, cache)
    return service.remove(body.user_id, body.assignment_type, body.assignment_id)
