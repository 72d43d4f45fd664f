from fastapi import APIRouter, Depends
from tarl_access.database.supabase_client import get_supabase
from tarl_access.modules.audit.service import changed_by_from_user
from tarl_access.modules.permissions.schemas import (
    PermissionResponse, RolePermissionRow,
    RolePermissionsSave, RolePermissionsSaveResponse
)
from tarl_access.modules.permissions.service import PermissionService
from tarl_access.core.dependencies import require_admin
from supabase import Client
from typing import List, Dict

router = APIRouter(prefix="/permissions", tags=["permissions"])


def get_permission_service(supabase: Client = Depends(get_supabase)) -> PermissionService:
    return PermissionService(supabase)


@router.get("", response_model=List[PermissionResponse])
async def list_permissions(
    user_data: Dict = Depends(require_admin),
    service: PermissionService = Depends(get_permission_service)
):
    """Stored role/page permission rows (admin only)"""
    return service.list_permissions()


@router.get("/matrix", response_model=List[RolePermissionRow])
async def get_permission_matrix(
    user_data: Dict = Depends(require_admin),
    service: PermissionService = Depends(get_permission_service)
):
    """Role x page access matrix; pages without a stored row are shown as denied"""
    return service.get_matrix()


@router.put("/roles/{role_id}", response_model=RolePermissionsSaveResponse)
async def save_role_permissions(
    role_id: int,
    body: RolePermissionsSave,
    user_data: Dict = Depends(require_admin),
    service: PermissionService = Depends(get_permission_service)
):
    """Save a role's page access. Pages missing from the body keep their current value."""
    return service.save_role_permissions(role_id, body.permissions, changed_by_from_user(user_data))


@router.post("/roles/{role_id}/grant-all", response_model=RolePermissionsSaveResponse)
async def grant_all_pages(
    role_id: int,
    user_data: Dict = Depends(require_admin),
    service: PermissionService = Depends(get_permission_service)
):
    return service.grant_all(role_id, changed_by_from_user(user_data))


@router.post("/roles/{role_id}/revoke-all", response_model=RolePermissionsSaveResponse)
async def revoke_all_pages(
    role_id: int,
    user_data: Dict = Depends(require_admin),
    service: PermissionService = Depends(get_permission_service)
):
    return service.revoke_all(role_id, changed_by_from_user(user_data))
