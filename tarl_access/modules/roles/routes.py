from fastapi import APIRouter, Depends
from tarl_access.config.role_hierarchy import ROLE_HIERARCHY, can_create_users
from tarl_access.database.supabase_client import get_supabase
from tarl_access.modules.roles.schemas import (
    RoleCreate, RoleUpdate, RoleResponse,
    RoleHierarchyResponse, CreatableRolesResponse
)
from tarl_access.modules.roles.service import RoleService
from tarl_access.core.dependencies import get_current_user, require_admin
from supabase import Client
from typing import List, Dict

router = APIRouter(prefix="/roles", tags=["roles"])


def get_role_service(supabase: Client = Depends(get_supabase)) -> RoleService:
    return RoleService(supabase)


@router.get("", response_model=List[RoleResponse])
async def list_roles(
    current_user: Dict = Depends(get_current_user),
    service: RoleService = Depends(get_role_service)
):
    """List all roles"""
    return service.list_roles()


@router.get("/hierarchy", response_model=RoleHierarchyResponse)
async def get_role_hierarchy(current_user: Dict = Depends(get_current_user)):
    """Static table of which role may create which"""
    return RoleHierarchyResponse(hierarchy={role: list(children) for role, children in ROLE_HIERARCHY.items()})


@router.get("/creatable", response_model=CreatableRolesResponse)
async def get_creatable_roles(
    current_user: Dict = Depends(get_current_user),
    service: RoleService = Depends(get_role_service)
):
    """Roles the current user may assign when creating a user; empty when they cannot create users"""
    role = current_user.get("role")
    return CreatableRolesResponse(
        acting_role=role,
        can_create_users=can_create_users(role or ""),
        roles=service.get_creatable_roles(role),
    )


@router.post("", response_model=RoleResponse, status_code=201)
async def create_role(
    role_data: RoleCreate,
    user_data: Dict = Depends(require_admin),
    service: RoleService = Depends(get_role_service)
):
    """Create a new role (admin only)"""
    return service.create_role(role_data)


@router.get("/{role_id}", response_model=RoleResponse)
async def get_role(
    role_id: int,
    current_user: Dict = Depends(get_current_user),
    service: RoleService = Depends(get_role_service)
):
    return service.get_role_by_id(role_id)


@router.put("/{role_id}", response_model=RoleResponse)
async def update_role(
    role_id: int,
    role_data: RoleUpdate,
    user_data: Dict = Depends(require_admin),
    service: RoleService = Depends(get_role_service)
):
    """Update role (admin only)"""
    return service.update_role(role_id, role_data)


@router.delete("/{role_id}", status_code=204)
async def delete_role(
    role_id: int,
    user_data: Dict = Depends(require_admin),
    service: RoleService = Depends(get_role_service)
):
    """Delete role and its permissions (admin only)"""
    service.delete_role(role_id)
    return None
