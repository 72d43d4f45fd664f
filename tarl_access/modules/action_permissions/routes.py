from fastapi import APIRouter, Depends, HTTPException, Query
from tarl_access.config.role_hierarchy import get_default_actions_for_page
from tarl_access.database.supabase_client import get_supabase
from tarl_access.modules.action_permissions.schemas import (
    ActionPermissionUpdate, ActionPermissionBulkUpdate, ActionPermissionResponse,
    ActionPermissionBulkResponse, ActionCheckRequest, ActionCheckResponse,
    UserActionPermissions, DefaultActionsResponse
)
from tarl_access.modules.action_permissions.service import ActionPermissionService
from tarl_access.modules.audit.service import changed_by_from_user
from tarl_access.core.dependencies import get_current_user, require_admin
from supabase import Client
from typing import List, Optional, Dict

router = APIRouter(prefix="/action-permissions", tags=["action-permissions"])


def get_action_permission_service(supabase: Client = Depends(get_supabase)) -> ActionPermissionService:
    return ActionPermissionService(supabase)


@router.get("")
async def list_action_permissions(
    page_name: Optional[str] = None,
    role: Optional[str] = None,
    user_data: Dict = Depends(require_admin),
    service: ActionPermissionService = Depends(get_action_permission_service)
):
    """All action permissions grouped by page and role, or the rows of one page (admin only)"""
    if page_name:
        return {"permissions": service.get_page_action_permissions(page_name, role)}
    return {
        "permissions": service.list_grouped(),
        "available_actions": service.get_available_actions(),
    }


@router.get("/me", response_model=List[UserActionPermissions])
async def my_action_permissions(
    current_user: Dict = Depends(get_current_user),
    service: ActionPermissionService = Depends(get_action_permission_service)
):
    """Actions the current user's role may perform on each page it can open"""
    return service.get_user_action_permissions(current_user.get("role"))


@router.put("", response_model=ActionPermissionResponse)
async def update_action_permission(
    body: ActionPermissionUpdate,
    user_data: Dict = Depends(require_admin),
    service: ActionPermissionService = Depends(get_action_permission_service)
):
    return service.update_action_permission(
        body.page_id, body.role, body.action_name, body.is_allowed, changed_by_from_user(user_data)
    )


@router.post("/bulk", response_model=ActionPermissionBulkResponse)
async def bulk_update_action_permissions(
    body: ActionPermissionBulkUpdate,
    user_data: Dict = Depends(require_admin),
    service: ActionPermissionService = Depends(get_action_permission_service)
):
    return service.bulk_update(body.page_id, body.role, body.actions, changed_by_from_user(user_data))


@router.post("/check", response_model=ActionCheckResponse)
async def check_action(
    body: ActionCheckRequest,
    current_user: Dict = Depends(get_current_user),
    service: ActionPermissionService = Depends(get_action_permission_service)
):
    """Whether a role (default: current user's) may perform an action on a page"""
    role = body.role or current_user.get("role")
    return ActionCheckResponse(
        can_perform=service.can_perform_action(role, body.page_name, body.action_name),
        role=role,
        page_name=body.page_name,
        action_name=body.action_name,
    )


@router.get("/check")
async def check_actions(
    page_name: str,
    actions: str = Query(..., description="Comma-separated action names"),
    role: Optional[str] = None,
    current_user: Dict = Depends(get_current_user),
    service: ActionPermissionService = Depends(get_action_permission_service)
):
    action_names = [a.strip() for a in actions.split(",") if a.strip()]
    if not action_names:
        raise HTTPException(status_code=400, detail="At least one action is required")
    role_to_check = role or current_user.get("role")
    return {
        "role": role_to_check,
        "page_name": page_name,
        "permissions": service.check_actions(role_to_check, page_name, action_names),
    }


@router.get("/defaults/{page_name}", response_model=DefaultActionsResponse)
async def default_actions(
    page_name: str,
    current_user: Dict = Depends(get_current_user)
):
    return DefaultActionsResponse(page_name=page_name, actions=get_default_actions_for_page(page_name))
