from fastapi import APIRouter, Depends, HTTPException, Query, status
from tarl_access.database.supabase_client import get_supabase, get_service_supabase
from tarl_access.modules.users.schemas import UserCreate, UserUpdate, UserPasswordUpdate, UserResponse
from tarl_access.modules.users.service import UserService
from tarl_access.core.dependencies import (
    get_current_user,
    get_access_cache,
    is_admin_role,
    require_admin,
    require_user_manager,
    user_can_access_user,
)
from supabase import Client
from typing import List, Dict

router = APIRouter(prefix="/users", tags=["users"])


def get_user_service(
    supabase: Client = Depends(get_supabase),
    admin_client: Client = Depends(get_service_supabase)
) -> UserService:
    return UserService(supabase, admin_client)


@router.post("", response_model=UserResponse, status_code=201)
async def create_user(
    user_data: UserCreate,
    current_user: Dict = Depends(require_user_manager),
    service: UserService = Depends(get_user_service)
):
    """Create a user with a role below the current user's in the role hierarchy"""
    return service.create_user(user_data, current_user)


@router.get("", response_model=List[UserResponse])
async def list_users(
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    current_user: Dict = Depends(get_current_user),
    service: UserService = Depends(get_user_service)
):
    return service.list_users(current_user, limit=limit, offset=offset)


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: str,
    current_user: Dict = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
    supabase: Client = Depends(get_supabase),
    cache: Dict = Depends(get_access_cache)
):
    """Get user by ID (self, admin, or a user at one of the current user's schools)"""
    user = service.get_user_by_id(user_id)
    if not user_can_access_user(current_user, user_id, supabase, cache):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="User not accessible")
    return user


@router.put("/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: str,
    user_data: UserUpdate,
    current_user: Dict = Depends(require_admin),
    service: UserService = Depends(get_user_service)
):
    """Update a user's profile or role (admin only)"""
    return service.update_user(user_id, user_data)


@router.delete("/{user_id}", status_code=204)
async def delete_user(
    user_id: str,
    current_user: Dict = Depends(require_admin),
    service: UserService = Depends(get_user_service)
):
    """Delete a user with their profile and assignments (admin only)"""
    service.delete_user(user_id, current_user)
    return None


@router.put("/{user_id}/password")
async def set_user_password(
    user_id: str,
    body: UserPasswordUpdate,
    current_user: Dict = Depends(get_current_user),
    service: UserService = Depends(get_user_service)
):
    """Set a new password (admin, or the user themselves)"""
    if not is_admin_role(current_user.get("role")) and current_user["id"] != user_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied")
    service.set_password(user_id, body.password)
    return {"message": "Password updated successfully"}
