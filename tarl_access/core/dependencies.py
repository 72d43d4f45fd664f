"""
Core dependencies for route protection and role checks
"""

from fastapi import Depends, HTTPException, Request, Security, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from tarl_access.config.role_hierarchy import can_create_users
from tarl_access.config.settings import settings
from tarl_access.database.supabase_client import get_supabase
from tarl_access.modules.auth.service import AuthService
from supabase import Client
from typing import List, Optional, Dict, Any
import logging

logger = logging.getLogger(__name__)

security = HTTPBearer()


def _get_request_cache(request: Request) -> Dict[str, Any]:
    """Return request-scoped cache for access data (profile, assignment ids)."""
    if not hasattr(request.state, "access_cache"):
        request.state.access_cache = {}
    return request.state.access_cache


def get_auth_service(supabase: Client = Depends(get_supabase)) -> AuthService:
    return AuthService(supabase)


def get_current_user_id(
    credentials: HTTPAuthorizationCredentials = Security(security),
    auth_service: AuthService = Depends(get_auth_service)
) -> dict:
    """Extract current user info from JWT token"""
    token = credentials.credentials
    return auth_service.get_current_user(token)


def is_admin_role(role: Optional[str]) -> bool:
    return bool(role) and role.lower() == settings.admin_role


def get_user_profile(user_id: str, supabase: Client, cache: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Return the user's profile row ({} when missing). Uses request-scoped cache when provided."""
    if cache is not None and "profile" in cache:
        return cache["profile"]
    profile = AuthService(supabase).get_profile(user_id)
    if cache is not None:
        cache["profile"] = profile
    return profile


def get_current_user(
    request: Request,
    user_data: dict = Depends(get_current_user_id),
    supabase: Client = Depends(get_supabase)
) -> dict:
    """Authenticated user merged with their profile; `role` is None when no profile exists"""
    profile = get_user_profile(user_data["id"], supabase, _get_request_cache(request))
    return {
        **user_data,
        "role": profile.get("role"),
        "full_name": profile.get("full_name"),
        "school_id": profile.get("school_id"),
    }


def require_admin(current_user: dict = Depends(get_current_user)) -> dict:
    """Dependency that only lets the admin role through"""
    if not is_admin_role(current_user.get("role")):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Access denied. Admin role required."
        )
    return current_user


def require_user_manager(current_user: dict = Depends(get_current_user)) -> dict:
    """Dependency for roles that may create and assign other users"""
    role = current_user.get("role")
    if not is_admin_role(role) and not can_create_users(role or ""):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Your role cannot manage users"
        )
    return current_user


def get_access_cache(request: Request) -> Dict[str, Any]:
    """Dependency that returns request-scoped access cache."""
    return _get_request_cache(request)


# Column of the schools table that links a school to each wider scope
SCHOOL_SCOPE_COLUMNS = {
    "zone": "zone_id",
    "province": "province_id",
    "district": "district_id",
}


def get_user_assignment_ids(user_id: str, supabase: Client, cache: Optional[Dict[str, Any]] = None) -> Dict[str, List[int]]:
    """Return active assignment ids keyed by assignment type. Uses request-scoped cache when provided."""
    if cache is not None and "assignment_ids" in cache:
        return cache["assignment_ids"]
    try:
        result = supabase.table("user_hierarchy_assignments")\
            .select("assignment_type, assignment_id")\
            .eq("user_id", user_id)\
            .eq("is_active", True)\
            .execute()
        ids: Dict[str, List[int]] = {}
        for row in result.data or []:
            ids.setdefault(row["assignment_type"], []).append(row["assignment_id"])
        if cache is not None:
            cache["assignment_ids"] = ids
        return ids
    except Exception as e:
        logger.error(f"Error getting hierarchy assignments: {e}")
        return {}


def get_accessible_school_ids(user_id: str, supabase: Client, cache: Optional[Dict[str, Any]] = None) -> List[int]:
    """
    Return ids of schools inside the user's active scopes: schools assigned directly
    plus schools whose zone, province or district is assigned. Uses request-scoped
    cache when provided.
    """
    if cache is not None and "school_ids" in cache:
        return cache["school_ids"]
    assignments = get_user_assignment_ids(user_id, supabase, cache)
    school_ids = set(assignments.get("school", []))
    try:
        for assignment_type, column in SCHOOL_SCOPE_COLUMNS.items():
            scope_ids = assignments.get(assignment_type)
            if not scope_ids:
                continue
            result = supabase.table("schools")\
                .select("id")\
                .in_(column, scope_ids)\
                .execute()
            school_ids.update(row["id"] for row in result.data or [])
    except Exception as e:
        logger.error(f"Error resolving schools for user scopes: {e}")
    ids = sorted(school_ids)
    if cache is not None:
        cache["school_ids"] = ids
    return ids


def user_can_access_school(current_user: dict, school_id: Optional[int], supabase: Client,
                           cache: Optional[Dict[str, Any]] = None) -> bool:
    """True if current user is admin or the school lies inside one of their scopes"""
    if is_admin_role(current_user.get("role")):
        return True
    if school_id is None:
        return False
    return school_id in get_accessible_school_ids(current_user["id"], supabase, cache)


def user_can_access_user(current_user: dict, target_user_id: str, supabase: Client,
                         cache: Optional[Dict[str, Any]] = None) -> bool:
    """True if current user is admin, is the target, or the target's school lies inside their scopes"""
    if is_admin_role(current_user.get("role")) or current_user["id"] == target_user_id:
        return True
    school_ids = get_accessible_school_ids(current_user["id"], supabase, cache)
    if not school_ids:
        return False
    result = supabase.table("user_profiles")\
        .select("id")\
        .eq("id", target_user_id)\
        .in_("school_id", school_ids)\
        .limit(1)\
        .execute()
    return bool(result.data)
