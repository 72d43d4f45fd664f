from fastapi import APIRouter, Depends, Security
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from tarl_access.config.role_hierarchy import get_creatable_roles
from tarl_access.modules.auth.schemas import LoginRequest, TokenResponse, CurrentUserResponse
from tarl_access.modules.auth.service import AuthService
from tarl_access.core.dependencies import get_auth_service, get_current_user, is_admin_role
from typing import Dict

router = APIRouter(prefix="/auth", tags=["auth"])

# Security scheme for JWT Bearer token
security = HTTPBearer()


def get_current_token(
    credentials: HTTPAuthorizationCredentials = Security(security)
) -> str:
    """Extract JWT token from Authorization header"""
    return credentials.credentials


@router.post("/login", response_model=TokenResponse)
async def login(
    login_data: LoginRequest,
    service: AuthService = Depends(get_auth_service)
):
    """Login and get access token"""
    return service.login(login_data)


@router.post("/logout", status_code=200)
async def logout(
    token: str = Depends(get_current_token),
    service: AuthService = Depends(get_auth_service)
):
    """Logout and invalidate token"""
    service.logout(token)
    return {"message": "Logged out successfully"}


@router.get("/me", response_model=CurrentUserResponse)
async def me(current_user: Dict = Depends(get_current_user)):
    """Current user with role and the roles they may create (for frontend UI)."""
    role = current_user.get("role")
    return CurrentUserResponse(
        id=current_user["id"],
        email=current_user.get("email"),
        full_name=current_user.get("full_name"),
        role=role,
        school_id=current_user.get("school_id"),
        is_admin=is_admin_role(role),
        creatable_roles=get_creatable_roles(role or ""),
    )
