import logging
from datetime import datetime
from supabase import Client
from tarl_access.config.role_hierarchy import AUTO_ASSIGN_SCHOOL_ROLES, get_creatable_roles
from tarl_access.core.dependencies import is_admin_role, get_accessible_school_ids, user_can_access_school
from tarl_access.modules.hierarchy.service import HierarchyService
from tarl_access.modules.roles.service import RoleService
from tarl_access.modules.users.schemas import UserCreate, UserUpdate, UserResponse
from typing import List, Optional, Dict, Any
from fastapi import HTTPException

logger = logging.getLogger(__name__)


class UserService:
    def __init__(self, supabase: Client, admin_client: Optional[Client] = None):
        self.supabase = supabase
        self.admin_client = admin_client or supabase

    def get_user_by_id(self, user_id: str) -> UserResponse:
        """Get user profile by ID"""
        try:
            result = self.supabase.table("user_profiles")\
                .select("*")\
                .eq("id", user_id)\
                .limit(1)\
                .execute()
        except Exception as e:
            logger.error(f"Error fetching user {user_id}: {e}")
            raise HTTPException(status_code=500, detail="Failed to fetch user")

        if not result.data:
            raise HTTPException(status_code=404, detail="User not found")
        return UserResponse(**result.data[0])

    def list_users(self, current_user: Dict[str, Any], limit: int = 50, offset: int = 0) -> List[UserResponse]:
        """Admins see everyone; others see themselves and users at their assigned schools"""
        try:
            if is_admin_role(current_user.get("role")):
                result = self.supabase.table("user_profiles")\
                    .select("*")\
                    .order("created_at", desc=True)\
                    .limit(limit)\
                    .offset(offset)\
                    .execute()
                return [UserResponse(**user) for user in result.data]

            users = {}
            own = self.supabase.table("user_profiles")\
                .select("*")\
                .eq("id", current_user["id"])\
                .execute()
            for user in own.data or []:
                users[user["id"]] = user
            school_ids = get_accessible_school_ids(current_user["id"], self.supabase)
            if school_ids:
                at_schools = self.supabase.table("user_profiles")\
                    .select("*")\
                    .in_("school_id", school_ids)\
                    .execute()
                for user in at_schools.data or []:
                    users[user["id"]] = user
            visible = sorted(users.values(), key=lambda u: str(u.get("created_at") or ""), reverse=True)
            return [UserResponse(**user) for user in visible[offset:offset + limit]]
        except Exception as e:
            logger.error(f"Error listing users: {e}")
            raise HTTPException(status_code=500, detail="Failed to fetch users")

    def create_user(self, user_data: UserCreate, current_user: Dict[str, Any]) -> UserResponse:
        """Create an auth user and profile with a role the acting user is allowed to hand out"""
        acting_role = current_user.get("role") or ""
        if user_data.role not in get_creatable_roles(acting_role):
            raise HTTPException(
                status_code=403,
                detail=f"Role '{acting_role or 'none'}' cannot create users with role '{user_data.role}'"
            )
        if RoleService(self.supabase).get_role_by_name(user_data.role) is None:
            raise HTTPException(status_code=400, detail=f"Unknown role '{user_data.role}'")
        if user_data.school_id is not None and not user_can_access_school(current_user, user_data.school_id, self.supabase):
            raise HTTPException(status_code=403, detail="School is outside your scope")

        try:
            auth_response = self.admin_client.auth.admin.create_user({
                "email": user_data.email,
                "password": user_data.password,
                "email_confirm": True,
                "user_metadata": {"full_name": user_data.full_name} if user_data.full_name else {},
            })
        except Exception as e:
            error_message = str(e)
            if "already" in error_message.lower():
                raise HTTPException(status_code=400, detail="User already exists")
            logger.error(f"Error creating auth user {user_data.email}: {error_message}")
            raise HTTPException(status_code=500, detail="Failed to create user")

        if not auth_response.user:
            raise HTTPException(status_code=500, detail="Failed to create user")
        user_id = auth_response.user.id

        try:
            result = self.supabase.table("user_profiles").insert({
                "id": user_id,
                "email": user_data.email,
                "full_name": user_data.full_name,
                "role": user_data.role,
                "school_id": user_data.school_id,
                "phone": user_data.phone,
                "created_by": current_user["id"],
            }).execute()
        except Exception as e:
            logger.error(f"Error creating profile for {user_data.email}: {e}")
            self._rollback_auth_user(user_id)
            raise HTTPException(status_code=500, detail="Failed to create user")

        if user_data.role in AUTO_ASSIGN_SCHOOL_ROLES and user_data.school_id is not None:
            try:
                HierarchyService(self.supabase).assign(user_id, "school", user_data.school_id, current_user["id"])
            except HTTPException:
                self._rollback_profile(user_id)
                self._rollback_auth_user(user_id)
                raise

        logger.info(f"User {current_user['id']} created {user_data.role} {user_id}")
        return UserResponse(**result.data[0])

    def _rollback_profile(self, user_id: str):
        try:
            self.supabase.table("user_profiles")\
                .delete()\
                .eq("id", user_id)\
                .execute()
        except Exception as e:
            logger.error(f"Could not remove profile of half-created user {user_id}: {e}")

    def _rollback_auth_user(self, user_id: str):
        try:
            self.admin_client.auth.admin.delete_user(user_id)
        except Exception as e:
            logger.error(f"Could not remove orphaned auth user {user_id}: {e}")

    def update_user(self, user_id: str, user_data: UserUpdate) -> UserResponse:
        """Update profile fields; a new role must exist in the roles table"""
        self.get_user_by_id(user_id)
        update_data = user_data.model_dump(exclude_none=True)
        if not update_data:
            raise HTTPException(status_code=400, detail="Nothing to update")
        if "role" in update_data and RoleService(self.supabase).get_role_by_name(update_data["role"]) is None:
            raise HTTPException(status_code=400, detail=f"Unknown role '{update_data['role']}'")
        update_data["updated_at"] = datetime.utcnow().isoformat()

        try:
            result = self.supabase.table("user_profiles")\
                .update(update_data)\
                .eq("id", user_id)\
                .execute()
        except Exception as e:
            logger.error(f"Error updating user {user_id}: {e}")
            raise HTTPException(status_code=500, detail="Failed to update user")

        if not result.data:
            raise HTTPException(status_code=404, detail="User not found")
        logger.info(f"Updated user {user_id}: {sorted(update_data)}")
        return UserResponse(**result.data[0])

    def delete_user(self, user_id: str, current_user: Dict[str, Any]) -> bool:
        """Delete the auth user, its profile and its hierarchy assignments"""
        if user_id == current_user["id"]:
            raise HTTPException(status_code=400, detail="You cannot delete your own account")
        self.get_user_by_id(user_id)

        try:
            self.admin_client.auth.admin.delete_user(user_id)
        except Exception as e:
            logger.error(f"Error deleting auth user {user_id}: {e}")
            raise HTTPException(status_code=500, detail="Failed to delete user")

        try:
            self.supabase.table("user_hierarchy_assignments")\
                .delete()\
                .eq("user_id", user_id)\
                .execute()
            self.supabase.table("user_profiles")\
                .delete()\
                .eq("id", user_id)\
                .execute()
        except Exception as e:
            logger.error(f"Error deleting profile of user {user_id}: {e}")
            raise HTTPException(status_code=500, detail="Failed to delete user")
        logger.info(f"User {current_user['id']} deleted user {user_id}")
        return True

    def set_password(self, user_id: str, password: str) -> bool:
        self.get_user_by_id(user_id)
        try:
            self.admin_client.auth.admin.update_user_by_id(user_id, {"password": password})
        except Exception as e:
            logger.error(f"Error updating password of user {user_id}: {e}")
            raise HTTPException(status_code=500, detail="Failed to update password")
        return True
