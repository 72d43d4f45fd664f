import logging
from datetime import datetime
from supabase import Client
from tarl_access.config.role_hierarchy import ROLE_HIERARCHY, filter_roles_by_hierarchy
from tarl_access.modules.roles.schemas import RoleCreate, RoleUpdate, RoleResponse
from typing import List, Optional
from fastapi import HTTPException

logger = logging.getLogger(__name__)


class RoleService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def list_roles(self) -> List[RoleResponse]:
        """List all roles ordered by name"""
        try:
            result = self.supabase.table("roles")\
                .select("*")\
                .order("name")\
                .execute()
            return [RoleResponse(**role) for role in result.data]
        except Exception as e:
            logger.error(f"Error listing roles: {e}")
            raise HTTPException(status_code=500, detail="Failed to fetch roles")

    def get_role_by_id(self, role_id: int) -> RoleResponse:
        """Get role by ID"""
        try:
            result = self.supabase.table("roles")\
                .select("*")\
                .eq("id", role_id)\
                .limit(1)\
                .execute()
        except Exception as e:
            logger.error(f"Error fetching role {role_id}: {e}")
            raise HTTPException(status_code=500, detail="Failed to fetch role")

        if not result.data:
            raise HTTPException(status_code=404, detail="Role not found")
        return RoleResponse(**result.data[0])

    def get_role_by_name(self, name: str) -> Optional[RoleResponse]:
        try:
            result = self.supabase.table("roles")\
                .select("*")\
                .eq("name", name)\
                .limit(1)\
                .execute()
        except Exception as e:
            logger.error(f"Error fetching role {name}: {e}")
            raise HTTPException(status_code=500, detail="Failed to fetch role")
        return RoleResponse(**result.data[0]) if result.data else None

    def create_role(self, role_data: RoleCreate) -> RoleResponse:
        """Create a new role"""
        if self.get_role_by_name(role_data.name):
            raise HTTPException(status_code=400, detail="Role already exists")
        try:
            result = self.supabase.table("roles").insert({
                "name": role_data.name,
                "description": role_data.description
            }).execute()
        except Exception as e:
            logger.error(f"Error creating role {role_data.name}: {e}")
            raise HTTPException(status_code=500, detail="Failed to create role")

        if not result.data:
            raise HTTPException(status_code=500, detail="Failed to create role")
        logger.info(f"Created role {role_data.name}")
        return RoleResponse(**result.data[0])

    def update_role(self, role_id: int, role_data: RoleUpdate) -> RoleResponse:
        """Update role description or rename it; renames carry permission rows and user profiles along"""
        current = self.get_role_by_id(role_id)
        update_data = {"updated_at": datetime.utcnow().isoformat()}
        if role_data.name and role_data.name != current.name:
            if current.name in ROLE_HIERARCHY:
                raise HTTPException(
                    status_code=400,
                    detail=f"Role '{current.name}' is part of the role hierarchy and cannot be renamed"
                )
            if self.get_role_by_name(role_data.name):
                raise HTTPException(status_code=400, detail="Role already exists")
            update_data["name"] = role_data.name
        if role_data.description is not None:
            update_data["description"] = role_data.description
        try:
            result = self.supabase.table("roles")\
                .update(update_data)\
                .eq("id", role_id)\
                .execute()
            if "name" in update_data:
                for table in ("role_page_permissions", "page_action_permissions", "user_profiles"):
                    self.supabase.table(table)\
                        .update({"role": update_data["name"]})\
                        .eq("role", current.name)\
                        .execute()
        except Exception as e:
            logger.error(f"Error updating role {role_id}: {e}")
            raise HTTPException(status_code=500, detail="Failed to update role")

        if not result.data:
            raise HTTPException(status_code=404, detail="Role not found")
        return RoleResponse(**result.data[0])

    def delete_role(self, role_id: int) -> bool:
        """Delete role together with its page and action permissions"""
        role = self.get_role_by_id(role_id)
        if role.name in ROLE_HIERARCHY:
            raise HTTPException(
                status_code=400,
                detail=f"Role '{role.name}' is part of the role hierarchy and cannot be deleted"
            )
        try:
            self.supabase.table("role_page_permissions")\
                .delete()\
                .eq("role", role.name)\
                .execute()
            self.supabase.table("page_action_permissions")\
                .delete()\
                .eq("role", role.name)\
                .execute()
            result = self.supabase.table("roles")\
                .delete()\
                .eq("id", role_id)\
                .execute()
        except Exception as e:
            logger.error(f"Error deleting role {role_id}: {e}")
            raise HTTPException(status_code=500, detail="Failed to delete role")
        logger.info(f"Deleted role {role.name}")
        return len(result.data) > 0

    def get_creatable_roles(self, acting_role: Optional[str]) -> List[RoleResponse]:
        """Roles the acting role may assign when creating a user"""
        if not acting_role:
            return []
        return filter_roles_by_hierarchy(acting_role, self.list_roles())
