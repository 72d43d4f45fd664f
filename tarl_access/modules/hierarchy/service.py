import logging
from datetime import datetime
from supabase import Client
from tarl_access.config.role_hierarchy import ASSIGNMENT_TYPES, ASSIGNMENT_TARGET_TABLES
from tarl_access.core.dependencies import is_admin_role
from tarl_access.modules.auth.service import AuthService
from tarl_access.modules.hierarchy.schemas import (
    HierarchyAssignmentResponse, AssignmentResult, UserHierarchyResponse
)
from typing import Dict, List, Optional
from fastapi import HTTPException

logger = logging.getLogger(__name__)


def validate_assignment_type(assignment_type: str):
    if assignment_type not in ASSIGNMENT_TYPES:
        raise HTTPException(
            status_code=400,
            detail=f"Invalid assignment type. Must be one of: {', '.join(ASSIGNMENT_TYPES)}"
        )


class HierarchyService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def _require_user(self, user_id: str) -> dict:
        profile = AuthService(self.supabase).get_profile(user_id)
        if not profile:
            raise HTTPException(status_code=404, detail="User not found")
        return profile

    def _active_rows(self, user_id: str) -> List[dict]:
        try:
            result = self.supabase.table("user_hierarchy_assignments")\
                .select("*")\
                .eq("user_id", user_id)\
                .eq("is_active", True)\
                .execute()
            return result.data or []
        except Exception as e:
            logger.error(f"Error fetching assignments for {user_id}: {e}")
            raise HTTPException(status_code=500, detail="Failed to load current assignments")

    def _target_names(self, assignment_type: str, ids: List[int]) -> Dict[int, str]:
        if not ids:
            return {}
        try:
            result = self.supabase.table(ASSIGNMENT_TARGET_TABLES[assignment_type])\
                .select("id, name")\
                .in_("id", ids)\
                .execute()
        except Exception as e:
            # Names are cosmetic; the assignment list is still valid without them
            logger.warning(f"Could not resolve {assignment_type} names: {e}")
            return {}
        return {row["id"]: row.get("name") for row in result.data or []}

    def _to_response(self, row: dict, names: Dict[str, Dict[int, str]]) -> HierarchyAssignmentResponse:
        assignment_type = row["assignment_type"]
        return HierarchyAssignmentResponse(
            id=row.get("id"),
            user_id=row["user_id"],
            assignment_type=assignment_type,
            assignment_id=row["assignment_id"],
            name=names.get(assignment_type, {}).get(row["assignment_id"]),
            level=assignment_type.capitalize(),
            assigned_by=row.get("assigned_by"),
        )

    def list_assignments(self, user_id: str) -> List[HierarchyAssignmentResponse]:
        """Active assignments of a user, ordered by scope then target id"""
        rows = [r for r in self._active_rows(user_id) if r["assignment_type"] in ASSIGNMENT_TYPES]
        names = {
            assignment_type: self._target_names(
                assignment_type, [r["assignment_id"] for r in rows if r["assignment_type"] == assignment_type]
            )
            for assignment_type in ASSIGNMENT_TYPES
        }
        rows.sort(key=lambda r: (ASSIGNMENT_TYPES.index(r["assignment_type"]), r["assignment_id"]))
        return [self._to_response(row, names) for row in rows]

    def assign(self, user_id: str, assignment_type: str, assignment_id: int,
               assigned_by: Optional[str]) -> AssignmentResult:
        """Create the assignment, or re-activate it if it was removed before"""
        validate_assignment_type(assignment_type)
        self._require_user(user_id)
        try:
            result = self.supabase.table("user_hierarchy_assignments").upsert({
                "user_id": user_id,
                "assignment_type": assignment_type,
                "assignment_id": assignment_id,
                "assigned_by": assigned_by,
                "is_active": True,
                "updated_at": datetime.utcnow().isoformat(),
            }, on_conflict="user_id,assignment_type,assignment_id").execute()
        except Exception as e:
            logger.error(f"Error assigning user {user_id} to {assignment_type} {assignment_id}: {e}")
            raise HTTPException(status_code=500, detail="Failed to assign user to hierarchy")

        row = result.data[0] if result.data else {
            "user_id": user_id,
            "assignment_type": assignment_type,
            "assignment_id": assignment_id,
            "assigned_by": assigned_by,
        }
        names = {assignment_type: self._target_names(assignment_type, [assignment_id])}
        logger.info(f"Assigned user {user_id} to {assignment_type} {assignment_id}")
        return AssignmentResult(
            success=True,
            message="User assigned to hierarchy successfully",
            assignment=self._to_response(row, names),
        )

    def remove(self, user_id: str, assignment_type: str, assignment_id: int) -> AssignmentResult:
        validate_assignment_type(assignment_type)
        try:
            result = self.supabase.table("user_hierarchy_assignments")\
                .update({"is_active": False, "updated_at": datetime.utcnow().isoformat()})\
                .eq("user_id", user_id)\
                .eq("assignment_type", assignment_type)\
                .eq("assignment_id", assignment_id)\
                .eq("is_active", True)\
                .execute()
        except Exception as e:
            logger.error(f"Error removing user {user_id} from {assignment_type} {assignment_id}: {e}")
            raise HTTPException(status_code=500, detail="Failed to remove user from hierarchy")

        if not result.data:
            raise HTTPException(status_code=404, detail="Assignment not found")
        logger.info(f"Removed user {user_id} from {assignment_type} {assignment_id}")
        return AssignmentResult(
            success=True,
            message="User removed from hierarchy successfully",
            assignment=self._to_response(result.data[0], {}),
        )

    def get_user_hierarchy(self, user_id: str) -> UserHierarchyResponse:
        """Scopes a user can reach; admins are global and carry no explicit lists"""
        profile = self._require_user(user_id)
        role = profile.get("role")
        if is_admin_role(role):
            return UserHierarchyResponse(user_id=user_id, role=role, is_global=True)

        scopes: Dict[str, List[int]] = {t: [] for t in ASSIGNMENT_TYPES}
        for row in self._active_rows(user_id):
            if row["assignment_type"] in scopes:
                scopes[row["assignment_type"]].append(row["assignment_id"])
        return UserHierarchyResponse(
            user_id=user_id,
            role=role,
            accessible_zones=sorted(scopes["zone"]),
            accessible_provinces=sorted(scopes["province"]),
            accessible_districts=sorted(scopes["district"]),
            accessible_schools=sorted(scopes["school"]),
        )
