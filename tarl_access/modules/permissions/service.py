import logging
from datetime import datetime
from supabase import Client
from tarl_access.modules.audit.schemas import ChangedBy
from tarl_access.modules.audit.service import AuditLogger
from tarl_access.modules.pages.service import PageService
from tarl_access.modules.permissions.matrix import PermissionMatrix
from tarl_access.modules.permissions.schemas import (
    PagePermissionUpdate, PermissionCell, PermissionResponse,
    RolePermissionRow, RolePermissionsSaveResponse
)
from tarl_access.modules.roles.service import RoleService
from typing import Dict, List, Optional
from fastapi import HTTPException

logger = logging.getLogger(__name__)


class PermissionService:
    def __init__(self, supabase: Client):
        self.supabase = supabase
        self.audit = AuditLogger(supabase)

    def _load_rows(self) -> List[dict]:
        try:
            result = self.supabase.table("role_page_permissions")\
                .select("*")\
                .execute()
            return result.data or []
        except Exception as e:
            logger.error(f"Error fetching page permissions: {e}")
            raise HTTPException(status_code=500, detail="Failed to fetch permissions")

    def build_matrix(self) -> PermissionMatrix:
        roles = RoleService(self.supabase).list_roles()
        pages = PageService(self.supabase).list_pages()
        return PermissionMatrix(roles, pages, self._load_rows())

    def get_matrix(self) -> List[RolePermissionRow]:
        return [RolePermissionRow(**row) for row in self.build_matrix().to_dict()]

    def list_permissions(self) -> List[PermissionResponse]:
        """Stored rows joined with page name and path, ordered by role then page"""
        pages = {page.id: page for page in PageService(self.supabase).list_pages()}
        permissions = []
        for row in self._load_rows():
            page = pages.get(row["page_id"])
            permissions.append(PermissionResponse(
                id=row.get("id"),
                role=row["role"],
                page_id=row["page_id"],
                can_access=bool(row.get("is_allowed")),
                page_name=page.page_name if page else None,
                page_path=page.page_path if page else None,
                updated_at=row.get("updated_at"),
            ))
        return sorted(permissions, key=lambda p: (p.role, p.page_name or ""))

    def _require_role(self, matrix: PermissionMatrix, role_id: int):
        if not matrix.has_role(role_id):
            raise HTTPException(status_code=404, detail="Role not found")

    def save_role_permissions(
        self,
        role_id: int,
        updates: List[PagePermissionUpdate],
        changed_by: Optional[ChangedBy] = None
    ) -> RolePermissionsSaveResponse:
        """Apply updates to the role's row and save every page of it. Nothing is written if any page is unknown."""
        matrix = self.build_matrix()
        self._require_role(matrix, role_id)
        unknown = sorted({u.page_id for u in updates if not matrix.has_page(u.page_id)})
        if unknown:
            raise HTTPException(status_code=400, detail=f"Unknown page ids: {unknown}")

        before = matrix.snapshot(role_id)
        for update in updates:
            matrix.set_access(role_id, update.page_id, update.can_access)
        return self._persist(matrix, role_id, before, changed_by)

    def grant_all(self, role_id: int, changed_by: Optional[ChangedBy] = None) -> RolePermissionsSaveResponse:
        matrix = self.build_matrix()
        self._require_role(matrix, role_id)
        before = matrix.snapshot(role_id)
        matrix.grant_all(role_id)
        return self._persist(matrix, role_id, before, changed_by)

    def revoke_all(self, role_id: int, changed_by: Optional[ChangedBy] = None) -> RolePermissionsSaveResponse:
        matrix = self.build_matrix()
        self._require_role(matrix, role_id)
        before = matrix.snapshot(role_id)
        matrix.revoke_all(role_id)
        return self._persist(matrix, role_id, before, changed_by)

    def _persist(
        self,
        matrix: PermissionMatrix,
        role_id: int,
        before: Dict[int, bool],
        changed_by: Optional[ChangedBy]
    ) -> RolePermissionsSaveResponse:
        role_name = matrix.roles[role_id].name
        now = datetime.utcnow().isoformat()
        rows = [{**row, "updated_at": now} for row in matrix.rows_for_role(role_id)]
        if rows:
            try:
                # One request for the whole role so the save cannot land half-way
                self.supabase.table("role_page_permissions")\
                    .upsert(rows, on_conflict="role,page_id")\
                    .execute()
            except Exception as e:
                logger.error(f"Error saving permissions for role {role_name}: {e}")
                raise HTTPException(status_code=500, detail="Failed to save permissions")

        entries = matrix.role_entries(role_id)
        changed = [entry for entry in entries if before.get(entry["page_id"]) != entry["can_access"]]
        self.audit.log_many([
            {
                "action_type": "page_permission_granted" if entry["can_access"] else "page_permission_revoked",
                "description": (
                    f"{'granted' if entry['can_access'] else 'revoked'} access to page "
                    f"'{entry['page_name']}' for role '{role_name}'"
                ),
                "page_id": entry["page_id"],
                "role_affected": role_name,
            }
            for entry in changed
        ], changed_by)
        logger.info(f"Saved {len(rows)} page permissions for role {role_name} ({len(changed)} changed)")

        granted = matrix.granted_count(role_id)
        return RolePermissionsSaveResponse(
            role_id=role_id,
            role_name=role_name,
            total_pages=len(entries),
            granted_count=granted,
            changed_count=len(changed),
            permissions=[PermissionCell(**entry) for entry in entries],
            message=f"Saved permissions for {role_name}: {granted} of {len(entries)} pages granted",
        )

    def role_can_access_page(self, role: str, page_id: int) -> bool:
        try:
            result = self.supabase.table("role_page_permissions")\
                .select("is_allowed")\
                .eq("role", role)\
                .eq("page_id", page_id)\
                .limit(1)\
                .execute()
        except Exception as e:
            logger.error(f"Error checking page access for {role}: {e}")
            return False
        return bool(result.data) and bool(result.data[0].get("is_allowed"))

    def accessible_page_ids(self, role: str) -> List[int]:
        try:
            result = self.supabase.table("role_page_permissions")\
                .select("page_id")\
                .eq("role", role)\
                .eq("is_allowed", True)\
                .execute()
        except Exception as e:
            logger.error(f"Error listing accessible pages for {role}: {e}")
            return []
        return [row["page_id"] for row in result.data or []]
