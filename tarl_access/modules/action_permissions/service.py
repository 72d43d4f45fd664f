import logging
from datetime import datetime
from supabase import Client
from tarl_access.config.role_hierarchy import AVAILABLE_ACTIONS
from tarl_access.modules.action_permissions.schemas import (
    ActionPermissionResponse, ActionPermissionBulkResponse, UserActionPermissions
)
from tarl_access.modules.audit.schemas import ChangedBy
from tarl_access.modules.audit.service import AuditLogger
from tarl_access.modules.pages.service import PageService
from tarl_access.modules.permissions.service import PermissionService
from tarl_access.modules.roles.service import RoleService
from typing import Any, Dict, List, Optional
from fastapi import HTTPException

logger = logging.getLogger(__name__)


def _audit_action_type(is_update: bool, is_allowed: bool) -> str:
    if is_update:
        return "action_permission_granted" if is_allowed else "action_permission_revoked"
    return "action_permission_created_granted" if is_allowed else "action_permission_created_revoked"


def _audit_description(action_name: str, role: str, page_name: str, is_allowed: bool,
                       previous: Optional[bool]) -> str:
    verb = "granted" if is_allowed else "revoked"
    description = f"{verb} '{action_name}' permission for role '{role}' on page '{page_name}'"
    if previous is not None:
        description += f" (was {'granted' if previous else 'revoked'})"
    return description


class ActionPermissionService:
    def __init__(self, supabase: Client):
        self.supabase = supabase
        self.pages = PageService(supabase)
        self.audit = AuditLogger(supabase)

    @staticmethod
    def get_available_actions() -> List[str]:
        return list(AVAILABLE_ACTIONS)

    def _validate_actions(self, action_names):
        invalid = sorted(a for a in action_names if a not in AVAILABLE_ACTIONS)
        if invalid:
            raise HTTPException(
                status_code=400,
                detail=f"Invalid action(s) {invalid}. Must be one of: {', '.join(AVAILABLE_ACTIONS)}"
            )

    def _require_role(self, role: str):
        if not RoleService(self.supabase).get_role_by_name(role):
            raise HTTPException(status_code=404, detail="Role not found")

    def _select_rows(self, page_id: Optional[int] = None, role: Optional[str] = None,
                     action_name: Optional[str] = None) -> List[dict]:
        try:
            query = self.supabase.table("page_action_permissions").select("*")
            if page_id is not None:
                query = query.eq("page_id", page_id)
            if role:
                query = query.eq("role", role)
            if action_name:
                query = query.eq("action_name", action_name)
            return query.execute().data or []
        except Exception as e:
            logger.error(f"Error fetching action permissions: {e}")
            raise HTTPException(status_code=500, detail="Failed to fetch action permissions")

    def list_grouped(self) -> Dict[str, Any]:
        """All rows grouped by page name, then role"""
        pages = {page.id: page for page in self.pages.list_pages()}
        grouped: Dict[str, Dict[str, Any]] = {}
        rows = sorted(self._select_rows(), key=lambda r: (r["role"], r["action_name"]))
        for row in rows:
            page = pages.get(row["page_id"])
            if page is None:
                continue
            entry = grouped.setdefault(page.page_name, {
                "page_id": page.id,
                "page_name": page.page_name,
                "page_path": page.page_path,
                "roles": {},
            })
            role_entry = entry["roles"].setdefault(row["role"], {"role": row["role"], "actions": {}})
            role_entry["actions"][row["action_name"]] = bool(row["is_allowed"])
        return dict(sorted(grouped.items()))

    def get_page_action_permissions(self, page_name: str, role: Optional[str] = None) -> List[ActionPermissionResponse]:
        page = self.pages.get_page_by_name(page_name)
        if page is None:
            raise HTTPException(status_code=404, detail="Page not found")
        rows = sorted(self._select_rows(page_id=page.id, role=role), key=lambda r: (r["role"], r["action_name"]))
        return [
            ActionPermissionResponse(
                id=row.get("id"),
                page_id=row["page_id"],
                role=row["role"],
                action_name=row["action_name"],
                is_allowed=bool(row["is_allowed"]),
                page_name=page.page_name,
                page_path=page.page_path,
                updated_at=row.get("updated_at"),
            )
            for row in rows
        ]

    def update_action_permission(
        self,
        page_id: int,
        role: str,
        action_name: str,
        is_allowed: bool,
        changed_by: Optional[ChangedBy] = None
    ) -> ActionPermissionResponse:
        """Grant or revoke one action for a role on a page"""
        self._validate_actions([action_name])
        page = self.pages.get_page_by_id(page_id)
        self._require_role(role)

        existing = self._select_rows(page_id=page_id, role=role, action_name=action_name)
        previous = bool(existing[0]["is_allowed"]) if existing else None
        try:
            result = self.supabase.table("page_action_permissions").upsert({
                "page_id": page_id,
                "role": role,
                "action_name": action_name,
                "is_allowed": is_allowed,
                "updated_at": datetime.utcnow().isoformat(),
            }, on_conflict="page_id,role,action_name").execute()
        except Exception as e:
            logger.error(f"Error updating action permission {role}/{page.page_name}/{action_name}: {e}")
            raise HTTPException(status_code=500, detail="Failed to update action permission")

        self.audit.log_permission_change(
            _audit_action_type(bool(existing), is_allowed),
            _audit_description(action_name, role, page.page_name, is_allowed, previous),
            changed_by,
            page_id=page_id,
            role_affected=role,
        )
        row = result.data[0] if result.data else {}
        return ActionPermissionResponse(
            id=row.get("id"),
            page_id=page_id,
            role=role,
            action_name=action_name,
            is_allowed=is_allowed,
            page_name=page.page_name,
            page_path=page.page_path,
        )

    def bulk_update(
        self,
        page_id: int,
        role: str,
        actions: Dict[str, bool],
        changed_by: Optional[ChangedBy] = None
    ) -> ActionPermissionBulkResponse:
        """Set several actions for a role on a page in one write"""
        if not actions:
            raise HTTPException(status_code=400, detail="No actions given")
        self._validate_actions(actions.keys())
        page = self.pages.get_page_by_id(page_id)
        self._require_role(role)

        previous = {row["action_name"]: bool(row["is_allowed"]) for row in self._select_rows(page_id=page_id, role=role)}
        now = datetime.utcnow().isoformat()
        rows = [
            {"page_id": page_id, "role": role, "action_name": name, "is_allowed": allowed, "updated_at": now}
            for name, allowed in actions.items()
        ]
        try:
            self.supabase.table("page_action_permissions")\
                .upsert(rows, on_conflict="page_id,role,action_name")\
                .execute()
        except Exception as e:
            logger.error(f"Error bulk updating action permissions for {role}/{page.page_name}: {e}")
            raise HTTPException(status_code=500, detail="Failed to update action permissions")

        self.audit.log_many([
            {
                "action_type": _audit_action_type(name in previous, allowed),
                "description": _audit_description(name, role, page.page_name, allowed, previous.get(name)),
                "page_id": page_id,
                "role_affected": role,
            }
            for name, allowed in actions.items()
        ], changed_by)
        return ActionPermissionBulkResponse(
            page_id=page_id,
            role=role,
            actions=dict(actions),
            message=f"Bulk action permissions updated successfully for {role}",
        )

    def can_perform_action(self, role: Optional[str], page_name: str, action_name: str) -> bool:
        """
        Explicit action row wins. Without one, 'view' falls back to page access;
        every other action is denied.
        """
        if not role or action_name not in AVAILABLE_ACTIONS:
            return False
        page = self.pages.get_page_by_name(page_name)
        if page is None:
            return False
        rows = self._select_rows(page_id=page.id, role=role, action_name=action_name)
        if rows:
            return bool(rows[0]["is_allowed"])
        if action_name == "view":
            return PermissionService(self.supabase).role_can_access_page(role, page.id)
        return False

    def check_actions(self, role: Optional[str], page_name: str, action_names: List[str]) -> Dict[str, bool]:
        return {name: self.can_perform_action(role, page_name, name) for name in action_names}

    def get_user_action_permissions(self, role: Optional[str]) -> List[UserActionPermissions]:
        """
        Action grid for the pages the role can open that carry at least one action
        row for it; actions without a row are false
        """
        if not role:
            return []
        page_ids = set(PermissionService(self.supabase).accessible_page_ids(role))
        if not page_ids:
            return []
        rows = self._select_rows(role=role)
        by_page: Dict[int, Dict[str, bool]] = {}
        for row in rows:
            if row["page_id"] in page_ids and row["action_name"] in AVAILABLE_ACTIONS:
                by_page.setdefault(row["page_id"], {})[row["action_name"]] = bool(row["is_allowed"])

        result = []
        for page in self.pages.list_pages():
            if page.id not in by_page:
                continue
            actions = {name: False for name in AVAILABLE_ACTIONS}
            actions.update(by_page.get(page.id, {}))
            result.append(UserActionPermissions(page_name=page.page_name, page_path=page.page_path, actions=actions))
        return result
