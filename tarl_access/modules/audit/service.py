import logging
from supabase import Client
from tarl_access.config.settings import settings
from tarl_access.modules.audit.schemas import ChangedBy, AuditLogResponse
from typing import List, Optional
from fastapi import HTTPException

logger = logging.getLogger(__name__)


def changed_by_from_user(current_user: dict) -> ChangedBy:
    return ChangedBy(
        user_id=current_user.get("id"),
        username=current_user.get("full_name") or current_user.get("email") or "Unknown",
        role=current_user.get("role"),
    )


class AuditLogger:
    """Writes permission changes to permission_audit_log. Never fails the caller."""

    def __init__(self, supabase: Client):
        self.supabase = supabase

    def log_permission_change(
        self,
        action_type: str,
        description: str,
        changed_by: Optional[ChangedBy],
        page_id: Optional[int] = None,
        role_affected: Optional[str] = None,
    ) -> bool:
        if not settings.audit_enabled or changed_by is None:
            return False
        try:
            self.supabase.table("permission_audit_log").insert({
                "action_type": action_type,
                "description": description,
                "page_id": page_id,
                "role_affected": role_affected,
                "changed_by_user_id": changed_by.user_id,
                "changed_by": changed_by.username,
            }).execute()
            return True
        except Exception as e:
            logger.warning(f"Failed to log permission change to audit trail: {e}")
            return False

    def log_many(self, entries: List[dict], changed_by: Optional[ChangedBy]) -> int:
        """Insert several entries in one request; returns how many were written"""
        if not settings.audit_enabled or changed_by is None or not entries:
            return 0
        rows = [
            {
                **entry,
                "changed_by_user_id": changed_by.user_id,
                "changed_by": changed_by.username,
            }
            for entry in entries
        ]
        try:
            self.supabase.table("permission_audit_log").insert(rows).execute()
            return len(rows)
        except Exception as e:
            logger.warning(f"Failed to log {len(rows)} permission changes to audit trail: {e}")
            return 0


class AuditService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def list_logs(
        self,
        role: Optional[str] = None,
        page_id: Optional[int] = None,
        action_type: Optional[str] = None,
        limit: int = 50,
    ) -> List[AuditLogResponse]:
        """List audit entries, newest first"""
        try:
            query = self.supabase.table("permission_audit_log").select("*")
            if role:
                query = query.eq("role_affected", role)
            if page_id is not None:
                query = query.eq("page_id", page_id)
            if action_type:
                query = query.eq("action_type", action_type)
            result = query.order("created_at", desc=True)\
                .limit(limit)\
                .execute()
            return [AuditLogResponse(**row) for row in result.data]
        except Exception as e:
            logger.error(f"Error fetching audit logs: {e}")
            raise HTTPException(status_code=500, detail="Failed to fetch audit logs")
