from fastapi import APIRouter, Depends, Query
from tarl_access.database.supabase_client import get_supabase
from tarl_access.modules.audit.schemas import AuditLogResponse
from tarl_access.modules.audit.service import AuditService
from tarl_access.core.dependencies import require_admin
from supabase import Client
from typing import List, Optional, Dict

router = APIRouter(prefix="/audit", tags=["audit"])


def get_audit_service(supabase: Client = Depends(get_supabase)) -> AuditService:
    return AuditService(supabase)


@router.get("/permission-logs", response_model=List[AuditLogResponse])
async def list_permission_logs(
    role: Optional[str] = None,
    page_id: Optional[int] = None,
    action_type: Optional[str] = None,
    limit: int = Query(50, ge=1, le=500),
    user_data: Dict = Depends(require_admin),
    service: AuditService = Depends(get_audit_service)
):
    """Permission change history (admin only)"""
    return service.list_logs(role=role, page_id=page_id, action_type=action_type, limit=limit)
