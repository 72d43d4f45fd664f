from fastapi import APIRouter, Depends
from tarl_access.database.supabase_client import get_supabase
from tarl_access.modules.pages.schemas import PageCreate, PageUpdate, PageResponse
from tarl_access.modules.pages.service import PageService
from tarl_access.core.dependencies import get_current_user, require_admin
from supabase import Client
from typing import List, Dict

router = APIRouter(prefix="/pages", tags=["pages"])


def get_page_service(supabase: Client = Depends(get_supabase)) -> PageService:
    return PageService(supabase)


@router.get("", response_model=List[PageResponse])
async def list_pages(
    current_user: Dict = Depends(get_current_user),
    service: PageService = Depends(get_page_service)
):
    return service.list_pages()


@router.post("", response_model=PageResponse, status_code=201)
async def create_page(
    page_data: PageCreate,
    user_data: Dict = Depends(require_admin),
    service: PageService = Depends(get_page_service)
):
    return service.create_page(page_data)


@router.put("/{page_id}", response_model=PageResponse)
async def update_page(
    page_id: int,
    page_data: PageUpdate,
    user_data: Dict = Depends(require_admin),
    service: PageService = Depends(get_page_service)
):
    return service.update_page(page_id, page_data)


@router.delete("/{page_id}", status_code=204)
async def delete_page(
    page_id: int,
    user_data: Dict = Depends(require_admin),
    service: PageService = Depends(get_page_service)
):
    """Delete page and its permissions (admin only)"""
    service.delete_page(page_id)
    return None
