import logging
from supabase import Client
from tarl_access.modules.pages.schemas import PageCreate, PageUpdate, PageResponse
from typing import List, Optional
from fastapi import HTTPException

logger = logging.getLogger(__name__)


class PageService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def list_pages(self) -> List[PageResponse]:
        try:
            result = self.supabase.table("pages")\
                .select("*")\
                .order("page_name")\
                .execute()
            return [PageResponse(**page) for page in result.data]
        except Exception as e:
            logger.error(f"Error listing pages: {e}")
            raise HTTPException(status_code=500, detail="Failed to fetch pages")

    def get_page_by_id(self, page_id: int) -> PageResponse:
        try:
            result = self.supabase.table("pages")\
                .select("*")\
                .eq("id", page_id)\
                .limit(1)\
                .execute()
        except Exception as e:
            logger.error(f"Error fetching page {page_id}: {e}")
            raise HTTPException(status_code=500, detail="Failed to fetch page")

        if not result.data:
            raise HTTPException(status_code=404, detail="Page not found")
        return PageResponse(**result.data[0])

    def get_page_by_name(self, page_name: str) -> Optional[PageResponse]:
        try:
            result = self.supabase.table("pages")\
                .select("*")\
                .eq("page_name", page_name)\
                .limit(1)\
                .execute()
        except Exception as e:
            logger.error(f"Error fetching page {page_name}: {e}")
            raise HTTPException(status_code=500, detail="Failed to fetch page")
        return PageResponse(**result.data[0]) if result.data else None

    def create_page(self, page_data: PageCreate) -> PageResponse:
        if self.get_page_by_name(page_data.page_name):
            raise HTTPException(status_code=400, detail="Page already exists")
        try:
            result = self.supabase.table("pages").insert({
                "page_name": page_data.page_name,
                "page_path": page_data.page_path
            }).execute()
        except Exception as e:
            logger.error(f"Error creating page {page_data.page_name}: {e}")
            raise HTTPException(status_code=500, detail="Failed to create page")

        if not result.data:
            raise HTTPException(status_code=500, detail="Failed to create page")
        return PageResponse(**result.data[0])

    def update_page(self, page_id: int, page_data: PageUpdate) -> PageResponse:
        self.get_page_by_id(page_id)
        update_data = page_data.model_dump(exclude_none=True)
        if not update_data:
            raise HTTPException(status_code=400, detail="Nothing to update")
        try:
            result = self.supabase.table("pages")\
                .update(update_data)\
                .eq("id", page_id)\
                .execute()
        except Exception as e:
            logger.error(f"Error updating page {page_id}: {e}")
            raise HTTPException(status_code=500, detail="Failed to update page")
        return PageResponse(**result.data[0])

    def delete_page(self, page_id: int) -> bool:
        """Delete page and every permission row pointing at it"""
        self.get_page_by_id(page_id)
        try:
            self.supabase.table("role_page_permissions")\
                .delete()\
                .eq("page_id", page_id)\
                .execute()
            self.supabase.table("page_action_permissions")\
                .delete()\
                .eq("page_id", page_id)\
                .execute()
            result = self.supabase.table("pages")\
                .delete()\
                .eq("id", page_id)\
                .execute()
        except Exception as e:
            logger.error(f"Error deleting page {page_id}: {e}")
            raise HTTPException(status_code=500, detail="Failed to delete page")
        return len(result.data) > 0
