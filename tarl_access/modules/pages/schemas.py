from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime


class PageCreate(BaseModel):
    page_name: str = Field(..., min_length=1)
    page_path: str = Field(..., pattern=r"^/")


class PageUpdate(BaseModel):
    page_name: Optional[str] = None
    page_path: Optional[str] = Field(None, pattern=r"^/")


class PageResponse(BaseModel):
    id: int
    page_name: str
    page_path: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
