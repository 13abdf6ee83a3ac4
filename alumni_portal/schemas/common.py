from pydantic import BaseModel
from typing import List, Optional


class MessageResponse(BaseModel):
    success: bool = True
    message: str


class PageMeta(BaseModel):
    """Fields shared by every paginated response"""
    total: int
    page: int
    page_size: int
    total_pages: int
    has_next: bool
    has_previous: bool


def split_list(value) -> Optional[List[str]]:
    """Accept either a list or a comma-separated string for list-valued fields"""
    if value is None:
        return None
    if isinstance(value, str):
        return [item.strip() for item in value.split(",") if item.strip()]
    if isinstance(value, (list, tuple)):
        return [str(item).strip() for item in value if item is not None and str(item).strip()]
    return value
