from pydantic import BaseModel, Field, field_validator
from typing import Optional, List
from datetime import datetime

from alumni_portal.schemas.common import PageMeta, split_list

NEWS_CATEGORIES = [
    "general",
    "achievements",
    "events",
    "placements",
    "research",
    "announcements",
    "alumni-stories",
]


class NewsBase(BaseModel):
    excerpt: Optional[str] = Field(None, max_length=1000)
    featured_image_url: Optional[str] = Field(None, max_length=500)
    tags: Optional[List[str]] = None
    is_published: Optional[bool] = None
    is_featured: Optional[bool] = None

    @field_validator('tags', mode='before')
    @classmethod
    def parse_tags(cls, value):
        return split_list(value)


class NewsCreate(NewsBase):
    title: str = Field(..., min_length=1, max_length=500)
    content: str = Field(..., min_length=1)
    category: str = "general"
    is_published: bool = False
    is_featured: bool = False


class NewsUpdate(NewsBase):
    title: Optional[str] = Field(None, min_length=1, max_length=500)
    content: Optional[str] = Field(None, min_length=1)
    category: Optional[str] = None


class NewsResponse(BaseModel):
    id: str
    title: str
    content: str
    excerpt: Optional[str] = None
    featured_image_url: Optional[str] = None
    category: str
    tags: List[str] = []
    is_published: bool
    is_featured: bool
    published_at: Optional[datetime] = None
    author_id: Optional[str] = None
    author_name: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

    @field_validator('tags', mode='before')
    @classmethod
    def tags_default(cls, value):
        return value or []


class NewsListResponse(PageMeta):
    items: List[NewsResponse]


class CategoryCount(BaseModel):
    category: str
    count: int
