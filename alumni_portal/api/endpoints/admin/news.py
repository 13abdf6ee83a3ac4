"""
Admin news management endpoints.
"""
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from datetime import datetime
from typing import Optional

from alumni_portal.core.database import get_db
from alumni_portal.core.logging_config import logger
from alumni_portal.core.types import is_valid_uuid
from alumni_portal.api.deps import get_current_admin
from alumni_portal.api.endpoints.news import with_author, news_response, news_filters, news_ordering
from alumni_portal.models.news import News
from alumni_portal.models.user import User
from alumni_portal.schemas.common import MessageResponse
from alumni_portal.schemas.news import NewsCreate, NewsUpdate, NewsResponse, NewsListResponse, NEWS_CATEGORIES
from alumni_portal.utils.pagination import paginate

router = APIRouter()

EXCERPT_LENGTH = 200


def default_excerpt(content: str) -> str:
    return content[:EXCERPT_LENGTH] + "..."


def check_category(category: Optional[str]) -> None:
    if category is not None and category not in NEWS_CATEGORIES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Category must be one of: {', '.join(NEWS_CATEGORIES)}"
        )


async def get_news_or_404(db: AsyncSession, news_id: str) -> News:
    if not is_valid_uuid(news_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="News item not found")
    result = await db.execute(
        with_author(select(News).where(News.id == news_id))
        .execution_options(populate_existing=True)
    )
    article = result.scalar_one_or_none()
    if not article:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="News item not found")
    return article


@router.get("", response_model=NewsListResponse)
async def list_all_news(
    category: Optional[str] = None,
    is_published: Optional[bool] = None,
    search: Optional[str] = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    """All news items, drafts included"""
    query = news_filters(with_author(select(News)), category=category, search=search)
    if is_published is not None:
        query = query.where(News.is_published == is_published)
    query = news_ordering(query, "created_at", "desc")

    result = await paginate(db, query, page, page_size)
    result["items"] = [news_response(article) for article in result["items"]]
    return result


@router.post("", response_model=NewsResponse, status_code=status.HTTP_201_CREATED)
async def create_news(
    news_data: NewsCreate,
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    check_category(news_data.category)

    data = news_data.model_dump()
    if not data.get("excerpt"):
        data["excerpt"] = default_excerpt(data["content"])
    data["tags"] = data.get("tags") or []

    article = News(**data, author_id=current_admin.id)
    if article.is_published:
        article.published_at = datetime.utcnow()

    db.add(article)
    await db.commit()

    logger.log_admin_action("create_news", current_admin.email, target=article.title)
    return news_response(await get_news_or_404(db, article.id))


@router.put("/{news_id}", response_model=NewsResponse)
async def update_news(
    news_id: str,
    news_data: NewsUpdate,
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    """Partial update; publishing stamps published_at, unpublishing clears it"""
    article = await get_news_or_404(db, news_id)
    changes = news_data.model_dump(exclude_unset=True)
    check_category(changes.get("category"))

    for field in ("title", "content", "category", "is_published", "is_featured"):
        if field in changes and changes[field] is None:
            changes.pop(field)

    was_published = article.is_published
    for field, value in changes.items():
        setattr(article, field, value)

    if "content" in changes and not article.excerpt:
        article.excerpt = default_excerpt(article.content)
    if article.tags is None:
        article.tags = []

    if article.is_published and not was_published:
        article.published_at = datetime.utcnow()
    elif not article.is_published:
        article.published_at = None

    article.updated_at = datetime.utcnow()
    await db.commit()

    logger.log_admin_action("update_news", current_admin.email, target=article.id)
    return news_response(await get_news_or_404(db, article.id))


@router.delete("/{news_id}", response_model=MessageResponse)
async def delete_news(
    news_id: str,
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    article = await get_news_or_404(db, news_id)
    await db.delete(article)
    await db.commit()

    logger.log_admin_action("delete_news", current_admin.email, target=news_id)
    return {"success": True, "message": "News deleted successfully"}
