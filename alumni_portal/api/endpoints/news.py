from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from sqlalchemy import select, func, or_
from typing import Optional, List

from alumni_portal.core.database import get_db
from alumni_portal.core.types import is_valid_uuid
from alumni_portal.models.news import News
from alumni_portal.models.user import User
from alumni_portal.schemas.news import NewsResponse, NewsListResponse, CategoryCount
from alumni_portal.utils.pagination import paginate

router = APIRouter()

NEWS_SORT_FIELDS = {
    "published_at": News.published_at,
    "created_at": News.created_at,
    "title": News.title,
}


def with_author(query):
    return query.options(selectinload(News.author).selectinload(User.profile))


def news_response(article: News) -> NewsResponse:
    response = NewsResponse.model_validate(article)
    author = article.author
    if author is not None:
        response.author_name = author.profile.full_name if author.profile else author.email
    return response


def news_filters(
    query,
    category: Optional[str] = None,
    featured: Optional[bool] = None,
    search: Optional[str] = None,
):
    """Filters shared by the public and admin news listings"""
    if category:
        query = query.where(News.category == category)
    if featured is not None:
        query = query.where(News.is_featured == featured)
    if search:
        term = f"%{search.strip()}%"
        query = query.where(or_(
            News.title.ilike(term),
            News.content.ilike(term),
            News.excerpt.ilike(term),
        ))
    return query


def news_ordering(query, sort_by: str, sort_order: str):
    column = NEWS_SORT_FIELDS[sort_by]
    order = column.asc() if sort_order == "asc" else column.desc()
    return query.order_by(order, News.created_at.desc())


@router.get("", response_model=NewsListResponse)
async def list_news(
    category: Optional[str] = None,
    featured: Optional[bool] = None,
    search: Optional[str] = None,
    sort_by: str = Query("published_at", pattern="^(published_at|created_at|title)$"),
    sort_order: str = Query("desc", pattern="^(asc|desc)$"),
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=100),
    db: AsyncSession = Depends(get_db)
):
    """Published news articles"""
    query = with_author(select(News).where(News.is_published.is_(True)))
    query = news_filters(query, category, featured, search)
    query = news_ordering(query, sort_by, sort_order)

    result = await paginate(db, query, page, page_size)
    result["items"] = [news_response(article) for article in result["items"]]
    return result


@router.get("/categories/list", response_model=List[CategoryCount])
async def list_categories(db: AsyncSession = Depends(get_db)):
    """Categories that have published articles, with counts"""
    result = await db.execute(
        select(News.category, func.count(News.id))
        .where(News.is_published.is_(True))
        .group_by(News.category)
        .order_by(func.count(News.id).desc(), News.category)
    )
    return [{"category": category, "count": count} for category, count in result.all()]


@router.get("/{news_id}", response_model=NewsResponse)
async def get_news(news_id: str, db: AsyncSession = Depends(get_db)):
    if not is_valid_uuid(news_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="News article not found")

    result = await db.execute(
        with_author(select(News).where(News.id == news_id, News.is_published.is_(True)))
    )
    article = result.scalar_one_or_none()
    if not article:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="News article not found")

    return news_response(article)
