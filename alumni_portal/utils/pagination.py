"""
Offset pagination for list endpoints.
"""
import math
from typing import Any, Dict, Optional

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession


async def paginate(
    db: AsyncSession,
    query: Select,
    page: int,
    page_size: int,
    count_query: Optional[Select] = None,
    scalars: bool = True,
) -> Dict[str, Any]:
    """
    Run a page of ``query`` and return it with the page metadata.

    The total comes from ``count_query`` when given, otherwise from a
    COUNT over the query as a subquery (ordering stripped).
    """
    if count_query is None:
        count_query = select(func.count()).select_from(query.order_by(None).subquery())
    total = await db.scalar(count_query) or 0

    offset = (page - 1) * page_size
    result = await db.execute(query.offset(offset).limit(page_size))
    items = list(result.scalars().all()) if scalars else list(result.all())

    total_pages = math.ceil(total / page_size) if total > 0 else 1
    return {
        "items": items,
        "total": total,
        "page": page,
        "page_size": page_size,
        "total_pages": total_pages,
        "has_next": page < total_pages,
        "has_previous": page > 1,
    }
