from typing import Callable, Optional

from sqlalchemy import func
from sqlmodel import select

MAX_LIMIT = 100


def paginate(
    *,
    session,
    query,
    page: int = 1,
    limit: int = 10,
    serialize: Optional[Callable] = None,
):
    """
    Run ``query`` for one page.

    ``serialize`` turns each row into the response item; rows from
    multi-entity selects arrive as tuples.
    """
    page = max(page, 1)
    limit = min(limit, MAX_LIMIT) if limit >= 1 else 10

    total = session.exec(
        select(func.count()).select_from(query.subquery())
    ).one()
    total_pages = (total + limit - 1) // limit

    rows = session.exec(
        query.offset((page - 1) * limit).limit(limit)
    ).all()

    return {
        "total_items": total,
        "total_pages": total_pages,
        "current_page": page,
        "limit": limit,
        "has_next": page < total_pages,
        "results": [serialize(r) for r in rows] if serialize else rows,
    }
