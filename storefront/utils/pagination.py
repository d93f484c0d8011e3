from typing import Any, Callable, Dict, Optional, Tuple

from sqlalchemy import func
from sqlmodel import Session, select

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100


def page_bounds(page: int, limit: int, max_limit: int = MAX_PAGE_SIZE) -> Tuple[int, int, int]:
    """Clamp (page, limit) and return them with the row offset."""
    page = max(page, 1)
    limit = min(limit if limit >= 1 else DEFAULT_PAGE_SIZE, max_limit)
    return page, limit, (page - 1) * limit


def count_rows(session: Session, query) -> int:
    # ordering is irrelevant to the count and some backends reject it in a subquery
    return session.exec(select(func.count()).select_from(query.order_by(None).subquery())).one()


def paginate(
    *,
    session: Session,
    query,
    page: int = 1,
    limit: int = DEFAULT_PAGE_SIZE,
    serialize: Optional[Callable[[Any], Any]] = None,
) -> Dict[str, Any]:
    """One page of ``query`` plus the totals a list view needs."""
    page, limit, offset = page_bounds(page, limit)
    total = count_rows(session, query)
    rows = session.exec(query.offset(offset).limit(limit)).all()

    return {
        "total_items": total,
        "total_pages": -(-total // limit),
        "current_page": page,
        "limit": limit,
        "results": [serialize(row) for row in rows] if serialize else list(rows),
    }
