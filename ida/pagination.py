"""
Page windowing.

Slices an ordered query into fixed-size pages with total-count metadata.
"""

from __future__ import annotations

from typing import Any, Callable

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ida.errors import ValidationError
from ida.models import PagedList
from ida.store import store_errors


async def paginate(
    session: AsyncSession,
    statement: Select,
    page_number: int,
    page_size: int,
    convert: Callable[[Any], Any] | None = None,
) -> PagedList:
    """
    Fetch one page of an ordered query.

    Issues a single COUNT over the unpaginated statement and a single
    OFFSET/LIMIT fetch for the page. A page past the end yields no items
    but still reports the totals.

    Args:
        session: Session to run the queries on
        statement: Ordered select of a single entity or column
        page_number: 1-based page index
        page_size: Maximum number of items per page
        convert: Optional mapping applied to each fetched row

    Returns:
        PagedList with the page items and total count

    Raises:
        ValidationError: page_number or page_size is below 1
    """
    if page_number < 1:
        raise ValidationError(f"Page number must be at least 1, got {page_number}")
    if page_size < 1:
        raise ValidationError(f"Page size must be at least 1, got {page_size}")

    offset = (page_number - 1) * page_size
    count_statement = select(func.count()).select_from(statement.order_by(None).subquery())

    with store_errors("paginate"):
        total_count = (await session.execute(count_statement)).scalar_one()
        if offset < total_count:
            rows = (await session.scalars(statement.offset(offset).limit(page_size))).all()
        else:
            rows = []

    items = [convert(row) for row in rows] if convert else list(rows)
    return PagedList(
        items=items,
        total_count=total_count,
        page_number=page_number,
        page_size=page_size,
    )
