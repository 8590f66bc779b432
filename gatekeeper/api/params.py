"""Shared query parameters for listing endpoints."""

from typing import Optional

from fastapi import Query

from gatekeeper.repositories.base import MAX_PAGE_SIZE, QueryOptions


def query_options(
    search: Optional[str] = Query(None, max_length=200),
    sort: Optional[str] = Query(None, description="Column to sort by"),
    direction: str = Query("asc", pattern="^(asc|desc)$"),
    skip: int = Query(0, ge=0),
    take: int = Query(20, ge=1, le=MAX_PAGE_SIZE),
) -> QueryOptions:
    return QueryOptions(search=search, sort_column=sort, sort_direction=direction, skip=skip, take=take)
