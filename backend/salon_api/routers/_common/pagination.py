"""
Standardized pagination for list endpoints.

Usage:
    from salon_api.routers._common.pagination import Pagination, get_pagination

    @router.get("/approvals")
    def list_pending(pagination: Pagination = Depends(get_pagination), ...):
        return engine.list_pending(limit=pagination.limit)
"""

from dataclasses import dataclass

from fastapi import Query

from shared.config.constants import Limits


@dataclass
class Pagination:
    """
    Pagination parameters with validation.

    Attributes:
        limit: Maximum items per page (1 to max_limit)
        max_limit: Maximum allowed limit
    """

    limit: int
    max_limit: int = Limits.MAX_PAGE_SIZE

    def __post_init__(self):
        self.limit = min(max(1, self.limit), self.max_limit)


def get_pagination(
    limit: int = Query(
        default=Limits.DEFAULT_PAGE_SIZE,
        ge=1,
        le=Limits.MAX_PAGE_SIZE,
        description="Maximum number of items to return",
    ),
) -> Pagination:
    return Pagination(limit=limit)
