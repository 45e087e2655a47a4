"""
Pagination metadata schema.
"""

from pydantic import BaseModel, Field


class PaginationMeta(BaseModel):
    """Offset pagination metadata, serialized with camelCase keys."""
    page: int = Field(..., ge=1)
    limit: int = Field(..., ge=1)
    total: int = Field(..., ge=0)
    total_pages: int = Field(..., ge=0, alias="totalPages")
    has_more: bool = Field(..., alias="hasMore")
    has_previous: bool = Field(..., alias="hasPrevious")
    
    class Config:
        populate_by_name = True
