from typing import List, Generic, TypeVar
from pydantic import BaseModel, Field

T = TypeVar('T')

class Page(BaseModel, Generic[T]):
    items: List[T] = Field(..., description="Items on this page, in id order")
    page: int = Field(..., description="1-based page number")
    limit: int = Field(..., description="Maximum items per page")
    totalItems: int = Field(..., description="Number of items across all pages")

class HealthResponse(BaseModel):
    status: str = Field("healthy", description="Service status")
