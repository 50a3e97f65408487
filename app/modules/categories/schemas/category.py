from typing import List, Optional

from pydantic import BaseModel, ConfigDict


class Category(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    slug: str
    description: Optional[str] = None
    color: Optional[str] = None
    icon: Optional[str] = None
    order: int = 0
    post_count: Optional[int] = None


class CategoryListResponse(BaseModel):
    success: bool = True
    data: List[Category]
