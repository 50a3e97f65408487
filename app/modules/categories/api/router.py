from typing import Any

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.modules.categories.schemas.category import Category as CategorySchema, CategoryListResponse
from app.modules.categories.services.category import get_published_post_counts, get_visible_categories

router = APIRouter(prefix="")


@router.get("/", response_model=CategoryListResponse)
@router.get("", response_model=CategoryListResponse, include_in_schema=False)
def read_categories(
    db: Session = Depends(get_db),
    include_count: bool = Query(False, alias="includeCount"),
) -> Any:
    """
    Categories shown on the website, optionally with their published post count.
    """
    categories = get_visible_categories(db)
    data = [CategorySchema.model_validate(category) for category in categories]
    if include_count:
        counts = get_published_post_counts(db)
        for item in data:
            item.post_count = counts.get(item.id, 0)
    return {"success": True, "data": data}
