from typing import Any

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.modules.tags.schemas.tag import TagListResponse
from app.modules.tags.services.tag import get_tags

router = APIRouter(prefix="")


@router.get("/", response_model=TagListResponse)
@router.get("", response_model=TagListResponse, include_in_schema=False)
def read_tags(db: Session = Depends(get_db)) -> Any:
    return {"success": True, "data": get_tags(db)}
