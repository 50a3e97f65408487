from typing import List, Optional

from pydantic import BaseModel, ConfigDict


class Tag(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    slug: str
    color: Optional[str] = None


class TagListResponse(BaseModel):
    success: bool = True
    data: List[Tag]
