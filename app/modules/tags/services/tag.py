from typing import List

from sqlalchemy.orm import Session

from app.modules.tags.models.tag import Tag


def get_tags(db: Session) -> List[Tag]:
    return db.query(Tag).filter(Tag.deleted_at.is_(None)).order_by(Tag.name.asc()).all()
