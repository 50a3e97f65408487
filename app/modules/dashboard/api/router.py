from typing import Any

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.storage import R2Storage
from app.db.session import get_db
from app.deps import get_current_session, get_storage
from app.modules.auth.schemas.auth import AuthSession
from app.modules.dashboard.services.dashboard import get_dashboard_stats

router = APIRouter(prefix="")


@router.get("")
def read_dashboard(
    db: Session = Depends(get_db),
    storage: R2Storage = Depends(get_storage),
    auth: AuthSession = Depends(get_current_session),
) -> Any:
    """
    Admin dashboard statistics. Reached only through the route guard.
    """
    return {"success": True, "user": auth.user, "data": get_dashboard_stats(db, storage)}
