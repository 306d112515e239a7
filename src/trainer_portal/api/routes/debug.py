"""Admin-only database inspection routes, unavailable in production."""

from fastapi import APIRouter, Depends, HTTPException, status

from ..dependencies import get_user_repository
from ..middleware.auth import CurrentUser, require_admin
from ..responses import success
from ...config import get_settings
from ...db.database import PortalDatabase, get_database
from ...db.repositories import UserRepository

router = APIRouter(prefix="/debug", tags=["debug"])


def require_debug_enabled() -> None:
    """Hide the debug routes entirely in production."""
    if get_settings().is_production:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not found")


@router.get("/database", dependencies=[Depends(require_debug_enabled)])
async def inspect_database(
    current_user: CurrentUser = Depends(require_admin),
    db: PortalDatabase = Depends(get_database),
):
    counts = db.table_counts()
    return success({
        "databasePath": str(db.db_path),
        "tables": list(counts),
        "counts": counts,
    })


@router.get("/users", dependencies=[Depends(require_debug_enabled)])
async def inspect_users(
    current_user: CurrentUser = Depends(require_admin),
    users: UserRepository = Depends(get_user_repository),
):
    return success([user.to_dict() for user in users.get_all()])
