import logging
from datetime import date

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from jockeyfinder.api.deps import get_caller_id
from jockeyfinder.database import get_db
from jockeyfinder.errors import CoreError, ValidationError
from jockeyfinder.schemas.meeting import SyncResponseSchema
from jockeyfinder.services.calendar_sync import sync_meetings
from jockeyfinder.services.identity import get_profile, require_admin

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["sync"])


def _parse_day(value: str, name: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise ValidationError(f"Invalid {name} date: {value!r} (expected YYYY-MM-DD)", field=name) from None


@router.get("/loveracing/sync", response_model=SyncResponseSchema)
async def sync_loveracing(
    start: str = Query(..., description="Date début YYYY-MM-DD"),
    end: str = Query(..., description="Date fin YYYY-MM-DD"),
    caller_id: str = Depends(get_caller_id),
    db: AsyncSession = Depends(get_db),
):
    """Synchronise les réunions LoveRacing sur une plage de dates (admin)."""
    require_admin(await get_profile(db, caller_id))
    try:
        result = await sync_meetings(db, _parse_day(start, "start"), _parse_day(end, "end"))
    except CoreError as e:
        logger.error("Erreur synchro %s → %s : %s", start, end, e)
        return JSONResponse(
            status_code=e.status_code,
            content={"ok": False, "error": str(e.detail), "code": e.error_code},
        )
    return SyncResponseSchema(
        ok=True,
        inserted=result.inserted,
        written=result.written,
        dropped=result.dropped,
        note="No rows found" if result.written == 0 else None,
    )
