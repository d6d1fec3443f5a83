from datetime import date

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from jockeyfinder.api.deps import get_caller_id
from jockeyfinder.config import settings
from jockeyfinder.database import get_db
from jockeyfinder.schemas.meeting import (
    AttendanceSchema,
    AttendanceUpdate,
    MeetingRosterSchema,
    MeetingSchema,
    PublicJockeySchema,
    UpcomingMeetingSchema,
)
from jockeyfinder.services import attendance
from jockeyfinder.services.read_model import meeting_roster, upcoming_meetings

router = APIRouter(prefix="/api", tags=["meetings"])


@router.get("/meetings", response_model=list[UpcomingMeetingSchema])
async def list_meetings(
    days: int = Query(settings.public_window_days, ge=1, le=365),
    db: AsyncSession = Depends(get_db),
):
    """Vue publique : réunions à venir et jockeys approuvés présents."""
    items = await upcoming_meetings(db, date.today(), days=days)
    return [
        UpcomingMeetingSchema(
            meeting=MeetingSchema.model_validate(item.meeting),
            jockeys=[
                PublicJockeySchema(user_id=p.id, full_name=p.full_name, availability=a.availability)
                for a, p in item.jockeys
            ],
        )
        for item in items
    ]


@router.get("/meetings/{meeting_id}", response_model=MeetingRosterSchema)
async def meeting_detail(
    meeting_id: int,
    caller_id: str = Depends(get_caller_id),
    db: AsyncSession = Depends(get_db),
):
    roster = await meeting_roster(db, meeting_id, caller_id)
    return MeetingRosterSchema.model_validate(roster)


@router.put("/meetings/{meeting_id}/attendance", response_model=AttendanceSchema)
async def mark_attending(
    meeting_id: int,
    body: AttendanceUpdate,
    caller_id: str = Depends(get_caller_id),
    db: AsyncSession = Depends(get_db),
):
    row = await attendance.mark_attending(db, meeting_id, caller_id, body.availability, body.note)
    return AttendanceSchema.model_validate(row)


@router.delete("/meetings/{meeting_id}/attendance")
async def clear_attendance(
    meeting_id: int,
    caller_id: str = Depends(get_caller_id),
    db: AsyncSession = Depends(get_db),
):
    removed = await attendance.clear_attendance(db, meeting_id, caller_id)
    return {"ok": True, "removed": removed}
