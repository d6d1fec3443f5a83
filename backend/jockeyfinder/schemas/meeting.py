from datetime import date, datetime
from pydantic import BaseModel

from jockeyfinder.schemas.profile import ProfileSnapshotSchema


class MeetingSchema(BaseModel):
    id: int
    meeting_date: date
    track: str
    club: str | None = None
    external_id: int | None = None

    class Config:
        from_attributes = True


class AttendanceSchema(BaseModel):
    id: int
    meeting_id: int
    user_id: str
    attending: bool
    availability: str
    note: str | None = None
    created_at: datetime | None = None

    class Config:
        from_attributes = True


class AttendanceUpdate(BaseModel):
    availability: str = "available"
    note: str | None = None


class RosterRequestSchema(BaseModel):
    id: int
    status: str
    horse: str | None = None
    race_number: int | None = None

    class Config:
        from_attributes = True


class RosterEntrySchema(BaseModel):
    attendance: AttendanceSchema
    profile: ProfileSnapshotSchema | None = None
    existing_request: RosterRequestSchema | None = None
    requestable: bool = False

    class Config:
        from_attributes = True


class MeetingRosterSchema(BaseModel):
    meeting: MeetingSchema
    caller: ProfileSnapshotSchema
    my_attendance: AttendanceSchema | None = None
    entries: list[RosterEntrySchema] = []

    class Config:
        from_attributes = True


class PublicJockeySchema(BaseModel):
    user_id: str
    full_name: str
    availability: str


class UpcomingMeetingSchema(BaseModel):
    meeting: MeetingSchema
    jockeys: list[PublicJockeySchema] = []


class SyncResponseSchema(BaseModel):
    ok: bool
    inserted: int = 0
    written: int = 0
    dropped: int = 0
    note: str | None = None
