from datetime import datetime
from pydantic import BaseModel

from jockeyfinder.schemas.meeting import MeetingSchema
from jockeyfinder.schemas.profile import ProfileSnapshotSchema


class RideRequestSchema(BaseModel):
    id: int
    meeting_id: int
    trainer_id: str
    jockey_id: str
    horse: str | None = None
    race_number: int | None = None
    note: str | None = None
    status: str
    created_at: datetime | None = None

    class Config:
        from_attributes = True


class RideRequestCreate(BaseModel):
    meeting_id: int
    jockey_id: str
    horse: str | None = None
    # Saisie libre : coercée côté service, jamais rejetée
    race_number: str | int | None = None
    note: str | None = None


class RideRequestResponse(BaseModel):
    status: str  # accepted, declined
    meeting_id: int | None = None


class EnrichedRequestSchema(BaseModel):
    request: RideRequestSchema
    meeting: MeetingSchema | None = None
    trainer: ProfileSnapshotSchema | None = None
    jockey: ProfileSnapshotSchema | None = None

    class Config:
        from_attributes = True


class RequestInboxSchema(BaseModel):
    incoming: list[EnrichedRequestSchema] = []
    outgoing: list[EnrichedRequestSchema] = []

    class Config:
        from_attributes = True
