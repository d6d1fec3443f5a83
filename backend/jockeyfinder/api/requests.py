from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from jockeyfinder.api.deps import get_caller_id
from jockeyfinder.database import get_db
from jockeyfinder.schemas.ride_request import (
    RequestInboxSchema,
    RideRequestCreate,
    RideRequestResponse,
    RideRequestSchema,
)
from jockeyfinder.services import ride_requests

router = APIRouter(prefix="/api", tags=["requests"])


@router.post("/requests", response_model=RideRequestSchema, status_code=201)
async def create_request(
    body: RideRequestCreate,
    caller_id: str = Depends(get_caller_id),
    db: AsyncSession = Depends(get_db),
):
    req = await ride_requests.create_request(
        db,
        meeting_id=body.meeting_id,
        trainer_id=caller_id,
        jockey_id=body.jockey_id,
        horse=body.horse,
        race_number=body.race_number,
        note=body.note,
    )
    return RideRequestSchema.model_validate(req)


@router.get("/requests", response_model=RequestInboxSchema)
async def list_requests(
    caller_id: str = Depends(get_caller_id),
    db: AsyncSession = Depends(get_db),
):
    inbox = await ride_requests.list_for_caller(db, caller_id)
    return RequestInboxSchema.model_validate(inbox)


@router.post("/requests/{request_id}/respond", response_model=RideRequestSchema)
async def respond(
    request_id: int,
    body: RideRequestResponse,
    caller_id: str = Depends(get_caller_id),
    db: AsyncSession = Depends(get_db),
):
    req = await ride_requests.respond(db, request_id, body.status, body.meeting_id, caller_id)
    return RideRequestSchema.model_validate(req)
