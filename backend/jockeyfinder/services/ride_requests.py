"""
Workflow des demandes de monte (entraîneur → jockey).

    requested ──▶ accepted | declined

`cancelled` est un statut réservé : aucune opération n'y mène. La réponse du
jockey est un UPDATE conditionnel sur le statut courant (compare-and-swap) ;
l'acceptation et la réservation dans le registre de présence forment une
seule transaction.
"""
import logging
import math
from dataclasses import dataclass, field

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from jockeyfinder.errors import (
    ConflictError,
    ForbiddenError,
    NotApprovedError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from jockeyfinder.models import Meeting, RideRequest
from jockeyfinder.models.enums import RequestStatus, Role
from jockeyfinder.services import attendance
from jockeyfinder.services.identity import get_profile, is_approved_jockey, is_approved_trainer, require_admin
from jockeyfinder.services.read_model import EnrichedRequest, enrich_requests

logger = logging.getLogger(__name__)

RESPONSES = (RequestStatus.ACCEPTED.value, RequestStatus.DECLINED.value)
MAX_RACE_NUMBER = 99


def coerce_race_number(value) -> int | None:
    """Coercition souple : une saisie non numérique, ou hors de
    [1, MAX_RACE_NUMBER], devient None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        n = value
    else:
        try:
            f = float(str(value).strip())
        except ValueError:
            return None
        if not math.isfinite(f) or not f.is_integer():
            return None
        n = int(f)
    return n if 1 <= n <= MAX_RACE_NUMBER else None


def _clean(text: str | None) -> str | None:
    return (text or "").strip() or None


async def create_request(
    session: AsyncSession,
    meeting_id: int,
    trainer_id: str,
    jockey_id: str,
    horse: str | None = None,
    race_number=None,
    note: str | None = None,
) -> RideRequest:
    trainer = await get_profile(session, trainer_id)
    if not is_approved_trainer(trainer.role, trainer.status):
        raise ForbiddenError("Only approved trainers can request rides.")
    if await session.get(Meeting, meeting_id) is None:
        raise NotFoundError("Meeting", meeting_id)
    jockey = await get_profile(session, jockey_id)
    if jockey.role != Role.JOCKEY.value:
        raise ForbiddenError("Rides can only be requested from jockeys.")

    req = RideRequest(
        meeting_id=meeting_id,
        trainer_id=trainer_id,
        jockey_id=jockey_id,
        horse=_clean(horse),
        race_number=coerce_race_number(race_number),
        note=_clean(note),
        status=RequestStatus.REQUESTED.value,
    )
    session.add(req)
    try:
        await session.commit()
    except SQLAlchemyError as e:
        await session.rollback()
        logger.error("Erreur création demande %s → %s : %s", trainer_id, jockey_id, e)
        raise PersistenceError(f"Request error: {e}") from e

    logger.info("Demande %s créée : %s → %s (réunion %s)", req.id, trainer_id, jockey_id, meeting_id)
    return req


async def respond(
    session: AsyncSession,
    request_id: int,
    new_status: str,
    meeting_id: int | None,
    caller_id: str,
) -> RideRequest:
    """Acceptation ou refus par le jockey ciblé. Accepter le passe aussi en
    « booked » pour la réunion ; si cette seconde écriture échoue, la
    réponse entière échoue."""
    caller = await get_profile(session, caller_id)
    if caller.role != Role.JOCKEY.value:
        raise ForbiddenError("Only jockeys can accept or decline requests.")
    if not is_approved_jockey(caller.role, caller.status):
        raise NotApprovedError("You must be approved before accepting or declining requests.")
    if new_status not in RESPONSES:
        raise ValidationError(f"Invalid response status: {new_status}", field="status")

    req = await session.get(RideRequest, request_id)
    if req is None:
        raise NotFoundError("Ride request", request_id)
    if req.jockey_id != caller_id:
        raise ForbiddenError("This request is addressed to another jockey.")
    if meeting_id is not None and meeting_id != req.meeting_id:
        raise ConflictError(f"Ride request {request_id} belongs to meeting {req.meeting_id}, not {meeting_id}.")

    try:
        result = await session.execute(
            update(RideRequest)
            .where(
                RideRequest.id == request_id,
                RideRequest.jockey_id == caller_id,
                RideRequest.status == RequestStatus.REQUESTED.value,
            )
            .values(status=new_status)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            await session.rollback()
            logger.warning("Demande %s déjà traitée, réponse %s refusée", request_id, new_status)
            raise ConflictError(f"Ride request {request_id} has already been answered.")

        if new_status == RequestStatus.ACCEPTED.value:
            await attendance.force_booked(session, req.meeting_id, caller_id)

        await session.commit()
    except SQLAlchemyError as e:
        await session.rollback()
        logger.error("Erreur réponse demande %s : %s", request_id, e)
        raise PersistenceError(f"Update error: {e}") from e

    await session.refresh(req)
    logger.info("Demande %s → %s par %s", request_id, new_status, caller_id)
    return req


# ── Lecture ───────────────────────────────────────────────────

def _newest_first(stmt):
    return stmt.order_by(RideRequest.created_at.desc(), RideRequest.id.desc())


async def list_incoming(session: AsyncSession, jockey_id: str) -> list[EnrichedRequest]:
    stmt = _newest_first(select(RideRequest).where(RideRequest.jockey_id == jockey_id))
    return await enrich_requests(session, list((await session.execute(stmt)).scalars().all()))


async def list_outgoing(session: AsyncSession, trainer_id: str) -> list[EnrichedRequest]:
    stmt = _newest_first(select(RideRequest).where(RideRequest.trainer_id == trainer_id))
    return await enrich_requests(session, list((await session.execute(stmt)).scalars().all()))


async def list_all(session: AsyncSession, admin_id: str) -> list[EnrichedRequest]:
    require_admin(await get_profile(session, admin_id))
    stmt = _newest_first(select(RideRequest))
    return await enrich_requests(session, list((await session.execute(stmt)).scalars().all()))


@dataclass
class RequestInbox:
    incoming: list[EnrichedRequest] = field(default_factory=list)
    outgoing: list[EnrichedRequest] = field(default_factory=list)


async def list_for_caller(session: AsyncSession, caller_id: str) -> RequestInbox:
    """Vue « Ride Requests » selon le rôle ; les propriétaires n'y ont pas accès."""
    caller = await get_profile(session, caller_id)
    if caller.role == Role.OWNER.value:
        raise ForbiddenError("Owners are view-only and cannot view or manage ride requests.")
    if caller.role == Role.JOCKEY.value:
        return RequestInbox(incoming=await list_incoming(session, caller_id))
    if caller.role == Role.TRAINER.value:
        return RequestInbox(outgoing=await list_outgoing(session, caller_id))
    return RequestInbox(incoming=await list_all(session, caller_id))
