"""
Registre de présence : une ligne par (réunion, participant).

L'unicité (meeting_id, user_id) est garantie par la base ; toutes les
écritures passent par un INSERT ... ON CONFLICT DO UPDATE, le dernier
écrivain gagne.
"""
import logging
from datetime import datetime

from sqlalchemy import select, delete
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from jockeyfinder.database import dialect_insert
from jockeyfinder.errors import ForbiddenError, NotFoundError, PersistenceError, ValidationError
from jockeyfinder.models import Attendance, Meeting
from jockeyfinder.models.enums import Availability, Role
from jockeyfinder.services.identity import get_profile, require_mutating_participant

logger = logging.getLogger(__name__)

AVAILABILITIES = {a.value for a in Availability}


async def _ensure_meeting(session: AsyncSession, meeting_id: int) -> None:
    if await session.get(Meeting, meeting_id) is None:
        raise NotFoundError("Meeting", meeting_id)


async def _upsert(session: AsyncSession, meeting_id: int, user_id: str, values: dict) -> None:
    insert = dialect_insert(session)
    now = datetime.utcnow()
    stmt = insert(Attendance).values(
        meeting_id=meeting_id,
        user_id=user_id,
        created_at=now,
        updated_at=now,
        **values,
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=["meeting_id", "user_id"],
        set_={**values, "updated_at": now},
    )
    await session.execute(stmt)


async def get_attendance(session: AsyncSession, meeting_id: int, user_id: str) -> Attendance | None:
    stmt = (
        select(Attendance)
        .where(Attendance.meeting_id == meeting_id, Attendance.user_id == user_id)
        # les upserts contournent l'identity map
        .execution_options(populate_existing=True)
    )
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def mark_attending(
    session: AsyncSession,
    meeting_id: int,
    participant_id: str,
    availability: str = Availability.AVAILABLE.value,
    note: str | None = None,
) -> Attendance:
    """« Je serai présent » : crée ou écrase la ligne du participant."""
    profile = await get_profile(session, participant_id)
    require_mutating_participant(profile)
    if availability not in AVAILABILITIES:
        raise ValidationError(f"Unknown availability: {availability}", field="availability")
    await _ensure_meeting(session, meeting_id)

    note = (note or "").strip() or None
    try:
        await _upsert(session, meeting_id, participant_id, {
            "attending": True,
            "availability": availability,
            "note": note,
        })
        await session.commit()
    except SQLAlchemyError as e:
        await session.rollback()
        logger.error("Erreur présence %s/%s : %s", meeting_id, participant_id, e)
        raise PersistenceError(f"Save error: {e}") from e

    return await get_attendance(session, meeting_id, participant_id)


async def clear_attendance(session: AsyncSession, meeting_id: int, participant_id: str) -> bool:
    """« Je ne serai pas présent » : supprime la ligne si elle existe.
    Retourne True si une ligne a été supprimée."""
    profile = await get_profile(session, participant_id)
    if profile.role == Role.OWNER.value:
        raise ForbiddenError("Owners are view-only.")

    try:
        result = await session.execute(
            delete(Attendance).where(
                Attendance.meeting_id == meeting_id,
                Attendance.user_id == participant_id,
            )
        )
        await session.commit()
    except SQLAlchemyError as e:
        await session.rollback()
        raise PersistenceError(f"Update error: {e}") from e
    return result.rowcount > 0


async def force_booked(session: AsyncSession, meeting_id: int, participant_id: str) -> None:
    """Passe le participant en « booked » pour la réunion, même sans
    déclaration de présence préalable. Ne valide pas la transaction : appelé
    par le workflow des demandes dans sa propre unité de travail."""
    await _upsert(session, meeting_id, participant_id, {
        "attending": True,
        "availability": Availability.BOOKED.value,
    })
    logger.info("Jockey %s réservé pour la réunion %s", participant_id, meeting_id)
