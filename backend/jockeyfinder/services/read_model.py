"""
Projections en lecture : roster d'une réunion, demandes enrichies,
réunions à venir.

Aucun état persistant ; tout est recalculé à chaque lecture à partir de
requêtes groupées (une requête par type d'entité, pas de N+1).
"""
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Iterable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from jockeyfinder.errors import NotFoundError
from jockeyfinder.models import Attendance, Meeting, Profile, RideRequest
from jockeyfinder.models.enums import Availability, ProfileStatus, Role
from jockeyfinder.services.identity import get_profile, is_approved_trainer


@dataclass
class RosterEntry:
    attendance: Attendance
    profile: Profile | None
    existing_request: RideRequest | None = None
    requestable: bool = False


@dataclass
class MeetingRoster:
    meeting: Meeting
    caller: Profile
    my_attendance: Attendance | None
    entries: list[RosterEntry] = field(default_factory=list)
    my_requests: list[RideRequest] = field(default_factory=list)


@dataclass
class EnrichedRequest:
    request: RideRequest
    meeting: Meeting | None
    trainer: Profile | None
    jockey: Profile | None


@dataclass
class UpcomingMeeting:
    meeting: Meeting
    jockeys: list[tuple[Attendance, Profile]] = field(default_factory=list)


async def profiles_by_id(session: AsyncSession, ids: Iterable[str]) -> dict[str, Profile]:
    ids = {i for i in ids if i}
    if not ids:
        return {}
    result = await session.execute(select(Profile).where(Profile.id.in_(ids)))
    return {p.id: p for p in result.scalars().all()}


async def meetings_by_id(session: AsyncSession, ids: Iterable[int]) -> dict[int, Meeting]:
    ids = {i for i in ids if i}
    if not ids:
        return {}
    result = await session.execute(select(Meeting).where(Meeting.id.in_(ids)))
    return {m.id: m for m in result.scalars().all()}


def is_requestable(profile: Profile | None, attendance: Attendance, existing: RideRequest | None) -> bool:
    """Un jockey est sollicitable s'il est approuvé, disponible, et que
    l'entraîneur n'a pas déjà une demande vers lui pour cette réunion."""
    return (
        profile is not None
        and profile.role == Role.JOCKEY.value
        and profile.status == ProfileStatus.APPROVED.value
        and attendance.availability == Availability.AVAILABLE.value
        and existing is None
    )


async def meeting_roster(session: AsyncSession, meeting_id: int, caller_id: str) -> MeetingRoster:
    caller = await get_profile(session, caller_id)
    meeting = await session.get(Meeting, meeting_id)
    if meeting is None:
        raise NotFoundError("Meeting", meeting_id)

    stmt = (
        select(Attendance)
        .where(Attendance.meeting_id == meeting_id, Attendance.attending.is_(True))
        .order_by(Attendance.created_at.asc(), Attendance.id.asc())
        .execution_options(populate_existing=True)
    )
    rows = (await session.execute(stmt)).scalars().all()
    profiles = await profiles_by_id(session, [r.user_id for r in rows])

    mine = next((r for r in rows if r.user_id == caller_id), None)
    roster = MeetingRoster(meeting=meeting, caller=caller, my_attendance=mine)

    trainer_view = is_approved_trainer(caller.role, caller.status)
    latest_by_jockey: dict[str, RideRequest] = {}
    if caller.role == Role.TRAINER.value:
        req_stmt = (
            select(RideRequest)
            .where(RideRequest.meeting_id == meeting_id, RideRequest.trainer_id == caller_id)
            .order_by(RideRequest.created_at.desc(), RideRequest.id.desc())
            .execution_options(populate_existing=True)
        )
        roster.my_requests = list((await session.execute(req_stmt)).scalars().all())
        for req in roster.my_requests:
            latest_by_jockey.setdefault(req.jockey_id, req)

    for row in rows:
        profile = profiles.get(row.user_id)
        entry = RosterEntry(attendance=row, profile=profile)
        if trainer_view:
            entry.existing_request = latest_by_jockey.get(row.user_id)
            entry.requestable = is_requestable(profile, row, entry.existing_request)
        roster.entries.append(entry)
    return roster


async def enrich_requests(session: AsyncSession, requests: list[RideRequest]) -> list[EnrichedRequest]:
    meetings = await meetings_by_id(session, [r.meeting_id for r in requests])
    profiles = await profiles_by_id(
        session, [r.trainer_id for r in requests] + [r.jockey_id for r in requests]
    )
    return [
        EnrichedRequest(
            request=r,
            meeting=meetings.get(r.meeting_id),
            trainer=profiles.get(r.trainer_id),
            jockey=profiles.get(r.jockey_id),
        )
        for r in requests
    ]


async def upcoming_meetings(session: AsyncSession, today: date, days: int = 30) -> list[UpcomingMeeting]:
    """Réunions des `days` prochains jours avec les jockeys approuvés présents,
    triés par nom."""
    end = today + timedelta(days=days)
    stmt = (
        select(Meeting)
        .where(Meeting.meeting_date >= today, Meeting.meeting_date <= end)
        .order_by(Meeting.meeting_date.asc(), Meeting.track.asc())
    )
    meetings = (await session.execute(stmt)).scalars().all()
    if not meetings:
        return []

    att_stmt = (
        select(Attendance, Profile)
        .join(Profile, Profile.id == Attendance.user_id)
        .where(
            Attendance.meeting_id.in_([m.id for m in meetings]),
            Attendance.attending.is_(True),
            Profile.role == Role.JOCKEY.value,
            Profile.status == ProfileStatus.APPROVED.value,
        )
    )
    by_meeting: dict[int, list[tuple[Attendance, Profile]]] = {}
    for att, profile in (await session.execute(att_stmt)).all():
        by_meeting.setdefault(att.meeting_id, []).append((att, profile))

    items = []
    for m in meetings:
        jockeys = sorted(by_meeting.get(m.id, []), key=lambda ap: ap[1].full_name.lower())
        items.append(UpcomingMeeting(meeting=m, jockeys=jockeys))
    return items
