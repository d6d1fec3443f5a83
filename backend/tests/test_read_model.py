from datetime import date, timedelta

import pytest

from jockeyfinder.errors import NotFoundError
from jockeyfinder.services import attendance, ride_requests
from jockeyfinder.services.read_model import meeting_roster, upcoming_meetings


@pytest.mark.asyncio
async def test_roster_requestable_flags_for_approved_trainer(db_session, make_profile, meeting):
    trainer = await make_profile("trainer")
    free = await make_profile("jockey", full_name="Free Jockey")
    busy = await make_profile("jockey", full_name="Busy Jockey")
    asked = await make_profile("jockey", full_name="Asked Jockey")
    other_trainer = await make_profile("trainer")

    await attendance.mark_attending(db_session, meeting.id, free.id, "available", None)
    await attendance.mark_attending(db_session, meeting.id, busy.id, "not_available", None)
    await attendance.mark_attending(db_session, meeting.id, asked.id, "available", None)
    await attendance.mark_attending(db_session, meeting.id, other_trainer.id, "available", None)
    req = await ride_requests.create_request(db_session, meeting.id, trainer.id, asked.id, horse="Bolt", race_number=3)

    roster = await meeting_roster(db_session, meeting.id, trainer.id)
    by_user = {e.attendance.user_id: e for e in roster.entries}

    assert [e.attendance.user_id for e in roster.entries] == [free.id, busy.id, asked.id, other_trainer.id]
    assert by_user[free.id].requestable is True
    assert by_user[busy.id].requestable is False
    assert by_user[asked.id].requestable is False
    assert by_user[asked.id].existing_request.id == req.id
    assert by_user[other_trainer.id].requestable is False
    assert roster.my_attendance is None
    assert [r.id for r in roster.my_requests] == [req.id]


@pytest.mark.asyncio
async def test_answered_request_still_blocks_a_new_one(db_session, make_profile, meeting):
    trainer = await make_profile("trainer")
    jockey = await make_profile("jockey")
    await attendance.mark_attending(db_session, meeting.id, jockey.id, "available", None)
    req = await ride_requests.create_request(db_session, meeting.id, trainer.id, jockey.id)
    await ride_requests.respond(db_session, req.id, "declined", meeting.id, jockey.id)

    roster = await meeting_roster(db_session, meeting.id, trainer.id)
    entry = roster.entries[0]
    assert entry.existing_request.status == "declined"
    assert entry.requestable is False


@pytest.mark.asyncio
async def test_roster_for_non_trainers_has_no_requestable_entries(db_session, make_profile, meeting):
    jockey = await make_profile("jockey")
    owner = await make_profile("owner", "approved_viewonly")
    pending_trainer = await make_profile("trainer", "pending")
    await attendance.mark_attending(db_session, meeting.id, jockey.id, "available", "54kg")

    for caller in (owner, jockey, pending_trainer):
        roster = await meeting_roster(db_session, meeting.id, caller.id)
        assert len(roster.entries) == 1
        assert roster.entries[0].requestable is False
        assert roster.entries[0].profile.id == jockey.id

    roster = await meeting_roster(db_session, meeting.id, jockey.id)
    assert roster.my_attendance.note == "54kg"


@pytest.mark.asyncio
async def test_roster_unknown_meeting(db_session, make_profile):
    trainer = await make_profile("trainer")
    with pytest.raises(NotFoundError):
        await meeting_roster(db_session, 12345, trainer.id)


@pytest.mark.asyncio
async def test_upcoming_meetings_lists_approved_jockeys_by_name(db_session, make_profile, make_meeting):
    today = date.today()
    soon = await make_meeting(track="Te Rapa", meeting_date=today + timedelta(days=3))
    await make_meeting(track="Riccarton", meeting_date=today + timedelta(days=45))
    await make_meeting(track="Trentham", meeting_date=today - timedelta(days=1))

    zed = await make_profile("jockey", full_name="Zed Walker")
    amy = await make_profile("jockey", full_name="amy Lee")
    trainer = await make_profile("trainer", full_name="Tom Trainer")
    for profile in (zed, amy, trainer):
        await attendance.mark_attending(db_session, soon.id, profile.id, "available", None)

    items = await upcoming_meetings(db_session, today, days=30)
    assert [i.meeting.track for i in items] == ["Te Rapa"]
    assert [p.full_name for _, p in items[0].jockeys] == ["amy Lee", "Zed Walker"]
