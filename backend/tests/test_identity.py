import pytest
from sqlalchemy import select
from sqlalchemy.exc import OperationalError

from jockeyfinder.errors import (
    ConflictError,
    ForbiddenError,
    NotApprovedError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from jockeyfinder.models import VerificationDocument
from jockeyfinder.services.identity import (
    Licence,
    can_act_as_verified,
    get_profile,
    initial_status,
    is_approved_jockey,
    is_approved_trainer,
    register_profile,
    require_mutating_participant,
    set_profile_status,
)
from jockeyfinder.storage import LocalObjectStorage


@pytest.mark.parametrize(
    "role,status,expected",
    [
        ("jockey", "approved", True),
        ("jockey", "pending", False),
        ("trainer", "approved", True),
        ("trainer", "rejected", False),
        ("owner", "approved_viewonly", True),
        ("admin", "approved", True),
    ],
)
def test_can_act_as_verified(role, status, expected):
    assert can_act_as_verified(role, status) is expected


def test_role_predicates():
    assert is_approved_trainer("trainer", "approved")
    assert not is_approved_trainer("jockey", "approved")
    assert not is_approved_trainer("trainer", "pending")
    assert is_approved_jockey("jockey", "approved")
    assert not is_approved_jockey("trainer", "approved")
    assert not is_approved_jockey("jockey", "approved_viewonly")


def test_initial_status_by_role():
    assert initial_status("jockey") == "pending"
    assert initial_status("trainer") == "pending"
    assert initial_status("owner") == "approved_viewonly"


@pytest.mark.asyncio
async def test_require_mutating_participant(make_profile):
    with pytest.raises(ForbiddenError):
        require_mutating_participant(await make_profile("owner", "approved_viewonly"))
    with pytest.raises(NotApprovedError):
        require_mutating_participant(await make_profile("jockey", "pending"))
    require_mutating_participant(await make_profile("trainer", "approved"))


@pytest.mark.asyncio
async def test_get_profile_unknown_caller(db_session):
    with pytest.raises(NotFoundError):
        await get_profile(db_session, "nobody")


@pytest.mark.asyncio
async def test_register_jockey_uploads_licence(db_session, tmp_path):
    storage = LocalObjectStorage(root=tmp_path, bucket="verification-docs")
    profile = await register_profile(
        db_session, storage, "u-jockey", " Sam Rider ", "jockey",
        email="sam@example.com", licence=Licence("licence.jpg", b"\xff\xd8jpeg"),
    )

    assert profile.status == "pending"
    assert profile.full_name == "Sam Rider"

    doc = (await db_session.execute(
        select(VerificationDocument).where(VerificationDocument.user_id == "u-jockey")
    )).scalar_one()
    assert doc.doc_type == "jockey_licence"
    assert doc.status == "pending"
    assert doc.storage_path.startswith("u-jockey/") and doc.storage_path.endswith(".jpg")
    assert (tmp_path / "verification-docs" / doc.storage_path).read_bytes() == b"\xff\xd8jpeg"


@pytest.mark.asyncio
async def test_register_trainer_requires_licence(db_session, tmp_path):
    with pytest.raises(ValidationError):
        await register_profile(db_session, LocalObjectStorage(root=tmp_path), "u-t", "Tess", "trainer")
    with pytest.raises(NotFoundError):
        await get_profile(db_session, "u-t")


@pytest.mark.asyncio
async def test_register_owner_is_view_only_without_licence(db_session, tmp_path):
    profile = await register_profile(db_session, LocalObjectStorage(root=tmp_path), "u-o", "Olive", "owner")
    assert profile.status == "approved_viewonly"
    docs = (await db_session.execute(select(VerificationDocument))).scalars().all()
    assert docs == []


@pytest.mark.asyncio
async def test_register_rejects_admin_and_duplicates(db_session, tmp_path):
    storage = LocalObjectStorage(root=tmp_path)
    with pytest.raises(ForbiddenError):
        await register_profile(db_session, storage, "u-a", "Ada", "admin")

    await register_profile(db_session, storage, "u-o", "Olive", "owner")
    with pytest.raises(ConflictError):
        await register_profile(db_session, storage, "u-o", "Olive again", "owner")


@pytest.mark.asyncio
async def test_set_profile_status_is_admin_only(db_session, make_profile):
    admin = await make_profile("admin")
    trainer = await make_profile("trainer", "pending")
    jockey = await make_profile("jockey")

    with pytest.raises(ForbiddenError):
        await set_profile_status(db_session, jockey.id, trainer.id, "approved")

    updated = await set_profile_status(db_session, admin.id, trainer.id, "approved")
    assert updated.status == "approved"

    with pytest.raises(ValidationError):
        await set_profile_status(db_session, admin.id, trainer.id, "superstar")


@pytest.mark.asyncio
async def test_register_rejects_user_id_escaping_the_bucket(db_session, tmp_path):
    storage = LocalObjectStorage(root=tmp_path, bucket="verification-docs")
    with pytest.raises(ValidationError):
        await register_profile(db_session, storage, "..", "X", "jockey", licence=Licence("l.png", b"x"))

    with pytest.raises(NotFoundError):
        await get_profile(db_session, "..")
    assert list(tmp_path.rglob("*.png")) == []


@pytest.mark.asyncio
async def test_register_removes_licence_when_commit_fails(monkeypatch, db_session, tmp_path):
    storage = LocalObjectStorage(root=tmp_path, bucket="verification-docs")

    async def _broken_commit():
        raise OperationalError("INSERT INTO verification_documents", {}, Exception("disk I/O error"))

    monkeypatch.setattr(db_session, "commit", _broken_commit)

    with pytest.raises(PersistenceError):
        await register_profile(db_session, storage, "u-j", "Jo", "jockey", licence=Licence("l.png", b"x"))

    assert list((tmp_path / "verification-docs").rglob("*.png")) == []
