"""
Identité et porte de vérification.

Résout un appelant en profil {role, status} et expose les prédicats consultés
par toutes les opérations de mutation. L'identité de l'appelant est toujours
passée explicitement ; aucun état de session global.
"""
import logging
import time
from dataclasses import dataclass

from fastapi.concurrency import run_in_threadpool
from sqlalchemy import select
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
from jockeyfinder.models import Profile, VerificationDocument
from jockeyfinder.models.enums import Role, ProfileStatus, VERIFIED_ROLES
from jockeyfinder.storage import ObjectStorage

logger = logging.getLogger(__name__)


# ── Prédicats purs ────────────────────────────────────────────

def can_act_as_verified(role: str, status: str) -> bool:
    """Jockeys/entraîneurs doivent être approuvés ; les autres rôles passent
    (lecture seule pour les propriétaires, qui restent exclus des mutations)."""
    if role in VERIFIED_ROLES:
        return status == ProfileStatus.APPROVED.value
    return True


def is_approved_trainer(role: str, status: str) -> bool:
    return role == Role.TRAINER.value and status == ProfileStatus.APPROVED.value


def is_approved_jockey(role: str, status: str) -> bool:
    return role == Role.JOCKEY.value and status == ProfileStatus.APPROVED.value


def initial_status(role: str) -> str:
    if role in VERIFIED_ROLES:
        return ProfileStatus.PENDING.value
    if role == Role.OWNER.value:
        return ProfileStatus.APPROVED_VIEWONLY.value
    return ProfileStatus.APPROVED.value


# ── Résolution de l'appelant ──────────────────────────────────

async def get_profile(session: AsyncSession, user_id: str) -> Profile:
    result = await session.execute(select(Profile).where(Profile.id == user_id))
    profile = result.scalar_one_or_none()
    if profile is None:
        raise NotFoundError("Profile", user_id)
    return profile


def require_mutating_participant(profile: Profile) -> None:
    """Les propriétaires ne modifient jamais rien ; jockeys et entraîneurs
    doivent être approuvés."""
    if profile.role == Role.OWNER.value:
        raise ForbiddenError("Owners are view-only.")
    if not can_act_as_verified(profile.role, profile.status):
        raise NotApprovedError("You must be approved before marking attendance.")


def require_admin(profile: Profile) -> None:
    if profile.role != Role.ADMIN.value:
        raise ForbiddenError("Access denied. Admins only.")


# ── Inscription et validation admin ───────────────────────────

@dataclass
class Licence:
    filename: str
    data: bytes


async def register_profile(
    session: AsyncSession,
    storage: ObjectStorage,
    user_id: str,
    full_name: str,
    role: str,
    email: str | None = None,
    phone: str | None = None,
    licence: Licence | None = None,
) -> Profile:
    """Crée le profil à l'inscription. Jockeys et entraîneurs doivent fournir
    leur licence : elle est téléversée puis enregistrée en attente de
    vérification. Si l'écriture en base échoue, le fichier est supprimé."""
    if role not in {r.value for r in Role}:
        raise ValidationError(f"Unknown role: {role}", field="role")
    if role == Role.ADMIN.value:
        raise ForbiddenError("Admin accounts cannot be self-registered.")
    needs_verification = role in VERIFIED_ROLES
    if needs_verification and (licence is None or not licence.data):
        raise ValidationError("Licence photo required for jockeys and trainers.", field="licence")

    existing = await session.get(Profile, user_id)
    if existing is not None:
        raise ConflictError(f"Profile already exists: {user_id}")

    path = None
    if needs_verification:
        ext = licence.filename.rsplit(".", 1)[-1] if "." in licence.filename else "bin"
        try:
            path = await run_in_threadpool(
                storage.upload, f"{user_id}/{int(time.time() * 1000)}.{ext}", licence.data
            )
        except OSError as e:
            logger.error("Erreur téléversement licence %s : %s", user_id, e)
            raise PersistenceError(f"Licence upload failed: {e}") from e

    profile = Profile(
        id=user_id,
        full_name=full_name.strip(),
        role=role,
        status=initial_status(role),
        email=email,
        phone=phone,
    )
    session.add(profile)

    try:
        await session.flush()
        if path is not None:
            doc_type = "trainer_licence" if role == Role.TRAINER.value else "jockey_licence"
            session.add(VerificationDocument(user_id=user_id, doc_type=doc_type, storage_path=path))
        await session.commit()
    except SQLAlchemyError as e:
        await session.rollback()
        if path is not None:
            await run_in_threadpool(storage.delete, path)
        logger.error("Erreur inscription %s : %s", user_id, e)
        raise PersistenceError(f"Signup failed: {e}") from e

    logger.info("Profil créé : %s (%s, %s)", user_id, role, profile.status)
    return profile


async def set_profile_status(session: AsyncSession, admin_id: str, profile_id: str, status: str) -> Profile:
    """Décision admin sur un profil (approbation, refus)."""
    require_admin(await get_profile(session, admin_id))
    if status not in {s.value for s in ProfileStatus}:
        raise ValidationError(f"Unknown status: {status}", field="status")

    profile = await get_profile(session, profile_id)
    profile.status = status
    try:
        await session.commit()
    except SQLAlchemyError as e:
        await session.rollback()
        raise PersistenceError(f"Status update failed: {e}") from e
    logger.info("Profil %s → %s (par %s)", profile_id, status, admin_id)
    return profile
