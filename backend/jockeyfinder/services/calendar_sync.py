"""
Synchronisation du catalogue des réunions depuis le calendrier externe.

Chaque événement est réconcilié en ligne {external_id, meeting_date, track,
club, source} ; les enregistrements invalides sont ignorés sans interrompre
le lot. Le lot entier est ensuite écrit par upsert sur external_id, dans une
seule transaction.
"""
import logging
import re
from dataclasses import dataclass
from datetime import date, datetime, timezone

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from jockeyfinder.collectors.loveracing import LoveRacingCollector
from jockeyfinder.database import dialect_insert
from jockeyfinder.errors import PersistenceError, ValidationError
from jockeyfinder.models import Meeting

logger = logging.getLogger(__name__)

SOURCE = "loveracing"
VENUE_FIELDS = ("Racecourse", "TrackAppName", "RacecourseName")
SOURCE_FIELDS = ("meeting_date", "track", "club", "source")

_DOTNET_DATE = re.compile(r"Date\((-?\d+)")


@dataclass
class SyncResult:
    """Bilan d'une synchro. `inserted` est calculé sur une lecture faite avant
    l'upsert : deux synchros simultanées peuvent compter le même external_id
    comme nouveau. Les lignes stockées convergent ; seul le compte diverge."""

    written: int = 0   # lignes écrites (créées + mises à jour)
    inserted: int = 0  # external_id nouveaux dans le catalogue
    updated: int = 0
    dropped: int = 0   # enregistrements amont ignorés


def parse_dotnet_date(value) -> date | None:
    """"/Date(1767225600000)/" → date(2026, 1, 1), en UTC."""
    match = _DOTNET_DATE.search(str(value or ""))
    if not match:
        return None
    try:
        return datetime.fromtimestamp(int(match.group(1)) / 1000, tz=timezone.utc).date()
    except (OverflowError, OSError, ValueError):
        return None


def _external_id(value) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    text = str(value).strip()
    if not text.isdigit():
        return None
    n = int(text)
    return n or None


def reconcile_event(event: dict) -> dict | None:
    """Transforme un événement amont en ligne de réunion, ou None s'il est
    inexploitable (date illisible, pas de piste, DayID absent)."""
    if not isinstance(event, dict):
        return None
    meeting_date = parse_dotnet_date(event.get("RaceDate"))
    if meeting_date is None:
        return None
    track = next((str(event[f]).strip() for f in VENUE_FIELDS if str(event.get(f) or "").strip()), None)
    if not track:
        return None
    external_id = _external_id(event.get("DayID"))
    if external_id is None:
        return None
    club = str(event.get("Club") or "").strip() or None
    return {
        "external_id": external_id,
        "meeting_date": meeting_date,
        "track": track,
        "club": club,
        "source": SOURCE,
    }


def merge_meeting(existing: dict | None, incoming: dict) -> dict:
    """Fusion déterministe (existante, entrante) → fusionnée. La source fait
    autorité sur la date, la piste et le club ; l'identité de la ligne
    existante est conservée."""
    merged = dict(existing or {})
    merged["external_id"] = incoming["external_id"]
    for key in SOURCE_FIELDS:
        merged[key] = incoming.get(key)
    return merged


def reconcile_batch(events: list, existing: dict[int, dict] | None = None) -> tuple[list[dict], int]:
    """Réconcilie un lot complet. Un même external_id présent deux fois dans le
    lot est fusionné (le dernier gagne). Retourne (lignes, nb ignorés)."""
    existing = existing or {}
    rows: dict[int, dict] = {}
    dropped = 0
    for event in events:
        row = reconcile_event(event)
        if row is None:
            dropped += 1
            continue
        ext = row["external_id"]
        rows[ext] = merge_meeting(rows.get(ext, existing.get(ext)), row)
    return list(rows.values()), dropped


async def _existing_by_external_id(session: AsyncSession, external_ids: list[int]) -> dict[int, dict]:
    if not external_ids:
        return {}
    stmt = select(Meeting).where(Meeting.external_id.in_(external_ids))
    result = await session.execute(stmt)
    return {
        m.external_id: {
            "id": m.id,
            "external_id": m.external_id,
            "meeting_date": m.meeting_date,
            "track": m.track,
            "club": m.club,
            "source": m.source,
        }
        for m in result.scalars().all()
    }


async def upsert_meetings(session: AsyncSession, events: list) -> SyncResult:
    """Écrit le lot réconcilié : tout ou rien."""
    candidates = [r for r in (reconcile_event(e) for e in events) if r]
    try:
        existing = await _existing_by_external_id(session, sorted({r["external_id"] for r in candidates}))
        rows, dropped = reconcile_batch(events, existing)
        result = SyncResult(dropped=dropped)
        if not rows:
            return result

        now = datetime.utcnow()
        insert = dialect_insert(session)
        values = [{k: r[k] for k in ("external_id", *SOURCE_FIELDS)} | {"updated_at": now} for r in rows]
        stmt = insert(Meeting).values(values)
        stmt = stmt.on_conflict_do_update(
            index_elements=["external_id"],
            set_={
                "meeting_date": stmt.excluded.meeting_date,
                "track": stmt.excluded.track,
                "club": stmt.excluded.club,
                "source": stmt.excluded.source,
                "updated_at": stmt.excluded.updated_at,
            },
        )
        await session.execute(stmt)
        await session.commit()
    except SQLAlchemyError as e:
        await session.rollback()
        logger.error("Erreur upsert réunions : %s", e)
        raise PersistenceError(f"Meetings upsert failed: {e}") from e

    result.written = len(rows)
    result.inserted = sum(1 for r in rows if "id" not in r)
    result.updated = result.written - result.inserted
    return result


async def sync_meetings(
    session: AsyncSession,
    start: date,
    end: date,
    collector: LoveRacingCollector | None = None,
) -> SyncResult:
    """Récupère le calendrier sur [start, end] et réconcilie le catalogue.
    Rejouable sans effet : un second passage n'insère rien."""
    if start > end:
        raise ValidationError(f"start ({start}) is after end ({end})", field="start")

    own_collector = collector is None
    collector = collector or LoveRacingCollector()
    try:
        events = await collector.get_calendar_events(start, end)
    finally:
        if own_collector:
            await collector.close()

    result = await upsert_meetings(session, events)
    logger.info(
        "Synchro %s → %s : %d écrites (%d nouvelles, %d mises à jour), %d ignorées",
        start, end, result.written, result.inserted, result.updated, result.dropped,
    )
    return result
