"""
Collecteur du calendrier des courses LoveRacing (NZTR).
Endpoint utilisé :
  - POST /ServerScript/RaceInfo.aspx/GetCalendarEvents  {"start", "end"}
    → {"d": "[{...}, {...}]"}   (tableau JSON encodé dans une chaîne)
"""
import json
import logging
from datetime import date

import httpx

from jockeyfinder.config import settings
from jockeyfinder.errors import UpstreamError

logger = logging.getLogger(__name__)


def _date_fmt(d: date) -> str:
    """Format date as DD-Mon-YYYY for LoveRacing (ex : 01-Jan-2026)."""
    return d.strftime("%d-%b-%Y")


def decode_envelope(payload) -> list[dict]:
    """Extrait la liste d'événements de l'enveloppe {"d": "<json>"}."""
    if not isinstance(payload, dict) or "d" not in payload:
        raise UpstreamError("Unexpected calendar envelope (missing 'd').")
    raw = payload["d"]
    if raw is None or raw == "":
        return []
    if isinstance(raw, str):
        try:
            events = json.loads(raw)
        except ValueError as e:
            raise UpstreamError(f"Calendar payload is not valid JSON: {e}") from e
    else:
        events = raw
    if not isinstance(events, list):
        raise UpstreamError("Calendar payload is not a list of events.")
    return events


class LoveRacingCollector:
    def __init__(self, client: httpx.AsyncClient | None = None, url: str | None = None):
        self.url = url or settings.loveracing_url
        self.client = client or httpx.AsyncClient(
            timeout=settings.http_timeout,
            headers={"Content-Type": "application/json; charset=utf-8", "Accept": "application/json"},
        )

    async def close(self):
        await self.client.aclose()

    async def get_calendar_events(self, start: date, end: date) -> list[dict]:
        body = {"start": _date_fmt(start), "end": _date_fmt(end)}
        try:
            resp = await self.client.post(self.url, json=body)
        except httpx.HTTPError as e:
            logger.warning("Calendrier %s → %s injoignable : %s", start, end, e)
            raise UpstreamError(f"Calendar unreachable: {e}") from e

        if resp.status_code != 200:
            logger.warning("Calendrier %s → %s : HTTP %s", start, end, resp.status_code)
            raise UpstreamError(f"Calendar returned HTTP {resp.status_code}")
        try:
            payload = resp.json()
        except ValueError as e:
            raise UpstreamError(f"Calendar response is not JSON: {e}") from e

        events = decode_envelope(payload)
        logger.info("Calendrier %s → %s : %d événements", start, end, len(events))
        return events
