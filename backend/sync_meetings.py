"""Synchronise les réunions LoveRacing sur une plage de dates.

Usage : python sync_meetings.py 2026-01-01 2026-01-31
"""
import argparse
import asyncio
import json
import logging
import sys
from datetime import date

from jockeyfinder.database import init_db, async_session
from jockeyfinder.errors import CoreError
from jockeyfinder.services.calendar_sync import sync_meetings

logging.basicConfig(level=logging.INFO)


async def main(start: date, end: date) -> int:
    await init_db()
    async with async_session() as session:
        try:
            result = await sync_meetings(session, start, end)
        except CoreError as e:
            print(json.dumps({"ok": False, "error": str(e.detail)}))
            return 1
    print(json.dumps({"ok": True, "inserted": result.inserted, "written": result.written, "dropped": result.dropped}))
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("start", type=date.fromisoformat, help="Date début YYYY-MM-DD")
    parser.add_argument("end", type=date.fromisoformat, help="Date fin YYYY-MM-DD")
    args = parser.parse_args()
    sys.exit(asyncio.run(main(args.start, args.end)))
