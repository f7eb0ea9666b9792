# scripts/update_absences.py
"""
Recompute consecutive absences and follow-up flags.

Meant for a weekly cron/scheduler run; the same scan is exposed as
POST /api/follow-up/update-absences.

Usage (from backend/):
  python scripts/update_absences.py --all
  python scripts/update_absences.py --church-id 3 --weeks 4
"""
from __future__ import annotations

import argparse
import logging
import os
import sys

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from sqlalchemy import select  # noqa: E402

from app.config import get_settings  # noqa: E402
from app.db import SessionLocal  # noqa: E402
import app.models  # noqa: E402,F401
from app.models.church import Church  # noqa: E402
from app.services.follow_up import update_consecutive_absences  # noqa: E402

logger = logging.getLogger("update_absences")


def main() -> int:
    settings = get_settings()
    parser = argparse.ArgumentParser(description="Flag members who have missed recent services")
    target = parser.add_mutually_exclusive_group(required=True)
    target.add_argument("--church-id", type=int, help="Scan a single church")
    target.add_argument("--all", action="store_true", help="Scan every church")
    parser.add_argument("--weeks", type=int, default=settings.absence_weeks, help="Absence window in weeks")
    args = parser.parse_args()

    logging.basicConfig(level=settings.log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    if args.weeks < 1:
        print("ERROR: --weeks must be >= 1", file=sys.stderr)
        return 2

    db = SessionLocal()
    try:
        if args.all:
            church_ids = list(db.execute(select(Church.id).order_by(Church.id)).scalars())
        else:
            if db.get(Church, args.church_id) is None:
                print(f"ERROR: church {args.church_id} not found.", file=sys.stderr)
                return 1
            church_ids = [args.church_id]

        total = 0
        for church_id in church_ids:
            flagged = update_consecutive_absences(db, church_id, weeks=args.weeks)
            logger.info("church=%s flagged=%s weeks=%s", church_id, flagged, args.weeks)
            total += flagged
    finally:
        db.close()

    print(f"Scanned {len(church_ids)} church(es); {total} member(s) flagged for follow-up.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
