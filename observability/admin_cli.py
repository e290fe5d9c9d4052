"""Operator CLI for the screening tables."""
from __future__ import annotations

import argparse
from datetime import datetime, timedelta, timezone

from config.settings import settings
from storage.migrate import migrate
from storage.scores import latest_scores
from storage.sessions import SqliteSessionRepository


def tail_scores(limit: int = 20) -> None:
    for row in latest_scores(limit):
        verdict = "PASS" if row["screening_passed"] else "REVIEW"
        print(f"[{row['timestamp']}] candidate={row['candidate_id']} overall={row['overall_score']} {verdict}")


def purge_idle(hours: float) -> int:
    repo = SqliteSessionRepository()
    removed = len(repo.purge_idle(datetime.now(timezone.utc), timedelta(hours=hours)))
    print(f"Purged {removed} idle sessions older than {hours:g}h")
    return removed


def main() -> None:
    parser = argparse.ArgumentParser(description="Inspect and maintain screening interview data")
    parser.add_argument("--migrate", action="store_true", help="Create the SQLite tables if missing")
    parser.add_argument("--tail-scores", type=int, help="Show the latest recorded screening scores")
    parser.add_argument(
        "--purge-idle",
        type=float,
        nargs="?",
        const=settings.SESSION_IDLE_HOURS,
        help="Delete sessions idle for longer than this many hours",
    )
    args = parser.parse_args()

    if args.migrate:
        migrate(settings.DB_PATH)
    if args.tail_scores:
        tail_scores(args.tail_scores)
    if args.purge_idle is not None:
        purge_idle(args.purge_idle)


if __name__ == "__main__":
    main()
