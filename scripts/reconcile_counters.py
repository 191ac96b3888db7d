#!/usr/bin/env python3
"""
Rebuild the denormalised counters from the ledgers:
videos.likes/dislikes and comments.likes from the likes table,
users.subscriber_count from subscriptions.

Run from the project root: python scripts/reconcile_counters.py [--only videos]
"""
import argparse
import asyncio
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
from dotenv import load_dotenv
load_dotenv(os.path.join(os.path.dirname(os.path.dirname(__file__)), ".env"))

from vidtube.db.session import async_session_maker, engine
from vidtube.services import reaction_service

TARGETS = {
    "videos": reaction_service.reconcile_video_counters,
    "comments": reaction_service.reconcile_comment_counters,
    "users": reaction_service.reconcile_subscriber_counts,
}


async def reconcile(targets: list[str]) -> dict[str, int]:
    touched = {}
    async with async_session_maker() as session:
        for name in targets:
            touched[name] = await TARGETS[name](session)
        await session.commit()
    await engine.dispose()
    return touched


def main():
    parser = argparse.ArgumentParser(description=__doc__.strip().splitlines()[0])
    parser.add_argument(
        "--only",
        choices=sorted(TARGETS),
        action="append",
        help="Restrict to one counter family (repeatable). Default: all.",
    )
    args = parser.parse_args()
    targets = args.only or list(TARGETS)
    touched = asyncio.run(reconcile(targets))
    for name, rows in touched.items():
        print(f"{name}: {rows} row(s) recomputed")


if __name__ == "__main__":
    main()
