#!/usr/bin/env python3
"""Delete every website row and stored file of a user. Dry-run unless --execute is passed.

Example:
    python backend/scripts/purge_user.py --owner-user-id user-123            # dry run
    python backend/scripts/purge_user.py --owner-user-id user-123 --execute  # destructive
"""

import argparse
import logging

from sqlmodel import Session

from sitegen.admin import AdminError, execute_purge, parse_site_id, plan_purge
from sitegen.core.config import settings
from sitegen.core.db import engine, init_db
from sitegen.storage import SiteStorage, StorageError, get_site_storage


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--owner-user-id", required=True)
    parser.add_argument("--site-id", help="Limit the purge to one site.")
    parser.add_argument("--execute", action="store_true", help="Actually delete (default is a dry run).")
    parser.add_argument("--skip-payments", action="store_true", help="Skip payment record cleanup.")
    return parser


def run(args: argparse.Namespace, *, session: Session, storage: SiteStorage) -> int:
    site_id = None
    try:
        if args.site_id:
            site_id = parse_site_id(args.site_id)
        plan = plan_purge(session=session, storage=storage, owner_user_id=args.owner_user_id, site_id=site_id)
    except (AdminError, StorageError) as exc:
        raise SystemExit(f"Purge failed: {exc}") from exc

    if not plan.sites:
        print("No sites found for this user. Nothing to purge.")
        return 0

    print(f"Found {len(plan.sites)} site(s):")
    for site in plan.sites:
        print(f'  {site.id}  "{site.business_name}" ({site.city or "?"})')
    print(f"Storage files: {plan.total_files} file(s) across {len(plan.files)} bucket(s)")
    print(f"Payments:      {'skipped' if args.skip_payments else 'will clean up'}")

    if not args.execute:
        print("DRY RUN: no changes made. Re-run with --execute to delete.")
        return 0

    try:
        deleted = execute_purge(session=session, storage=storage, plan=plan, skip_payments=args.skip_payments)
    except StorageError as exc:
        raise SystemExit(f"Purge failed: {exc}") from exc
    print(f"Purge complete: {deleted} site(s) deleted.")
    return 0


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=settings.LOG_LEVEL.upper(), format="%(levelname)s %(name)s: %(message)s")
    with Session(engine) as session:
        init_db(session)
        return run(args, session=session, storage=get_site_storage())


if __name__ == "__main__":
    raise SystemExit(main())
