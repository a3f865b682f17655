#!/usr/bin/env python3
"""Force-replace the HTML of one site: the published copy, a new snapshot revision, or both.

Example:
    python backend/scripts/override_html.py --owner-user-id user-123 \
        --site-id 1f0c... --target both --html-file ./fixed/index.html
"""

import argparse
import logging

from sqlmodel import Session

from sitegen.admin import AdminError, override_html, parse_site_id, read_html_source
from sitegen.core.config import settings
from sitegen.core.db import engine, init_db
from sitegen.storage import SiteStorage, StorageError, get_site_storage


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--owner-user-id", required=True)
    parser.add_argument("--site-id", required=True)
    parser.add_argument("--target", choices=["published", "snapshot", "both"], default="published")
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--html-file", help="Path to the HTML file.")
    source.add_argument("--html-base64", help="Base64-encoded HTML document.")
    return parser


def run(args: argparse.Namespace, *, session: Session, storage: SiteStorage) -> int:
    try:
        html = read_html_source(html_file=args.html_file, html_base64=args.html_base64)
        outcome = override_html(
            session=session,
            storage=storage,
            owner_user_id=args.owner_user_id,
            site_id=parse_site_id(args.site_id),
            target=args.target,
            html=html,
        )
    except (AdminError, StorageError) as exc:
        raise SystemExit(f"Override failed: {exc}") from exc

    if outcome.published_url:
        print(f"Published:  {outcome.published_url}")
    if outcome.snapshot_url:
        print(f"Snapshot:   {outcome.snapshot_url} (revision {outcome.revision_id})")
    return 0


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=settings.LOG_LEVEL.upper(), format="%(levelname)s %(name)s: %(message)s")
    with Session(engine) as session:
        init_db(session)
        return run(args, session=session, storage=get_site_storage())


if __name__ == "__main__":
    raise SystemExit(main())
