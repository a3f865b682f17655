#!/usr/bin/env python3
"""Create or update a published site record and upload its HTML to the published bucket.

Example:
    python backend/scripts/import_published_html.py --owner-user-id user-123 \
        --business-name "Acme Corp" --html-file ./output/acme-corp/run-1/index.html
"""

import argparse
import logging

from sqlmodel import Session

from sitegen.admin import AdminError, import_published_html, parse_site_id, read_html_source
from sitegen.core.config import settings
from sitegen.core.db import engine, init_db
from sitegen.storage import SiteStorage, StorageError, get_site_storage


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--owner-user-id", required=True)
    parser.add_argument("--business-name", required=True)
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--html-file", help="Path to the HTML file.")
    source.add_argument("--html-base64", help="Base64-encoded HTML document.")
    parser.add_argument("--category")
    parser.add_argument("--tagline")
    parser.add_argument("--city")
    parser.add_argument("--state")
    parser.add_argument("--phone")
    parser.add_argument("--site-id", help="Existing site to update (requires --overwrite).")
    parser.add_argument("--overwrite", action="store_true")
    return parser


def run(args: argparse.Namespace, *, session: Session, storage: SiteStorage) -> int:
    try:
        html = read_html_source(html_file=args.html_file, html_base64=args.html_base64)
        outcome = import_published_html(
            session=session,
            storage=storage,
            owner_user_id=args.owner_user_id,
            business_name=args.business_name,
            html=html,
            category=args.category,
            tagline=args.tagline,
            city=args.city,
            state=args.state,
            phone=args.phone,
            site_id=parse_site_id(args.site_id) if args.site_id else None,
            overwrite=args.overwrite,
        )
    except (AdminError, StorageError) as exc:
        raise SystemExit(f"Import failed: {exc}") from exc

    print(f"Site ID:    {outcome.site_id}")
    print(f"Public URL: {outcome.public_url}")
    return 0


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=settings.LOG_LEVEL.upper(), format="%(levelname)s %(name)s: %(message)s")
    with Session(engine) as session:
        init_db(session)
        return run(args, session=session, storage=get_site_storage())


if __name__ == "__main__":
    raise SystemExit(main())
