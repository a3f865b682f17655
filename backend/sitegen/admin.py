"""
Operations behind the administrative scripts in ``backend/scripts``.

Each function works on an open SQLModel session and a SiteStorage so the scripts only
deal with argument parsing. Failures raise AdminError (or StorageError from storage).
"""
import base64
import binascii
import logging
import time
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

from sqlmodel import Session

from sitegen import crud
from sitegen.core.config import settings
from sitegen.models import RevisionCreate, Site, SiteUpsert
from sitegen.storage import SiteStorage
from sitegen.utils import slugify

logger = logging.getLogger(__name__)

OverrideTarget = Literal["published", "snapshot", "both"]


class AdminError(RuntimeError):
    """Raised when an administrative operation cannot proceed."""


def read_html_source(*, html_file: str | None = None, html_base64: str | None = None) -> str:
    if html_file:
        path = Path(html_file).resolve()
        if not path.is_file():
            raise AdminError(f"HTML file not found: {path}")
        html = path.read_text(encoding="utf-8")
        logger.info("Read HTML from file: %s (%s chars)", path, len(html))
        return html
    if html_base64:
        try:
            html = base64.b64decode("".join(html_base64.split()), validate=True).decode("utf-8")
        except (binascii.Error, UnicodeDecodeError) as exc:
            raise AdminError(f"Invalid --html-base64 value: {exc}") from exc
        logger.info("Decoded HTML from base64 (%s chars)", len(html))
        return html
    raise AdminError("Must provide either --html-file or --html-base64")


def parse_site_id(value: str) -> uuid.UUID:
    try:
        return uuid.UUID(value)
    except ValueError as exc:
        raise AdminError(f"Invalid site id: {value}") from exc


def site_prefix(site: Site) -> str:
    return f"{slugify(site.business_name)}/{site.id}"


def get_owned_site(*, session: Session, site_id: uuid.UUID, owner_user_id: str) -> Site:
    site = crud.get_site_by_id(session=session, site_id=site_id)
    if not site:
        raise AdminError(f"Site not found: {site_id}")
    if site.owner_user_id != owner_user_id:
        raise AdminError(f"Site {site_id} does not belong to owner {owner_user_id}")
    return site


@dataclass
class ImportOutcome:
    site_id: uuid.UUID
    storage_path: str
    public_url: str


def import_published_html(
    *,
    session: Session,
    storage: SiteStorage,
    owner_user_id: str,
    business_name: str,
    html: str,
    category: str | None = None,
    tagline: str | None = None,
    city: str | None = None,
    state: str | None = None,
    phone: str | None = None,
    site_id: uuid.UUID | None = None,
    overwrite: bool = False,
) -> ImportOutcome:
    """Create or update a published site row, then upload its HTML to the published bucket."""
    if site_id and not overwrite:
        raise AdminError("--site-id provided but --overwrite not set. Use --overwrite to update.")
    if site_id:
        existing = crud.get_site_by_id(session=session, site_id=site_id)
        if existing and existing.owner_user_id != owner_user_id:
            raise AdminError(f"Site {site_id} does not belong to owner {owner_user_id}")

    site = crud.upsert_site(
        session=session,
        site_in=SiteUpsert(
            id=site_id,
            owner_user_id=owner_user_id,
            business_name=business_name,
            category=category,
            tagline=tagline,
            city=city,
            state=state,
            phone=phone,
            is_published=True,
            html_content=html,
        ),
    )
    logger.info("Site record saved (ID: %s)", site.id)

    storage_path = f"{site_prefix(site)}/index.html"
    logger.info("Uploading to %s/%s", settings.BUCKET_PUBLISHED, storage_path)
    public_url = storage.put_html(settings.BUCKET_PUBLISHED, storage_path, html)
    logger.info("Upload successful: %s", public_url)
    return ImportOutcome(site_id=site.id, storage_path=storage_path, public_url=public_url)


@dataclass
class OverrideOutcome:
    published_url: str | None = None
    revision_id: uuid.UUID | None = None
    snapshot_url: str | None = None


def override_html(
    *,
    session: Session,
    storage: SiteStorage,
    owner_user_id: str,
    site_id: uuid.UUID,
    target: OverrideTarget,
    html: str,
) -> OverrideOutcome:
    site = get_owned_site(session=session, site_id=site_id, owner_user_id=owner_user_id)
    logger.info('Site verified: "%s"', site.business_name)
    prefix = site_prefix(site)
    outcome = OverrideOutcome()

    if target in ("published", "both"):
        site_in = SiteUpsert.model_validate(site.model_dump(), update={"html_content": html})
        crud.upsert_site(session=session, site_in=site_in)
        logger.info("Database record updated")
        outcome.published_url = storage.put_html(settings.BUCKET_PUBLISHED, f"{prefix}/index.html", html)
        logger.info("Published upload: %s", outcome.published_url)

    if target in ("snapshot", "both"):
        revision = crud.create_revision(
            session=session,
            revision_in=RevisionCreate(site_id=site_id, html_content=html, snapshot_type="override"),
        )
        outcome.revision_id = revision.id
        logger.info("Revision created (ID: %s)", revision.id)
        snapshot_path = f"{prefix}/snapshot-{int(time.time() * 1000)}.html"
        outcome.snapshot_url = storage.put_html(settings.BUCKET_SNAPSHOTS, snapshot_path, html)
        logger.info("Snapshot upload: %s", outcome.snapshot_url)

    return outcome


@dataclass
class PurgePlan:
    owner_user_id: str
    site_id: uuid.UUID | None
    sites: list[Site]
    files: dict[str, list[str]] = field(default_factory=dict)

    @property
    def total_files(self) -> int:
        return sum(len(paths) for paths in self.files.values())


def admin_buckets() -> list[str]:
    return [settings.BUCKET_PUBLISHED, settings.BUCKET_SNAPSHOTS, settings.BUCKET_ASSETS]


def plan_purge(
    *,
    session: Session,
    storage: SiteStorage,
    owner_user_id: str,
    site_id: uuid.UUID | None = None,
) -> PurgePlan:
    """Collect the rows and storage files a purge would delete. Makes no changes."""
    if site_id:
        sites = [get_owned_site(session=session, site_id=site_id, owner_user_id=owner_user_id)]
    else:
        sites = crud.get_sites_by_owner(session=session, owner_user_id=owner_user_id)

    plan = PurgePlan(owner_user_id=owner_user_id, site_id=site_id, sites=sites)
    for site in sites:
        prefix = site_prefix(site)
        for bucket in admin_buckets():
            paths = storage.list_files(bucket, prefix)
            if paths:
                plan.files.setdefault(bucket, []).extend(paths)
                logger.info("%s/%s: %s file(s)", bucket, prefix, len(paths))
    return plan


def cleanup_sandboxes(owner_user_id: str) -> None:
    logger.info("Sandbox cleanup for user %s: not implemented, skipping", owner_user_id)


def cleanup_payment_records(owner_user_id: str) -> None:
    logger.info("Payment cleanup for user %s: not implemented, skipping", owner_user_id)


def execute_purge(
    *,
    session: Session,
    storage: SiteStorage,
    plan: PurgePlan,
    skip_payments: bool = False,
) -> int:
    """Delete the planned storage files and rows. Returns the number of sites deleted."""
    for bucket, paths in plan.files.items():
        deleted = storage.delete_files(bucket, paths)
        logger.info("Deleted %s file(s) from %s", deleted, bucket)

    if plan.site_id:
        deleted_sites = int(crud.delete_site_by_id(session=session, site_id=plan.site_id))
    else:
        deleted_sites = crud.delete_user_sites(session=session, owner_user_id=plan.owner_user_id)
    logger.info("Deleted %s site(s) and their revisions", deleted_sites)

    cleanup_sandboxes(plan.owner_user_id)
    if not skip_payments:
        cleanup_payment_records(plan.owner_user_id)
    return deleted_sites
