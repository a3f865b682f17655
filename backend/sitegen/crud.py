import uuid

from sqlmodel import Session, select

from sitegen.models import Revision, RevisionCreate, Site, SiteUpsert, get_datetime_utc


def upsert_site(*, session: Session, site_in: SiteUpsert) -> Site:
    """Update the row named by ``site_in.id`` when it exists, otherwise insert a new one."""
    site_data = site_in.model_dump(exclude={"id"})
    db_site = session.get(Site, site_in.id) if site_in.id else None
    if db_site:
        db_site.sqlmodel_update(site_data, update={"updated_at": get_datetime_utc()})
    else:
        update = {"id": site_in.id} if site_in.id else {}
        db_site = Site.model_validate(site_data, update=update)
    session.add(db_site)
    session.commit()
    session.refresh(db_site)
    return db_site


def get_site_by_id(*, session: Session, site_id: uuid.UUID) -> Site | None:
    return session.get(Site, site_id)


def get_sites_by_owner(*, session: Session, owner_user_id: str) -> list[Site]:
    statement = select(Site).where(Site.owner_user_id == owner_user_id)
    return list(session.exec(statement).all())


def create_revision(*, session: Session, revision_in: RevisionCreate) -> Revision:
    db_revision = Revision.model_validate(revision_in)
    session.add(db_revision)
    session.commit()
    session.refresh(db_revision)
    return db_revision


def delete_site_by_id(*, session: Session, site_id: uuid.UUID) -> bool:
    db_site = session.get(Site, site_id)
    if not db_site:
        return False
    session.delete(db_site)
    session.commit()
    return True


def delete_user_sites(*, session: Session, owner_user_id: str) -> int:
    sites = get_sites_by_owner(session=session, owner_user_id=owner_user_id)
    for site in sites:
        session.delete(site)
    session.commit()
    return len(sites)
