import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, Text
from sqlmodel import Field, Relationship, SQLModel


def get_datetime_utc() -> datetime:
    return datetime.now(timezone.utc)


# Shared properties
class SiteBase(SQLModel):
    owner_user_id: str = Field(index=True, max_length=255)
    business_name: str = Field(min_length=1, max_length=255)
    category: str | None = Field(default=None, max_length=100)
    tagline: str | None = Field(default=None, max_length=255)
    city: str | None = Field(default=None, max_length=100)
    state: str | None = Field(default=None, max_length=100)
    phone: str | None = Field(default=None, max_length=50)
    is_published: bool = False
    html_content: str | None = Field(default=None, sa_type=Text)  # type: ignore


# Properties accepted by upsert_site; id selects the row to update
class SiteUpsert(SiteBase):
    id: uuid.UUID | None = None


class Site(SiteBase, table=True):
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    created_at: datetime | None = Field(
        default_factory=get_datetime_utc,
        sa_type=DateTime(timezone=True),  # type: ignore
    )
    updated_at: datetime | None = Field(
        default_factory=get_datetime_utc,
        sa_type=DateTime(timezone=True),  # type: ignore
    )
    revisions: list["Revision"] = Relationship(back_populates="site", cascade_delete=True)


class RevisionBase(SQLModel):
    html_content: str = Field(sa_type=Text)  # type: ignore
    snapshot_type: str = Field(default="manual", max_length=20)  # manual, auto, override


class RevisionCreate(RevisionBase):
    site_id: uuid.UUID


class Revision(RevisionBase, table=True):
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    created_at: datetime | None = Field(
        default_factory=get_datetime_utc,
        sa_type=DateTime(timezone=True),  # type: ignore
    )
    site_id: uuid.UUID = Field(
        foreign_key="site.id", nullable=False, ondelete="CASCADE"
    )
    site: Site | None = Relationship(back_populates="revisions")
