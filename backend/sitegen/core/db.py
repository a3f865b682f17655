from sqlmodel import Session, SQLModel, create_engine

from sitegen.core.config import settings

engine = create_engine(settings.DATABASE_URL)


def init_db(session: Session) -> None:
    # Tables are created directly; the admin database has no migrations.
    from sitegen import models  # noqa: F401

    SQLModel.metadata.create_all(session.get_bind())
