from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from backoffice.core.config import settings
from backoffice.models.customer import Base

engine = create_engine(settings.database_url, pool_pre_ping=True)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db(bind=None) -> None:
    # Create tables in dev/test without running Alembic
    if settings.env in {"dev", "test"}:
        import backoffice.models  # noqa: F401  registers every table on Base

        Base.metadata.create_all(bind=bind or engine)
