"""
Script to recreate the ledger tables and seed demo data
"""
from sqlalchemy import create_engine

from backoffice.core.config import settings
from backoffice.core.database import SessionLocal
import backoffice.models  # noqa: F401  (registers every ledger table)
from backoffice.models.customer import Base
from backoffice.services.seed import seed_demo


def recreate_db():
    print("Recreating database with the debt ledger schema...")

    engine = create_engine(settings.database_url, pool_pre_ping=True)

    print("Dropping existing tables...")
    Base.metadata.drop_all(bind=engine)

    print("Creating tables...")
    Base.metadata.create_all(bind=engine)

    print("Seeding demo data...")
    db = SessionLocal()
    try:
        seed_demo(db)
    except Exception as e:
        print(f"Error seeding data: {e}")
        db.rollback()
    finally:
        db.close()

    print("Database recreated successfully!")


if __name__ == "__main__":
    recreate_db()
