from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from omnicrm.core.config import get_settings
from omnicrm.db.base import Base

settings = get_settings()

connect_args = {"check_same_thread": False} if settings.database_url.startswith("sqlite") else {}

engine = create_engine(settings.database_url, connect_args=connect_args, pool_pre_ping=True)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db(bind=None) -> None:
    """Create all tables on the given engine (defaults to the app engine)."""
    import omnicrm.db.models  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)
