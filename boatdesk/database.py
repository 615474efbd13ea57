from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from boatdesk.models import Base
import os

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./boatdesk.db")

_connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}

engine = create_engine(DATABASE_URL, echo=False, connect_args=_connect_args)
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)


def init_db():
    """Create all tables."""
    Base.metadata.create_all(bind=engine)


def get_db():
    """FastAPI dependency."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
