"""
Shared fixtures: an in-memory SQLite database seeded with a small fleet.
"""
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from boatdesk.models import Base, Boat, Staff, Member


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield sessionmaker(bind=engine, autoflush=False, autocommit=False)
    engine.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    session.add_all([
        Boat(id=1, name="G23"),
        Boat(id=2, name="G21"),
        Boat(id=6, name="彈簧床", is_facility=True),
        Staff(id="C01", name="Alice"),
        Staff(id="C02", name="Bob"),
        Staff(id="C03", name="Chen"),
        Member(id="M001", name="Lin Mei", nickname="Mei"),
        Member(id="M002", name="Wang Hao"),
    ])
    session.commit()
    try:
        yield session
    finally:
        session.close()
