"""
Database engine and session management
"""
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base

from storefront.config import settings

def _engine_options(url: str) -> dict:
    if url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}
    return {"pool_pre_ping": True, "pool_size": 10, "max_overflow": 20}

engine = create_engine(settings.database_url, echo=settings.DEBUG, **_engine_options(settings.database_url))

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()

def get_db():
    """
    Dependency for FastAPI to provide database sessions.
    
    Usage:
        @router.get("/events")
        def list_events(db: Session = Depends(get_db)):
            return db.query(Event).all()
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

def init_db():
    """Create all tables. Development only; production schemas are managed by the database service."""
    from storefront import models  # noqa: F401
    Base.metadata.create_all(bind=engine)
