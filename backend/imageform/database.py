from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import NullPool, StaticPool

from imageform.config import get_settings



def build_engine(database_url: str):
    if database_url.startswith("sqlite"):
        # Local runs and tests: one shared connection usable from the thread pool
        return create_engine(
            database_url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )

    return create_engine(
        database_url,
        # Check if connection is alive before using it
        pool_pre_ping=True,
        # Supabase pools connections itself (port 6543)
        poolclass=NullPool,
        # SSL is required by Supabase
        connect_args={"sslmode": "require"},
    )


engine = build_engine(get_settings().database_url)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
