"""Database engine and session factory. SQLite compatible with connection pooling."""
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker


def build_engine(database_url: str) -> Engine:
    connect_args = (
        {"check_same_thread": False}
        if database_url.startswith("sqlite")
        else {}
    )

    if database_url.startswith("sqlite"):
        # SQLite: Use NullPool for thread-safety
        from sqlalchemy.pool import NullPool
        return create_engine(
            database_url,
            connect_args=connect_args,
            poolclass=NullPool
        )

    # PostgreSQL/MySQL: Use QueuePool with sensible defaults
    return create_engine(
        database_url,
        connect_args=connect_args,
        pool_size=5,  # Number of persistent connections
        max_overflow=10,  # Max temporary connections
        pool_timeout=30,  # Seconds to wait for connection
        pool_recycle=3600,  # Recycle connections after 1 hour
        pool_pre_ping=True  # Verify connection health
    )


def build_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)
