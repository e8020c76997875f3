from sqlalchemy import Engine, create_engine, event
from sqlalchemy.orm import sessionmaker

from format_poker.core.config import get_settings


def create_db_engine(url: str, **kwargs) -> Engine:
    """Create an engine; SQLite connections get foreign keys switched on.

    Vote rows rely on ``ON DELETE CASCADE``, which SQLite ignores unless the
    pragma is set per connection.
    """
    if url.startswith("sqlite"):
        kwargs.setdefault("connect_args", {"check_same_thread": False})
    else:
        kwargs.setdefault("pool_pre_ping", True)
    engine = create_engine(url, **kwargs)
    if engine.dialect.name == "sqlite":
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
    return engine


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


engine = create_db_engine(get_settings().database_url_sync)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db() -> None:
    """Create all tables (development and tests; production uses Alembic)."""
    from format_poker.models import Base

    Base.metadata.create_all(bind=engine)
