from typing import Iterator, Optional

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker
from sqlalchemy.pool import StaticPool

from config import get_settings


class Base(DeclarativeBase):
    pass


def _enable_sqlite_pragmas(dbapi_conn, _record):
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA journal_mode=WAL;")
    cursor.execute("PRAGMA foreign_keys=ON;")
    cursor.close()


def build_engine(database_url: Optional[str] = None) -> Engine:
    url = database_url or get_settings().database_url
    connect_args: dict[str, object] = {}
    kwargs: dict[str, object] = {}
    if url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
        if ":memory:" in url:
            # one shared connection so every session sees the same database
            kwargs["poolclass"] = StaticPool
    eng = create_engine(url, connect_args=connect_args, **kwargs)
    if url.startswith("sqlite") and ":memory:" not in url:
        event.listen(eng, "connect", _enable_sqlite_pragmas)
    return eng


def make_session_factory(eng: Engine) -> sessionmaker:
    return sessionmaker(bind=eng, autoflush=False, expire_on_commit=False)


engine = build_engine()
SessionLocal = make_session_factory(engine)


def init_db(eng: Optional[Engine] = None) -> None:
    # migrations own the schema in production; this is for dev and tests
    import models  # noqa: F401

    Base.metadata.create_all(eng or engine)


def get_db() -> Iterator[Session]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

