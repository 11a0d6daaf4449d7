"""Database engine construction"""

from pathlib import Path

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.pool import StaticPool

from paper_intake.config import config


def create_db_engine(database_url: str | None = None, echo: bool | None = None) -> Engine:
    """Create the engine shared by the store and the migration manager.

    SQLite connections are opened with ``check_same_thread=False`` because
    store operations run on worker threads. File-backed SQLite databases get
    their parent directory created; in-memory ones share a single connection.
    """
    url = make_url(database_url or config["database_url"])
    if echo is None:
        echo = config["db_echo"]

    if url.get_backend_name() != "sqlite":
        return create_engine(url, echo=echo, pool_pre_ping=True)

    kwargs = {"connect_args": {"check_same_thread": False}}
    if url.database in (None, "", ":memory:"):
        kwargs["poolclass"] = StaticPool
    else:
        Path(url.database).parent.mkdir(parents=True, exist_ok=True)

    return create_engine(url, echo=echo, **kwargs)
