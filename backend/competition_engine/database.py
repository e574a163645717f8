import os
from pathlib import Path
from typing import Generator

from dotenv import load_dotenv
from sqlalchemy.engine import Engine
from sqlmodel import Session, SQLModel, create_engine

load_dotenv()

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./competitions.db")

_is_sqlite = DATABASE_URL.startswith("sqlite")
_echo = os.getenv("SQL_ECHO", "false").lower() in ("true", "1", "yes")
_lock_timeout = float(os.getenv("DB_LOCK_TIMEOUT_SECONDS", "15"))
_statement_timeout_ms = int(os.getenv("DB_STATEMENT_TIMEOUT_MS", "0"))

if _is_sqlite:
    _connect_args = {"check_same_thread": False, "timeout": _lock_timeout}
elif _statement_timeout_ms > 0:
    # Bound every store call on Postgres; a cancelled statement aborts its transaction
    _connect_args = {"options": f"-c statement_timeout={_statement_timeout_ms}"}
else:
    _connect_args = {}

if _is_sqlite:
    db_path = DATABASE_URL.replace("sqlite:///", "", 1)
    if db_path and db_path != ":memory:":
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)

engine: Engine = create_engine(
    DATABASE_URL,
    echo=_echo,
    connect_args=_connect_args,
)


def get_session() -> Generator[Session, None, None]:
    """Get database session"""
    with Session(engine) as session:
        yield session


def init_db() -> None:
    """Initialize database - create all tables"""
    # Import all models to ensure they're registered with SQLModel metadata
    from competition_engine.models.club import Club  # noqa: F401
    from competition_engine.models.competition import Competition  # noqa: F401
    from competition_engine.models.match import Match  # noqa: F401
    from competition_engine.models.participant import Participant  # noqa: F401
    from competition_engine.models.user import User  # noqa: F401

    SQLModel.metadata.create_all(engine)
