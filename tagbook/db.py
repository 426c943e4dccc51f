from pathlib import Path
import os
from sqlmodel import SQLModel, Session, create_engine
from contextlib import contextmanager

DEFAULT_DB_PATH = Path.home() / ".tagbook" / "tagbook.db"

_ENGINE = None
_ENGINE_KEY = None  # (url, echo) the cached engine was built for

def db_path() -> Path:
    """TAGBOOK_DB_PATH or the per-user default; the parent dir is created."""
    path = Path(os.getenv("TAGBOOK_DB_PATH") or DEFAULT_DB_PATH).expanduser()
    path.parent.mkdir(parents=True, exist_ok=True)
    return path

def _echo() -> bool:
    return os.getenv("TAGBOOK_DB_ECHO", "").lower() in ("1", "true", "yes")

def get_engine():
    global _ENGINE, _ENGINE_KEY
    key = (f"sqlite:///{db_path()}", _echo())
    if _ENGINE is None or _ENGINE_KEY != key:
        if _ENGINE is not None:
            _ENGINE.dispose()
        # FastAPI runs sync endpoints in a threadpool
        _ENGINE = create_engine(key[0], echo=key[1], connect_args={"check_same_thread": False})
        _ENGINE_KEY = key
    return _ENGINE

def reset_engine():
    """For tests: drop the cached engine so a new TAGBOOK_DB_PATH is picked up."""
    global _ENGINE, _ENGINE_KEY
    if _ENGINE is not None:
        _ENGINE.dispose()
    _ENGINE = None
    _ENGINE_KEY = None

def init_db():
    from . import models  # noqa: F401  register tables on SQLModel.metadata
    SQLModel.metadata.create_all(get_engine())

def get_session():
    return Session(get_engine(), expire_on_commit=False)

@contextmanager
def session_scope():
    """One unit of work: commit on success, roll back on any error."""
    session = get_session()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
