from __future__ import annotations

from contextlib import contextmanager

from sqlalchemy.orm import Session

from app.markeng.db import build_engine, make_sessionmaker


@contextmanager
def script_session(db_url: str):
    """Commit-or-rollback session for one-off scripts, on its own engine."""
    engine = build_engine(db_url)
    s: Session = make_sessionmaker(engine)()
    try:
        yield s
        s.commit()
    except Exception:
        s.rollback()
        raise
    finally:
        s.close()
        engine.dispose()
