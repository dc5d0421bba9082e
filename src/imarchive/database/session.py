# imarchive/src/imarchive/database/session.py

import contextlib

from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker


def make_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)


@contextlib.contextmanager
def get_session(factory: sessionmaker):
    """
    Use as:
        with get_session(factory) as session:
            ...
    """
    db: Session = factory()
    try:
        yield db
    finally:
        db.close()
