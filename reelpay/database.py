from contextlib import contextmanager
from typing import Iterator
import os

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, DeclarativeBase, Session

# Allow overriding database via environment.
# Default remains a lightweight local sqlite DB for development.
SQLALCHEMY_DATABASE_URL = os.getenv("DATABASE_URL", "sqlite+pysqlite:///./reelpay.db")

_engine_kwargs: dict = {}
if SQLALCHEMY_DATABASE_URL.startswith("sqlite"):
	# SQLite serialises writers with a database lock; FOR UPDATE is not emitted.
	_engine_kwargs["connect_args"] = {"check_same_thread": False}
else:
	_isolation = os.getenv("DB_ISOLATION_LEVEL")
	if _isolation:
		_engine_kwargs["isolation_level"] = _isolation

engine = create_engine(SQLALCHEMY_DATABASE_URL, **_engine_kwargs)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

class Base(DeclarativeBase):
	pass


@contextmanager
def atomic(session: Session) -> Iterator[Session]:
	"""Run one unit of work on ``session``.

	Commits when the block exits normally; any exception rolls back every
	write made inside the block and is re-raised unchanged.
	"""
	try:
		yield session
		session.commit()
	except Exception:
		session.rollback()
		raise
