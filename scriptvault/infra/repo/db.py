"""DB utilities for SQLAlchemy sessions/engine.

Uses `DATABASE_URL` or falls back to `sqlite+pysqlite:///:memory:` for tests. An in-memory SQLite
database lives in a single shared connection (`StaticPool`) so that every session sees the same data.
"""

from __future__ import annotations

import os
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from typing import Any

from sqlalchemy import create_engine
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool


def get_engine(url: str | None = None, echo: bool = False) -> Engine:
    """Crée un moteur SQLAlchemy à partir de l'URL de base de données."""
    db_url = url or os.getenv("DATABASE_URL") or "sqlite+pysqlite:///:memory:"
    kwargs: dict[str, Any] = {}
    if db_url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        if ":memory:" in db_url or db_url.rstrip("/").endswith("sqlite+pysqlite:"):
            kwargs["poolclass"] = StaticPool
    return create_engine(db_url, future=True, echo=echo, **kwargs)


def get_session_factory(engine: Engine) -> sessionmaker:
    """Crée une factory de sessions SQLAlchemy."""
    return sessionmaker(bind=engine, class_=Session, expire_on_commit=False)


@contextmanager
def session_scope(factory: sessionmaker) -> Iterator[Session]:
    """Contexte de session SQLAlchemy avec gestion automatique des transactions.

    Commit en sortie normale, rollback puis propagation en cas d'exception.
    """
    session = factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def insert_ignore(
    session: Session, model: Any, values: dict[str, Any], conflict_cols: Sequence[str]
) -> bool:
    """`INSERT ... ON CONFLICT DO NOTHING` portable SQLite/PostgreSQL.

    Retourne True si une ligne a été insérée, False si la contrainte d'unicité sur
    `conflict_cols` existait déjà.
    """
    dialect = session.get_bind().dialect.name
    if dialect == "postgresql":
        stmt = pg_insert(model).values(**values).on_conflict_do_nothing(
            index_elements=list(conflict_cols)
        )
    elif dialect == "sqlite":
        stmt = sqlite_insert(model).values(**values).on_conflict_do_nothing(
            index_elements=list(conflict_cols)
        )
    else:
        raise NotImplementedError(f"insert_ignore unsupported for dialect {dialect}")
    result = session.execute(stmt)
    return bool(result.rowcount)
