"""
questline.database.engine — Database Connection & Async Helper
===============================================================

The client and API run on an ``asyncio`` event loop while SQLAlchemy is
used synchronously.  Calling the DB directly from a coroutine would stall
the loop (and with it every in-flight chat stream) until the query
returns, so every store call from async code goes through :func:`run_db`:

    1. A user action fires (send message, complete quest).
    2. The coroutine calls ``await run_db(some_function, engine, ...)``.
    3. ``run_db`` ships the synchronous function to a thread via
       ``asyncio.to_thread()``.
    4. The result is awaited back on the loop, which then updates the
       in-memory caches.

In-memory state is only touched on the loop, never inside the worker
thread.

Usage::

    from questline.database.engine import create_db_engine, init_db, run_db

    engine = create_db_engine()          # reads DATABASE_URL from .env
    init_db(engine)                      # CREATE TABLE IF NOT EXISTS …

    profile = await run_db(get_or_create_profile, engine, user_id)
"""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import ParamSpec, TypeVar

from sqlalchemy import Engine, create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from questline.database.models import Base
from questline.errors import PersistenceError

logger = logging.getLogger(__name__)

P = ParamSpec("P")
T = TypeVar("T")


# ---------------------------------------------------------------------------
# Engine creation
# ---------------------------------------------------------------------------
def database_url() -> str:
    """Return ``DATABASE_URL``, or raise :class:`RuntimeError` if it is unset."""
    url = os.getenv("DATABASE_URL")
    if not url:
        raise RuntimeError(
            "DATABASE_URL is not set.  "
            "Copy .env.example → .env and set a valid PostgreSQL URL."
        )
    return url


def create_db_engine() -> Engine:
    """Build a SQLAlchemy :class:`Engine` from the ``DATABASE_URL`` env var.

    Pool sizing is modest — a single user's session rarely has more than
    one store call in flight:
    * ``pool_size=5`` — five persistent connections.
    * ``max_overflow=10`` — up to 10 extra connections under load.
    * ``pool_timeout=10`` — fail after 10 s if no connection is available.
    * ``pool_recycle=3600`` — recycle connections after 1 hour.

    Raises
    ------
    RuntimeError
        If ``DATABASE_URL`` is not set.
    """
    engine = create_engine(
        database_url(),
        echo=False,        # Set True for SQL debugging
        pool_size=5,
        max_overflow=10,
        pool_pre_ping=True,
        pool_timeout=10,
        pool_recycle=3600,
    )
    logger.info("Database engine created → %s", engine.url.host)
    return engine


# ---------------------------------------------------------------------------
# Schema initialization
# ---------------------------------------------------------------------------
def init_db(engine: Engine) -> None:
    """Create all tables defined in :mod:`questline.database.models`.

    Safe to call on every startup.  In production the schema is managed by
    Alembic (``alembic upgrade head``); ``create_all`` covers dev/test.
    """
    Base.metadata.create_all(engine)
    logger.info("Database tables verified / created.")


# ---------------------------------------------------------------------------
# Session helper
# ---------------------------------------------------------------------------
@contextmanager
def get_session(engine: Engine, operation: str = "store operation") -> Iterator[Session]:
    """Yield a :class:`Session` that commits on success and rolls back on
    exception.

    SQLAlchemy failures are logged and re-raised as
    :class:`~questline.errors.PersistenceError` so callers never need to
    know which driver sits underneath.  Other exceptions pass through
    untouched (after the rollback).

    Usage::

        with get_session(engine, "create quest") as session:
            session.add(Quest(user_id="u1", title="Ship it"))
            # commit happens automatically on block exit
    """
    session = Session(engine, expire_on_commit=False)
    try:
        yield session
        session.commit()
    except SQLAlchemyError as exc:
        session.rollback()
        logger.exception("Persistence failure during %s", operation)
        raise PersistenceError(f"{operation} failed: {exc}") from exc
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


# ---------------------------------------------------------------------------
# Async bridge
# ---------------------------------------------------------------------------
async def run_db(func: Callable[P, T], *args: P.args, **kwargs: P.kwargs) -> T:
    """Run a **synchronous** database function on a background thread.

    Every store call made from a coroutine should go through this wrapper::

        quest = await run_db(quest_service.create_quest, engine, user_id, "Ship it")

    Under the hood it calls :func:`asyncio.to_thread`, which schedules
    *func* on the default ``ThreadPoolExecutor`` so the event loop is never
    blocked.
    """
    return await asyncio.to_thread(func, *args, **kwargs)
