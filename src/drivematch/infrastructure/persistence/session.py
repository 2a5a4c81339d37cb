# -*- coding: utf-8 -*-
from __future__ import annotations

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

SQLITE_BUSY_TIMEOUT = 15


def make_engine(dsn: str, *, echo: bool = False) -> Engine:
    if dsn.startswith("sqlite"):
        engine = create_engine(
            dsn,
            echo=echo,
            future=True,
            connect_args={"check_same_thread": False, "timeout": SQLITE_BUSY_TIMEOUT},
        )

        @event.listens_for(engine, "connect")
        def _configure_connection(dbapi_connection, connection_record):  # pragma: no cover - driver specific
            # pysqlite must not emit its own BEGIN; transactions start in _begin_immediate.
            dbapi_connection.isolation_level = None
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        @event.listens_for(engine, "begin")
        def _begin_immediate(conn):  # pragma: no cover - driver specific
            # SQLite ignores FOR UPDATE; the reserved lock serializes writers across processes.
            conn.exec_driver_sql("BEGIN IMMEDIATE")

        return engine
    return create_engine(
        dsn,
        echo=echo,
        pool_size=20,
        max_overflow=40,
        pool_timeout=5,
        pool_recycle=1800,
        future=True,
    )


def make_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, class_=Session, expire_on_commit=False, future=True)
