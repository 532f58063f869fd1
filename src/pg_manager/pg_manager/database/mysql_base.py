from __future__ import annotations

import json
from contextlib import contextmanager
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple

from .connection import DatabaseConnection


@dataclass(frozen=True)
class Transaction:
    """An open connection/cursor pair shared by several repository calls."""

    conn: Any
    cur: Any


@contextmanager
def transaction(conn_factory: DatabaseConnection) -> Iterator[Transaction]:
    conn = conn_factory.connect()
    try:
        conn.start_transaction()
        cur = conn.cursor(dictionary=True)
        try:
            yield Transaction(conn=conn, cur=cur)
            conn.commit()
        finally:
            cur.close()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


@contextmanager
def db_cursor(conn_factory: DatabaseConnection, *, dictionary: bool = True, tx: Optional[Transaction] = None):
    # Inside a transaction the caller owns commit/rollback.
    if tx is not None:
        yield tx.conn, tx.cur
        return

    conn = conn_factory.connect()
    try:
        cur = conn.cursor(dictionary=dictionary)
        try:
            yield conn, cur
            conn.commit()
        finally:
            cur.close()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def fetchone(cur) -> Optional[Dict[str, Any]]:
    row = cur.fetchone()
    return row if row else None


def fetchall(cur) -> List[Dict[str, Any]]:
    rows = cur.fetchall()
    return list(rows or [])


def where_clause(clauses: Sequence[str]) -> str:
    return " AND ".join(clauses) if clauses else "1=1"


def in_params(values: Sequence[Any]) -> Tuple[str, tuple]:
    """Placeholders for an IN (...) list; an empty list matches nothing."""
    if not values:
        return "(NULL)", ()
    return "(" + ",".join(["%s"] * len(values)) + ")", tuple(values)


def to_float(value: Any) -> float:
    if value is None:
        return 0.0
    if isinstance(value, Decimal):
        return float(value)
    return float(value)


def json_column(value: Any) -> Any:
    if value is None:
        return None
    if isinstance(value, (bytes, bytearray)):
        value = value.decode("utf-8")
    if isinstance(value, str):
        return json.loads(value)
    return value
