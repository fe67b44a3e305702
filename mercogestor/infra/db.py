# mercogestor/infra/db.py
"""
Conexão SQLite do document store.
"""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from typing import Iterator

# CLI e API podem abrir o mesmo arquivo ao mesmo tempo
BUSY_TIMEOUT_S = 5.0


@contextmanager
def connect(db_path: str, immediate: bool = False) -> Iterator[sqlite3.Connection]:
    """
    Uma conexão = uma transação. Commit na saída do bloco, rollback em
    qualquer exceção. Linhas vêm como ``sqlite3.Row``.

    ``immediate=True`` reserva a escrita já no início (``BEGIN IMMEDIATE``),
    para que um batch leia e grave sem outro escritor no meio.
    """
    conn = sqlite3.connect(db_path, timeout=BUSY_TIMEOUT_S)
    conn.row_factory = sqlite3.Row
    try:
        if immediate:
            conn.execute("BEGIN IMMEDIATE")
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()
