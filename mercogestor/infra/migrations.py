# mercogestor/infra/migrations.py
"""
Migrações de schema usando PRAGMA user_version.

V1: tabela única de documentos (coleção, id, JSON)
V2: coluna de ordem de inserção para leituras estáveis
"""

from __future__ import annotations

from typing import List
from .db import connect


SCHEMA_V1: List[str] = [
    # Documentos de todas as coleções (categorias, produtos, movimentos, usuarios, tokens)
    """
    CREATE TABLE IF NOT EXISTS documento (
        colecao TEXT NOT NULL,
        id TEXT NOT NULL,
        dados TEXT NOT NULL CHECK (json_valid(dados)),
        PRIMARY KEY (colecao, id)
    );
    """,
]


def _ensure_column(conn, table: str, column: str, ddl: str) -> None:
    """Adiciona coluna se não existir."""
    cur = conn.execute(f"PRAGMA table_info({table});")
    cols = [r[1] for r in cur.fetchall()]  # r[1] é o nome da coluna
    if column not in cols:
        conn.execute(f"ALTER TABLE {table} ADD COLUMN {ddl};")


def _apply_v1(conn) -> None:
    for sql in SCHEMA_V1:
        conn.executescript(sql)


def _apply_v2(conn) -> None:
    # documento.criado_seq: ordem de inserção (set-at-id preserva o valor original)
    _ensure_column(conn, "documento", "criado_seq", "criado_seq INTEGER")
    conn.execute("UPDATE documento SET criado_seq = rowid WHERE criado_seq IS NULL;")


def apply_migrations(db_path: str) -> None:
    """Aplica migrações incrementais de acordo com PRAGMA user_version."""
    with connect(db_path) as conn:
        ver = conn.execute("PRAGMA user_version;").fetchone()[0] or 0

        if ver < 1:
            _apply_v1(conn)
            conn.execute("PRAGMA user_version = 1;")
            ver = 1

        if ver < 2:
            _apply_v2(conn)
            conn.execute("PRAGMA user_version = 2;")
            ver = 2
