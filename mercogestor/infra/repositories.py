# mercogestor/infra/repositories.py
"""
Document store sobre SQLite.

Cada coleção (categorias, produtos, movimentos, usuarios, tokens) é um
conjunto de documentos JSON identificados por um id opaco. A interface
reproduz o que as regras de negócio consomem de um banco de documentos:

- get-by-id, get-all
- consulta por igualdade em um campo, opcionalmente encadeada com uma
  faixa inclusiva em um campo textual (datas ISO)
- add com id gerado, set-at-id, update de campos, delete
- batch atômico de até N escritas

Classes:
- Documento
- Collection
- WriteBatch
- DocumentStore
"""

from __future__ import annotations

import json
import re
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from .db import connect
from .migrations import apply_migrations
from .views import create_views
from mercogestor.config import DEFAULTS
from mercogestor.infra.logger import log_database_operation


_FIELD_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


# -------------------------
# Helpers
# -------------------------

def _json_path(campo: str) -> str:
    if not _FIELD_RE.match(campo or ""):
        raise ValueError(f"campo inválido para consulta: {campo!r}")
    return f"$.{campo}"


def _novo_id() -> str:
    return uuid.uuid4().hex[:20]


def _dump(dados: Dict[str, Any]) -> str:
    return json.dumps(dados, ensure_ascii=False)


@dataclass(frozen=True)
class Documento:
    """Documento lido do store: id + dados."""
    id: str
    dados: Dict[str, Any]

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, **self.dados}


class BatchLimitExceeded(RuntimeError):
    """Batch com mais escritas do que o store aceita numa transação."""


# -------------------------
# Collection
# -------------------------

class Collection:
    def __init__(self, db_path: str, nome: str):
        self.db_path = db_path
        self.nome = nome

    def _select(self, where: str = "", params: Tuple = ()) -> List[Documento]:
        sql = "SELECT id, dados FROM documento WHERE colecao = ?"
        if where:
            sql += f" AND {where}"
        sql += " ORDER BY criado_seq, rowid"
        with connect(self.db_path) as c:
            rows = c.execute(sql, (self.nome, *params)).fetchall()
        return [Documento(r["id"], json.loads(r["dados"])) for r in rows]

    def get(self, doc_id: str) -> Optional[Documento]:
        if not doc_id:
            return None
        with connect(self.db_path) as c:
            row = c.execute(
                "SELECT id, dados FROM documento WHERE colecao = ? AND id = ?",
                (self.nome, str(doc_id)),
            ).fetchone()
        return Documento(row["id"], json.loads(row["dados"])) if row else None

    def exists(self, doc_id: str) -> bool:
        return self.get(doc_id) is not None

    def all(self) -> List[Documento]:
        docs = self._select()
        log_database_operation(self.nome, "SELECT_ALL", len(docs))
        return docs

    def where(self, campo: str, valor: Any, limit: Optional[int] = None) -> List[Documento]:
        """Consulta por igualdade exata (sensível a maiúsculas) em um campo."""
        docs = self._select("json_extract(dados, ?) = ?", (_json_path(campo), valor))
        if limit is not None:
            docs = docs[:limit]
        log_database_operation(self.nome, "QUERY", len(docs), campo=campo)
        return docs

    def where_range(
        self,
        campo: str,
        inicio: Optional[str] = None,
        fim: Optional[str] = None,
        igual: Optional[Tuple[str, Any]] = None,
    ) -> List[Documento]:
        """Faixa inclusiva em um campo textual, opcionalmente com igualdade em outro."""
        clauses: List[str] = []
        params: List[Any] = []
        if igual is not None:
            clauses.append("json_extract(dados, ?) = ?")
            params += [_json_path(igual[0]), igual[1]]
        if inicio is not None:
            clauses.append("json_extract(dados, ?) >= ?")
            params += [_json_path(campo), inicio]
        if fim is not None:
            clauses.append("json_extract(dados, ?) <= ?")
            params += [_json_path(campo), fim]
        docs = self._select(" AND ".join(clauses), tuple(params))
        log_database_operation(self.nome, "QUERY_RANGE", len(docs), campo=campo)
        return docs

    def add(self, dados: Dict[str, Any]) -> str:
        doc_id = _novo_id()
        self.set(doc_id, dados)
        return doc_id

    def set(self, doc_id: str, dados: Dict[str, Any]) -> None:
        with connect(self.db_path) as c:
            _upsert(c, self.nome, doc_id, dados)
        log_database_operation(self.nome, "SET", 1, id=doc_id)

    def update(self, doc_id: str, campos: Dict[str, Any]) -> Documento:
        """Mescla `campos` no documento existente; KeyError se não existir."""
        with connect(self.db_path, immediate=True) as c:
            atual = _merge(c, self.nome, doc_id, campos)
        log_database_operation(self.nome, "UPDATE", 1, id=doc_id, campos=sorted(campos))
        return Documento(doc_id, atual)

    def delete(self, doc_id: str) -> bool:
        with connect(self.db_path) as c:
            cur = c.execute("DELETE FROM documento WHERE colecao = ? AND id = ?", (self.nome, doc_id))
        log_database_operation(self.nome, "DELETE", cur.rowcount, id=doc_id)
        return cur.rowcount > 0


def _upsert(c, colecao: str, doc_id: str, dados: Dict[str, Any]) -> None:
    c.execute(
        """
        INSERT INTO documento (colecao, id, dados, criado_seq)
        VALUES (?, ?, ?, (SELECT COALESCE(MAX(criado_seq), 0) + 1 FROM documento))
        ON CONFLICT(colecao, id) DO UPDATE SET dados = excluded.dados
        """,
        (colecao, doc_id, _dump(dados)),
    )


def _merge(c, colecao: str, doc_id: str, campos: Dict[str, Any]) -> Dict[str, Any]:
    row = c.execute(
        "SELECT dados FROM documento WHERE colecao = ? AND id = ?", (colecao, doc_id)
    ).fetchone()
    if row is None:
        raise KeyError(f"{colecao}/{doc_id}")
    atual = json.loads(row["dados"])
    atual.update(campos)
    c.execute(
        "UPDATE documento SET dados = ? WHERE colecao = ? AND id = ?",
        (_dump(atual), colecao, doc_id),
    )
    return atual


# -------------------------
# Batch
# -------------------------

@dataclass
class WriteBatch:
    """Conjunto de escritas aplicado numa única transação SQLite."""
    db_path: str
    limit: int
    _ops: List[Tuple[str, str, str, Optional[Dict[str, Any]]]] = field(default_factory=list)

    def _push(self, op: Tuple[str, str, str, Optional[Dict[str, Any]]]) -> None:
        if len(self._ops) >= self.limit:
            raise BatchLimitExceeded(f"batch excede o limite de {self.limit} escritas")
        self._ops.append(op)

    def set(self, colecao: str, doc_id: str, dados: Dict[str, Any]) -> "WriteBatch":
        self._push(("set", colecao, doc_id, dict(dados)))
        return self

    def update(self, colecao: str, doc_id: str, campos: Dict[str, Any]) -> "WriteBatch":
        self._push(("update", colecao, doc_id, dict(campos)))
        return self

    def delete(self, colecao: str, doc_id: str) -> "WriteBatch":
        self._push(("delete", colecao, doc_id, None))
        return self

    def __len__(self) -> int:
        return len(self._ops)

    def commit(self) -> int:
        """Aplica todas as escritas ou nenhuma. Retorna o número de escritas."""
        if not self._ops:
            return 0
        with connect(self.db_path, immediate=True) as c:
            for op, colecao, doc_id, campos in self._ops:
                if op == "set":
                    _upsert(c, colecao, doc_id, campos or {})
                elif op == "update":
                    _merge(c, colecao, doc_id, campos or {})
                else:
                    c.execute("DELETE FROM documento WHERE colecao = ? AND id = ?", (colecao, doc_id))
        total = len(self._ops)
        log_database_operation("batch", "BATCH_COMMIT", total)
        self._ops = []
        return total


# -------------------------
# Store
# -------------------------

class DocumentStore:
    def __init__(self, db_path: str, migrate: bool = True):
        self.db_path = db_path
        if migrate:
            apply_migrations(db_path)
            create_views(db_path)

    def collection(self, nome: str) -> Collection:
        return Collection(self.db_path, nome)

    def batch(self, limit: Optional[int] = None) -> WriteBatch:
        return WriteBatch(self.db_path, limit or DEFAULTS.batch_limit)
