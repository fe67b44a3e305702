# mercogestor/usecases/backup.py
"""
UC: backup completo de PRODUTOS e MOVIMENTOS em JSON.

- exportar: carrega um ``Snapshot`` do store e grava ``to_payload()``
  (``{version, savedAtISO, products, movements}``).
- importar: lê o JSON, reconstrói o snapshot e substitui as duas coleções
  numa única transação. Movimentos sem produto no arquivo, ou com tipo
  inválido, são descartados.

Categorias e usuários não fazem parte do backup.
"""
from __future__ import annotations

import json
from datetime import date
from pathlib import Path
from typing import Any, Dict, Optional

from mercogestor.domain.errors import InvalidInput
from mercogestor.domain.snapshot import Snapshot
from mercogestor.infra.logger import log_file_operation, log_system_event
from mercogestor.infra.repositories import DocumentStore
from mercogestor.usecases.relatorios import carregar_snapshot

MSG_ARQUIVO_INVALIDO = "Arquivo de backup inválido."


def nome_padrao(dia: Optional[date] = None) -> str:
    return f"mercadinho-backup-{(dia or date.today()).isoformat()}.json"


def exportar_backup(store: DocumentStore, path: str) -> Dict[str, Any]:
    destino = Path(path)
    if not destino.parent.is_dir():
        raise InvalidInput(f"Diretório inexistente: {destino.parent}")
    snap = carregar_snapshot(store)
    payload = snap.to_payload()
    destino.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")
    log_file_operation(
        "backup_export", path, rows_processed=len(snap.products) + len(snap.movements)
    )
    return {
        "arquivo": path,
        "produtos": len(snap.products),
        "movimentos": len(snap.movements),
        "savedAtISO": snap.saved_at,
    }


def _ler_snapshot(path: str) -> Snapshot:
    try:
        payload = json.loads(Path(path).read_text(encoding="utf-8"))
    except FileNotFoundError:
        raise InvalidInput(f"Arquivo de backup não encontrado: {path}")
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise InvalidInput(MSG_ARQUIVO_INVALIDO)
    snap = Snapshot.from_payload(payload)
    if snap is None:
        raise InvalidInput(MSG_ARQUIVO_INVALIDO)
    return snap


def _sem_orfaos(snap: Snapshot) -> Snapshot:
    # produto sem id leva junto os movimentos sem produto
    snap = snap.sem_produto("").sem_movimento("")
    ids = {p.id for p in snap.products}
    for m in snap.movements:
        if m.product_id not in ids or m.tipo not in ("in", "out"):
            snap = snap.sem_movimento(m.id)
    return snap


def importar_backup(store: DocumentStore, path: str) -> Dict[str, Any]:
    """
    Substitui produtos e movimentos pelo conteúdo do backup.

    Tudo ou nada: um arquivo inválido não altera o store.

    Returns:
        contagens importadas, movimentos descartados e ``savedAtISO``
        do arquivo.
    """
    log_system_event("importar_backup_start", {"file_path": path})
    try:
        lido = _ler_snapshot(path)
    except InvalidInput as e:
        log_system_event("importar_backup_error", {"file_path": path, "error": e.message}, level="error")
        raise
    snap = _sem_orfaos(lido)
    descartados = len(lido.movements) - len(snap.movements)

    produtos = store.collection("produtos").all()
    movimentos = store.collection("movimentos").all()
    total = len(produtos) + len(movimentos) + len(snap.products) + len(snap.movements)
    batch = store.batch(limit=total)
    for d in movimentos:
        batch.delete("movimentos", d.id)
    for d in produtos:
        batch.delete("produtos", d.id)
    for p in snap.products:
        batch.set("produtos", p.id, p.to_dados())
    # ordem de inserção = ordem do arquivo
    for m in snap.movements:
        batch.set("movimentos", m.id, m.normalizado().to_dados())
    batch.commit()

    result = {
        "produtos": len(snap.products),
        "movimentos": len(snap.movements),
        "descartados": descartados,
        "savedAtISO": lido.saved_at,
    }
    log_file_operation("backup_import", path, rows_processed=len(snap.products) + len(snap.movements))
    if descartados:
        log_system_event("importar_backup_orfaos", {"file_path": path, "descartados": descartados}, level="warning")
    log_system_event("importar_backup_success", {"file_path": path, **result})
    return result
