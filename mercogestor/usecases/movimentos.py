# mercogestor/usecases/movimentos.py
"""
UC: registrar, consultar, atualizar e remover MOVIMENTOS (entradas e saídas).

Obs.:
- Todo movimento referencia um produto existente; trocar o produto de
  um movimento exige que o novo produto exista.
- A importação em lote lê uma planilha e registra cada linha com as
  mesmas validações do registro unitário.
"""
from __future__ import annotations

from dataclasses import replace
from typing import Any, Dict, List, Optional

from mercogestor.domain.errors import MercogestorError, NoFieldsProvided, NotFound
from mercogestor.domain.models import AtualizacaoMovimento, Movimento, NovoMovimento
from mercogestor.domain.series import FiltroMovimentos, filtrar_movimentos
from mercogestor.infra.logger import (
    log_file_operation,
    log_movimento,
    log_system_event,
    log_transaction,
)
from mercogestor.infra.repositories import DocumentStore
from mercogestor.usecases import integridade

COLECAO = "movimentos"
MSG_NAO_ENCONTRADO = "Movimento não encontrado."


def registrar_movimento(store: DocumentStore, payload: Any) -> str:
    cmd = NovoMovimento.from_payload(payload)
    try:
        integridade.garantir_produto_existe(store, cmd.product_id)
        mov = cmd.to_movimento()
        movement_id = store.collection(COLECAO).add(mov.to_dados())
    except Exception as e:
        log_transaction("registrar_movimento", {"productId": cmd.product_id}, error=str(e))
        raise
    log_movimento("insert", cmd.product_id, cmd.tipo, cmd.quantidade, id=movement_id, dataISO=cmd.data_iso)
    log_transaction("registrar_movimento", mov.to_dados(), result=movement_id)
    return movement_id


def listar_movimentos(
    store: DocumentStore,
    tipo: Optional[str] = None,
    inicio: Optional[str] = None,
    fim: Optional[str] = None,
    product_id: Optional[str] = None,
) -> List[Movimento]:
    """Lista movimentos com os filtros da API (``tipo``, ``inicio``, ``fim``).

    O período vale só quando ``inicio`` e ``fim`` vêm juntos; as datas são
    comparadas pelo dia (``YYYY-MM-DD``).
    """
    col = store.collection(COLECAO)
    por_tipo = ("tipo", tipo) if tipo and tipo != "all" else None
    periodo = bool(inicio and fim)
    if periodo:
        # "\uffff" fecha o dia final para data-hora ("2024-05-03T10:00" <= "2024-05-03\uffff")
        docs = col.where_range("dataISO", inicio[:10], fim[:10] + "\uffff", igual=por_tipo)
    elif por_tipo:
        docs = col.where(*por_tipo)
    else:
        docs = col.all()
    movimentos = [Movimento.from_doc(d) for d in docs]
    filtro = FiltroMovimentos(
        tipo=tipo,
        inicio=inicio[:10] if periodo else None,
        fim=fim[:10] if periodo else None,
        product_id=product_id,
    )
    return filtrar_movimentos(movimentos, filtro)


def obter_movimento(store: DocumentStore, movement_id: str) -> Movimento:
    doc = store.collection(COLECAO).get(movement_id)
    if doc is None:
        raise NotFound(MSG_NAO_ENCONTRADO)
    return Movimento.from_doc(doc)


def atualizar_movimento(store: DocumentStore, movement_id: str, payload: Any) -> Movimento:
    col = store.collection(COLECAO)
    doc = col.get(movement_id)
    if doc is None:
        raise NotFound(MSG_NAO_ENCONTRADO)

    cmd = AtualizacaoMovimento.from_payload(payload)
    if not cmd.campos:
        raise NoFieldsProvided()

    if cmd.product_id:
        integridade.garantir_produto_existe(store, cmd.product_id)

    # mescla e reaplica a regra validade/motivo conforme o tipo final
    atual = Movimento.from_doc(replace(doc, dados={**doc.dados, **cmd.campos}))
    campos = {**cmd.campos, **_campos_normalizados(atual)}
    doc = col.update(movement_id, campos)

    mov = Movimento.from_doc(doc)
    log_movimento("update", mov.product_id, mov.tipo, mov.quantidade, id=movement_id, campos=sorted(campos))
    log_transaction("atualizar_movimento", {"id": movement_id, **campos}, result="success")
    return mov


def _campos_normalizados(mov: Movimento) -> Dict[str, Any]:
    norm = mov.normalizado()
    out: Dict[str, Any] = {}
    if norm.motivo != mov.motivo:
        out["motivo"] = None
    if norm.validade_lote != mov.validade_lote:
        out["validadeLote"] = None
    return out


def remover_movimento(store: DocumentStore, movement_id: str) -> Movimento:
    col = store.collection(COLECAO)
    doc = col.get(movement_id)
    if doc is None:
        raise NotFound(MSG_NAO_ENCONTRADO)
    col.delete(movement_id)
    mov = Movimento.from_doc(doc)
    log_movimento("delete", mov.product_id, mov.tipo, mov.quantidade, id=movement_id)
    log_transaction("remover_movimento", {"id": movement_id}, result="success")
    return mov


def importar_movimentos(store: DocumentStore, path: str) -> Dict[str, Any]:
    """Lê uma planilha (CSV/XLSX) de movimentos e registra linha a linha.

    Linhas inválidas não interrompem a importação; voltam em ``erros``
    com o número da linha (1 = primeira linha de dados).
    """
    from mercogestor.adapters.planilhas import load_movimentos

    log_system_event("importar_movimentos_start", {"file_path": path})
    rows = load_movimentos(path)
    log_file_operation("import", path, rows_processed=len(rows))

    ids: List[str] = []
    erros: List[Dict[str, Any]] = []
    for i, row in enumerate(rows, start=1):
        try:
            ids.append(registrar_movimento(store, row))
        except MercogestorError as e:
            erros.append({"linha": i, "mensagem": e.message})

    result = {"tipo": "Movimentos", "total": len(rows), "sucessos": len(ids), "erros": erros, "registros": ids}
    log_system_event("importar_movimentos_success", {"file_path": path, "sucessos": len(ids), "erros": len(erros)})
    return result
