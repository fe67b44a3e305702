# mercogestor/usecases/relatorios.py
"""
Relatórios de estoque:
- estoque baixo / esgotado
- produtos perto do vencimento (janela de dias)
- série de entradas e saídas por dia ou mês
- produtos mais consumidos no período

Todos carregam um ``Snapshot`` do store e consultam apenas por ele.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Optional, Union

from mercogestor.config import DEFAULTS
from mercogestor.domain import alertas
from mercogestor.domain.models import Movimento, Produto
from mercogestor.domain.series import (
    FiltroMovimentos,
    SerieTemporal,
    filtrar_movimentos,
    mais_consumidos,
    serie_temporal,
)
from mercogestor.domain.snapshot import Snapshot
from mercogestor.infra.logger import log_system_event, system_logger
from mercogestor.infra.repositories import DocumentStore


# ----------------------
# util
# ----------------------

def _periodo_padrao(inicio: Optional[str], fim: Optional[str]) -> tuple[str, str]:
    # sem período: últimos ``dias_relatorio`` dias até hoje
    hoje = date.today()
    fim = fim or hoje.isoformat()
    inicio = inicio or (hoje - timedelta(days=DEFAULTS.dias_relatorio - 1)).isoformat()
    return str(inicio)[:10], str(fim)[:10]


def carregar_snapshot(store: DocumentStore) -> Snapshot:
    return Snapshot(
        products=tuple(Produto.from_doc(d) for d in store.collection("produtos").all()),
        movements=tuple(Movimento.from_doc(d) for d in store.collection("movimentos").all()),
    )


# ----------------------
# 1) Estoque baixo
# ----------------------

def relatorio_estoque_baixo(store: DocumentStore) -> List[alertas.ItemEstoqueBaixo]:
    log_system_event("relatorio_estoque_baixo_start", {"db_path": store.db_path})
    try:
        snap = carregar_snapshot(store)
        out = alertas.relatorio_estoque_baixo(snap.products, snap.movements)
    except Exception as e:
        log_system_event("relatorio_estoque_baixo_error", {"error": str(e)}, level="error")
        raise
    log_system_event("relatorio_estoque_baixo_success", {
        "produtos": len(snap.products),
        "total_resultados": len(out),
    })
    return out


# ----------------------
# 2) Validade próxima
# ----------------------

def relatorio_validade(
    store: DocumentStore,
    janela_dias: Any = None,
    referencia: Union[date, datetime, None] = None,
) -> List[alertas.ItemValidade]:
    janela = DEFAULTS.janela_validade_dias if janela_dias is None else janela_dias
    log_system_event("relatorio_validade_start", {"janela_dias": janela})
    try:
        snap = carregar_snapshot(store)
        out = alertas.relatorio_validade(snap.products, snap.movements, janela, referencia)
    except Exception as e:
        log_system_event("relatorio_validade_error", {"janela_dias": janela, "error": str(e)}, level="error")
        raise
    system_logger.info(f"REPORT_VALIDADE: {len(out)} produtos vencem em até {janela} dias")
    log_system_event("relatorio_validade_success", {"total_resultados": len(out)})
    return out


# ----------------------
# 3) Série temporal
# ----------------------

def relatorio_serie(
    store: DocumentStore,
    agrupar: str = "day",
    inicio: Optional[str] = None,
    fim: Optional[str] = None,
    tipo: Optional[str] = None,
    product_id: Optional[str] = None,
) -> SerieTemporal:
    """Entradas/saídas por período, já filtradas por tipo e produto."""
    inicio, fim = _periodo_padrao(inicio, fim)
    log_system_event("relatorio_serie_start", {
        "agrupar": agrupar, "inicio": inicio, "fim": fim, "tipo": tipo, "productId": product_id,
    })
    try:
        snap = carregar_snapshot(store)
        filtro = FiltroMovimentos(tipo=tipo, inicio=inicio, fim=fim, product_id=product_id)
        serie = serie_temporal(filtrar_movimentos(snap.movements, filtro), agrupar, inicio, fim)
    except Exception as e:
        log_system_event("relatorio_serie_error", {"agrupar": agrupar, "error": str(e)}, level="error")
        raise
    log_system_event("relatorio_serie_success", {"periodos": len(serie.chaves)})
    return serie


# ----------------------
# 4) Mais consumidos
# ----------------------

def relatorio_mais_consumidos(
    store: DocumentStore,
    inicio: Optional[str] = None,
    fim: Optional[str] = None,
    limite: Optional[int] = None,
) -> List[Dict[str, Any]]:
    """Ranking de saídas no período, com o nome do produto quando existir."""
    inicio, fim = _periodo_padrao(inicio, fim)
    limite = DEFAULTS.top_consumo if limite is None else limite
    log_system_event("relatorio_mais_consumidos_start", {"inicio": inicio, "fim": fim, "limite": limite})
    try:
        snap = carregar_snapshot(store)
        dentro = filtrar_movimentos(snap.movements, FiltroMovimentos(inicio=inicio, fim=fim))
        ranking = mais_consumidos(dentro, limite)
        for r in ranking:
            p = snap.produto(r["productId"])
            r["nome"] = p.nome if p else None
    except Exception as e:
        log_system_event("relatorio_mais_consumidos_error", {"error": str(e)}, level="error")
        raise
    log_system_event("relatorio_mais_consumidos_success", {"total_resultados": len(ranking)})
    return ranking
