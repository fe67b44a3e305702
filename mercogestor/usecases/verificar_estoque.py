# mercogestor/usecases/verificar_estoque.py
"""
Caso de uso: verificar estoque (visão geral do painel).

Fluxo:
1) Carrega produtos e movimentos do store num ``Snapshot``.
2) Calcula os indicadores do painel (produtos, estoque total, baixo
   estoque e perto do vencimento).
3) Acrescenta os totais do livro (entradas, saídas, saldo) e a situação
   de cada produto, ordenada por criticidade.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Dict, Union

from mercogestor.config import DEFAULTS
from mercogestor.domain.alertas import painel
from mercogestor.domain.formulas import totais
from mercogestor.domain.policies import STATUS_BAIXO, STATUS_ESGOTADO, status_estoque
from mercogestor.infra.logger import log_system_event
from mercogestor.infra.repositories import DocumentStore
from mercogestor.usecases.relatorios import carregar_snapshot


def run_verificar(
    store: DocumentStore,
    janela_dias: Any = None,
    referencia: Union[date, datetime, None] = None,
) -> Dict[str, Any]:
    janela = DEFAULTS.janela_validade_dias if janela_dias is None else janela_dias
    snap = carregar_snapshot(store)

    resumo = painel(snap.products, snap.movements, janela, referencia)
    resumo["totais"] = totais(snap.movements)

    produtos = []
    for p in snap.products:
        estoque = snap.estoque_de(p.id)
        produtos.append({
            "id": p.id,
            "nome": p.nome,
            "unidade": p.unidade,
            "estoque": estoque,
            "minimo": p.minimo,
            "status": status_estoque(estoque, p.minimo),
        })

    # esgotados, depois baixos, depois ok
    prioridade = {STATUS_ESGOTADO: 0, STATUS_BAIXO: 1}
    produtos.sort(key=lambda r: (prioridade.get(r["status"], 2), r["estoque"]))
    resumo["produtos"] = produtos

    log_system_event("verificar_estoque", {
        "totalProdutos": resumo["totalProdutos"],
        "baixoEstoque": resumo["baixoEstoque"],
        "pertoVencimento": resumo["pertoVencimento"],
    })
    return resumo
