"""
Motor de alertas: estoque baixo/esgotado e validade próxima.

Recebe produtos e movimentos já carregados e classifica cada produto a
partir do estoque derivado (``formulas.estoque_de``) e da validade de
lote mais próxima (``formulas.validade_mais_proxima``).
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Sequence, Union

from mercogestor.domain.formulas import compacta, estoque_de, validade_mais_proxima
from mercogestor.domain.policies import (
    STATUS_ESGOTADO,
    STATUS_OK,
    dias_ate,
    normaliza_janela_dias,
    status_estoque,
)


@dataclass(frozen=True)
class ItemEstoqueBaixo:
    produto: Any
    estoque: float
    minimo: float
    falta: float
    status: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "produto": self.produto.to_dict(),
            "estoque": self.estoque,
            "minimo": self.minimo,
            "falta": self.falta,
            "status": self.status,
        }


@dataclass(frozen=True)
class ItemValidade:
    produto: Any
    validade: datetime
    dias: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "produto": self.produto.to_dict(),
            "validade": self.validade.date().isoformat(),
            "dias": self.dias,
        }


def relatorio_estoque_baixo(produtos: Iterable, movimentos: Sequence) -> List[ItemEstoqueBaixo]:
    """Produtos esgotados ou abaixo do mínimo.

    Produtos ``ok`` ficam de fora. Ordenação: esgotados antes dos baixos
    e, dentro de cada grupo, menor estoque primeiro.
    """
    out: List[ItemEstoqueBaixo] = []
    for p in produtos:
        estoque = estoque_de(p.id, movimentos)
        minimo = compacta(p.minimo or 0.0)
        status = status_estoque(estoque, minimo)
        if status == STATUS_OK:
            continue
        out.append(
            ItemEstoqueBaixo(
                produto=p,
                estoque=estoque,
                minimo=minimo,
                falta=compacta(max(0.0, minimo - estoque)),
                status=status,
            )
        )
    out.sort(key=lambda i: (0 if i.status == STATUS_ESGOTADO else 1, i.estoque))
    return out


def relatorio_validade(
    produtos: Iterable,
    movimentos: Sequence,
    janela_dias: Any = 10,
    referencia: Union[date, datetime, None] = None,
) -> List[ItemValidade]:
    """Produtos cuja validade de lote mais próxima vence em até ``janela_dias``.

    Entram apenas produtos com ``0 <= dias <= janela``; ordenação por
    dias crescente. ``janela_dias`` inválido vira 1.
    """
    janela = normaliza_janela_dias(janela_dias)
    ref = referencia if referencia is not None else date.today()
    out: List[ItemValidade] = []
    for p in produtos:
        validade = validade_mais_proxima(p.id, movimentos, ref)
        if validade is None:
            continue
        dias = dias_ate(validade, ref)
        if 0 <= dias <= janela:
            out.append(ItemValidade(produto=p, validade=validade, dias=dias))
    out.sort(key=lambda i: i.dias)
    return out


def painel(
    produtos: Sequence,
    movimentos: Sequence,
    janela_dias: Any = 10,
    referencia: Union[date, datetime, None] = None,
) -> Dict[str, Any]:
    """Indicadores do dashboard: produtos, estoque total, baixo estoque, perto do vencimento."""
    total_estoque = 0.0
    baixo = 0
    for p in produtos:
        estoque = estoque_de(p.id, movimentos)
        total_estoque += estoque
        # no dashboard "baixo" inclui o estoque igual ao mínimo e os esgotados
        if estoque <= float(p.minimo or 0.0):
            baixo += 1
    return {
        "totalProdutos": len(produtos),
        "totalEstoque": compacta(total_estoque),
        "baixoEstoque": baixo,
        "pertoVencimento": len(relatorio_validade(produtos, movimentos, janela_dias, referencia)),
    }
