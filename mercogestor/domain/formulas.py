"""
Fórmulas de derivação de estoque a partir do livro de movimentos.

O estoque nunca é armazenado: é sempre recalculado a partir dos
movimentos. Cada movimento contribui com um delta assinado
(``+quantidade`` para ``in``, ``-quantidade`` para ``out``) e o estoque
de um produto é a soma desses deltas.

All functions are pure: they depend solely on their inputs and do not
modify any external state, so they can be called concurrently and
tested in isolation.
"""

from __future__ import annotations

import math
from datetime import date, datetime, timezone
from typing import Iterable, Optional, Union

Numero = Union[int, float]


def compacta(x: float) -> Numero:
    """Devolve ``int`` quando o valor é inteiro (22.0 → 22)."""
    x = float(x)
    return int(x) if x.is_integer() else x


def to_datetime(valor: Union[str, date, datetime, None]) -> Optional[datetime]:
    """Converte data/data-hora ISO em ``datetime`` ingênuo (UTC).

    Aceita ``YYYY-MM-DD``, data-hora com ou sem fuso e o sufixo ``Z``.
    Retorna ``None`` para valores vazios ou ilegíveis.
    """
    if valor is None:
        return None
    if isinstance(valor, datetime):
        dt = valor
    elif isinstance(valor, date):
        return datetime(valor.year, valor.month, valor.day)
    else:
        s = str(valor).strip()
        if not s:
            return None
        if s.endswith(("Z", "z")):
            s = s[:-1] + "+00:00"
        try:
            dt = datetime.fromisoformat(s)
        except ValueError:
            return None
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt


def delta(movimento) -> float:
    """Efeito assinado de um movimento sobre o estoque."""
    qtd = float(movimento.quantidade or 0.0)
    if movimento.tipo == "in":
        return qtd
    if movimento.tipo == "out":
        return -qtd
    return 0.0


def estoque_de(product_id: str, movimentos: Iterable) -> Numero:
    """Estoque atual de um produto: soma dos deltas dos seus movimentos.

    Sem movimentos (ou produto desconhecido) o resultado é 0. O valor
    pode ser negativo quando o livro está inconsistente; isso não é
    bloqueado na escrita.
    """
    # math.fsum mantém a soma independente da ordem dos movimentos
    return compacta(math.fsum(delta(m) for m in movimentos if m.product_id == product_id))


def validade_mais_proxima(
    product_id: str,
    movimentos: Iterable,
    referencia: Union[date, datetime, None] = None,
) -> Optional[datetime]:
    """Menor validade de lote ainda não vencida para o produto.

    Considera apenas entradas com ``validade_lote`` legível e
    ``validade >= referencia``. Sem candidatos retorna ``None``.
    ``referencia`` padrão: início do dia de hoje.
    """
    ref = to_datetime(referencia if referencia is not None else date.today())
    menor: Optional[datetime] = None
    for m in movimentos:
        if m.product_id != product_id or m.tipo != "in" or not m.validade_lote:
            continue
        validade = to_datetime(m.validade_lote)
        if validade is None or validade < ref:
            continue
        if menor is None or validade < menor:
            menor = validade
    return menor


def totais(movimentos: Iterable) -> dict:
    """KPIs de um conjunto de movimentos: entradas, saídas, saldo e contagem."""
    entradas = 0.0
    saidas = 0.0
    n = 0
    for m in movimentos:
        n += 1
        if m.tipo == "in":
            entradas += float(m.quantidade or 0.0)
        elif m.tipo == "out":
            saidas += float(m.quantidade or 0.0)
    return {
        "entradas": compacta(entradas),
        "saidas": compacta(saidas),
        "saldo": compacta(entradas - saidas),
        "movimentos": n,
    }
