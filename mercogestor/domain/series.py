"""
Agregações de relatório sobre movimentos: filtro, séries por dia/mês e
ranking de consumo.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Any, Dict, Iterable, List, Optional, Sequence

from mercogestor.domain.errors import InvalidInput
from mercogestor.domain.formulas import compacta


AGRUPAMENTOS = ("day", "month")


@dataclass(frozen=True)
class FiltroMovimentos:
    """Todos os campos são opcionais; ``tipo='all'`` equivale a não filtrar."""
    tipo: Optional[str] = None
    inicio: Optional[str] = None     # YYYY-MM-DD, inclusivo
    fim: Optional[str] = None        # YYYY-MM-DD, inclusivo
    product_id: Optional[str] = None


@dataclass(frozen=True)
class SerieTemporal:
    chaves: List[str] = field(default_factory=list)
    rotulos: List[str] = field(default_factory=list)
    entradas: List[float] = field(default_factory=list)
    saidas: List[float] = field(default_factory=list)

    @property
    def saldos(self) -> List[float]:
        return [compacta(e - s) for e, s in zip(self.entradas, self.saidas)]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "keys": self.chaves,
            "labels": self.rotulos,
            "entries": self.entradas,
            "exits": self.saidas,
            "balance": self.saldos,
        }

    def linhas(self) -> List[Dict[str, Any]]:
        """Formato tabular (período, entradas, saídas, saldo)."""
        return [
            {"periodo": r, "entradas": e, "saidas": s, "saldo": b}
            for r, e, s, b in zip(self.rotulos, self.entradas, self.saidas, self.saldos)
        ]


def filtrar_movimentos(movimentos: Iterable, filtro: Optional[FiltroMovimentos] = None) -> List:
    """Subsequência dos movimentos que atendem ao filtro, na ordem original.

    As datas são comparadas como texto sobre os 10 primeiros caracteres
    de ``dataISO`` (``YYYY-MM-DD`` tem largura fixa).
    """
    f = filtro or FiltroMovimentos()
    out = []
    for m in movimentos:
        ymd = (m.data_iso or "")[:10]
        if f.tipo and f.tipo != "all" and m.tipo != f.tipo:
            continue
        if f.inicio and ymd < f.inicio:
            continue
        if f.fim and ymd > f.fim:
            continue
        if f.product_id and m.product_id != f.product_id:
            continue
        out.append(m)
    return out


def chave_de(data_iso: str, agrupar: str) -> str:
    return data_iso[:10] if agrupar == "day" else data_iso[:7]


def rotulo_de(chave: str, agrupar: str) -> str:
    if agrupar == "day":
        _, m, d = chave.split("-")
        return f"{d}/{m}"
    y, m = chave.split("-")
    return f"{m}/{y[2:]}"


def chaves_do_periodo(agrupar: str, inicio: str, fim: str) -> List[str]:
    """Sequência contígua de dias (ou meses) entre ``inicio`` e ``fim``, inclusivo."""
    if agrupar not in AGRUPAMENTOS:
        raise InvalidInput("Agrupamento inválido. Use 'day' ou 'month'.")
    try:
        a = date.fromisoformat(str(inicio)[:10])
        b = date.fromisoformat(str(fim)[:10])
    except ValueError:
        raise InvalidInput("Datas do período devem estar no formato YYYY-MM-DD.")

    keys: List[str] = []
    if agrupar == "day":
        d = a
        while d <= b:
            keys.append(d.isoformat())
            d += timedelta(days=1)
        return keys

    y, m = a.year, a.month
    while (y, m) <= (b.year, b.month):
        keys.append(f"{y:04d}-{m:02d}")
        m += 1
        if m > 12:
            y, m = y + 1, 1
    return keys


def serie_temporal(movimentos: Iterable, agrupar: str, inicio: str, fim: str) -> SerieTemporal:
    """Entradas e saídas somadas por dia ou mês, com zeros nos períodos vazios.

    Movimentos fora do período devem ser removidos antes (``filtrar_movimentos``);
    os que ainda assim caírem fora das chaves são ignorados.
    """
    chaves = chaves_do_periodo(agrupar, inicio, fim)
    ent: Dict[str, float] = {k: 0.0 for k in chaves}
    sai: Dict[str, float] = {k: 0.0 for k in chaves}
    for m in movimentos:
        k = chave_de(m.data_iso or "", agrupar)
        if m.tipo == "in" and k in ent:
            ent[k] += float(m.quantidade or 0.0)
        elif m.tipo == "out" and k in sai:
            sai[k] += float(m.quantidade or 0.0)
    return SerieTemporal(
        chaves=chaves,
        rotulos=[rotulo_de(k, agrupar) for k in chaves],
        entradas=[compacta(ent[k]) for k in chaves],
        saidas=[compacta(sai[k]) for k in chaves],
    )


def mais_consumidos(movimentos: Iterable, limite: int = 6) -> List[Dict[str, Any]]:
    """Ranking de saídas por produto, decrescente, truncado em ``limite``.

    Empates mantêm a ordem da primeira ocorrência do produto (sort estável).
    """
    agg: Dict[str, float] = defaultdict(float)
    for m in movimentos:
        if m.tipo != "out":
            continue
        agg[m.product_id] += float(m.quantidade or 0.0)
    ranking = sorted(agg.items(), key=lambda kv: kv[1], reverse=True)
    return [{"productId": pid, "total": compacta(q)} for pid, q in ranking[: max(0, int(limite))]]


def resumo(movimentos: Sequence, agrupar: str, inicio: str, fim: str) -> SerieTemporal:
    """Atalho: filtra pelo período e monta a série."""
    dentro = filtrar_movimentos(movimentos, FiltroMovimentos(inicio=inicio, fim=fim))
    return serie_temporal(dentro, agrupar, inicio, fim)
