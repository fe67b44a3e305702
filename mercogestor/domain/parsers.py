# mercogestor/domain/parsers.py
"""
Coerção de valores recebidos na fronteira (HTTP, CLI, planilhas).

Os corpos de requisição chegam como dicionários soltos; este módulo
converte os campos em valores tipados antes de montar os comandos do
domínio. A política para números é explícita:

- campo numérico obrigatório ausente ou inválido → ``InvalidInput``;
- campo numérico opcional inválido → tratado como ausente.

``parse_numero`` distingue os dois casos ("ausente" x "inválido") para
que cada chamador aplique a política adequada.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Mapping, Optional

from mercogestor.domain.errors import InvalidInput
from mercogestor.domain.formulas import to_datetime


@dataclass(frozen=True)
class NumeroParse:
    valor: Optional[float]
    presente: bool
    valido: bool


def parse_numero(valor: Any) -> NumeroParse:
    """Interpreta um número vindo de JSON ou texto.

    Aceita int/float e strings com ponto ou vírgula decimal
    ("5", "5.5", "5,5"). ``None`` e string vazia contam como ausentes.
    Booleanos, NaN e infinitos são inválidos.

    Exemplos:
        "12"   → NumeroParse(12.0, True, True)
        "1,5"  → NumeroParse(1.5, True, True)
        "abc"  → NumeroParse(None, True, False)
        None   → NumeroParse(None, False, False)
    """
    if valor is None:
        return NumeroParse(None, False, False)
    if isinstance(valor, bool):
        return NumeroParse(None, True, False)
    if isinstance(valor, (int, float)):
        num = float(valor)
    else:
        s = str(valor).strip()
        if not s:
            return NumeroParse(None, False, False)
        try:
            num = float(s.replace(",", "."))
        except ValueError:
            return NumeroParse(None, True, False)
    if math.isnan(num) or math.isinf(num):
        return NumeroParse(None, True, False)
    return NumeroParse(num, True, True)


def numero_obrigatorio(payload: Mapping[str, Any], campo: str, mensagem: Optional[str] = None) -> float:
    p = parse_numero(payload.get(campo))
    if not p.valido:
        raise InvalidInput(mensagem or f"O campo '{campo}' deve ser numérico.")
    return p.valor  # type: ignore[return-value]


def numero_opcional(payload: Mapping[str, Any], campo: str) -> Optional[float]:
    # inválido vira ausente (tolerância a preenchimento parcial)
    return parse_numero(payload.get(campo)).valor


def normalize_str(x: Any) -> Optional[str]:
    if x is None:
        return None
    s = str(x).strip()
    return s or None


def data_iso(valor: Any, campo: str) -> str:
    """Valida uma data/data-hora ISO-8601 e devolve o texto original (sem espaços)."""
    s = normalize_str(valor)
    if s is None or to_datetime(s) is None:
        raise InvalidInput(f"O campo '{campo}' deve ser uma data ISO-8601.")
    return s


def parse_data(valor: Any) -> Optional[datetime]:
    s = normalize_str(valor)
    return to_datetime(s) if s else None
