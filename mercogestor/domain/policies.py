"""
Políticas de classificação e permissão do gestor de estoque.

Este módulo contém funções que encapsulam regras de negócio de
classificação de status de estoque, contagem de dias até o vencimento
e autorização de alterações em usuários. São utilizadas pelo motor de
alertas e pelos casos de uso.
"""

from __future__ import annotations

import math
from datetime import date, datetime
from typing import Any, Optional, Union

from mercogestor.domain.formulas import to_datetime


STATUS_ESGOTADO = "empty"
STATUS_BAIXO = "low"
STATUS_OK = "ok"

_UM_DIA = 24 * 60 * 60


def status_estoque(estoque: float, minimo: Optional[float]) -> str:
    """Classifica o estoque de um produto.

    Regras:
        - ``estoque <= 0`` → ``'empty'``
        - ``0 < estoque <= minimo`` → ``'low'``
        - caso contrário → ``'ok'``

    ``minimo`` ausente conta como 0.
    """
    m = float(minimo or 0.0)
    if estoque <= 0:
        return STATUS_ESGOTADO
    if estoque <= m:
        return STATUS_BAIXO
    return STATUS_OK


def normaliza_janela_dias(valor: Any) -> int:
    """Janela de dias para alertas de validade.

    Valores não numéricos ou não positivos viram 1; frações são
    truncadas para baixo ("7.9" → 7).
    """
    if isinstance(valor, bool):
        return 1
    try:
        n = float(str(valor).strip().replace(",", ".")) if isinstance(valor, str) else float(valor)
    except (TypeError, ValueError):
        return 1
    if math.isnan(n) or math.isinf(n) or n <= 0:
        return 1
    return max(1, math.floor(n))


def dias_ate(data: Union[date, datetime], referencia: Union[date, datetime]) -> int:
    """Dias de calendário entre ``referencia`` (início do dia) e ``data``.

    A fração de dia é arredondada para cima: com referência hoje, uma
    validade amanhã às 10h está a 2 dias e amanhã à 00h a 1 dia.
    """
    ref = to_datetime(referencia)
    ref = datetime(ref.year, ref.month, ref.day)
    alvo = to_datetime(data)
    return math.ceil((alvo - ref).total_seconds() / _UM_DIA)


def pode_alterar_usuario(uid: str, alvo_id: str, papel_ator: Optional[str]) -> bool:
    """Usuário só altera/remove a si mesmo, exceto administradores."""
    return bool(uid) and (uid == alvo_id or papel_ator == "admin")
