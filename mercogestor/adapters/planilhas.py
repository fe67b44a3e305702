# mercogestor/adapters/planilhas.py
"""
Planilhas de MOVIMENTOS (CSV/XLSX) e exportação de relatórios em CSV.

Essas funções:
- leem planilhas usando pandas;
- normalizam cabeçalhos (acentos, variações, sinônimos);
- retornam dicionários no formato do corpo da API de movimentos
  (``productId``, ``tipo``, ``quantidade``, ``dataISO``...).

Observações:
- Não validam regras de negócio: cada linha passa depois pelo mesmo
  caminho do registro unitário (``registrar_movimento``).
- ``quantidade`` e ``precoUnitario`` seguem como texto; a conversão
  (inclusive vírgula decimal) fica com ``parsers.parse_numero``.
- Datas em ``DD/MM/AAAA`` são convertidas para ISO; datas já em ISO são
  preservadas como vieram.
"""

from __future__ import annotations

import re
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

import pandas as pd

from mercogestor.domain.errors import InvalidInput
from mercogestor.domain.formulas import to_datetime
from mercogestor.infra.logger import log_file_operation


# ---------------------------
# utilitários de normalização
# ---------------------------

def _slug(s: str) -> str:
    """Normaliza cabeçalhos: minúsculas, sem acentos, sem não-alfanumérico."""
    if s is None:
        return ""
    s = str(s).strip().lower()
    acentos = dict(zip("áàâãäéèêëíìîïóòôõöúùûüç", "aaaaaeeeeiiiiooooouuuuc"))
    s = "".join(acentos.get(ch, ch) for ch in s)
    s = re.sub(r"[^a-z0-9]+", " ", s)
    s = re.sub(r"\s+", " ", s).strip()
    return s


def _safe_get(row, key):
    val = row.get(key)
    if val is None or pd.isna(val):
        return None
    val = str(val).strip()
    return val or None


_ALIASES = {
    "productid": "productId",
    "product id": "productId",
    "produto": "productId",
    "produto id": "productId",
    "id produto": "productId",
    "codigo": "productId",

    "tipo": "tipo",
    "tipo movimento": "tipo",

    "quantidade": "quantidade",
    "qtde": "quantidade",
    "qtd": "quantidade",

    "data": "dataISO",
    "dataiso": "dataISO",
    "data movimento": "dataISO",

    "validade": "validadeLote",
    "validadelote": "validadeLote",
    "validade lote": "validadeLote",
    "data validade": "validadeLote",

    "preco": "precoUnitario",
    "precounitario": "precoUnitario",
    "preco unitario": "precoUnitario",
    "valor unitario": "precoUnitario",

    "motivo": "motivo",
}

_TIPOS = {
    "in": "in",
    "entrada": "in",
    "e": "in",
    "out": "out",
    "saida": "out",
    "s": "out",
}

_MOTIVOS = {
    "venda": "sale",
    "consumo": "consumption",
    "perda": "waste",
    "descarte": "waste",
    "ajuste": "adjust",
}


def _normalize_columns(df: pd.DataFrame) -> pd.DataFrame:
    """Renomeia colunas com base em sinônimos/variações."""
    new_cols = {}
    for col in df.columns:
        key = _slug(col)
        new_cols[col] = _ALIASES.get(key, key)
    return df.rename(columns=new_cols)


def _to_data_iso(val: Optional[str]) -> Optional[str]:
    """ISO é mantido; ``DD/MM/AAAA`` (e variações) vira ``YYYY-MM-DD``."""
    if val is None:
        return None
    if to_datetime(val) is not None:
        return val
    for fmt in ("%d/%m/%Y", "%d-%m-%Y", "%d/%m/%y", "%d/%m/%Y %H:%M", "%d/%m/%Y %H:%M:%S"):
        try:
            return datetime.strptime(val, fmt).date().isoformat()
        except ValueError:
            continue
    d = pd.to_datetime(val, dayfirst=True, errors="coerce")
    if pd.isna(d):
        # segue inválido para que a validação acuse a linha
        return val
    return d.date().isoformat()


def _tipo(val: Optional[str]) -> Optional[str]:
    if val is None:
        return None
    return _TIPOS.get(_slug(val), val)


def _motivo(val: Optional[str]) -> Optional[str]:
    if val is None:
        return None
    return _MOTIVOS.get(_slug(val), val)


def _read(path: str) -> pd.DataFrame:
    ext = Path(path).suffix.lower()
    if not Path(path).is_file():
        raise InvalidInput(f"Planilha não encontrada: {path}")
    if ext in (".xlsx", ".xls"):
        return pd.read_excel(path, dtype="string")
    if ext == ".csv":
        # separador detectado (vírgula ou ponto e vírgula)
        return pd.read_csv(path, dtype="string", sep=None, engine="python")
    raise InvalidInput(f"Formato de planilha não suportado: {ext or path}")


# ---------------------------
# API pública
# ---------------------------

def load_movimentos(path: str) -> List[Dict[str, Any]]:
    """Lê CSV/XLSX de movimentos e retorna um dict por linha.

    Chaves (ausentes quando a célula está vazia):
      - productId, tipo (``in``/``out``), quantidade (texto)
      - dataISO (ISO), validadeLote (ISO), precoUnitario (texto)
      - motivo (``sale``/``consumption``/``waste``/``adjust``)
    """
    df = _normalize_columns(_read(path))
    out: List[Dict[str, Any]] = []
    for _, row in df.iterrows():
        rec = {
            "productId": _safe_get(row, "productId"),
            "tipo": _tipo(_safe_get(row, "tipo")),
            "quantidade": _safe_get(row, "quantidade"),
            "dataISO": _to_data_iso(_safe_get(row, "dataISO")),
            "validadeLote": _to_data_iso(_safe_get(row, "validadeLote")),
            "precoUnitario": _safe_get(row, "precoUnitario"),
            "motivo": _motivo(_safe_get(row, "motivo")),
        }
        out.append({k: v for k, v in rec.items() if v is not None})
    log_file_operation("load_movimentos", path, rows_processed=len(out))
    return out


def export_csv(rows: Iterable[Dict[str, Any]], path: str, columns: Optional[List[str]] = None) -> int:
    """Grava linhas (lista de dicts) em CSV UTF-8. Retorna a quantidade gravada."""
    df = pd.DataFrame(list(rows), columns=columns)
    df.to_csv(path, index=False, encoding="utf-8")
    log_file_operation("export_csv", path, rows_processed=len(df))
    return len(df)
