import math
from pathlib import Path

import pytest

from mercogestor.domain.parsers import (
    data_iso,
    normalize_str,
    numero_obrigatorio,
    numero_opcional,
    parse_data,
    parse_numero,
)
from mercogestor.domain.errors import InvalidInput


@pytest.mark.parametrize(
    "entrada,valor,presente,valido",
    [
        (12, 12.0, True, True),
        ("12", 12.0, True, True),
        ("1,5", 1.5, True, True),
        (" 2.25 ", 2.25, True, True),
        ("abc", None, True, False),
        (True, None, True, False),
        (math.nan, None, True, False),
        ("inf", None, True, False),
        (None, None, False, False),
        ("", None, False, False),
    ],
)
def test_parse_numero(entrada, valor, presente, valido):
    p = parse_numero(entrada)
    assert (p.valor, p.presente, p.valido) == (valor, presente, valido)


def test_numero_obrigatorio_falha_quando_ausente_ou_invalido():
    assert numero_obrigatorio({"minimo": "0"}, "minimo") == 0.0
    with pytest.raises(InvalidInput):
        numero_obrigatorio({}, "minimo")
    with pytest.raises(InvalidInput, match="quantidade"):
        numero_obrigatorio({"quantidade": "dez"}, "quantidade")


def test_numero_opcional_invalido_vira_ausente():
    assert numero_opcional({"preco": "9,90"}, "preco") == 9.9
    assert numero_opcional({"preco": "grátis"}, "preco") is None
    assert numero_opcional({}, "preco") is None


def test_normalize_str():
    assert normalize_str("  Arroz ") == "Arroz"
    assert normalize_str("   ") is None
    assert normalize_str(None) is None


def test_data_iso():
    assert data_iso(" 2024-05-01T10:00:00Z ", "dataISO") == "2024-05-01T10:00:00Z"
    with pytest.raises(InvalidInput):
        data_iso("01/05/2024", "dataISO")
    with pytest.raises(InvalidInput):
        data_iso(None, "dataISO")
    assert parse_data("2024-05-01") is not None
    assert parse_data("") is None


def test_dominio_nao_importa_adapters():
    dominio = Path(__file__).resolve().parents[1] / "mercogestor" / "domain"
    modulos = sorted(dominio.glob("*.py"))
    assert modulos
    for mod in modulos:
        assert "mercogestor.adapters" not in mod.read_text(encoding="utf-8"), mod.name
