from datetime import date
from pathlib import Path

import pytest

from mercogestor.infra.repositories import DocumentStore
from mercogestor.usecases.movimentos import registrar_movimento
from mercogestor.usecases.produtos import criar_produto
from mercogestor.usecases.relatorios import (
    carregar_snapshot,
    relatorio_estoque_baixo,
    relatorio_mais_consumidos,
    relatorio_serie,
    relatorio_validade,
)
from mercogestor.usecases.verificar_estoque import run_verificar


REF = date(2024, 5, 10)


@pytest.fixture()
def store(tmp_path: Path) -> DocumentStore:
    s = DocumentStore(str(tmp_path / "relatorios.sqlite"))
    arroz = criar_produto(s, {"nome": "Arroz", "unidade": "kg", "minimo": 10})
    leite = criar_produto(s, {"nome": "Leite", "unidade": "L", "minimo": 5})
    sal = criar_produto(s, {"nome": "Sal", "unidade": "kg", "minimo": 2})
    movs = [
        (arroz, "in", 40, "2024-05-01", "2024-05-20"),
        (arroz, "out", 18, "2024-05-02", None),
        (leite, "in", 6, "2024-05-01", "2024-05-12"),
        (leite, "in", 4, "2024-05-03", "2024-05-09"),   # já vencido na referência
        (leite, "out", 6, "2024-05-03T15:00:00Z", None),
        (arroz, "out", 4, "2024-06-01", None),
    ]
    for pid, tipo, qtd, data, validade in movs:
        payload = {"productId": pid, "tipo": tipo, "quantidade": qtd, "dataISO": data}
        if validade:
            payload["validadeLote"] = validade
        registrar_movimento(s, payload)
    s.ids = {"arroz": arroz, "leite": leite, "sal": sal}
    return s


def test_carregar_snapshot(store):
    snap = carregar_snapshot(store)
    assert len(snap.products) == 3
    assert len(snap.movements) == 6
    assert snap.estoque_de(store.ids["arroz"]) == 18


def test_carregar_snapshot_registra_uma_leitura_por_colecao(store, monkeypatch):
    chamadas = []
    monkeypatch.setattr(
        "mercogestor.infra.repositories.log_database_operation",
        lambda colecao, operacao, n=0, **kw: chamadas.append((colecao, operacao, n)),
    )
    carregar_snapshot(store)
    assert chamadas == [("produtos", "SELECT_ALL", 3), ("movimentos", "SELECT_ALL", 6)]


def test_relatorio_estoque_baixo(store):
    itens = relatorio_estoque_baixo(store)
    # Sal esgotado primeiro, depois Leite (4 <= 5); Arroz (18) fica de fora
    assert [(i.produto.nome, i.estoque, i.status) for i in itens] == [
        ("Sal", 0, "empty"),
        ("Leite", 4, "low"),
    ]
    assert itens[1].to_dict()["falta"] == 1


def test_relatorio_validade(store):
    itens = relatorio_validade(store, janela_dias=3, referencia=REF)
    assert [(i.produto.nome, i.dias) for i in itens] == [("Leite", 2)]
    assert itens[0].to_dict()["validade"] == "2024-05-12"

    itens = relatorio_validade(store, janela_dias=10, referencia=REF)
    assert [(i.produto.nome, i.dias) for i in itens] == [("Leite", 2), ("Arroz", 10)]

    # janela inválida vira 1
    assert relatorio_validade(store, janela_dias="abc", referencia=REF) == []


def test_relatorio_serie_por_dia(store):
    serie = relatorio_serie(store, agrupar="day", inicio="2024-05-01", fim="2024-05-03")
    assert serie.chaves == ["2024-05-01", "2024-05-02", "2024-05-03"]
    assert serie.rotulos == ["01/05", "02/05", "03/05"]
    assert serie.entradas == [46, 0, 4]
    assert serie.saidas == [0, 18, 6]
    assert serie.saldos == [46, -18, -2]


def test_relatorio_serie_por_mes_filtrada(store):
    serie = relatorio_serie(
        store, agrupar="month", inicio="2024-05-01", fim="2024-06-30",
        tipo="out", product_id=store.ids["arroz"],
    )
    assert serie.chaves == ["2024-05", "2024-06"]
    assert serie.entradas == [0, 0]
    assert serie.saidas == [18, 4]


def test_relatorio_mais_consumidos(store):
    ranking = relatorio_mais_consumidos(store, inicio="2024-05-01", fim="2024-05-31")
    assert ranking == [
        {"productId": store.ids["arroz"], "total": 18, "nome": "Arroz"},
        {"productId": store.ids["leite"], "total": 6, "nome": "Leite"},
    ]
    assert len(relatorio_mais_consumidos(store, inicio="2024-05-01", fim="2024-06-30", limite=1)) == 1


def test_run_verificar(store):
    out = run_verificar(store, janela_dias=10, referencia=REF)
    assert out["totalProdutos"] == 3
    assert out["totalEstoque"] == 22
    assert out["baixoEstoque"] == 2
    assert out["pertoVencimento"] == 2
    assert out["totais"] == {"entradas": 50, "saidas": 28, "saldo": 22, "movimentos": 6}
    assert [p["nome"] for p in out["produtos"]] == ["Sal", "Leite", "Arroz"]
    assert out["produtos"][-1]["status"] == "ok"
