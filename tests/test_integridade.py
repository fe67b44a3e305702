from pathlib import Path

import pytest

from mercogestor.domain.errors import CategoryNotFound, DuplicateName, ProductNotFound
from mercogestor.infra.repositories import DocumentStore
from mercogestor.usecases import integridade
from mercogestor.usecases.categorias import criar_categoria, remover_categoria


def _store(tmp_path: Path) -> DocumentStore:
    return DocumentStore(str(tmp_path / "integridade.sqlite"))


def _produtos_com_categoria(store, categoria, n):
    col = store.collection("produtos")
    return [col.add({"nome": f"P{i}", "unidade": "un", "minimo": 0, "categoria": categoria}) for i in range(n)]


def test_garantias_de_existencia(tmp_path: Path):
    store = _store(tmp_path)
    pid = store.collection("produtos").add({"nome": "Arroz"})
    store.collection("categorias").add({"categoria": "Grãos"})

    assert integridade.garantir_produto_existe(store, pid).id == pid
    with pytest.raises(ProductNotFound):
        integridade.garantir_produto_existe(store, "nao-existe")
    with pytest.raises(ProductNotFound):
        integridade.garantir_produto_existe(store, None)

    assert integridade.garantir_categoria_existe(store, "Grãos").dados["categoria"] == "Grãos"
    with pytest.raises(CategoryNotFound):
        integridade.garantir_categoria_existe(store, "grãos")


def test_nome_livre_ignora_o_proprio_documento(tmp_path: Path):
    store = _store(tmp_path)
    pid = store.collection("produtos").add({"nome": "Arroz"})
    integridade.garantir_nome_livre(store, "produtos", "nome", "Arroz", "dup", ignorar_id=pid)
    integridade.garantir_nome_livre(store, "produtos", "nome", "Feijão", "dup")
    with pytest.raises(DuplicateName, match="dup"):
        integridade.garantir_nome_livre(store, "produtos", "nome", "Arroz", "dup")


def test_remover_categoria_com_mais_de_500_produtos_limpa_exatamente_500(tmp_path: Path):
    store = _store(tmp_path)
    cid = criar_categoria(store, {"categoria": "Bebidas"})
    _produtos_com_categoria(store, "Bebidas", 501)

    res = remover_categoria(store, cid)

    assert res["produtosAlterados"] == 500
    restantes = store.collection("produtos").where("categoria", "Bebidas")
    assert len(restantes) == 1
    assert len(store.collection("produtos").where("categoria", "")) == 500
    assert store.collection("categorias").get(cid) is None


def test_cascata_truncada_e_em_lotes(tmp_path: Path):
    store = _store(tmp_path)
    _produtos_com_categoria(store, "Limpeza", 7)

    assert integridade.limpar_categoria_dos_produtos(store, "Limpeza", limit=3) == 3
    assert len(store.collection("produtos").where("categoria", "Limpeza")) == 4

    assert integridade.limpar_categoria_dos_produtos(store, "Limpeza", limit=3, em_lotes=True) == 4
    assert store.collection("produtos").where("categoria", "Limpeza") == []


def test_cascata_so_afeta_o_nome_exato(tmp_path: Path):
    store = _store(tmp_path)
    _produtos_com_categoria(store, "Frios", 2)
    _produtos_com_categoria(store, "Frios e Laticínios", 1)
    assert integridade.limpar_categoria_dos_produtos(store, "Frios") == 2
    assert len(store.collection("produtos").where("categoria", "Frios e Laticínios")) == 1


def test_remover_movimentos_do_produto(tmp_path: Path):
    store = _store(tmp_path)
    movs = store.collection("movimentos")
    for _ in range(5):
        movs.add({"productId": "p1", "tipo": "in", "quantidade": 1})
    movs.add({"productId": "p2", "tipo": "in", "quantidade": 1})

    assert integridade.remover_movimentos_do_produto(store, "p1", limit=2) == 2
    assert len(movs.where("productId", "p1")) == 3
    assert integridade.remover_movimentos_do_produto(store, "p1", em_lotes=True) == 3
    assert [d.dados["productId"] for d in movs.all()] == ["p2"]
    assert integridade.remover_movimentos_do_produto(store, "p1") == 0
