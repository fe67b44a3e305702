from pathlib import Path

import pytest

from mercogestor.config import DEFAULTS
from mercogestor.domain.errors import (
    CategoryNotFound,
    DuplicateName,
    InvalidInput,
    NoFieldsProvided,
    NotFound,
)
from mercogestor.infra.repositories import DocumentStore
from mercogestor.usecases import categorias, produtos
from mercogestor.usecases.movimentos import registrar_movimento


def _store(tmp_path: Path) -> DocumentStore:
    return DocumentStore(str(tmp_path / "cadastros.sqlite"))


# -------------------------
# categorias
# -------------------------

def test_criar_e_listar_categorias(tmp_path: Path):
    store = _store(tmp_path)
    assert categorias.listar_categorias(store) == []
    cid = categorias.criar_categoria(store, {"categoria": "  Grãos "})
    itens = categorias.listar_categorias(store)
    assert [(c.id, c.categoria) for c in itens] == [(cid, "Grãos")]


def test_categoria_obrigatoria_e_unica(tmp_path: Path):
    store = _store(tmp_path)
    with pytest.raises(InvalidInput, match="obrigatório"):
        categorias.criar_categoria(store, {})
    categorias.criar_categoria(store, {"categoria": "Grãos"})
    with pytest.raises(DuplicateName) as exc:
        categorias.criar_categoria(store, {"categoria": "Grãos"})
    assert exc.value.status == 409


def test_atualizar_categoria(tmp_path: Path):
    store = _store(tmp_path)
    cid = categorias.criar_categoria(store, {"categoria": "Grãos"})
    outra = categorias.criar_categoria(store, {"categoria": "Bebidas"})

    with pytest.raises(NotFound):
        categorias.atualizar_categoria(store, "nao-existe", {"categoria": "X"})
    with pytest.raises(NoFieldsProvided):
        categorias.atualizar_categoria(store, cid, {"outro": 1})
    with pytest.raises(DuplicateName):
        categorias.atualizar_categoria(store, outra, {"categoria": "Grãos"})

    assert categorias.atualizar_categoria(store, cid, {"categoria": "Cereais"}).categoria == "Cereais"
    # mesmo nome no próprio documento é permitido
    assert categorias.atualizar_categoria(store, cid, {"categoria": "Cereais"}).categoria == "Cereais"


def test_renomear_categoria_nao_propaga_para_produtos(tmp_path: Path):
    store = _store(tmp_path)
    cid = categorias.criar_categoria(store, {"categoria": "Grãos"})
    pid = produtos.criar_produto(store, {"nome": "Arroz", "unidade": "kg", "minimo": 1, "categoria": "Grãos"})
    categorias.atualizar_categoria(store, cid, {"categoria": "Cereais"})
    assert produtos.obter_produto(store, pid).categoria == "Grãos"


def test_remover_categoria_limpa_produtos(tmp_path: Path):
    store = _store(tmp_path)
    cid = categorias.criar_categoria(store, {"categoria": "Grãos"})
    p1 = produtos.criar_produto(store, {"nome": "Arroz", "unidade": "kg", "minimo": 1, "categoria": "Grãos"})
    p2 = produtos.criar_produto(store, {"nome": "Leite", "unidade": "L", "minimo": 1, "categoria": "Laticínios"})

    res = categorias.remover_categoria(store, cid)
    assert res["categoria"].categoria == "Grãos"
    assert res["produtosAlterados"] == 1
    assert produtos.obter_produto(store, p1).categoria == ""
    assert produtos.obter_produto(store, p2).categoria == "Laticínios"

    with pytest.raises(NotFound):
        categorias.remover_categoria(store, cid)


# -------------------------
# produtos
# -------------------------

def test_criar_produto_campos_obrigatorios(tmp_path: Path):
    store = _store(tmp_path)
    msg = "Nome, unidade e estoque mínimo são obrigatórios."
    with pytest.raises(InvalidInput, match=msg):
        produtos.criar_produto(store, {"nome": "Arroz", "unidade": "kg"})
    with pytest.raises(InvalidInput, match=msg):
        produtos.criar_produto(store, {"nome": " ", "unidade": "kg", "minimo": 1})
    with pytest.raises(InvalidInput):
        produtos.criar_produto(store, {"nome": "Arroz", "unidade": "kg", "minimo": -1})
    with pytest.raises(InvalidInput):
        produtos.criar_produto(store, ["nome", "Arroz"])
    assert produtos.listar_produtos(store) == []


def test_criar_produto_minimo_zero_e_preco_invalido_ignorado(tmp_path: Path):
    store = _store(tmp_path)
    pid = produtos.criar_produto(store, {"nome": "Sal", "unidade": "kg", "minimo": "0", "preco": "barato"})
    p = produtos.obter_produto(store, pid)
    assert p.minimo == 0
    assert p.preco is None


def test_criar_produto_nome_duplicado(tmp_path: Path):
    store = _store(tmp_path)
    produtos.criar_produto(store, {"nome": "Arroz", "unidade": "kg", "minimo": 10})
    with pytest.raises(DuplicateName):
        produtos.criar_produto(store, {"nome": "Arroz", "unidade": "un", "minimo": 1})
    # comparação exata: outra grafia é outro produto
    produtos.criar_produto(store, {"nome": "arroz", "unidade": "kg", "minimo": 1})


def test_categoria_inexistente_aceita_na_criacao_e_recusada_na_atualizacao(tmp_path: Path):
    store = _store(tmp_path)
    pid = produtos.criar_produto(store, {"nome": "Arroz", "unidade": "kg", "minimo": 10, "categoria": "Fantasma"})
    assert produtos.obter_produto(store, pid).categoria == "Fantasma"

    with pytest.raises(CategoryNotFound) as exc:
        produtos.atualizar_produto(store, pid, {"categoria": "Outra Fantasma"})
    assert exc.value.status == 400

    categorias.criar_categoria(store, {"categoria": "Grãos"})
    assert produtos.atualizar_produto(store, pid, {"categoria": "Grãos"}).categoria == "Grãos"
    # vazio limpa sem checar existência
    assert produtos.atualizar_produto(store, pid, {"categoria": ""}).categoria == ""


def test_validacao_de_categoria_na_criacao_quando_ligada(tmp_path: Path, monkeypatch):
    store = _store(tmp_path)
    monkeypatch.setattr(DEFAULTS, "validar_categoria_na_criacao", True)
    with pytest.raises(CategoryNotFound):
        produtos.criar_produto(store, {"nome": "Arroz", "unidade": "kg", "minimo": 10, "categoria": "Fantasma"})


def test_atualizar_produto(tmp_path: Path):
    store = _store(tmp_path)
    pid = produtos.criar_produto(store, {"nome": "Arroz", "unidade": "kg", "minimo": 10})
    produtos.criar_produto(store, {"nome": "Feijão", "unidade": "kg", "minimo": 5})

    with pytest.raises(NotFound):
        produtos.atualizar_produto(store, "nao-existe", {"nome": "X"})
    with pytest.raises(NoFieldsProvided):
        produtos.atualizar_produto(store, pid, {})
    with pytest.raises(DuplicateName):
        produtos.atualizar_produto(store, pid, {"nome": "Feijão"})

    p = produtos.atualizar_produto(store, pid, {"nome": "Arroz", "minimo": "12,5", "preco": 7.9})
    assert (p.nome, p.minimo, p.preco) == ("Arroz", 12.5, 7.9)


def test_remover_produto_remove_movimentos(tmp_path: Path):
    store = _store(tmp_path)
    pid = produtos.criar_produto(store, {"nome": "Arroz", "unidade": "kg", "minimo": 10})
    outro = produtos.criar_produto(store, {"nome": "Feijão", "unidade": "kg", "minimo": 5})
    for tipo, qtd in (("in", 40), ("out", 18)):
        registrar_movimento(store, {"productId": pid, "tipo": tipo, "quantidade": qtd, "dataISO": "2024-05-01"})
    registrar_movimento(store, {"productId": outro, "tipo": "in", "quantidade": 1, "dataISO": "2024-05-01"})

    res = produtos.remover_produto(store, pid)
    assert res["produto"].nome == "Arroz"
    assert res["movimentosRemovidos"] == 2
    assert [d.dados["productId"] for d in store.collection("movimentos").all()] == [outro]

    with pytest.raises(NotFound):
        produtos.obter_produto(store, pid)


def test_cenario_arroz_status_recalculado(tmp_path: Path):
    store = _store(tmp_path)
    pid = produtos.criar_produto(store, {"nome": "Arroz", "unidade": "kg", "minimo": 10})
    registrar_movimento(store, {"productId": pid, "tipo": "in", "quantidade": 40, "dataISO": "2024-05-01"})
    registrar_movimento(store, {"productId": pid, "tipo": "out", "quantidade": 18, "dataISO": "2024-05-02"})

    info = produtos.situacao_produto(store, pid)
    assert (info["estoque"], info["status"]) == (22, "ok")

    registrar_movimento(store, {"productId": pid, "tipo": "out", "quantidade": 5, "dataISO": "2024-05-03"})
    produtos.atualizar_produto(store, pid, {"minimo": 20})

    info = produtos.situacao_produto(store, pid)
    assert (info["estoque"], info["status"]) == (17, "low")
    assert "estoque" not in store.collection("produtos").get(pid).dados
