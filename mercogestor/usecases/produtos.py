# mercogestor/usecases/produtos.py
"""
UC: cadastro de produtos.

Obs.:
- A existência da categoria só é verificada na atualização. Na criação
  ela é aceita como veio, a menos que
  ``DEFAULTS.validar_categoria_na_criacao`` esteja ligado.
- Remover produto remove também seus movimentos.
"""
from __future__ import annotations

from typing import Any, Dict, List

from mercogestor.config import DEFAULTS
from mercogestor.domain.errors import NoFieldsProvided, NotFound
from mercogestor.domain.formulas import estoque_de
from mercogestor.domain.models import AtualizacaoProduto, Movimento, NovoProduto, Produto
from mercogestor.domain.policies import status_estoque
from mercogestor.infra.logger import log_system_event, log_transaction
from mercogestor.infra.repositories import DocumentStore
from mercogestor.usecases import integridade

COLECAO = "produtos"
MSG_NAO_ENCONTRADO = "Produto não encontrado."
MSG_DUPLICADO = "Produto já existe."


def criar_produto(store: DocumentStore, payload: Any) -> str:
    cmd = NovoProduto.from_payload(payload)
    try:
        integridade.garantir_nome_livre(store, COLECAO, "nome", cmd.nome, MSG_DUPLICADO)
        if cmd.categoria and DEFAULTS.validar_categoria_na_criacao:
            integridade.garantir_categoria_existe(store, cmd.categoria)
        product_id = store.collection(COLECAO).add(cmd.to_dados())
    except Exception as e:
        log_transaction("criar_produto", {"nome": cmd.nome}, error=str(e))
        raise
    log_transaction("criar_produto", cmd.to_dados(), result=product_id)
    return product_id


def listar_produtos(store: DocumentStore) -> List[Produto]:
    return [Produto.from_doc(d) for d in store.collection(COLECAO).all()]


def obter_produto(store: DocumentStore, product_id: str) -> Produto:
    doc = store.collection(COLECAO).get(product_id)
    if doc is None:
        raise NotFound(MSG_NAO_ENCONTRADO)
    return Produto.from_doc(doc)


def situacao_produto(store: DocumentStore, product_id: str) -> Dict[str, Any]:
    """Produto com estoque derivado e status (``empty``/``low``/``ok``)."""
    produto = obter_produto(store, product_id)
    movimentos = [Movimento.from_doc(d) for d in store.collection("movimentos").where("productId", product_id)]
    estoque = estoque_de(product_id, movimentos)
    return {**produto.to_dict(), "estoque": estoque, "status": status_estoque(estoque, produto.minimo)}


def atualizar_produto(store: DocumentStore, product_id: str, payload: Any) -> Produto:
    col = store.collection(COLECAO)
    if col.get(product_id) is None:
        raise NotFound(MSG_NAO_ENCONTRADO)

    cmd = AtualizacaoProduto.from_payload(payload)
    if not cmd.campos:
        raise NoFieldsProvided()

    if "nome" in cmd.campos:
        integridade.garantir_nome_livre(
            store, COLECAO, "nome", cmd.campos["nome"], MSG_DUPLICADO, ignorar_id=product_id
        )
    if cmd.categoria:
        integridade.garantir_categoria_existe(store, cmd.categoria)

    doc = col.update(product_id, cmd.campos)
    log_transaction("atualizar_produto", {"id": product_id, **cmd.campos}, result="success")
    return Produto.from_doc(doc)


def remover_produto(store: DocumentStore, product_id: str) -> Dict[str, Any]:
    """Remove o produto após remover seus movimentos.

    Retorna ``{"produto": Produto, "movimentosRemovidos": n}``.
    """
    col = store.collection(COLECAO)
    doc = col.get(product_id)
    if doc is None:
        raise NotFound(MSG_NAO_ENCONTRADO)

    removidos = integridade.remover_movimentos_do_produto(store, product_id)
    col.delete(product_id)

    log_system_event("produto_removido", {"id": product_id, "movimentos_removidos": removidos})
    log_transaction("remover_produto", {"id": product_id}, result={"movimentosRemovidos": removidos})
    return {"produto": Produto.from_doc(doc), "movimentosRemovidos": removidos}
