# mercogestor/usecases/categorias.py
"""
UC: cadastro de categorias (criar, listar, atualizar, remover).

Remover uma categoria limpa o campo ``categoria`` dos produtos que a
usavam (ver ``integridade.limpar_categoria_dos_produtos``).
"""
from __future__ import annotations

from typing import Any, Dict, List

from mercogestor.domain.errors import NoFieldsProvided, NotFound
from mercogestor.domain.models import AtualizacaoCategoria, Categoria, NovaCategoria
from mercogestor.infra.logger import log_system_event, log_transaction
from mercogestor.infra.repositories import DocumentStore
from mercogestor.usecases import integridade

COLECAO = "categorias"
MSG_NAO_ENCONTRADA = "Categoria não encontrada."
MSG_DUPLICADA = "Categoria já existe."


def criar_categoria(store: DocumentStore, payload: Any) -> str:
    cmd = NovaCategoria.from_payload(payload)
    try:
        integridade.garantir_nome_livre(store, COLECAO, "categoria", cmd.categoria, MSG_DUPLICADA)
        category_id = store.collection(COLECAO).add({"categoria": cmd.categoria})
    except Exception as e:
        log_transaction("criar_categoria", {"categoria": cmd.categoria}, error=str(e))
        raise
    log_transaction("criar_categoria", {"categoria": cmd.categoria}, result=category_id)
    return category_id


def listar_categorias(store: DocumentStore) -> List[Categoria]:
    return [Categoria.from_doc(d) for d in store.collection(COLECAO).all()]


def atualizar_categoria(store: DocumentStore, category_id: str, payload: Any) -> Categoria:
    col = store.collection(COLECAO)
    if col.get(category_id) is None:
        raise NotFound(MSG_NAO_ENCONTRADA)

    cmd = AtualizacaoCategoria.from_payload(payload)
    if not cmd.campos:
        raise NoFieldsProvided()

    integridade.garantir_nome_livre(
        store, COLECAO, "categoria", cmd.campos["categoria"], MSG_DUPLICADA, ignorar_id=category_id
    )
    # renomear não propaga para os produtos: o vínculo é pelo nome
    doc = col.update(category_id, cmd.campos)
    log_transaction("atualizar_categoria", {"id": category_id, **cmd.campos}, result="success")
    return Categoria.from_doc(doc)


def remover_categoria(store: DocumentStore, category_id: str) -> Dict[str, Any]:
    """Remove a categoria após limpar a referência nos produtos.

    Retorna ``{"categoria": Categoria, "produtosAlterados": n}``.
    """
    col = store.collection(COLECAO)
    doc = col.get(category_id)
    if doc is None:
        raise NotFound(MSG_NAO_ENCONTRADA)

    categoria = Categoria.from_doc(doc)
    alterados = 0
    if categoria.categoria:
        alterados = integridade.limpar_categoria_dos_produtos(store, categoria.categoria)
    col.delete(category_id)

    log_system_event("categoria_removida", {"id": category_id, "produtos_alterados": alterados})
    log_transaction("remover_categoria", {"id": category_id}, result={"produtosAlterados": alterados})
    return {"categoria": categoria, "produtosAlterados": alterados}
