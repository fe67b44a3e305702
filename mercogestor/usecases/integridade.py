# mercogestor/usecases/integridade.py
"""
Regras de integridade referencial entre categorias, produtos e movimentos.

- Movimento só referencia produto existente (criação e troca de produto).
- Produto só troca para categoria existente (checado na atualização).
- Nomes de categoria e de produto são únicos (comparação exata).
- Remover categoria limpa o campo ``categoria`` dos produtos que a usam.
- Remover produto remove os movimentos que o referenciam.

As cascatas fazem uma consulta e depois um batch atômico de até
``DEFAULTS.batch_limit`` escritas. Com ``cascata_em_lotes`` desligado
(padrão) o excedente fica sem alteração e é registrado como aviso no log;
ligado, os batches se repetem até esgotar os documentos. A consulta e o
batch são duas idas ao store, sem trava entre elas.
"""

from __future__ import annotations

from typing import Callable, List, Optional

from mercogestor.config import DEFAULTS
from mercogestor.domain.errors import CategoryNotFound, DuplicateName, ProductNotFound
from mercogestor.infra.logger import log_system_event, system_logger
from mercogestor.infra.repositories import Documento, DocumentStore, WriteBatch


def garantir_produto_existe(store: DocumentStore, product_id: Optional[str]) -> Documento:
    doc = store.collection("produtos").get(product_id) if product_id else None
    if doc is None:
        log_system_event("produto_inexistente", {"productId": product_id}, level="warning")
        raise ProductNotFound()
    return doc


def garantir_categoria_existe(store: DocumentStore, nome: str) -> Documento:
    docs = store.collection("categorias").where("categoria", nome, limit=1)
    if not docs:
        log_system_event("categoria_inexistente", {"categoria": nome}, level="warning")
        raise CategoryNotFound(f"A categoria '{nome}' não existe.")
    return docs[0]


def garantir_nome_livre(
    store: DocumentStore,
    colecao: str,
    campo: str,
    valor: str,
    mensagem: str,
    ignorar_id: Optional[str] = None,
) -> None:
    """DuplicateName se outro documento da coleção já usa ``valor`` em ``campo``."""
    for doc in store.collection(colecao).where(campo, valor):
        if doc.id != ignorar_id:
            raise DuplicateName(mensagem)


def _cascata(
    store: DocumentStore,
    docs: List[Documento],
    aplicar: Callable[[WriteBatch, Documento], None],
    evento: str,
    limit: Optional[int] = None,
    em_lotes: Optional[bool] = None,
) -> int:
    limit = limit or DEFAULTS.batch_limit
    em_lotes = DEFAULTS.cascata_em_lotes if em_lotes is None else em_lotes

    pendentes = list(docs)
    total = 0
    while pendentes:
        lote, pendentes = pendentes[:limit], pendentes[limit:]
        batch = store.batch(limit)
        for doc in lote:
            aplicar(batch, doc)
        total += batch.commit()
        if not em_lotes:
            break

    if pendentes:
        system_logger.warning(f"CASCADE_TRUNCATED: {evento} - {len(pendentes)} documentos não alterados")
        log_system_event(f"{evento}_truncada", {"alterados": total, "restantes": len(pendentes)}, level="warning")
    return total


def limpar_categoria_dos_produtos(
    store: DocumentStore,
    categoria: str,
    limit: Optional[int] = None,
    em_lotes: Optional[bool] = None,
) -> int:
    """Limpa ``categoria`` (vira ``''``) nos produtos que usam esse nome. Retorna quantos."""
    produtos = store.collection("produtos").where("categoria", categoria)
    if not produtos:
        return 0
    return _cascata(
        store,
        produtos,
        lambda b, doc: b.update("produtos", doc.id, {"categoria": ""}),
        "cascata_categoria",
        limit,
        em_lotes,
    )


def remover_movimentos_do_produto(
    store: DocumentStore,
    product_id: str,
    limit: Optional[int] = None,
    em_lotes: Optional[bool] = None,
) -> int:
    """Remove os movimentos do produto. Retorna quantos foram removidos."""
    movimentos = store.collection("movimentos").where("productId", product_id)
    if not movimentos:
        return 0
    return _cascata(
        store,
        movimentos,
        lambda b, doc: b.delete("movimentos", doc.id),
        "cascata_produto",
        limit,
        em_lotes,
    )
