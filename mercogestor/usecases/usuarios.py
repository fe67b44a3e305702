# mercogestor/usecases/usuarios.py
"""
UC: cadastro de usuários.

O id do usuário é o uid da identidade autenticada. Alterar ou remover
só é permitido ao próprio usuário ou a um ``admin``; a troca de papel
enviada por quem não é admin é descartada sem erro.
"""
from __future__ import annotations

from typing import Any, List, Optional

from mercogestor.domain.errors import Conflict, Forbidden, NoFieldsProvided, NotFound, Unauthenticated
from mercogestor.domain.models import PAPEL_PADRAO, AtualizacaoUsuario, NovoUsuario, Usuario
from mercogestor.domain.policies import pode_alterar_usuario
from mercogestor.infra.logger import log_system_event, log_transaction
from mercogestor.infra.repositories import DocumentStore

COLECAO = "usuarios"
MSG_NAO_ENCONTRADO = "Usuário não encontrado."


def _exigir_uid(uid: Optional[str]) -> str:
    if not uid:
        raise Unauthenticated()
    return uid


def papel_de(store: DocumentStore, uid: str) -> str:
    doc = store.collection(COLECAO).get(uid)
    if doc is None:
        return PAPEL_PADRAO
    return doc.dados.get("role") or PAPEL_PADRAO


def _verificar_permissao(store: DocumentStore, uid: str, alvo_id: str, mensagem: str) -> str:
    papel = papel_de(store, uid)
    if not pode_alterar_usuario(uid, alvo_id, papel):
        log_system_event("permissao_negada", {"uid": uid, "alvo": alvo_id}, level="warning")
        raise Forbidden(mensagem)
    return papel


def criar_usuario(store: DocumentStore, uid: Optional[str], payload: Any) -> str:
    uid = _exigir_uid(uid)
    cmd = NovoUsuario.from_payload(payload)
    col = store.collection(COLECAO)
    if col.exists(uid):
        raise Conflict("Usuário já existe.")
    col.set(uid, cmd.to_dados())
    log_transaction("criar_usuario", {"id": uid, "role": cmd.role}, result="success")
    return uid


def listar_usuarios(store: DocumentStore) -> List[Usuario]:
    return [Usuario.from_doc(d) for d in store.collection(COLECAO).all()]


def obter_usuario(store: DocumentStore, user_id: str) -> Usuario:
    doc = store.collection(COLECAO).get(user_id)
    if doc is None:
        raise NotFound(MSG_NAO_ENCONTRADO)
    return Usuario.from_doc(doc)


def atualizar_usuario(store: DocumentStore, uid: Optional[str], user_id: str, payload: Any) -> Usuario:
    uid = _exigir_uid(uid)
    papel = _verificar_permissao(store, uid, user_id, "O usuário só pode editar a si mesmo.")

    col = store.collection(COLECAO)
    if col.get(user_id) is None:
        raise NotFound(MSG_NAO_ENCONTRADO)

    cmd = AtualizacaoUsuario.from_payload(payload, permitir_papel=(papel == "admin"))
    if not cmd.campos:
        raise NoFieldsProvided()

    doc = col.update(user_id, cmd.campos)
    log_transaction("atualizar_usuario", {"id": user_id, "por": uid, **cmd.campos}, result="success")
    return Usuario.from_doc(doc)


def remover_usuario(store: DocumentStore, uid: Optional[str], user_id: str) -> Usuario:
    uid = _exigir_uid(uid)
    _verificar_permissao(store, uid, user_id, "O usuário só pode deletar a si mesmo.")

    col = store.collection(COLECAO)
    doc = col.get(user_id)
    if doc is None:
        raise NotFound(MSG_NAO_ENCONTRADO)
    col.delete(user_id)
    log_transaction("remover_usuario", {"id": user_id, "por": uid}, result="success")
    return Usuario.from_doc(doc)
