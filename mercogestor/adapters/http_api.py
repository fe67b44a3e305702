# mercogestor/adapters/http_api.py
"""
API HTTP (Flask) do gestor de estoque.

Rotas sob ``/api``: ``categories``, ``products``, ``movements``, ``users``,
``reports/*`` e ``dashboard``. Respostas de sucesso seguem
``{"success": true, ...}``; falhas seguem ``{"success": false, "error": msg}``
com o status do erro de domínio (400/401/403/404/409) ou 500.

A verificação do token é um colaborador externo: ``create_app`` recebe
``verify_token(token) -> uid | None``. Sem ele, o token é procurado na
coleção ``tokens`` do próprio store (``{token: {"uid": ...}}``).
"""

from __future__ import annotations

from functools import wraps
from typing import Callable, Optional

from flask import Blueprint, Flask, g, jsonify, request
from werkzeug.exceptions import HTTPException

from mercogestor.config import DB_PATH, DEFAULTS
from mercogestor.domain.errors import MercogestorError, Unauthenticated
from mercogestor.infra.logger import log_system_event
from mercogestor.infra.repositories import DocumentStore
from mercogestor.usecases import categorias, movimentos, produtos, relatorios, usuarios
from mercogestor.usecases.verificar_estoque import run_verificar

VerifyToken = Callable[[str], Optional[str]]


def _token_do_store(store: DocumentStore) -> VerifyToken:
    def verify(token: str) -> Optional[str]:
        doc = store.collection("tokens").get(token)
        if doc is None:
            return None
        return doc.dados.get("uid")
    return verify


def _ok(status: int = 200, **body):
    return jsonify(success=True, **body), status


def _body():
    # corpo ausente ou JSON inválido chega como None; os comandos validam o resto
    return request.get_json(silent=True)


def _int_arg(nome: str) -> Optional[int]:
    valor = request.args.get(nome)
    if valor is None or valor == "":
        return None
    try:
        return int(valor)
    except ValueError:
        return None


def create_app(
    db_path: Optional[str] = None,
    verify_token: Optional[VerifyToken] = None,
    store: Optional[DocumentStore] = None,
) -> Flask:
    app = Flask(__name__)
    app.json.sort_keys = False

    store = store or DocumentStore(db_path or DB_PATH)
    verify = verify_token or _token_do_store(store)
    api = Blueprint("api", __name__, url_prefix="/api")

    def auth_required(view_func):
        """Exige ``Authorization: Bearer <token>`` e expõe o uid em ``g.uid``."""
        @wraps(view_func)
        def wrapper(*args, **kwargs):
            header = request.headers.get("Authorization", "")
            if not header.startswith("Bearer "):
                raise Unauthenticated("Token não informado.")
            uid = verify(header.split(" ", 1)[1].strip())
            if not uid:
                raise Unauthenticated("Token inválido.")
            g.uid = uid
            return view_func(*args, **kwargs)
        return wrapper

    # ===== categorias =====

    @api.route("/categories", methods=["POST"])
    def create_category():
        category_id = categorias.criar_categoria(store, _body())
        return _ok(201, message="Categoria cadastrada com sucesso!", categoryId=category_id)

    @api.route("/categories", methods=["GET"])
    def get_categories():
        itens = [c.to_dict() for c in categorias.listar_categorias(store)]
        if not itens:
            return _ok(message="Nenhuma categoria cadastrada.", categories=[])
        return _ok(categories=itens)

    @api.route("/categories/<category_id>", methods=["PUT"])
    def update_category(category_id):
        cat = categorias.atualizar_categoria(store, category_id, _body())
        return _ok(message="Categoria atualizada com sucesso!", category=cat.to_dict())

    @api.route("/categories/<category_id>", methods=["DELETE"])
    def delete_category(category_id):
        res = categorias.remover_categoria(store, category_id)
        return _ok(
            message="Categoria removida com sucesso!",
            deletedCategory=res["categoria"].to_dict(),
            updatedProducts=res["produtosAlterados"],
        )

    # ===== produtos =====

    @api.route("/products", methods=["POST"])
    def create_product():
        product_id = produtos.criar_produto(store, _body())
        return _ok(201, message="Produto cadastrado com sucesso!", productId=product_id)

    @api.route("/products", methods=["GET"])
    def get_products():
        itens = [p.to_dict() for p in produtos.listar_produtos(store)]
        if not itens:
            return _ok(message="Nenhum produto cadastrado.", products=[])
        return _ok(products=itens)

    @api.route("/products/<product_id>", methods=["GET"])
    def get_product(product_id):
        return _ok(product=produtos.situacao_produto(store, product_id))

    @api.route("/products/<product_id>", methods=["PUT"])
    def update_product(product_id):
        prod = produtos.atualizar_produto(store, product_id, _body())
        return _ok(message="Produto atualizado com sucesso!", product=prod.to_dict())

    @api.route("/products/<product_id>", methods=["DELETE"])
    def delete_product(product_id):
        res = produtos.remover_produto(store, product_id)
        return _ok(
            message="Produto removido com sucesso!",
            deletedProduct=res["produto"].to_dict(),
            deletedMovements=res["movimentosRemovidos"],
        )

    # ===== movimentos =====

    @api.route("/movements", methods=["POST"])
    def create_movement():
        movement_id = movimentos.registrar_movimento(store, _body())
        return _ok(201, message="Movimento cadastrado com sucesso.", movementId=movement_id)

    @api.route("/movements", methods=["GET"])
    def get_movements():
        itens = movimentos.listar_movimentos(
            store,
            tipo=request.args.get("tipo"),
            inicio=request.args.get("inicio"),
            fim=request.args.get("fim"),
            product_id=request.args.get("productId"),
        )
        if not itens:
            return _ok(message="Nenhuma movimentação cadastrada.", movements=[])
        return _ok(movements=[m.to_dict() for m in itens])

    @api.route("/movements/<movement_id>", methods=["GET"])
    def get_movement(movement_id):
        return _ok(movement=movimentos.obter_movimento(store, movement_id).to_dict())

    @api.route("/movements/<movement_id>", methods=["PUT"])
    def update_movement(movement_id):
        mov = movimentos.atualizar_movimento(store, movement_id, _body())
        return _ok(message="Movimento atualizado com sucesso!", movement=mov.to_dict())

    @api.route("/movements/<movement_id>", methods=["DELETE"])
    def delete_movement(movement_id):
        mov = movimentos.remover_movimento(store, movement_id)
        return _ok(message="Movimento removido com sucesso!", deletedMovement=mov.to_dict())

    # ===== usuários =====

    @api.route("/users", methods=["POST"])
    @auth_required
    def create_user():
        user_id = usuarios.criar_usuario(store, g.uid, _body())
        return _ok(201, message="Usuário cadastrado com sucesso!", userId=user_id)

    @api.route("/users", methods=["GET"])
    def get_users():
        itens = [u.to_dict() for u in usuarios.listar_usuarios(store)]
        if not itens:
            return _ok(message="Nenhum usuário cadastrado.", users=[])
        return _ok(users=itens)

    @api.route("/users/<user_id>", methods=["GET"])
    def get_user(user_id):
        return _ok(user=usuarios.obter_usuario(store, user_id).to_dict())

    @api.route("/users/<user_id>", methods=["PUT"])
    @auth_required
    def update_user(user_id):
        user = usuarios.atualizar_usuario(store, g.uid, user_id, _body())
        return _ok(message="Usuário atualizado com sucesso!", user=user.to_dict())

    @api.route("/users/<user_id>", methods=["DELETE"])
    @auth_required
    def delete_user(user_id):
        user = usuarios.remover_usuario(store, g.uid, user_id)
        return _ok(message="Usuário removido com sucesso!", deletedUser=user.to_dict())

    # ===== relatórios =====

    @api.route("/reports/low-stock", methods=["GET"])
    def report_low_stock():
        itens = relatorios.relatorio_estoque_baixo(store)
        return _ok(items=[i.to_dict() for i in itens])

    @api.route("/reports/expiration", methods=["GET"])
    def report_expiration():
        dias = request.args.get("dias", DEFAULTS.janela_validade_dias)
        itens = relatorios.relatorio_validade(store, dias)
        return _ok(items=[i.to_dict() for i in itens])

    @api.route("/reports/series", methods=["GET"])
    def report_series():
        serie = relatorios.relatorio_serie(
            store,
            agrupar=request.args.get("groupBy", "day"),
            inicio=request.args.get("inicio"),
            fim=request.args.get("fim"),
            tipo=request.args.get("tipo"),
            product_id=request.args.get("productId"),
        )
        return _ok(series=serie.to_dict())

    @api.route("/reports/top", methods=["GET"])
    def report_top():
        itens = relatorios.relatorio_mais_consumidos(
            store,
            inicio=request.args.get("inicio"),
            fim=request.args.get("fim"),
            limite=_int_arg("limit"),
        )
        return _ok(items=itens)

    @api.route("/dashboard", methods=["GET"])
    def dashboard():
        return _ok(dashboard=run_verificar(store, request.args.get("dias")))

    app.register_blueprint(api)

    # ===== erros =====

    @app.errorhandler(MercogestorError)
    def handle_domain_error(e: MercogestorError):
        return jsonify(success=False, error=e.message), e.status

    @app.errorhandler(HTTPException)
    def handle_http_error(e: HTTPException):
        return jsonify(success=False, error=e.description), e.code

    @app.errorhandler(Exception)
    def handle_unexpected(e: Exception):
        log_system_event("http_erro_inesperado", {
            "path": request.path,
            "method": request.method,
            "error": str(e),
        }, level="error")
        return jsonify(success=False, error="Erro interno do servidor."), 500

    return app
