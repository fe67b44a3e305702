"""
Erros de domínio do gestor de estoque.

Cada erro carrega o status HTTP que os adaptadores devem usar. Os casos
de uso levantam estes erros; a camada HTTP os converte em
``{"success": false, "error": <mensagem>}`` e a CLI em mensagem + exit 1.
"""

from __future__ import annotations


class MercogestorError(Exception):
    status: int = 500
    default_message: str = "Erro interno do servidor."

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidInput(MercogestorError):
    status = 400
    default_message = "Dados inválidos."


class NoFieldsProvided(InvalidInput):
    default_message = "Nenhum campo para atualização foi enviado."


class ProductNotFound(InvalidInput):
    default_message = "O código do produto deve referenciar um produto existente."


class CategoryNotFound(InvalidInput):
    default_message = "A categoria informada não existe."


class Unauthenticated(MercogestorError):
    status = 401
    default_message = "Usuário não autenticado."


class Forbidden(MercogestorError):
    status = 403
    default_message = "Operação não permitida."


class NotFound(MercogestorError):
    status = 404
    default_message = "Registro não encontrado."


class Conflict(MercogestorError):
    status = 409
    default_message = "Conflito com registro existente."


class DuplicateName(Conflict):
    default_message = "Nome já cadastrado."


class Unexpected(MercogestorError):
    status = 500
