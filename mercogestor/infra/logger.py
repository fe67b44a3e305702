# mercogestor/infra/logger.py
"""
Logging em arquivo do gestor de estoque.

Um logger por assunto, cada um com o seu arquivo em ``LOGS_DIR``:

- ``transactions``: cadastros e remoções (sucesso ou falha)
- ``movimentos``: entradas e saídas registradas, alteradas ou removidas
- ``database``: leituras e escritas no document store
- ``system``: eventos gerais (relatórios, cascatas, erros inesperados)

Com ``ENABLE_LOGGING`` desligado os loggers recebem ``NullHandler`` e as
funções ``log_*`` retornam sem formatar nada.
"""

import logging
from pathlib import Path
from typing import Dict, Any, Optional

from mercogestor import config


ENABLE_LOGGING = config.ENABLE_LOGGING

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

LOGS_DIR = Path(config.LOGS_DIR)

# assunto -> arquivo dentro de LOGS_DIR
_ARQUIVOS = {
    "transactions": "transactions.log",
    "movimentos": "movimentos.log",
    "database": "database.log",
    "system": "system.log",
}


def setup_logger(name: str, log_file: str, level: int = logging.INFO) -> logging.Logger:
    """
    (Re)configura o logger ``name`` para gravar em ``log_file``.

    Chamadas repetidas substituem os handlers anteriores. O diretório só
    é criado com o logging ligado, e o arquivo só na primeira mensagem.
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)
    logger.propagate = False
    for h in list(logger.handlers):
        logger.removeHandler(h)

    if not ENABLE_LOGGING:
        logger.addHandler(logging.NullHandler())
        return logger

    Path(log_file).parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(log_file, encoding='utf-8', delay=True)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
    logger.addHandler(handler)
    return logger


def _logger(assunto: str) -> logging.Logger:
    return setup_logger(f"mercogestor.{assunto}", str(LOGS_DIR / _ARQUIVOS[assunto]))


transaction_logger = _logger("transactions")
movimento_logger = _logger("movimentos")
database_logger = _logger("database")
system_logger = _logger("system")


def log_transaction(operation: str, data: Dict[str, Any], result: Optional[Any] = None, error: Optional[str] = None) -> None:
    """Cadastro/alteração/remoção; ``error`` presente grava como falha."""
    if not ENABLE_LOGGING:
        return
    if error:
        transaction_logger.error(f"TRANSACTION_FAILED: {operation} - {error} - Data: {data}")
    else:
        transaction_logger.info(f"TRANSACTION_SUCCESS: {operation} - Result: {result} - Data: {data}")


def log_movimento(action: str, product_id: str, tipo: str, quantidade: Any, **kwargs) -> None:
    """
    Movimento de estoque.

    Args:
        action: insert, update ou delete
        product_id: produto afetado
        tipo: 'in' ou 'out'
        quantidade: quantidade movimentada
        **kwargs: id do movimento, data, campos alterados...
    """
    if not ENABLE_LOGGING:
        return
    movimento_logger.info(
        f"MOVIMENTO_{action.upper()}: "
        f"{dict(productId=product_id, tipo=tipo, quantidade=quantidade, **kwargs)}"
    )


def log_database_operation(collection: str, operation: str, affected_docs: int = 0, **kwargs) -> None:
    if not ENABLE_LOGGING:
        return
    database_logger.info(f"DB_{operation}: {dict(collection=collection, affected_docs=affected_docs, **kwargs)}")


def log_system_event(event: str, details: Dict[str, Any] = None, level: str = "info") -> None:
    """Evento geral; ``level`` aceita info, warning ou error."""
    if not ENABLE_LOGGING:
        return
    emit = getattr(system_logger, level.lower(), system_logger.info)
    emit(f"SYSTEM_EVENT: {event} - {details or {}}")


def log_file_operation(operation: str, file_path: str, rows_processed: int = 0, **kwargs) -> None:
    """Importação/exportação de planilhas."""
    if not ENABLE_LOGGING:
        return
    system_logger.info(f"FILE_{operation.upper()}: {dict(file_path=file_path, rows_processed=rows_processed, **kwargs)}")


def get_log_summary(log_type: str = "transactions", lines: int = 100) -> Optional[str]:
    """
    Últimas ``lines`` linhas do log de um assunto.

    Returns:
        ``None`` com o logging desligado; mensagem de aviso quando o
        assunto não existe ou o arquivo ainda não foi criado.
    """
    if not ENABLE_LOGGING:
        return None

    arquivo = _ARQUIVOS.get(log_type)
    log_file = LOGS_DIR / arquivo if arquivo else None
    if log_file is None or not log_file.exists():
        return f"Log {log_type} não encontrado."

    with open(log_file, 'r', encoding='utf-8') as f:
        return ''.join(f.readlines()[-lines:])
