# mercogestor/config.py
"""
Configurações globais e valores padrão do gestor de estoque.
"""

import os
from dataclasses import dataclass, field


# Caminho padrão do banco SQLite usado como document store
DB_PATH = os.environ.get("MERCOGESTOR_DB", os.path.join(os.getcwd(), "mercogestor.db"))

# Logging em arquivo (desligado por padrão)
ENABLE_LOGGING = os.environ.get("MERCOGESTOR_LOG", "0").strip().lower() in {"1", "true", "sim", "yes"}
LOGS_DIR = os.environ.get("MERCOGESTOR_LOGS_DIR", os.path.join(os.getcwd(), "logs"))


def _env_int(nome: str, padrao: int) -> int:
    try:
        return int(os.environ.get(nome, padrao))
    except (TypeError, ValueError):
        return padrao


@dataclass
class DefaultConfig:
    """Valores padrão para regras e adaptadores."""
    batch_limit: int = 500                    # máximo de escritas por batch atômico
    cascata_em_lotes: bool = False            # True = percorre batches sucessivos em vez de truncar
    validar_categoria_na_criacao: bool = False
    janela_validade_dias: int = 10
    dias_relatorio: int = 30
    top_consumo: int = 6
    host: str = "127.0.0.1"
    port: int = field(default_factory=lambda: _env_int("PORT", 3000))


# Instância global dos valores padrão
DEFAULTS = DefaultConfig()
