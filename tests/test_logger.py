import logging
from pathlib import Path

import pytest

from mercogestor.infra import logger as log


@pytest.fixture()
def logs_ligados(tmp_path: Path, monkeypatch):
    monkeypatch.setattr(log, "ENABLE_LOGGING", True)
    monkeypatch.setattr(log, "LOGS_DIR", tmp_path / "logs")
    nomes = {
        "mercogestor.transactions": "transactions.log",
        "mercogestor.system": "system.log",
    }
    for nome, arquivo in nomes.items():
        log.setup_logger(nome, str(tmp_path / "logs" / arquivo))
    yield tmp_path / "logs"
    for nome in nomes:
        lg = logging.getLogger(nome)
        for h in list(lg.handlers):
            h.close()
            lg.removeHandler(h)
        lg.addHandler(logging.NullHandler())


def test_desligado_nao_escreve(tmp_path: Path, monkeypatch):
    monkeypatch.setattr(log, "ENABLE_LOGGING", False)
    lg = log.setup_logger("mercogestor.teste", str(tmp_path / "x" / "teste.log"))
    assert all(isinstance(h, logging.NullHandler) for h in lg.handlers)
    assert not (tmp_path / "x").exists()
    assert log.get_log_summary("system") is None
    log.log_system_event("nada")


def test_eventos_e_transacoes_vao_para_os_arquivos(logs_ligados: Path):
    log.log_system_event("relatorio_start", {"janela": 10})
    log.log_system_event("cascata_truncada", {"limite": 500}, level="warning")
    log.log_transaction("criar_produto", {"nome": "Arroz"}, result="success")
    log.log_transaction("remover_produto", {"id": "p1"}, error="falhou")

    system = log.get_log_summary("system")
    assert "SYSTEM_EVENT: relatorio_start" in system
    assert "WARNING" in system

    transacoes = log.get_log_summary("transactions", lines=1)
    assert transacoes.count("\n") == 1
    assert "TRANSACTION_FAILED: remover_produto - falhou" in transacoes


def test_resumo_de_log_inexistente(logs_ligados: Path):
    assert log.get_log_summary("database") == "Log database não encontrado."
    assert log.get_log_summary("outro") == "Log outro não encontrado."
